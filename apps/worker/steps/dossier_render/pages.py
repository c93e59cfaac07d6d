"""
Synthetic page builders: cover, category divider, document cover,
reference, error and summary pages. Each returns a one-page PDF.
"""
from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from reportlab.pdfgen import canvas as pdf_canvas

from packages.shared.models import InputDocument

from .common import (
    BOLD_FONT,
    LEFT_MARGIN,
    PAGE_HEIGHT,
    PAGE_WIDTH,
    REGULAR_FONT,
    draw_wrapped,
    render_single_page,
    size_mb,
)

COVER_SUBTITLE = "Compiled Clinical Trial Documentation"
PDF_LEAD_IN = "The following pages contain the original document."
MERGE_FAILURE_TEXT = "This document could not be merged into the dossier."

_CENTER_X = PAGE_WIDTH / 2


def cover_page(title: str, document_count: int, generated_at: datetime, brand_line: str) -> bytes:
    def draw(c: pdf_canvas.Canvas) -> None:
        c.setFont(BOLD_FONT, 20)
        c.drawCentredString(_CENTER_X, PAGE_HEIGHT - 170, title)
        c.setFont(REGULAR_FONT, 16)
        c.drawCentredString(_CENTER_X, PAGE_HEIGHT - 210, COVER_SUBTITLE)
        c.setFont(REGULAR_FONT, 12)
        c.drawCentredString(_CENTER_X, PAGE_HEIGHT - 280, f"Generated: {generated_at:%Y-%m-%d}")
        c.drawCentredString(_CENTER_X, PAGE_HEIGHT - 300, f"Total Documents: {document_count}")

    return render_single_page("cover", 1, brand_line, draw)


def divider_page(display_name: str, document_count: int, page_number: int, brand_line: str) -> bytes:
    noun = "Document" if document_count == 1 else "Documents"

    def draw(c: pdf_canvas.Canvas) -> None:
        c.setFont(BOLD_FONT, 24)
        c.drawCentredString(_CENTER_X, PAGE_HEIGHT / 2 + 40, display_name)
        c.setFont(REGULAR_FONT, 16)
        c.drawCentredString(_CENTER_X, PAGE_HEIGHT / 2, f"{document_count} {noun}")

    return render_single_page("divider", page_number, brand_line, draw)


def document_cover_page(doc: InputDocument, display_name: str, page_number: int, brand_line: str) -> bytes:
    def draw(c: pdf_canvas.Canvas) -> None:
        top = PAGE_HEIGHT - 110
        c.setFont(BOLD_FONT, 16)
        c.drawString(LEFT_MARGIN, top, display_name)
        y = draw_wrapped(c, f"Document: {doc.name}", LEFT_MARGIN, top - 40, size=14, leading=18)
        c.setFont(REGULAR_FONT, 12)
        c.drawString(LEFT_MARGIN, y - 10, f"Size: {size_mb(doc.size_bytes)}")
        c.drawString(LEFT_MARGIN, y - 28, "Type: PDF Document")
        c.setFont(REGULAR_FONT, 11)
        c.drawString(LEFT_MARGIN, y - 60, PDF_LEAD_IN)

    return render_single_page("document cover", page_number, brand_line, draw)


def reference_page(doc: InputDocument, display_name: str, page_number: int, brand_line: str) -> bytes:
    info = (
        f'This document "{doc.name}" is included by reference. In a clinical dossier, '
        "non-PDF documents are typically converted to PDF before inclusion."
    )

    def draw(c: pdf_canvas.Canvas) -> None:
        top = PAGE_HEIGHT - 110
        c.setFont(BOLD_FONT, 16)
        c.drawString(LEFT_MARGIN, top, display_name)
        y = draw_wrapped(c, f"File: {doc.name}", LEFT_MARGIN, top - 40, size=14, leading=18)
        c.setFont(REGULAR_FONT, 12)
        c.drawString(LEFT_MARGIN, y - 10, f"Size: {size_mb(doc.size_bytes)}")
        c.drawString(LEFT_MARGIN, y - 28, f"Type: {doc.mime_type or 'Unknown'}")
        c.drawString(LEFT_MARGIN, y - 46, f"Category: {display_name}")
        c.setFont(REGULAR_FONT, 11)
        c.drawString(LEFT_MARGIN, y - 80, "[Document Reference]")
        draw_wrapped(c, info, LEFT_MARGIN, y - 110)

    return render_single_page("reference", page_number, brand_line, draw)


def error_page(doc_name: str, reason: str, page_number: int, brand_line: str) -> bytes:
    def draw(c: pdf_canvas.Canvas) -> None:
        c.setFont(BOLD_FONT, 14)
        c.drawCentredString(_CENTER_X, PAGE_HEIGHT - 250, "Error Processing Document")
        c.setFont(REGULAR_FONT, 12)
        y = draw_wrapped(c, f"File: {doc_name}", LEFT_MARGIN, PAGE_HEIGHT - 290, size=12)
        c.setFont(REGULAR_FONT, 12)
        c.drawString(LEFT_MARGIN, y - 10, MERGE_FAILURE_TEXT)
        if reason:
            draw_wrapped(c, f"Reason: {reason[:300]}", LEFT_MARGIN, y - 40, size=10, leading=13)

    return render_single_page("error", page_number, brand_line, draw)


def summary_page(
    dossier_label: str,
    document_count: int,
    category_counts: Sequence[tuple[str, int]],
    generated_at: datetime,
    disclaimer: str,
    page_number: int,
    brand_line: str,
) -> bytes:
    def draw(c: pdf_canvas.Canvas) -> None:
        top = PAGE_HEIGHT - 80
        c.setFont(BOLD_FONT, 18)
        c.drawString(LEFT_MARGIN, top, "Document Summary")
        c.setFont(REGULAR_FONT, 12)
        c.drawString(LEFT_MARGIN, top - 30, f"Dossier Type: {dossier_label}")
        c.drawString(LEFT_MARGIN, top - 48, f"Total Documents: {document_count}")
        c.drawString(LEFT_MARGIN, top - 66, f"Generated: {generated_at:%Y-%m-%d %H:%M:%S}")
        c.drawString(LEFT_MARGIN, top - 100, "Document Count by Category:")
        y = top - 120
        for name, count in category_counts:
            c.drawString(LEFT_MARGIN + 12, y, f"• {name}: {count}")
            y -= 18
        draw_wrapped(c, disclaimer, LEFT_MARGIN, y - 30, size=10, leading=13)

    return render_single_page("summary", page_number, brand_line, draw)
