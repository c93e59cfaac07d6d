"""
Shared drawing helpers for synthetic dossier pages.
"""
from __future__ import annotations

import io
from collections.abc import Callable

from reportlab.lib.pagesizes import letter
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas as pdf_canvas

from packages.shared.errors import RenderError

PAGE_WIDTH, PAGE_HEIGHT = letter
REGULAR_FONT = "Helvetica"
BOLD_FONT = "Helvetica-Bold"
LEFT_MARGIN = 72
TEXT_WIDTH = PAGE_WIDTH - 2 * LEFT_MARGIN


def draw_footer(c: pdf_canvas.Canvas, page_number: int, brand_line: str) -> None:
    c.saveState()
    c.setFont(REGULAR_FONT, 10)
    if brand_line:
        c.drawCentredString(PAGE_WIDTH / 2, 40, brand_line)
    c.drawRightString(PAGE_WIDTH - 40, 28, f"Page {page_number}")
    c.restoreState()


def draw_wrapped(
    c: pdf_canvas.Canvas,
    text: str,
    x: float,
    y: float,
    *,
    font: str = REGULAR_FONT,
    size: float = 11,
    leading: float = 15,
    width: float = TEXT_WIDTH,
) -> float:
    """Draw text wrapped to width. Returns the y below the last line."""
    c.setFont(font, size)
    for line in simpleSplit(text, font, size, width):
        c.drawString(x, y, line)
        y -= leading
    return y


def size_mb(size_bytes: int) -> str:
    return f"{size_bytes / 1024 / 1024:.2f} MB"


def render_single_page(
    label: str,
    page_number: int,
    brand_line: str,
    draw: Callable[[pdf_canvas.Canvas], None],
) -> bytes:
    """Render one letter page with the standard footer."""
    buf = io.BytesIO()
    try:
        c = pdf_canvas.Canvas(buf, pagesize=letter)
        draw(c)
        draw_footer(c, page_number, brand_line)
        c.showPage()
        c.save()
    except Exception as exc:
        raise RenderError(f"Could not render {label} page {page_number}: {exc}") from exc
    return buf.getvalue()
