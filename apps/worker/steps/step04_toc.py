"""
Step 4 — Table of contents.
Line layout is a pure function shared with the planner, so the number of
ToC pages is known before body pages are numbered. Rendering draws the
laid-out lines with reportlab.
"""
from __future__ import annotations

import io
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas as pdf_canvas

from packages.shared.errors import RenderError
from packages.shared.models import CompileConfig, PaginationPlan, category_display_name

from apps.worker.steps.dossier_render.common import BOLD_FONT, REGULAR_FONT, draw_footer
from apps.worker.steps.step01_classify import GroupedDocuments

logger = logging.getLogger(__name__)

TOC_HEADING = "Table of Contents"
TOC_CONTINUED_HEADING = "Table of Contents (continued)"
HEADING_SLOTS = 2
MAX_TOC_NAME_CHARS = 40

_TOP_Y = 720
_FIRST_LINE_Y = 680
_LAST_LINE_Y = 90
_LEFT_X = 72
_DOC_INDENT = 18
_RIGHT_X = letter[0] - 72


@dataclass(frozen=True)
class TocLine:
    text: str
    page: int
    is_category: bool
    keep_with_next: bool = False


@dataclass(frozen=True)
class TocPage:
    heading: str
    lines: tuple[TocLine, ...]


def truncate_name(name: str, limit: int = MAX_TOC_NAME_CHARS) -> str:
    if len(name) <= limit:
        return name
    return name[: limit - 3] + "..."


def build_toc_lines(sections: Sequence[tuple[str, int, Sequence[tuple[str, int]]]]) -> list[TocLine]:
    """
    sections: (category display name, start page, [(document name, start page), ...]).
    Category and document counters are 1-based; document counters reset per category.
    """
    lines: list[TocLine] = []
    for n, (display_name, start_page, documents) in enumerate(sections, start=1):
        lines.append(
            TocLine(
                text=f"{n}. {display_name}",
                page=start_page,
                is_category=True,
                keep_with_next=bool(documents),
            )
        )
        for m, (doc_name, doc_page) in enumerate(documents, start=1):
            lines.append(TocLine(text=f"{n}.{m} {truncate_name(doc_name)}", page=doc_page, is_category=False))
    return lines


def paginate_toc_lines(lines: Sequence[TocLine], lines_per_page: int) -> list[TocPage]:
    capacity = lines_per_page - HEADING_SLOTS
    if capacity < 2:
        raise ValueError("toc_lines_per_page leaves no room for entries")
    pages: list[list[TocLine]] = [[]]
    for line in lines:
        remaining = capacity - len(pages[-1])
        needed = 2 if line.keep_with_next else 1
        if remaining < needed and pages[-1]:
            pages.append([])
        pages[-1].append(line)
    return [
        TocPage(heading=TOC_HEADING if i == 0 else TOC_CONTINUED_HEADING, lines=tuple(page_lines))
        for i, page_lines in enumerate(pages)
    ]


def toc_page_count(grouped: GroupedDocuments, lines_per_page: int) -> int:
    """Pages the ToC will need for these groups. Page numbers do not affect layout."""
    sections = [
        (category_display_name(category), 0, [(doc.name, 0) for doc in docs])
        for category, docs in grouped.items()
        if docs
    ]
    return len(paginate_toc_lines(build_toc_lines(sections), lines_per_page))


def layout_toc(plan: PaginationPlan, lines_per_page: int) -> list[TocPage]:
    sections = [
        (category.display_name, category.start_page, [(d.name, d.start_page) for d in category.documents])
        for category in plan.categories
    ]
    return paginate_toc_lines(build_toc_lines(sections), lines_per_page)


def render_toc(plan: PaginationPlan, config: CompileConfig | None = None) -> tuple[bytes, int]:
    """Render the ToC pages. Returns (pdf bytes, page count)."""
    config = config or CompileConfig()
    pages = layout_toc(plan, config.toc_lines_per_page)
    slots = config.toc_lines_per_page - HEADING_SLOTS
    line_height = min(20.0, (_FIRST_LINE_Y - _LAST_LINE_Y) / max(slots - 1, 1))

    buf = io.BytesIO()
    try:
        c = pdf_canvas.Canvas(buf, pagesize=letter)
        for index, page in enumerate(pages):
            c.setFont(REGULAR_FONT, 18)
            c.drawString(_LEFT_X, _TOP_Y, page.heading)
            y = _FIRST_LINE_Y
            for line in page.lines:
                if line.is_category:
                    c.setFont(BOLD_FONT, 12)
                    c.drawString(_LEFT_X, y, line.text)
                else:
                    c.setFont(REGULAR_FONT, 11)
                    c.drawString(_LEFT_X + _DOC_INDENT, y, line.text)
                c.drawRightString(_RIGHT_X, y, f"Page {line.page}")
                y -= line_height
            draw_footer(c, plan.toc_start_page + index, config.brand_line)
            c.showPage()
        c.save()
    except Exception as exc:
        raise RenderError(f"Could not render table of contents: {exc}") from exc

    logger.debug(f"Rendered {len(pages)} ToC page(s) for {plan.document_count} documents")
    return buf.getvalue(), len(pages)
