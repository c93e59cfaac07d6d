"""
Step 3 — Pagination planning.
Simulates the whole artifact walk (cover, ToC reservation, dividers,
documents, summary) and records the page each element starts on. Pure:
the page counter is a local accumulator and nothing is rendered.
"""
from __future__ import annotations

import logging
from collections.abc import Collection, Mapping

from packages.shared.errors import ConfigurationError
from packages.shared.models import (
    CategoryEntry,
    CompileConfig,
    DocumentEntry,
    DocumentKey,
    DocumentOutcome,
    InputDocument,
    PageCountMode,
    PaginationPlan,
    category_display_name,
)

from apps.worker.steps.step01_classify import GroupedDocuments
from apps.worker.steps.step04_toc import toc_page_count

logger = logging.getLogger(__name__)

COVER_PAGE = 1
TOC_START_PAGE = 2
DIVIDER_PAGES = 1
DOCUMENT_COVER_PAGES = 1
REFERENCE_PAGES = 1
ERROR_PAGES = 1
SUMMARY_PAGES = 1


def estimate_pdf_pages(size_bytes: int, size_per_page_bytes: int) -> int:
    """Content pages assumed for an opaque PDF: max(1, ceil(size / size_per_page))."""
    return max(1, -(-size_bytes // size_per_page_bytes))


def _document_span(
    doc: InputDocument,
    key: DocumentKey,
    config: CompileConfig,
    failed: Collection[DocumentKey],
    measured_pages: Mapping[DocumentKey, int],
) -> tuple[DocumentOutcome, int]:
    if not doc.is_pdf:
        return DocumentOutcome.REFERENCED, REFERENCE_PAGES
    if key in failed:
        return DocumentOutcome.FAILED, ERROR_PAGES
    if config.page_count_mode == PageCountMode.MEASURED and key in measured_pages:
        content_pages = max(1, measured_pages[key])
    else:
        content_pages = estimate_pdf_pages(doc.size_bytes, config.size_per_page_bytes)
    return DocumentOutcome.EMBEDDED, DOCUMENT_COVER_PAGES + content_pages


def plan_pagination(
    grouped: GroupedDocuments,
    start_page: int | None = None,
    config: CompileConfig | None = None,
    failed: Collection[DocumentKey] = frozenset(),
    measured_pages: Mapping[DocumentKey, int] | None = None,
) -> PaginationPlan:
    """
    Build the pagination plan.

    start_page defaults to the first page after however many ToC pages the
    layout needs. A caller-supplied start_page fixes the ToC reservation at
    start_page - 2 pages.
    Raises ConfigurationError when start_page leaves no room for the cover
    and the table of contents; otherwise planning never fails.
    """
    config = config or CompileConfig()
    measured_pages = measured_pages or {}

    if start_page is None:
        start_page = TOC_START_PAGE + toc_page_count(grouped, config.toc_lines_per_page)
    elif start_page < TOC_START_PAGE + 1:
        raise ConfigurationError(f"start_page must leave room for cover and ToC (got {start_page})")

    page = start_page
    categories: list[CategoryEntry] = []
    for category, docs in grouped.items():
        if not docs:
            continue
        category_start = page
        page += DIVIDER_PAGES
        entries: list[DocumentEntry] = []
        for position, doc in enumerate(docs):
            key: DocumentKey = (category.value, position)
            outcome, span = _document_span(doc, key, config, failed, measured_pages)
            entries.append(
                DocumentEntry(
                    name=doc.name,
                    start_page=page,
                    page_count=span,
                    outcome=outcome,
                    position=position,
                )
            )
            page += span
        categories.append(
            CategoryEntry(
                id=category,
                display_name=category_display_name(category),
                start_page=category_start,
                documents=tuple(entries),
            )
        )

    plan = PaginationPlan(
        categories=tuple(categories),
        toc_start_page=TOC_START_PAGE,
        toc_page_count=start_page - TOC_START_PAGE,
        summary_page=page,
        total_pages=page + SUMMARY_PAGES - 1,
        page_count_mode=config.page_count_mode,
        size_per_page_bytes=config.size_per_page_bytes,
    )
    logger.debug(
        f"Planned {plan.document_count} documents in {len(categories)} categories: "
        f"body starts p.{start_page}, summary p.{plan.summary_page}, {plan.total_pages} pages total"
    )
    return plan
