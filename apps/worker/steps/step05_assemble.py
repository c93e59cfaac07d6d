"""
Step 5 — Artifact assembly.
Emits cover, ToC, dividers, per-document pages and summary into a single
PDF. Assembly is driven entirely by the outcomes recorded in the plan,
and the page count written so far is checked against the plan before
every element.
"""
from __future__ import annotations

import io
import logging
import re
import threading
from collections.abc import Mapping
from datetime import datetime, timezone

from pypdf import PdfReader, PdfWriter
from reportlab.lib.pagesizes import letter

from packages.shared.errors import (
    CompilationCancelled,
    ConfigurationError,
    DocumentMergeError,
    RenderError,
)
from packages.shared.models import (
    DEFAULT_DOSSIER_TITLE,
    CompileConfig,
    CompiledArtifact,
    DocumentKey,
    DocumentOutcome,
    PaginationPlan,
    Warning,
    dossier_type_name,
)

from apps.worker.steps.dossier_render import (
    cover_page,
    divider_page,
    document_cover_page,
    error_page,
    reference_page,
    summary_page,
)
from apps.worker.steps.step01_classify import GroupedDocuments, document_total
from apps.worker.steps.step02_stage_sources import FailedSource, SourceOutcome, StagedSource
from apps.worker.steps.step04_toc import render_toc

logger = logging.getLogger(__name__)
DOSSIER_TYPE_PATTERN = re.compile(r"[a-z0-9][a-z0-9_-]*")


def validate_request(dossier_type: str | None, document_count: int) -> str:
    """
    Check the top-level request and return the normalized dossier type.

    The type ends up in file names and download headers, so only lowercase
    letters, digits, "-" and "_" are accepted.
    """
    if not dossier_type or not str(dossier_type).strip():
        raise ConfigurationError("Dossier type is required")
    normalized = str(dossier_type).strip().lower()
    if not DOSSIER_TYPE_PATTERN.fullmatch(normalized):
        raise ConfigurationError(
            f"Invalid dossier type {dossier_type!r}: use letters, digits, '-' or '_'"
        )
    if document_count <= 0:
        raise ConfigurationError("No documents provided")
    return normalized


def dossier_label(dossier_type: str) -> str:
    """Full dossier name, or the raw type when it is not a known one."""
    return dossier_type_name(dossier_type) or dossier_type


def build_file_name(dossier_type: str, generated_at: datetime) -> str:
    timestamp = int(generated_at.timestamp() * 1000)
    return f"{dossier_type}_dossier_{timestamp}.pdf"


def _check_plan_matches(grouped: GroupedDocuments, plan: PaginationPlan) -> None:
    planned = [(c.id, len(c.documents)) for c in plan.categories]
    actual = [(category, len(docs)) for category, docs in grouped.items() if docs]
    if planned != actual:
        raise ConfigurationError("Pagination plan does not match the grouped documents")


class _PageStream:
    """PdfWriter wrapper that tracks the absolute page position."""

    def __init__(self) -> None:
        self.writer = PdfWriter()

    @property
    def page_count(self) -> int:
        return len(self.writer.pages)

    def expect_next(self, page_number: int, label: str) -> None:
        if self.page_count + 1 != page_number:
            raise RenderError(
                f"Page drift before {label}: planned page {page_number}, "
                f"next page would be {self.page_count + 1}"
            )

    def append_pdf(self, data: bytes) -> int:
        reader = PdfReader(io.BytesIO(data))
        self.writer.append(reader)
        return len(reader.pages)

    def add_blank_pages(self, count: int) -> None:
        for _ in range(count):
            self.writer.add_blank_page(width=letter[0], height=letter[1])

    def to_bytes(self) -> bytes:
        buf = io.BytesIO()
        self.writer.write(buf)
        self.writer.close()
        return buf.getvalue()


def fit_content(source: StagedSource, span: int) -> tuple[bytes, int]:
    """
    Fit staged content to exactly `span` pages: blank pages pad short
    content, extra pages are dropped. Returns (pdf bytes, dropped pages).
    """
    try:
        reader = PdfReader(io.BytesIO(source.data))
        pages = list(reader.pages)
        writer = PdfWriter()
        for page in pages[:span]:
            writer.add_page(page)
        for _ in range(span - min(len(pages), span)):
            writer.add_blank_page(width=letter[0], height=letter[1])
        buf = io.BytesIO()
        writer.write(buf)
        writer.close()
    except Exception as exc:
        raise DocumentMergeError(f"Could not embed content: {exc}", key=source.key) from exc
    return buf.getvalue(), max(0, len(pages) - span)


def assemble(
    grouped: GroupedDocuments,
    plan: PaginationPlan,
    *,
    dossier_type: str,
    sources: Mapping[DocumentKey, SourceOutcome],
    config: CompileConfig | None = None,
    generated_at: datetime | None = None,
    cancel_event: threading.Event | None = None,
) -> tuple[CompiledArtifact, list[Warning]]:
    """
    Assemble the final artifact from the plan.

    Raises ConfigurationError for invalid top-level input, RenderError when a
    synthetic page cannot be produced or pages drift from the plan, and
    DocumentMergeError (with the document key) when an `embedded` document
    fails so the caller can re-plan it as `failed`.
    """
    config = config or CompileConfig()
    dossier_type = validate_request(dossier_type, document_total(grouped))
    _check_plan_matches(grouped, plan)
    generated_at = generated_at or datetime.now(timezone.utc)
    brand = config.brand_line
    warnings: list[Warning] = []

    stream = _PageStream()
    title = dossier_type_name(dossier_type) or DEFAULT_DOSSIER_TITLE
    stream.append_pdf(cover_page(title, plan.document_count, generated_at, brand))

    stream.expect_next(plan.toc_start_page, "table of contents")
    toc_bytes, toc_pages = render_toc(plan, config)
    if toc_pages > plan.toc_page_count:
        raise RenderError(
            f"Table of contents needs {toc_pages} pages but only {plan.toc_page_count} were reserved"
        )
    stream.append_pdf(toc_bytes)
    stream.add_blank_pages(plan.toc_page_count - toc_pages)

    for category in plan.categories:
        docs = grouped[category.id]
        stream.expect_next(category.start_page, f"divider {category.id.value}")
        stream.append_pdf(divider_page(category.display_name, len(docs), category.start_page, brand))

        for entry in category.documents:
            if cancel_event is not None and cancel_event.is_set():
                raise CompilationCancelled("Compilation cancelled during assembly")
            doc = docs[entry.position]
            key = category.key_for(entry)
            stream.expect_next(entry.start_page, f"document {doc.name!r}")

            if entry.outcome == DocumentOutcome.REFERENCED:
                stream.append_pdf(reference_page(doc, category.display_name, entry.start_page, brand))
                continue

            if entry.outcome == DocumentOutcome.FAILED:
                source = sources.get(key)
                reason = str(source.error) if isinstance(source, FailedSource) else "content could not be embedded"
                stream.append_pdf(error_page(doc.name, reason, entry.start_page, brand))
                warnings.append(
                    Warning(
                        code="DOCUMENT_MERGE_FAILED",
                        message=f"{doc.name} could not be merged: {reason}",
                        page=entry.start_page,
                        document_name=doc.name,
                    )
                )
                continue

            source = sources.get(key)
            if not isinstance(source, StagedSource):
                raise DocumentMergeError(f"{doc.name}: no staged content", key=key, document_name=doc.name)
            content_span = entry.page_count - 1
            try:
                content, dropped = fit_content(source, content_span)
            except DocumentMergeError as exc:
                exc.document_name = doc.name
                raise
            stream.append_pdf(document_cover_page(doc, category.display_name, entry.start_page, brand))
            stream.append_pdf(content)
            if dropped:
                logger.warning(f"{doc.name}: {dropped} page(s) beyond the planned span were not included")
                warnings.append(
                    Warning(
                        code="CONTENT_TRUNCATED",
                        message=(
                            f"{doc.name} has {source.page_count} pages; only {content_span} fit the "
                            f"estimated span"
                        ),
                        page=entry.start_page,
                        document_name=doc.name,
                    )
                )

    stream.expect_next(plan.summary_page, "summary")
    stream.append_pdf(
        summary_page(
            dossier_label(dossier_type),
            plan.document_count,
            [(c.display_name, len(c.documents)) for c in plan.categories],
            generated_at,
            config.disclaimer,
            plan.summary_page,
            brand,
        )
    )
    if stream.page_count != plan.total_pages:
        raise RenderError(f"Assembled {stream.page_count} pages, planned {plan.total_pages}")

    artifact = CompiledArtifact(
        data=stream.to_bytes(),
        file_name=build_file_name(dossier_type, generated_at),
        document_count=plan.document_count,
        dossier_type_label=dossier_label(dossier_type),
        page_count=plan.total_pages,
        generated_at=generated_at,
    )
    logger.info(f"Assembled {artifact.file_name}: {artifact.page_count} pages, {artifact.document_count} documents")
    return artifact, warnings
