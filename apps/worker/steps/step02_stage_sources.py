"""
Step 2 — Source staging.
Parses every PDF input with pypdf and re-serialises it, so embed failures
are known before pagination. Each PDF becomes a tagged StagedSource or
FailedSource; non-PDF inputs are not staged.
"""
from __future__ import annotations

import io
import logging
import threading
from dataclasses import dataclass
from typing import Union

from pypdf import PdfReader, PdfWriter

from packages.shared.errors import CompilationCancelled, DocumentMergeError
from packages.shared.models import DocumentKey, InputDocument

from apps.worker.steps.step01_classify import GroupedDocuments

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StagedSource:
    key: DocumentKey
    data: bytes
    page_count: int


@dataclass(frozen=True)
class FailedSource:
    key: DocumentKey
    error: DocumentMergeError


SourceOutcome = Union[StagedSource, FailedSource]


def stage_document(doc: InputDocument, key: DocumentKey) -> StagedSource:
    """Parse and re-serialise one PDF. Raises DocumentMergeError on any failure."""
    if not doc.raw_content:
        raise DocumentMergeError(f"{doc.name}: empty content", key=key, document_name=doc.name)
    try:
        reader = PdfReader(io.BytesIO(doc.raw_content))
        if reader.is_encrypted:
            raise DocumentMergeError(f"{doc.name}: encrypted PDF", key=key, document_name=doc.name)
        page_count = len(reader.pages)
        if page_count == 0:
            raise DocumentMergeError(f"{doc.name}: PDF has no pages", key=key, document_name=doc.name)
        writer = PdfWriter()
        writer.append(reader)
        buf = io.BytesIO()
        writer.write(buf)
        writer.close()
    except DocumentMergeError:
        raise
    except Exception as exc:
        raise DocumentMergeError(f"{doc.name}: {exc}", key=key, document_name=doc.name) from exc
    return StagedSource(key=key, data=buf.getvalue(), page_count=page_count)


def stage_sources(
    grouped: GroupedDocuments,
    cancel_event: threading.Event | None = None,
) -> dict[DocumentKey, SourceOutcome]:
    """Stage every PDF document. Never raises for a single bad document."""
    outcomes: dict[DocumentKey, SourceOutcome] = {}
    for category, docs in grouped.items():
        for position, doc in enumerate(docs):
            if cancel_event is not None and cancel_event.is_set():
                raise CompilationCancelled("Compilation cancelled during source staging")
            if not doc.is_pdf:
                continue
            key: DocumentKey = (category.value, position)
            try:
                outcomes[key] = stage_document(doc, key)
            except DocumentMergeError as exc:
                logger.warning(f"Could not stage {doc.name!r} ({category.value}): {exc}")
                outcomes[key] = FailedSource(key=key, error=exc)
    return outcomes


def failed_keys(outcomes: dict[DocumentKey, SourceOutcome]) -> frozenset[DocumentKey]:
    return frozenset(key for key, outcome in outcomes.items() if isinstance(outcome, FailedSource))


def measured_page_counts(outcomes: dict[DocumentKey, SourceOutcome]) -> dict[DocumentKey, int]:
    return {key: o.page_count for key, o in outcomes.items() if isinstance(o, StagedSource)}
