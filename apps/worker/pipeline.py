"""
Pipeline orchestrator — compiles a dossier in five sequential steps.
"""
from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Sequence
from datetime import datetime, timezone

from packages.shared.errors import CompilationCancelled, ConfigurationError, DocumentMergeError
from packages.shared.models import (
    CompileConfig,
    CompiledArtifact,
    CompileResult,
    DocumentKey,
    InputDocument,
    PaginationPlan,
    Warning,
)

from apps.worker.steps.step01_classify import GroupedDocuments, classify
from apps.worker.steps.step02_stage_sources import (
    FailedSource,
    SourceOutcome,
    failed_keys,
    measured_page_counts,
    stage_sources,
)
from apps.worker.steps.step03_paginate import plan_pagination
from apps.worker.steps.step05_assemble import assemble, dossier_label, validate_request

logger = logging.getLogger(__name__)

# Receives the artifact bytes and its file name; return value is ignored.
DownloadSink = Callable[[bytes, str], None]


def build_plan(
    grouped: GroupedDocuments,
    sources: dict[DocumentKey, SourceOutcome],
    config: CompileConfig,
    start_page: int | None = None,
) -> PaginationPlan:
    return plan_pagination(
        grouped,
        start_page=start_page,
        config=config,
        failed=failed_keys(sources),
        measured_pages=measured_page_counts(sources),
    )


def preview_plan(
    dossier_type: str | None,
    documents: Sequence[InputDocument] | None,
    config: CompileConfig | None = None,
    start_page: int | None = None,
) -> PaginationPlan:
    """Plan without assembling; staging still runs so failed documents are reflected."""
    config = config or CompileConfig()
    dossier_type = validate_request(dossier_type, len(documents or []))
    grouped = classify(documents or [])
    return build_plan(grouped, stage_sources(grouped), config, start_page)


def compile_artifact(
    dossier_type: str,
    grouped: GroupedDocuments,
    config: CompileConfig,
    *,
    start_page: int | None = None,
    cancel_event: threading.Event | None = None,
    generated_at: datetime | None = None,
) -> tuple[CompiledArtifact, PaginationPlan, list[Warning]]:
    """
    Stage, plan and assemble. An embed failure found during assembly marks
    that document as failed and re-plans, so page numbers stay consistent.
    """
    sources = stage_sources(grouped, cancel_event)
    generated_at = generated_at or datetime.now(timezone.utc)

    while True:
        plan = build_plan(grouped, sources, config, start_page)
        try:
            artifact, warnings = assemble(
                grouped,
                plan,
                dossier_type=dossier_type,
                sources=sources,
                config=config,
                generated_at=generated_at,
                cancel_event=cancel_event,
            )
            return artifact, plan, warnings
        except DocumentMergeError as exc:
            if exc.key is None or isinstance(sources.get(exc.key), FailedSource):
                raise
            logger.warning(f"Embedding {exc.document_name!r} failed during assembly; re-planning: {exc}")
            sources[exc.key] = FailedSource(key=exc.key, error=exc)


def compile_dossier(
    dossier_type: str | None,
    documents: Sequence[InputDocument] | None,
    *,
    config: CompileConfig | None = None,
    sink: DownloadSink | None = None,
    start_page: int | None = None,
    cancel_event: threading.Event | None = None,
    generated_at: datetime | None = None,
) -> CompileResult:
    """
    Compile documents into one dossier PDF and hand it to the sink.

    Raises ConfigurationError before any work when the dossier type or the
    document list is missing. Per-document merge failures do not abort the
    run; they become error pages and warnings on the result.
    """
    config = config or CompileConfig()
    dossier_type = validate_request(dossier_type, len(documents or []))

    start_time = time.time()
    logger.info(f"Compiling {dossier_type} dossier from {len(documents)} document(s)")
    grouped = classify(documents)

    try:
        artifact, plan, warnings = compile_artifact(
            dossier_type,
            grouped,
            config,
            start_page=start_page,
            cancel_event=cancel_event,
            generated_at=generated_at,
        )
    except CompilationCancelled:
        logger.info(f"Compilation of {dossier_type} dossier cancelled")
        raise
    except ConfigurationError:
        raise
    except Exception:
        logger.exception(f"Compilation of {dossier_type} dossier failed")
        raise

    if sink is not None:
        sink(artifact.data, artifact.file_name)

    for warning in warnings:
        logger.warning(f"[{warning.code}] {warning.message}")
    elapsed = time.time() - start_time
    logger.info(
        f"Compiled {artifact.file_name}: {artifact.page_count} pages, "
        f"{len(warnings)} warning(s) in {elapsed:.2f}s"
    )

    truncated = sum(1 for w in warnings if w.code == "CONTENT_TRUNCATED")
    message = f"Dossier compiled successfully! Downloaded as: {artifact.file_name}"
    if truncated:
        message += (
            f" ({truncated} document(s) were cut to their size-estimated page span; "
            f"compile with measured page counts to keep every page)"
        )

    return CompileResult(
        success=True,
        file_name=artifact.file_name,
        message=message,
        document_count=artifact.document_count,
        dossier_type=dossier_label(dossier_type),
        page_count=artifact.page_count,
        truncated_documents=truncated,
        warnings=warnings,
        plan=plan,
    )
