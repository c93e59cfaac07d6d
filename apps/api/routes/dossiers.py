"""
API route: Dossiers (plan preview and compilation)
"""
from __future__ import annotations

import os
from typing import Optional

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from packages.shared.models import CompileConfig, InputDocument, PaginationPlan

from apps.worker.pipeline import compile_dossier, preview_plan
from apps.worker.steps.step01_classify import (
    category_limit_violations,
    classify,
    missing_required_categories,
)

router = APIRouter(tags=["dossiers"])
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(25 * 1024 * 1024)))


class PlanResponse(BaseModel):
    dossier_type: str
    plan: PaginationPlan
    missing_required: list[str]
    limit_violations: dict[str, int]


class _CaptureSink:
    def __init__(self) -> None:
        self.data: bytes = b""
        self.file_name: str = ""

    def __call__(self, data: bytes, file_name: str) -> None:
        self.data = data
        self.file_name = file_name


async def _read_documents(
    files: list[UploadFile],
    categories: Optional[list[str]],
) -> list[InputDocument]:
    categories = categories or []
    if categories and len(categories) != len(files):
        raise HTTPException(status_code=400, detail="Each file needs exactly one category")

    documents: list[InputDocument] = []
    for index, upload in enumerate(files):
        content = await upload.read()
        if len(content) > MAX_UPLOAD_BYTES:
            raise HTTPException(status_code=413, detail=f"{upload.filename} exceeds configured size limit")
        category = categories[index] if categories else None
        documents.append(
            InputDocument.from_upload(
                name=upload.filename or f"document_{index + 1}",
                content=content,
                content_type=upload.content_type,
                category=category,
            )
        )
    return documents


@router.post("/dossiers/plan", response_model=PlanResponse)
async def plan_dossier(
    dossier_type: str = Form(""),
    files: list[UploadFile] = File(default=[]),
    categories: Optional[list[str]] = Form(default=None),
):
    """Preview the pagination plan and advisory readiness checks."""
    documents = await _read_documents(files, categories)
    plan = await run_in_threadpool(preview_plan, dossier_type, documents, CompileConfig.from_env())
    grouped = classify(documents)
    return PlanResponse(
        dossier_type=dossier_type,
        plan=plan,
        missing_required=[c.value for c in missing_required_categories(grouped)],
        limit_violations={c.value: n for c, n in category_limit_violations(grouped).items()},
    )


@router.post("/dossiers/compile")
async def compile_dossier_route(
    dossier_type: str = Form(""),
    files: list[UploadFile] = File(default=[]),
    categories: Optional[list[str]] = Form(default=None),
):
    """Compile the uploaded documents and return the dossier PDF as a download."""
    documents = await _read_documents(files, categories)
    sink = _CaptureSink()
    result = await run_in_threadpool(
        compile_dossier, dossier_type, documents, config=CompileConfig.from_env(), sink=sink
    )
    return Response(
        content=sink.data,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{result.file_name}"',
            "X-Dossier-File-Name": result.file_name,
            "X-Dossier-Document-Count": str(result.document_count),
            "X-Dossier-Page-Count": str(result.page_count),
            "X-Dossier-Type": result.dossier_type,
            "X-Dossier-Warnings": str(len(result.warnings)),
            "X-Dossier-Truncated": str(result.truncated_documents),
        },
    )
