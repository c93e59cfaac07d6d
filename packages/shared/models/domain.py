from __future__ import annotations

import os
from datetime import datetime
from typing import Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import CategoryId, DocumentOutcome, MimeKind, PageCountMode

PDF_MIME_TYPE = "application/pdf"
DEFAULT_SIZE_PER_PAGE_BYTES = 100 * 1024
DEFAULT_DISCLAIMER = (
    "This dossier has been automatically compiled. Please review all content "
    "carefully before submission to regulatory authorities."
)

# (category, position within category)
DocumentKey = tuple[str, int]


class Warning(BaseModel):
    code: str
    message: str
    page: Optional[int] = None
    document_name: Optional[str] = None


class CompileConfig(BaseModel):
    """Configuration for a compilation run."""
    size_per_page_bytes: int = Field(default=DEFAULT_SIZE_PER_PAGE_BYTES, gt=0)
    page_count_mode: PageCountMode = PageCountMode.ESTIMATE
    toc_lines_per_page: int = Field(default=28, ge=4)
    brand_line: str = "Prepared by Dossier Compiler"
    disclaimer: str = DEFAULT_DISCLAIMER

    @classmethod
    def from_env(cls) -> "CompileConfig":
        overrides: dict[str, object] = {}
        raw_size = os.getenv("DOSSIER_SIZE_PER_PAGE_BYTES", "").strip()
        if raw_size:
            overrides["size_per_page_bytes"] = int(raw_size)
        raw_mode = os.getenv("DOSSIER_PAGE_COUNT_MODE", "").strip().lower()
        if raw_mode:
            overrides["page_count_mode"] = PageCountMode(raw_mode)
        raw_lines = os.getenv("DOSSIER_TOC_LINES_PER_PAGE", "").strip()
        if raw_lines:
            overrides["toc_lines_per_page"] = int(raw_lines)
        brand = os.getenv("DOSSIER_BRAND_LINE")
        if brand is not None and brand.strip():
            overrides["brand_line"] = brand.strip()
        return cls(**overrides)


class InputDocument(BaseModel):
    """An uploaded file with its assigned category. Read-only to the engine."""
    model_config = ConfigDict(frozen=True)

    name: str
    size_bytes: int = Field(ge=0)
    mime_kind: MimeKind = MimeKind.OTHER
    category: str = CategoryId.OTHER.value
    mime_type: Optional[str] = None
    raw_content: bytes = Field(default=b"", repr=False)

    @field_validator("category", mode="before")
    @classmethod
    def _normalize_category(cls, value: object) -> str:
        if isinstance(value, CategoryId):
            return value.value
        if value is None:
            return CategoryId.OTHER.value
        text = str(value).strip().lower()
        return text or CategoryId.OTHER.value

    @property
    def category_id(self) -> CategoryId:
        """Canonical category; unrecognised ids order as `other`."""
        try:
            return CategoryId(self.category)
        except ValueError:
            return CategoryId.OTHER

    @property
    def is_pdf(self) -> bool:
        return self.mime_kind == MimeKind.PDF

    @classmethod
    def from_upload(
        cls,
        name: str,
        content: bytes,
        content_type: Optional[str] = None,
        category: Optional[str] = None,
    ) -> "InputDocument":
        ctype = (content_type or "").split(";")[0].strip().lower()
        is_pdf = ctype == PDF_MIME_TYPE or name.lower().endswith(".pdf")
        return cls(
            name=name,
            size_bytes=len(content),
            mime_kind=MimeKind.PDF if is_pdf else MimeKind.OTHER,
            category=category,
            mime_type=ctype or None,
            raw_content=content,
        )


class DocumentEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    start_page: int
    page_count: int
    outcome: DocumentOutcome
    position: int  # index within its category, arrival order


class CategoryEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: CategoryId
    display_name: str
    start_page: int
    documents: tuple[DocumentEntry, ...] = ()

    def key_for(self, entry: DocumentEntry) -> DocumentKey:
        return (self.id.value, entry.position)


class PaginationPlan(BaseModel):
    """Page number of every structural element, computed before rendering."""
    model_config = ConfigDict(frozen=True)

    categories: tuple[CategoryEntry, ...] = ()
    toc_start_page: int = 2
    toc_page_count: int = 1
    summary_page: int
    total_pages: int
    page_count_mode: PageCountMode = PageCountMode.ESTIMATE
    size_per_page_bytes: int = DEFAULT_SIZE_PER_PAGE_BYTES

    @property
    def body_start_page(self) -> int:
        return self.toc_start_page + self.toc_page_count

    @property
    def document_count(self) -> int:
        return sum(len(c.documents) for c in self.categories)

    def iter_documents(self) -> Iterator[tuple[CategoryEntry, DocumentEntry]]:
        for category in self.categories:
            for entry in category.documents:
                yield category, entry

    def start_pages(self) -> list[int]:
        """Start pages in walk order: cover, ToC, dividers and documents, summary."""
        pages = [1, self.toc_start_page]
        for category in self.categories:
            pages.append(category.start_page)
            pages.extend(d.start_page for d in category.documents)
        pages.append(self.summary_page)
        return pages

    def outcome_counts(self) -> dict[str, int]:
        counts = {o.value: 0 for o in DocumentOutcome}
        for _, entry in self.iter_documents():
            counts[entry.outcome.value] += 1
        return counts


class CompiledArtifact(BaseModel):
    model_config = ConfigDict(frozen=True)

    data: bytes = Field(repr=False)
    file_name: str
    document_count: int
    dossier_type_label: str
    page_count: int
    generated_at: datetime


class CompileResult(BaseModel):
    """Result record handed back to the caller."""
    success: bool
    file_name: str
    message: str
    document_count: int
    dossier_type: str
    page_count: int
    truncated_documents: int = 0
    warnings: list[Warning] = Field(default_factory=list)
    plan: Optional[PaginationPlan] = None
