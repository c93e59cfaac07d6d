import io

import pytest
from pypdf import PdfReader

from packages.shared.models import InputDocument, MimeKind
from tests.fixtures.generate_fixture import create_synthetic_pdf

KIB = 1024


def page_texts(data: bytes) -> list[str]:
    return [page.extract_text() or "" for page in PdfReader(io.BytesIO(data)).pages]


@pytest.fixture
def pdf_doc():
    def _make(name: str, category: str | None, size_kib: int = 50, pages: int = 1, content: bytes | None = None):
        raw = create_synthetic_pdf(pages, name) if content is None else content
        return InputDocument(
            name=name,
            size_bytes=size_kib * KIB,
            mime_kind=MimeKind.PDF,
            category=category,
            mime_type="application/pdf",
            raw_content=raw,
        )
    return _make


@pytest.fixture
def other_doc():
    def _make(name: str, category: str | None, size_kib: int = 20):
        return InputDocument(
            name=name,
            size_bytes=size_kib * KIB,
            mime_kind=MimeKind.OTHER,
            category=category,
            mime_type="application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            raw_content=b"PK\x03\x04 not a pdf",
        )
    return _make


@pytest.fixture
def scenario_docs(pdf_doc, other_doc):
    """250 KiB protocol PDF, an IB .docx, a 50 KiB PDF under other."""
    return [
        pdf_doc("protocol_v3.pdf", "protocol", size_kib=250, pages=3),
        other_doc("brochure.docx", "ib"),
        pdf_doc("cover_letter.pdf", "other", size_kib=50, pages=1),
    ]


@pytest.fixture
def read_pages():
    return page_texts
