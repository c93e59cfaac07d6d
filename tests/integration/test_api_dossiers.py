import io

from fastapi.testclient import TestClient
from pypdf import PdfReader
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from apps.api.main import app

client = TestClient(app)


def _pdf_bytes(label: str, pages: int = 1) -> bytes:
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    for i in range(pages):
        c.drawString(72, 700, f"{label} page {i + 1}")
        c.showPage()
    c.save()
    return buf.getvalue()


def _files():
    return [
        ("files", ("protocol.pdf", _pdf_bytes("protocol", 2), "application/pdf")),
        ("files", ("brochure.docx", b"PK\x03\x04docx", "application/octet-stream")),
    ]


def test_health():
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_compile_returns_pdf_download():
    resp = client.post(
        "/dossiers/compile",
        data={"dossier_type": "impd", "categories": ["protocol", "ib"]},
        files=_files(),
    )
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/pdf"
    file_name = resp.headers["x-dossier-file-name"]
    assert file_name.startswith("impd_dossier_")
    assert f'filename="{file_name}"' in resp.headers["content-disposition"]
    assert resp.headers["x-dossier-document-count"] == "2"
    reader = PdfReader(io.BytesIO(resp.content))
    assert len(reader.pages) == int(resp.headers["x-dossier-page-count"])
    assert resp.headers.get("x-request-id")


def test_compile_without_dossier_type_is_rejected():
    resp = client.post("/dossiers/compile", data={"categories": ["protocol", "ib"]}, files=_files())
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Dossier type is required"


def test_compile_without_documents_is_rejected():
    resp = client.post("/dossiers/compile", data={"dossier_type": "impd"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "No documents provided"


def test_mismatched_categories_are_rejected():
    resp = client.post(
        "/dossiers/compile",
        data={"dossier_type": "impd", "categories": ["protocol"]},
        files=_files(),
    )
    assert resp.status_code == 400


def test_plan_preview_reports_pages_and_readiness():
    resp = client.post(
        "/dossiers/plan",
        data={"dossier_type": "ctd", "categories": ["protocol", "ib"]},
        files=_files(),
    )
    assert resp.status_code == 200
    body = resp.json()
    categories = body["plan"]["categories"]
    assert [c["id"] for c in categories] == ["protocol", "ib"]
    assert categories[0]["start_page"] == 3
    assert categories[0]["documents"][0]["outcome"] == "embedded"
    assert categories[1]["documents"][0]["outcome"] == "referenced"
    assert "quality" in body["missing_required"]
    assert "other" not in body["missing_required"]
    assert body["limit_violations"] == {}


def test_non_ascii_dossier_type_is_rejected_as_bad_request():
    resp = client.post(
        "/dossiers/compile",
        data={"dossier_type": "impd–eu", "categories": ["protocol", "ib"]},
        files=_files(),
    )
    assert resp.status_code == 400
    assert resp.json()["detail"].startswith("Invalid dossier type")


def test_compile_normalizes_dossier_type_in_headers():
    resp = client.post(
        "/dossiers/compile",
        data={"dossier_type": " IMPD ", "categories": ["protocol", "ib"]},
        files=_files(),
    )
    assert resp.status_code == 200
    assert resp.headers["x-dossier-file-name"].startswith("impd_dossier_")
    assert resp.headers["x-dossier-type"] == "Investigational Medicinal Product Dossier"


def test_compile_reports_truncated_documents():
    # a few KiB of PDF is estimated at one content page
    resp = client.post(
        "/dossiers/compile",
        data={"dossier_type": "ind", "categories": ["clinical"]},
        files=[("files", ("study.pdf", _pdf_bytes("study", 3), "application/pdf"))],
    )
    assert resp.status_code == 200
    assert resp.headers["x-dossier-truncated"] == "1"
    assert resp.headers["x-dossier-warnings"] == "1"
