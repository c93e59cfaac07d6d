import re
import threading
from datetime import datetime, timezone
from itertools import permutations

import pytest

from apps.worker.pipeline import compile_dossier, preview_plan
from packages.shared.errors import CompilationCancelled, ConfigurationError
from packages.shared.models import CategoryId, CompileConfig, PageCountMode
from packages.shared.storage import DiskSink


class RecordingSink:
    def __init__(self):
        self.calls = []

    def __call__(self, data, file_name):
        self.calls.append((data, file_name))


def test_missing_dossier_type_is_fatal(pdf_doc):
    sink = RecordingSink()
    with pytest.raises(ConfigurationError, match="Dossier type is required"):
        compile_dossier(None, [pdf_doc("p.pdf", "protocol")], sink=sink)
    assert sink.calls == []


def test_empty_document_set_is_fatal():
    sink = RecordingSink()
    with pytest.raises(ConfigurationError, match="No documents provided"):
        compile_dossier("impd", [], sink=sink)
    with pytest.raises(ConfigurationError, match="No documents provided"):
        compile_dossier("impd", None, sink=sink)
    assert sink.calls == []


def test_successful_run_reports_result_and_calls_sink(scenario_docs, read_pages):
    sink = RecordingSink()
    result = compile_dossier("impd", scenario_docs, sink=sink)

    assert result.success is True
    assert re.fullmatch(r"impd_dossier_\d+\.pdf", result.file_name)
    assert result.message == f"Dossier compiled successfully! Downloaded as: {result.file_name}"
    assert result.document_count == 3
    assert result.dossier_type == "Investigational Medicinal Product Dossier"
    assert result.page_count == 13
    assert result.warnings == []

    assert len(sink.calls) == 1
    data, file_name = sink.calls[0]
    assert file_name == result.file_name
    assert len(read_pages(data)) == 13


def test_partial_failure_is_still_success(scenario_docs, pdf_doc):
    docs = scenario_docs + [pdf_doc("corrupt.pdf", "clinical", content=b"garbage bytes")]
    result = compile_dossier("ind", docs)
    assert result.success is True
    assert result.document_count == 4
    assert [w.code for w in result.warnings] == ["DOCUMENT_MERGE_FAILED"]
    assert result.plan.outcome_counts() == {"embedded": 2, "referenced": 1, "failed": 1}


def test_category_order_independent_of_input_permutation(scenario_docs, pdf_doc):
    docs = scenario_docs + [pdf_doc("q.pdf", "quality")]
    orders = set()
    for perm in permutations(docs):
        plan = preview_plan("ctd", list(perm))
        orders.add(tuple(c.id for c in plan.categories))
    assert orders == {(CategoryId.PROTOCOL, CategoryId.IB, CategoryId.QUALITY, CategoryId.OTHER)}


def test_file_name_is_deterministic_for_a_timestamp(scenario_docs):
    generated = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    first = compile_dossier("ectd", scenario_docs, generated_at=generated)
    second = compile_dossier("ectd", scenario_docs, generated_at=generated)
    assert first.file_name == second.file_name == "ectd_dossier_1704164645000.pdf"


def test_unknown_dossier_type_uses_generic_title(scenario_docs, read_pages):
    sink = RecordingSink()
    result = compile_dossier("annex-x", scenario_docs, sink=sink)
    assert result.dossier_type == "annex-x"
    cover = read_pages(sink.calls[0][0])[0]
    assert "Clinical Dossier" in cover


def test_cancellation_stops_before_artifact(scenario_docs):
    cancel = threading.Event()
    cancel.set()
    sink = RecordingSink()
    with pytest.raises(CompilationCancelled):
        compile_dossier("impd", scenario_docs, sink=sink, cancel_event=cancel)
    assert sink.calls == []


def test_disk_sink_writes_artifact(scenario_docs, tmp_path):
    sink = DiskSink(tmp_path)
    result = compile_dossier("impd", scenario_docs, sink=sink)
    assert sink.saved == [tmp_path / result.file_name]
    assert sink.saved[0].read_bytes().startswith(b"%PDF")


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("DOSSIER_SIZE_PER_PAGE_BYTES", "2048")
    monkeypatch.setenv("DOSSIER_PAGE_COUNT_MODE", "measured")
    monkeypatch.setenv("DOSSIER_TOC_LINES_PER_PAGE", "12")
    monkeypatch.setenv("DOSSIER_BRAND_LINE", "Prepared by Regulatory Ops")
    config = CompileConfig.from_env()
    assert config.size_per_page_bytes == 2048
    assert config.page_count_mode == PageCountMode.MEASURED
    assert config.toc_lines_per_page == 12
    assert config.brand_line == "Prepared by Regulatory Ops"


def test_config_defaults_without_env(monkeypatch):
    for name in ("DOSSIER_SIZE_PER_PAGE_BYTES", "DOSSIER_PAGE_COUNT_MODE", "DOSSIER_TOC_LINES_PER_PAGE", "DOSSIER_BRAND_LINE"):
        monkeypatch.delenv(name, raising=False)
    config = CompileConfig.from_env()
    assert config.size_per_page_bytes == 100 * 1024
    assert config.page_count_mode == PageCountMode.ESTIMATE


def test_dossier_type_is_normalized_before_naming(pdf_doc):
    sink = RecordingSink()
    result = compile_dossier("  eCTD ", [pdf_doc("p.pdf", "protocol")], sink=sink)
    assert re.fullmatch(r"ectd_dossier_\d+\.pdf", result.file_name)
    assert sink.calls[0][1] == result.file_name
    assert result.dossier_type == "Electronic Common Technical Document"


@pytest.mark.parametrize("dossier_type", ["ctd/eu", "impd–eu", "../ind", "ind dossier"])
def test_unsafe_dossier_type_is_rejected_before_compiling(pdf_doc, dossier_type):
    sink = RecordingSink()
    with pytest.raises(ConfigurationError, match="Invalid dossier type"):
        compile_dossier(dossier_type, [pdf_doc("p.pdf", "protocol")], sink=sink)
    assert sink.calls == []


def test_truncation_is_reported_on_the_result(pdf_doc):
    result = compile_dossier("impd", [pdf_doc("long.pdf", "clinical", size_kib=10, pages=3)])
    assert result.truncated_documents == 1
    assert "1 document(s) were cut to their size-estimated page span" in result.message
    assert result.message.startswith(f"Dossier compiled successfully! Downloaded as: {result.file_name}")
