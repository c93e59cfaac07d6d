from apps.worker.steps.step01_classify import classify
from apps.worker.steps.step03_paginate import plan_pagination
from apps.worker.steps.step04_toc import (
    TOC_CONTINUED_HEADING,
    TOC_HEADING,
    build_toc_lines,
    layout_toc,
    paginate_toc_lines,
    render_toc,
    toc_page_count,
    truncate_name,
)
from packages.shared.models import CompileConfig, InputDocument


def test_truncate_name_limits_to_forty_characters():
    exact = "x" * 40
    assert truncate_name(exact) == exact
    long_name = "Clinical_Study_Report_Final_Version_2024_signed.pdf"
    truncated = truncate_name(long_name)
    assert len(truncated) == 40
    assert truncated.endswith("...")
    assert truncated.startswith(long_name[:37])


def test_counters_are_one_based_and_reset_per_category(scenario_docs, pdf_doc):
    docs = scenario_docs + [pdf_doc("second_protocol_appendix.pdf", "protocol")]
    plan = plan_pagination(classify(docs))
    lines = [line.text for page in layout_toc(plan, 28) for line in page.lines]
    assert lines == [
        "1. Protocol",
        "1.1 protocol_v3.pdf",
        "1.2 second_protocol_appendix.pdf",
        "2. Investigator's Brochure",
        "2.1 brochure.docx",
        "3. Other Documents",
        "3.1 cover_letter.pdf",
    ]


def test_lines_carry_resolved_page_numbers(scenario_docs):
    plan = plan_pagination(classify(scenario_docs), start_page=3)
    pages = [line.page for line in layout_toc(plan, 28)[0].lines]
    assert pages == [3, 4, 8, 9, 10, 11]


def test_category_line_is_not_stranded_at_page_bottom():
    sections = [("Protocol", 3, [("a", 4), ("b", 5)]), ("Clinical Data", 6, [("c", 7)])]
    pages = paginate_toc_lines(build_toc_lines(sections), lines_per_page=6)
    assert [[line.text for line in page.lines] for page in pages] == [
        ["1. Protocol", "1.1 a", "1.2 b"],
        ["2. Clinical Data", "2.1 c"],
    ]
    assert pages[0].heading == TOC_HEADING
    assert pages[1].heading == TOC_CONTINUED_HEADING


def test_planned_toc_page_count_matches_layout():
    docs = [InputDocument(name=f"doc_{i}.docx", size_bytes=1, category="nonclinical") for i in range(40)]
    grouped = classify(docs)
    plan = plan_pagination(grouped)
    assert toc_page_count(grouped, 28) == plan.toc_page_count == len(layout_toc(plan, 28)) == 2


def test_render_toc_pages_and_text(scenario_docs, read_pages):
    plan = plan_pagination(classify(scenario_docs))
    data, count = render_toc(plan, CompileConfig())
    texts = read_pages(data)
    assert count == len(texts) == 1
    assert "Table of Contents" in texts[0]
    assert "1. Protocol" in texts[0]
    assert "Page 13" not in texts[0]  # summary is not listed
    assert "Page 10" in texts[0]
    assert "Page 2" in texts[0]  # footer of the ToC page itself


def test_render_toc_footer_numbers_continuation_pages(read_pages):
    docs = [InputDocument(name=f"doc_{i}.docx", size_bytes=1, category="clinical") for i in range(30)]
    plan = plan_pagination(classify(docs))
    data, count = render_toc(plan)
    texts = read_pages(data)
    assert count == 2
    assert "Table of Contents (continued)" in texts[1]
    assert "Page 3" in texts[1]
