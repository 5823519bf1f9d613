from finlab_mcp.config import SearchConfig
from finlab_mcp.docs.operations import (
    find_matches,
    get_document,
    get_factor_examples,
    list_documents,
    search_documents,
)
from finlab_mcp.docs.store import DocumentStore


def _store() -> DocumentStore:
    return DocumentStore.from_mapping(
        {
            "quickstart": "\n\n# FinLab Quickstart\n\nInstall with pip.",
            "data-reference": "## Data Reference\nROE after tax\nprice close\nroe quarterly",
            "factor-examples": (
                "# Factors\n\nIntro text.\n"
                "## momentum strategies\nbuy recent winners\n"
                "## value strategies\nbuy cheap stocks with high ROE"
            ),
        }
    )


def test_list_documents_one_line_per_document() -> None:
    store = _store()
    output = list_documents(store)

    bullets = [line for line in output.splitlines() if line.startswith("- **")]
    assert output.startswith("## Available FinLab Documents\n\n")
    assert len(bullets) == len(store)
    assert bullets[0] == "- **quickstart**: FinLab Quickstart"
    assert bullets[1] == "- **data-reference**: Data Reference"


def test_get_document_returns_exact_text() -> None:
    store = _store()
    for name, content in store.items():
        assert get_document(store, name) == content


def test_get_document_unknown_lists_names() -> None:
    output = get_document(_store(), "missing")

    assert output.startswith("Document 'missing' not found.")
    assert "Available documents: quickstart, data-reference, factor-examples" in output


def test_search_is_case_insensitive() -> None:
    store = _store()

    upper = find_matches(store, "ROE")
    lower = find_matches(store, "roe")

    assert upper == lower
    assert [(hit.document, hit.line) for hit in upper] == [
        ("data-reference", 2),
        ("data-reference", 4),
        ("factor-examples", 7),
    ]
    assert search_documents(store, "ROE").split("\n", 1)[1] == search_documents(
        store, "roe"
    ).split("\n", 1)[1]


def test_search_context_window_is_clipped() -> None:
    lines = [f"line {i}" for i in range(1, 21)]
    lines[0] = "needle at top"
    lines[9] = "needle in middle"
    store = DocumentStore.from_mapping({"doc": "\n".join(lines)})

    hits = find_matches(store, "needle")

    assert hits[0].line == 1
    assert hits[0].context.splitlines() == ["needle at top"] + lines[1:6]
    assert hits[1].line == 10
    assert hits[1].context.splitlines() == lines[7:15]


def test_search_caps_results_silently() -> None:
    store = DocumentStore.from_mapping(
        {
            "a": "\n".join("match here" for _ in range(8)),
            "b": "\n".join("match there" for _ in range(8)),
        }
    )

    output = search_documents(store, "match")

    headings = [line for line in output.splitlines() if line.startswith("### ")]
    assert len(find_matches(store, "match")) == 16
    assert len(headings) == 10
    assert headings[-1] == "### b (line 2)"
    assert "truncated" not in output.lower()


def test_search_respects_configured_cap() -> None:
    store = DocumentStore.from_mapping({"a": "x\nx\nx"})

    output = search_documents(store, "x", SearchConfig(max_results=2))

    assert output.count("### a") == 2


def test_search_without_hits_reports_no_results() -> None:
    assert search_documents(_store(), "nonexistent") == "No results found for 'nonexistent'"


def test_search_output_format() -> None:
    store = DocumentStore.from_mapping({"doc": "alpha\nbeta"})

    assert search_documents(store, "beta") == (
        "## Search Results: beta\n\n### doc (line 2)\n```\nalpha\nbeta\n```\n\n"
    )


def test_factor_examples_filters_sections() -> None:
    output = get_factor_examples(_store(), "Momentum")

    assert output == "## momentum strategies\nbuy recent winners"
    assert "value strategies" not in output


def test_factor_examples_joins_multiple_sections() -> None:
    output = get_factor_examples(_store(), "strategies")

    assert output == (
        "## momentum strategies\nbuy recent winners\n\n"
        "## value strategies\nbuy cheap stocks with high ROE"
    )


def test_factor_examples_all_returns_document() -> None:
    store = _store()

    assert get_factor_examples(store) == store.get("factor-examples")
    assert get_factor_examples(store, "") == store.get("factor-examples")


def test_factor_examples_unknown_category_suggests_known() -> None:
    output = get_factor_examples(_store(), "crypto")

    assert output == (
        "No examples found for factor type 'crypto'. "
        "Try: value, momentum, technical, quality, ml"
    )


def test_factor_examples_leading_section_keeps_single_marker() -> None:
    store = DocumentStore.from_mapping(
        {"factor-examples": "## momentum first\nwinners\n## value second\ncheap"}
    )

    assert get_factor_examples(store, "momentum") == "## momentum first\nwinners"


def test_factor_examples_missing_document() -> None:
    store = DocumentStore.from_mapping({"other": "text"})

    assert get_factor_examples(store, "value") == "factor-examples not found"
