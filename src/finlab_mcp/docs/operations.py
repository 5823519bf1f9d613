"""Text operations over the document corpus.

All functions are pure: they only read the immutable `DocumentStore` and
always return displayable markdown, never raise for unknown input.
"""

from __future__ import annotations

import re

from finlab_mcp.config import SearchConfig
from finlab_mcp.docs.store import DocumentStore
from finlab_mcp.types import SearchHit

FACTOR_EXAMPLES_DOC = "factor-examples"
FACTOR_CATEGORIES = ("value", "momentum", "technical", "quality", "ml")

_HEADING_PREFIX = re.compile(r"^#+\s*")
_SECTION_DELIMITER = "\n## "


def list_documents(store: DocumentStore) -> str:
    lines = [
        f"- **{name}**: {_title_of(content)}" for name, content in store.items()
    ]
    return "## Available FinLab Documents\n\n" + "\n".join(lines)


def get_document(store: DocumentStore, doc_name: str) -> str:
    content = store.get(doc_name)
    if content is not None:
        return content
    return (
        f"Document '{doc_name}' not found.\n\n"
        f"Available documents: {', '.join(store.names())}"
    )


def find_matches(
    store: DocumentStore,
    query: str,
    config: SearchConfig | None = None,
) -> list[SearchHit]:
    """Return every line match, documents in store order, lines in file order."""

    config = config or SearchConfig()
    needle = query.lower()
    hits: list[SearchHit] = []

    for name, content in store.items():
        if needle not in content.lower():
            continue
        lines = content.split("\n")
        for index, line in enumerate(lines):
            if needle not in line.lower():
                continue
            start = max(0, index - config.context_before)
            end = min(len(lines), index + config.context_after + 1)
            hits.append(
                SearchHit(
                    document=name,
                    line=index + 1,
                    context="\n".join(lines[start:end]),
                )
            )
    return hits


def search_documents(
    store: DocumentStore,
    query: str,
    config: SearchConfig | None = None,
) -> str:
    config = config or SearchConfig()
    hits = find_matches(store, query, config)
    if not hits:
        return f"No results found for '{query}'"

    # Hits past the cap are dropped without notice.
    output = f"## Search Results: {query}\n\n"
    for hit in hits[: config.max_results]:
        output += f"### {hit.document} (line {hit.line})\n```\n{hit.context}\n```\n\n"
    return output


def get_factor_examples(store: DocumentStore, factor_type: str = "all") -> str:
    content = store.get(FACTOR_EXAMPLES_DOC)
    if content is None:
        return f"{FACTOR_EXAMPLES_DOC} not found"

    if not factor_type or factor_type == "all":
        return content

    needle = factor_type.lower()
    matching: list[str] = []
    for index, section in enumerate(content.split(_SECTION_DELIMITER)):
        if needle not in section.lower():
            continue
        # The leading chunk was not cut at a delimiter, so it keeps whatever
        # heading it already has.
        matching.append(section if index == 0 else "## " + section)

    if not matching:
        return (
            f"No examples found for factor type '{factor_type}'. "
            f"Try: {', '.join(FACTOR_CATEGORIES)}"
        )
    return "\n\n".join(matching)


def _title_of(content: str) -> str:
    for line in content.split("\n"):
        if line.strip():
            return _HEADING_PREFIX.sub("", line).strip()
    return ""
