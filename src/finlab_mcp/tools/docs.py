"""Documentation tools exposed over MCP."""

from __future__ import annotations

import logging
from typing import Any

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, Field, create_model

from finlab_mcp.config import SearchConfig
from finlab_mcp.docs.operations import (
    FACTOR_CATEGORIES,
    get_document,
    get_factor_examples,
    list_documents,
    search_documents,
)
from finlab_mcp.docs.store import DocumentStore, load_default_store
from finlab_mcp.tools.registry import ToolName, ToolRegistry, ToolSpec

logger = logging.getLogger(__name__)

DEPRECATION_NOTICE = (
    "⚠️ DEPRECATION NOTICE: This MCP server will be retired soon. Please switch "
    "to the FinLab Skill for a better experience (richer documentation, faster "
    "responses, no network dependency).\n"
    "\n"
    "To upgrade, run:\n"
    "  npx skills add koreal6803/finlab-ai -a claude-code -y\n"
    "\n"
    "After installing, you can remove this MCP server from your config.\n"
    "---\n"
    "\n"
)


class ListDocumentsInput(BaseModel):
    pass


class SearchDocsInput(BaseModel):
    query: str = Field(description="The search term to look for (case-insensitive)")


class FactorExamplesInput(BaseModel):
    factor_type: str | None = Field(
        default="all",
        description="Type of factor: all, " + ", ".join(FACTOR_CATEGORIES),
    )


def register_doc_tools(
    registry: ToolRegistry,
    store: DocumentStore,
    *,
    search_config: SearchConfig | None = None,
) -> None:
    """Register the corpus tools.

    Tools:
    - `list_documents`: one summary line per document.
    - `get_document`: full text of a named document.
    - `search_finlab_docs`: keyword search with surrounding context.
    - `get_factor_examples`: sections of the factor examples document.
    """

    config = search_config or SearchConfig()

    # The schema advertises the live document names, so it is built per store.
    get_document_input = create_model(
        "GetDocumentInput",
        doc_name=(
            str,
            Field(
                description="Name of the document (without .md extension). Available: "
                + ", ".join(store.names())
            ),
        ),
    )

    def _list(input_data: ListDocumentsInput) -> str:
        return list_documents(store)

    def _get(input_data: Any) -> str:
        return get_document(store, input_data.doc_name)

    def _search(input_data: SearchDocsInput) -> str:
        return search_documents(store, input_data.query, config)

    def _factor_examples(input_data: FactorExamplesInput) -> str:
        return get_factor_examples(store, input_data.factor_type or "all")

    registry.register(
        ToolSpec(
            name=ToolName.LIST_DOCUMENTS,
            description="List all available FinLab documentation files",
            args_schema=ListDocumentsInput,
            handler=_list,
            tags=["docs"],
        )
    )
    registry.register(
        ToolSpec(
            name=ToolName.GET_DOCUMENT,
            description="Get the full content of a FinLab documentation file",
            args_schema=get_document_input,
            handler=_get,
            tags=["docs"],
        )
    )
    registry.register(
        ToolSpec(
            name=ToolName.SEARCH_FINLAB_DOCS,
            description="Search for a keyword or phrase in all FinLab documentation",
            args_schema=SearchDocsInput,
            handler=_search,
            tags=["docs", "search"],
        )
    )
    registry.register(
        ToolSpec(
            name=ToolName.GET_FACTOR_EXAMPLES,
            description="Get factor/strategy examples from the documentation",
            args_schema=FactorExamplesInput,
            handler=_factor_examples,
            tags=["docs", "factors"],
        )
    )


def call_tool(registry: ToolRegistry, name: str, arguments: dict[str, Any]) -> str:
    """Run a tool by name and prefix its output with the deprecation notice.

    Unknown names produce guidance text rather than an error, since the caller
    is usually a model that can correct itself.
    """

    try:
        tool = ToolName(name)
    except ValueError:
        logger.warning("Unknown tool requested: %s", name)
        return f"Unknown tool: {name}"

    return DEPRECATION_NOTICE + registry.execute(tool, arguments)


def build_langchain_tools(
    store: DocumentStore | None = None,
    *,
    search_config: SearchConfig | None = None,
) -> list[StructuredTool]:
    """Corpus tools as LangChain `StructuredTool` objects.

    Lets a LangChain agent read the same documents without going through the
    HTTP endpoint. Results carry no deprecation notice.
    """

    registry = ToolRegistry()
    register_doc_tools(registry, store or load_default_store(), search_config=search_config)
    return registry.as_langchain_tools()
