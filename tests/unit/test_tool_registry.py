import pytest
from pydantic import BaseModel, Field, ValidationError

from finlab_mcp.docs.store import DocumentStore
from finlab_mcp.tools.docs import DEPRECATION_NOTICE, build_langchain_tools, register_doc_tools
from finlab_mcp.tools.registry import ToolName, ToolRegistry, ToolSpec


class EchoInput(BaseModel):
    query: str = Field(min_length=1)


def _echo_spec() -> ToolSpec:
    def _handler(data: EchoInput) -> str:
        return data.query

    return ToolSpec(
        name=ToolName.SEARCH_FINLAB_DOCS,
        description="echo query",
        args_schema=EchoInput,
        handler=_handler,
    )


def _doc_registry() -> ToolRegistry:
    store = DocumentStore.from_mapping(
        {"quickstart": "# Quickstart\nmomentum basics", "factor-examples": "# F\n## momentum\nx"}
    )
    registry = ToolRegistry()
    register_doc_tools(registry, store)
    return registry


def test_tool_registry_validation() -> None:
    registry = ToolRegistry()
    registry.register(_echo_spec())

    assert registry.execute("search_finlab_docs", {"query": "roe"}) == "roe"

    with pytest.raises(ValidationError):
        registry.execute(ToolName.SEARCH_FINLAB_DOCS, {"query": ""})


def test_duplicate_tool_registration_rejected() -> None:
    registry = ToolRegistry()
    spec = _echo_spec()

    registry.register(spec)
    with pytest.raises(ValueError):
        registry.register(spec)


def test_unregistered_tool_raises_key_error() -> None:
    registry = ToolRegistry()

    with pytest.raises(KeyError):
        registry.execute(ToolName.LIST_DOCUMENTS, {})


def test_doc_tool_descriptors_match_mcp_shape() -> None:
    descriptors = {item["name"]: item for item in _doc_registry().descriptors()}

    assert list(descriptors) == [tool.value for tool in ToolName]
    assert descriptors["list_documents"]["inputSchema"] == {
        "type": "object",
        "properties": {},
    }
    assert descriptors["get_document"]["inputSchema"]["required"] == ["doc_name"]
    assert descriptors["get_document"]["inputSchema"]["properties"]["doc_name"] == {
        "type": "string",
        "description": "Name of the document (without .md extension). "
        "Available: quickstart, factor-examples",
    }
    assert descriptors["search_finlab_docs"]["inputSchema"]["required"] == ["query"]
    factor_schema = descriptors["get_factor_examples"]["inputSchema"]
    assert "required" not in factor_schema
    assert factor_schema["properties"]["factor_type"] == {
        "type": "string",
        "description": "Type of factor: all, value, momentum, technical, quality, ml",
        "default": "all",
    }


def test_doc_tools_export_to_langchain() -> None:
    tools = {tool.name: tool for tool in _doc_registry().as_langchain_tools()}

    assert set(tools) == {tool.value for tool in ToolName}
    output = tools["search_finlab_docs"].invoke({"query": "momentum"})
    assert output.startswith("## Search Results: momentum")
    assert "### quickstart (line 2)" in output


def test_build_langchain_tools_uses_packaged_corpus() -> None:
    tools = {tool.name: tool for tool in build_langchain_tools()}

    output = tools["get_factor_examples"].invoke({"factor_type": "momentum"})
    assert output.startswith("## Momentum factors")
    assert not output.startswith(DEPRECATION_NOTICE)


def test_factor_type_descriptor_unwraps_optional() -> None:
    descriptors = {item["name"]: item for item in _doc_registry().descriptors()}

    assert descriptors["get_factor_examples"]["inputSchema"]["properties"]["factor_type"]["type"] == "string"
