"""Tool registry built on Pydantic v2 models."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from time import perf_counter
from typing import Any, get_args

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, ConfigDict, Field

from finlab_mcp.types import ToolTrace

_JSON_TYPES: dict[Any, str] = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
}


class ToolName(str, Enum):
    """Closed set of tools the server exposes."""

    LIST_DOCUMENTS = "list_documents"
    GET_DOCUMENT = "get_document"
    SEARCH_FINLAB_DOCS = "search_finlab_docs"
    GET_FACTOR_EXAMPLES = "get_factor_examples"


class ToolSpec(BaseModel):
    """Declarative tool specification for registration and validation."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: ToolName
    description: str
    args_schema: type[BaseModel]
    handler: Callable[[BaseModel], str]
    tags: list[str] = Field(default_factory=list)

    def invoke(self, payload: dict[str, Any]) -> str:
        data = self.args_schema.model_validate(payload)
        return self.handler(data)

    def descriptor(self) -> dict[str, Any]:
        """MCP `tools/list` entry derived from the argument model."""

        properties: dict[str, Any] = {}
        required: list[str] = []
        for field_name, field in self.args_schema.model_fields.items():
            prop: dict[str, Any] = {"type": _json_type(field.annotation)}
            if field.description:
                prop["description"] = field.description
            if field.is_required():
                required.append(field_name)
            else:
                prop["default"] = field.get_default()
            properties[field_name] = prop

        schema: dict[str, Any] = {"type": "object", "properties": properties}
        if required:
            schema["required"] = required
        return {
            "name": self.name.value,
            "description": self.description,
            "inputSchema": schema,
        }


class ToolRegistry:
    """Stores tool specs and exports MCP descriptors and LangChain tools."""

    def __init__(self) -> None:
        self._tools: dict[ToolName, ToolSpec] = {}
        self._observer: Callable[[ToolTrace], None] | None = None

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._tools:
            raise ValueError(f"Tool already registered: {spec.name.value}")
        self._tools[spec.name] = spec

    def set_observer(self, observer: Callable[[ToolTrace], None] | None) -> None:
        """Set an optional callback invoked after each tool execution."""
        self._observer = observer

    def execute(self, name: ToolName | str, payload: dict[str, Any]) -> str:
        spec = self._tools.get(ToolName(name))
        if spec is None:
            raise KeyError(f"Tool not registered: {name}")
        return self._execute_spec(spec, payload)

    def descriptors(self) -> list[dict[str, Any]]:
        return [spec.descriptor() for spec in self._tools.values()]

    def as_langchain_tools(self) -> list[StructuredTool]:
        tools: list[StructuredTool] = []
        for spec in self._tools.values():
            tools.append(
                StructuredTool.from_function(
                    name=spec.name.value,
                    description=spec.description,
                    args_schema=spec.args_schema,
                    func=self._build_function(spec),
                )
            )
        return tools

    def specs(self) -> list[ToolSpec]:
        return list(self._tools.values())

    def _build_function(self, spec: ToolSpec) -> Callable[..., str]:
        def _callable(**kwargs: Any) -> str:
            return self._execute_spec(spec, kwargs)

        return _callable

    def _execute_spec(self, spec: ToolSpec, payload: dict[str, Any]) -> str:
        start = perf_counter()
        output = spec.invoke(payload)
        latency_ms = (perf_counter() - start) * 1000.0

        if self._observer is not None:
            self._observer(
                ToolTrace(
                    name=spec.name.value,
                    input_payload=payload,
                    output_preview=output[:320],
                    latency_ms=latency_ms,
                )
            )
        return output


def _json_type(annotation: Any) -> str:
    # Optional[X] advertises X; null is accepted but not advertised.
    candidates = [arg for arg in get_args(annotation) if arg is not type(None)]
    if len(candidates) == 1:
        annotation = candidates[0]
    return _JSON_TYPES.get(annotation, "string")
