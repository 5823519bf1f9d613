"""JSON-RPC envelope models and MCP method dispatch."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from finlab_mcp.config import ServerConfig
from finlab_mcp.tools.docs import call_tool
from finlab_mcp.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"

PARSE_ERROR = -32700
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602


class McpMethod(str, Enum):
    """Closed set of protocol methods the server answers."""

    INITIALIZE = "initialize"
    TOOLS_LIST = "tools/list"
    TOOLS_CALL = "tools/call"


class JsonRpcRequest(BaseModel):
    jsonrpc: str = JSONRPC_VERSION
    id: int | str | None = None
    method: str
    params: dict[str, Any] | None = None


class ToolCallParams(BaseModel):
    name: str = ""
    arguments: dict[str, Any] = Field(default_factory=dict)

    @field_validator("name", mode="before")
    @classmethod
    def name_as_text(cls, value: Any) -> str:
        # Any name reaches tool dispatch; unknown ones become guidance text.
        return "" if value is None else str(value)

    @field_validator("arguments", mode="before")
    @classmethod
    def missing_arguments(cls, value: Any) -> Any:
        return {} if value is None else value


class JsonRpcError(BaseModel):
    code: int
    message: str


class JsonRpcResponse(BaseModel):
    """Response envelope; carries exactly one of `result` or `error`."""

    id: int | str | None
    result: Any = None
    error: JsonRpcError | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "id": self.id}
        if self.error is not None:
            payload["error"] = self.error.model_dump()
        else:
            payload["result"] = self.result
        return payload


def error_response(request_id: int | str | None, code: int, message: str) -> JsonRpcResponse:
    return JsonRpcResponse(id=request_id, error=JsonRpcError(code=code, message=message))


def parse_error_response() -> JsonRpcResponse:
    """Envelope for bodies whose id could not be read."""
    return error_response(None, PARSE_ERROR, "Parse error")


class McpDispatcher:
    """Maps a decoded request envelope onto a response envelope.

    Stateless: each call is answered independently from the registry and the
    server identity.
    """

    def __init__(self, registry: ToolRegistry, config: ServerConfig | None = None) -> None:
        self.registry = registry
        self.config = config or ServerConfig()

    def handle(self, request: JsonRpcRequest) -> JsonRpcResponse:
        try:
            method = McpMethod(request.method)
        except ValueError:
            logger.warning("Method not found: %s", request.method)
            return error_response(
                request.id, METHOD_NOT_FOUND, f"Method not found: {request.method}"
            )

        logger.debug("Dispatching %s (id=%r)", method.value, request.id)
        if method is McpMethod.INITIALIZE:
            return JsonRpcResponse(id=request.id, result=self._initialize())
        if method is McpMethod.TOOLS_LIST:
            return JsonRpcResponse(id=request.id, result={"tools": self.registry.descriptors()})
        return self._tools_call(request)

    def _initialize(self) -> dict[str, Any]:
        return {
            "protocolVersion": self.config.protocol_version,
            "serverInfo": {
                "name": self.config.name,
                "version": self.config.version,
            },
            "capabilities": {"tools": {}},
        }

    def _tools_call(self, request: JsonRpcRequest) -> JsonRpcResponse:
        try:
            params = ToolCallParams.model_validate(request.params or {})
            text = call_tool(self.registry, params.name, params.arguments)
        except ValidationError as exc:
            logger.warning("Invalid tools/call params (id=%r): %s", request.id, exc)
            details = "; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in exc.errors()
            )
            return error_response(request.id, INVALID_PARAMS, f"Invalid params: {details}")

        return JsonRpcResponse(
            id=request.id,
            result={"content": [{"type": "text", "text": text}]},
        )
