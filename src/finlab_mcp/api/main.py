"""FastAPI entrypoint for MCP, feedback and installer endpoints."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from finlab_mcp.config import FeedbackConfig, SearchConfig, ServerConfig
from finlab_mcp.docs.store import DocumentStore, load_default_store
from finlab_mcp.feedback.kv import InMemoryKeyValueStore, KeyValueStore, RedisKeyValueStore
from finlab_mcp.feedback.store import FeedbackError, FeedbackStore, FeedbackSubmission
from finlab_mcp.protocol.dispatcher import JsonRpcRequest, McpDispatcher, parse_error_response
from finlab_mcp.tools.docs import register_doc_tools
from finlab_mcp.tools.registry import ToolRegistry
from finlab_mcp.types import ToolTrace

INSTALL_SCRIPT_PATH = Path(__file__).resolve().parents[1] / "data" / "install.sh"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _create_document_store() -> DocumentStore:
    docs_dir = os.getenv("FINLAB_DOCS_DIR")
    if docs_dir:
        return DocumentStore.from_directory(docs_dir)
    return load_default_store()


def _create_kv_store() -> KeyValueStore:
    redis_url = os.getenv("REDIS_URL")
    if not redis_url:
        logger.info("REDIS_URL not set; feedback is kept in process memory")
        return InMemoryKeyValueStore()
    return RedisKeyValueStore.from_url(redis_url)


def _log_tool_trace(trace: ToolTrace) -> None:
    logger.debug("Tool %s finished in %.2f ms", trace.name, trace.latency_ms)


app = FastAPI(title="FinLab MCP Server", version="1.0.0")

_server_config = ServerConfig()
_document_store = _create_document_store()
_registry = ToolRegistry()
register_doc_tools(_registry, _document_store, search_config=SearchConfig())
_registry.set_observer(_log_tool_trace)
_dispatcher = McpDispatcher(_registry, _server_config)

_feedback_store = FeedbackStore(_create_kv_store(), FeedbackConfig())
_install_script = INSTALL_SCRIPT_PATH.read_text(encoding="utf-8")


@app.middleware("http")
async def preflight(request: Request, call_next: Any) -> Response:
    # Answered before routing so every path, /mcp included, accepts preflights.
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)
    return await call_next(request)


@app.exception_handler(FeedbackError)
async def feedback_error_handler(request: Request, exc: FeedbackError) -> JSONResponse:
    return JSONResponse(
        {"error": exc.message}, status_code=exc.status_code, headers=CORS_HEADERS
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> Response:
    if exc.status_code in (404, 405):
        return PlainTextResponse("Not found", status_code=404)
    return JSONResponse({"error": str(exc.detail)}, status_code=exc.status_code)


@app.get("/install.sh")
def install_script() -> PlainTextResponse:
    return PlainTextResponse(_install_script, media_type="text/plain; charset=utf-8")


@app.get("/")
@app.get("/health")
def health() -> dict[str, Any]:
    return {"status": "ok", "server": _server_config.health_name}


@app.post("/feedback")
async def submit_feedback(request: Request) -> JSONResponse:
    try:
        payload = json.loads(await request.body())
    except ValueError as exc:
        raise FeedbackError("Invalid JSON") from exc

    if not isinstance(payload, dict):
        payload = {}
    try:
        submission = FeedbackSubmission.model_validate(payload)
    except ValidationError as exc:
        raise FeedbackError("Invalid JSON") from exc

    record = await _feedback_store.create(submission)
    return JSONResponse({"success": True, "id": record.id}, headers=CORS_HEADERS)


@app.get("/feedback")
async def list_feedback() -> JSONResponse:
    records = await _feedback_store.list()
    return JSONResponse([record.to_payload() for record in records], headers=CORS_HEADERS)


@app.delete("/feedback/{feedback_id:path}")
async def delete_feedback(feedback_id: str) -> JSONResponse:
    await _feedback_store.delete(feedback_id)
    return JSONResponse({"success": True}, headers=CORS_HEADERS)


@app.api_route("/mcp", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
@app.api_route("/sse", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
async def mcp(request: Request) -> Response:
    if request.method != "POST":
        return PlainTextResponse("Method not allowed", status_code=405, headers=CORS_HEADERS)

    try:
        envelope = JsonRpcRequest.model_validate(json.loads(await request.body()))
    except (ValueError, ValidationError):
        logger.warning("Rejected unparseable MCP request body")
        return JSONResponse(
            parse_error_response().to_dict(), status_code=400, headers=CORS_HEADERS
        )

    response = _dispatcher.handle(envelope)
    return JSONResponse(response.to_dict(), headers=CORS_HEADERS)


def main() -> None:
    import uvicorn

    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
