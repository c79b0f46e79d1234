"""JSON-RPC 2.0 tool-calling endpoint (initialize, tools/list, tools/call)."""

import json
from typing import Any

import structlog
from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from screensift.api.dependencies import get_cleanup_service, get_db, get_pipeline
from screensift.api.tools import TOOLS, ToolContext
from screensift.core.ingestion.pipeline import ClassificationPipeline
from screensift.core.retention.cleanup import CleanupService
from screensift.utils.exceptions import ScreenSiftError
from screensift.version import __version__

logger = structlog.get_logger(__name__)
router = APIRouter(tags=["tools"])

PROTOCOL_VERSION = "2025-03-26"
SERVER_NAME = "screensift-mcp"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602


class JsonRpcRequest(BaseModel):
    jsonrpc: str = "2.0"
    id: int | str | None = None
    method: str
    params: dict[str, Any] = Field(default_factory=dict)


class ToolCallParams(BaseModel):
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class JsonRpcError(Exception):
    def __init__(self, code: int, message: str, data: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


def _result(request_id: int | str | None, result: dict[str, Any]) -> JSONResponse:
    return JSONResponse({"jsonrpc": "2.0", "id": request_id, "result": result})


def _error(request_id: int | str | None, error: JsonRpcError) -> JSONResponse:
    body: dict[str, Any] = {"code": error.code, "message": error.message}
    if error.data is not None:
        body["data"] = error.data
    return JSONResponse({"jsonrpc": "2.0", "id": request_id, "error": body})


def _text_content(text: str, is_error: bool = False) -> dict[str, Any]:
    return {"content": [{"type": "text", "text": text}], "isError": is_error}


async def _call_tool(ctx: ToolContext, params: dict[str, Any]) -> dict[str, Any]:
    try:
        call = ToolCallParams.model_validate(params)
    except PydanticValidationError as e:
        raise JsonRpcError(INVALID_PARAMS, "Invalid tool call", e.errors(include_url=False)) from e

    selected = TOOLS.get(call.name)
    if selected is None:
        raise JsonRpcError(INVALID_PARAMS, f"Unknown tool: {call.name}")

    try:
        arguments = selected.arguments.model_validate(call.arguments)
    except PydanticValidationError as e:
        raise JsonRpcError(
            INVALID_PARAMS, f"Invalid arguments for {call.name}", e.errors(include_url=False)
        ) from e

    try:
        text = await selected.handler(ctx, arguments)
    except ScreenSiftError as e:
        await ctx.session.rollback()
        logger.warning("tool_call_failed", tool=call.name, error=str(e))
        return _text_content(f"{call.name} failed: {e}", is_error=True)
    except Exception as e:
        # Database and other unexpected errors still answer inside the JSON-RPC envelope
        await ctx.session.rollback()
        logger.exception("tool_call_crashed", tool=call.name, error_type=type(e).__name__)
        return _text_content(f"{call.name} failed: internal error", is_error=True)

    logger.info("tool_call_complete", tool=call.name)
    return _text_content(text)


@router.post(
    "/mcp",
    summary="Tool-calling endpoint",
    description="JSON-RPC 2.0 envelope exposing the screenshot operations as tools",
)
async def mcp_endpoint(
    request: Request,
    db: AsyncSession = Depends(get_db),  # noqa: B008
    pipeline: ClassificationPipeline = Depends(get_pipeline),  # noqa: B008
    cleanup: CleanupService = Depends(get_cleanup_service),  # noqa: B008
) -> Response:
    """Dispatch one JSON-RPC request."""
    try:
        payload = json.loads(await request.body())
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _error(None, JsonRpcError(PARSE_ERROR, "Parse error"))

    try:
        rpc = JsonRpcRequest.model_validate(payload)
    except PydanticValidationError as e:
        return _error(
            payload.get("id") if isinstance(payload, dict) else None,
            JsonRpcError(INVALID_REQUEST, "Invalid request", e.errors(include_url=False)),
        )

    # Notifications carry no id and get no body
    if rpc.id is None and rpc.method.startswith("notifications/"):
        return Response(status_code=status.HTTP_202_ACCEPTED)

    ctx = ToolContext(session=db, pipeline=pipeline, cleanup=cleanup)
    try:
        if rpc.method == "initialize":
            return _result(
                rpc.id,
                {
                    "protocolVersion": PROTOCOL_VERSION,
                    "serverInfo": {"name": SERVER_NAME, "version": __version__},
                    "capabilities": {"tools": {}},
                },
            )
        if rpc.method == "ping":
            return _result(rpc.id, {})
        if rpc.method == "tools/list":
            return _result(rpc.id, {"tools": [t.describe() for t in TOOLS.values()]})
        if rpc.method == "tools/call":
            return _result(rpc.id, await _call_tool(ctx, rpc.params))
        raise JsonRpcError(METHOD_NOT_FOUND, f"Method not found: {rpc.method}")
    except JsonRpcError as e:
        return _error(rpc.id, e)
