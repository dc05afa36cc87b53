"""HTTP 위의 MCP 엔드포인트예요.

`/api/mcp`(별칭 `/mcp`)는 원시 JSON-RPC 봉투를 받아 디스패처에 그대로 넘겨요.
나머지 편의 라우트는 봉투 없이 호출할 수 있도록 요청을 감싸서 같은 디스패처로 보내요.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import JSONResponse

from commerce_gateway.app.mcp_protocol import JSONRPC_VERSION, parse_json
from commerce_gateway.modules.common.deps import get_dispatcher
from libs.common.logging import get_logger

router = APIRouter(prefix="/api/mcp")
alias_router = APIRouter()
logger = get_logger("commerce_gateway.modules.mcp")

_DEFAULT_ENVELOPE_ID = "1"
_ENDPOINTS = (
    "/api/mcp",
    "/api/mcp/initialize",
    "/api/mcp/tools/list",
    "/api/mcp/tools/call",
    "/api/mcp/resources/list",
)


async def _dispatch_raw(request: Request) -> Response:
    raw = await request.body()
    response = await get_dispatcher(request).handle(raw)
    if response is None:
        return Response(status_code=status.HTTP_202_ACCEPTED)
    return Response(content=response, media_type="application/json")


@router.post("")
async def handle_envelope(request: Request) -> Response:
    return await _dispatch_raw(request)


@alias_router.post("/mcp")
async def handle_envelope_alias(request: Request) -> Response:
    return await _dispatch_raw(request)


@router.get("/capabilities")
async def get_capabilities(request: Request) -> dict[str, Any]:
    server_info = get_dispatcher(request).server_info
    return {
        "protocolVersion": server_info.protocol_version,
        "serverName": server_info.name,
        "version": server_info.version,
        "transport": "http",
        "capabilities": server_info.capabilities(),
        "endpoints": list(_ENDPOINTS),
    }


@router.get("/health")
async def get_health(request: Request) -> dict[str, Any]:
    server_info = get_dispatcher(request).server_info
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "serverName": server_info.name,
        "version": server_info.version,
    }


@router.post("/initialize")
async def initialize(request: Request) -> JSONResponse:
    body = await _read_object(request)
    params = body.get("params")
    return await _dispatch_wrapped(request, body, "initialize", params if isinstance(params, dict) else {})


@router.post("/tools/list")
async def list_tools(request: Request) -> JSONResponse:
    body = await _read_object(request)
    params = body.get("params")
    return await _dispatch_wrapped(request, body, "tools/list", params if isinstance(params, dict) else {})


@router.post("/tools/call")
async def call_tool(request: Request) -> JSONResponse:
    body = await _read_object(request)
    # `{"name": ..., "arguments": ...}`를 그대로 보내도 되고 `params`로 감싸도 돼요.
    params = body.get("params")
    if not isinstance(params, dict):
        params = {key: value for key, value in body.items() if key not in ("id", "jsonrpc", "method")}
    return await _dispatch_wrapped(request, body, "tools/call", params)


@router.post("/resources/list")
async def list_resources(request: Request) -> JSONResponse:
    body = await _read_object(request)
    return await _dispatch_wrapped(request, body, "resources/list", {})


async def _dispatch_wrapped(
    request: Request,
    body: dict[str, Any],
    method: str,
    params: dict[str, Any],
) -> JSONResponse:
    envelope = {
        "jsonrpc": JSONRPC_VERSION,
        "id": body.get("id", _DEFAULT_ENVELOPE_ID),
        "method": method,
        "params": params,
    }
    response = await get_dispatcher(request).handle_message(envelope)
    return JSONResponse(content=response)


async def _read_object(request: Request) -> dict[str, Any]:
    """본문이 비었거나 JSON 객체가 아니면 빈 dict로 취급해요."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        value = parse_json(raw)
    except ValueError:
        logger.warning("convenience_route_body_ignored", path=request.url.path)
        return {}
    return value if isinstance(value, dict) else {}
