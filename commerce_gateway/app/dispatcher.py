"""JSON-RPC 2.0 봉투를 해석해서 MCP 메서드로 라우팅해요.

디스패처는 전송 계층(stdio, HTTP)이 공유하는 유일한 라우팅 구현이에요.
어떤 입력이 들어와도 예외를 밖으로 던지지 않고, 항상 올바른 응답 봉투를 만들거나
알림이면 `None`을 돌려줘요.
"""

from __future__ import annotations

import enum
import json
from collections.abc import Awaitable, Callable
from typing import Any

from commerce_gateway.app.backend_client import BackendServerError
from commerce_gateway.app.mcp_protocol import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    NO_ID,
    PARSE_ERROR,
    JsonRpcError,
    McpServerInfo,
    error_response,
    parse_json,
    success_response,
)
from commerce_gateway.app.tools.catalog import ToolCatalog
from commerce_gateway.app.tools.invoker import ToolInvoker
from libs.common.logging import get_logger

logger = get_logger("commerce_gateway.dispatcher")

INITIALIZED_NOTIFICATION = "notifications/initialized"


class HandshakeState(str, enum.Enum):
    UNSTARTED = "unstarted"
    INITIALIZED = "initialized"
    READY = "ready"


class JsonRpcFault(Exception):
    """핸들러가 JSON-RPC 오류 응답을 돌려주고 싶을 때 던져요."""

    def __init__(self, error: JsonRpcError) -> None:
        super().__init__(error.message)
        self.error = error


_Handler = Callable[[Any], Awaitable[Any]]


class JsonRpcDispatcher:
    """MCP 메서드 라우터예요.

    핸드셰이크 상태(`UNSTARTED → INITIALIZED → READY`)는 기록만 하고 강제하지 않아요.
    `tools/list`, `tools/call`은 어느 상태에서든 처리돼요.
    """

    def __init__(
        self,
        *,
        catalog: ToolCatalog,
        invoker: ToolInvoker,
        server_info: McpServerInfo,
    ) -> None:
        self._catalog = catalog
        self._invoker = invoker
        self._server_info = server_info
        self._state = HandshakeState.UNSTARTED
        self._handlers: dict[str, _Handler] = {
            "initialize": self._handle_initialize,
            INITIALIZED_NOTIFICATION: self._handle_initialized,
            "ping": self._handle_ping,
            "tools/list": self._handle_tools_list,
            "tools/call": self._handle_tools_call,
            "resources/list": self._handle_resources_list,
            "resources/read": self._handle_resources_read,
        }

    @property
    def state(self) -> HandshakeState:
        return self._state

    @property
    def server_info(self) -> McpServerInfo:
        return self._server_info

    async def handle(self, raw: bytes | str) -> bytes | None:
        """원시 메시지 하나를 처리하고 직렬화된 응답을 돌려줘요. 알림이면 `None`이에요."""
        try:
            text = raw.decode("utf-8") if isinstance(raw, (bytes, bytearray)) else raw
            message = parse_json(text)
        except (UnicodeDecodeError, ValueError) as exc:
            logger.warning("jsonrpc_parse_error", error=str(exc))
            return self.parse_error()

        response = await self.handle_message(message)
        if response is None:
            return None
        return _encode(response)

    def parse_error(self) -> bytes:
        return _encode(error_response(None, JsonRpcError(PARSE_ERROR, "Parse error")))

    async def handle_message(self, message: Any) -> dict[str, Any] | None:
        """이미 JSON으로 해석된 메시지를 처리해요. HTTP 전송이 이 경로를 써요."""
        if not isinstance(message, dict):
            logger.warning("jsonrpc_invalid_request", reason="not_an_object")
            return error_response(None, JsonRpcError(INVALID_REQUEST, "Invalid Request"))

        request_id = message.get("id", NO_ID)
        is_notification = request_id is NO_ID
        method = message.get("method")

        if not isinstance(method, str):
            logger.warning("jsonrpc_invalid_request", reason="missing_method")
            if is_notification:
                return error_response(None, JsonRpcError(INVALID_REQUEST, "Invalid Request"))
            return error_response(request_id, JsonRpcError(METHOD_NOT_FOUND, "Method not found"))

        if is_notification:
            logger.info("notification_received", method=method)

        result: Any = None
        error: JsonRpcError | None = None
        try:
            handler = self._handlers.get(method)
            if handler is None:
                raise JsonRpcFault(JsonRpcError(METHOD_NOT_FOUND, "Method not found"))
            result = await handler(message.get("params"))
        except JsonRpcFault as fault:
            error = fault.error
        except BackendServerError as exc:
            logger.error(
                "backend_server_error",
                method=method,
                operation=exc.operation,
                status_code=exc.status_code,
                message=exc.message,
            )
            error = JsonRpcError(INTERNAL_ERROR, "Internal error", data=exc.message)
        except Exception as exc:
            logger.exception("jsonrpc_internal_error", method=method, error=str(exc))
            error = JsonRpcError(INTERNAL_ERROR, "Internal error")

        if is_notification:
            if error is not None:
                logger.warning("notification_failed", method=method, code=error.code, message=error.message)
            return None
        if error is not None:
            return error_response(request_id, error)
        return success_response(request_id, result)

    async def _handle_initialize(self, params: Any) -> dict[str, Any]:
        client_info: Any = None
        requested_version: Any = None
        if isinstance(params, dict):
            client_info = params.get("clientInfo")
            requested_version = params.get("protocolVersion")
        logger.info(
            "mcp_initialize",
            client_info=client_info,
            requested_protocol_version=requested_version,
            protocol_version=self._server_info.protocol_version,
        )
        self._state = HandshakeState.INITIALIZED
        return self._server_info.initialize_result()

    async def _handle_initialized(self, params: Any) -> dict[str, Any]:
        del params
        if self._state is HandshakeState.UNSTARTED:
            logger.warning("initialized_before_initialize")
        self._state = HandshakeState.READY
        logger.info("mcp_ready")
        return {}

    async def _handle_ping(self, params: Any) -> dict[str, Any]:
        del params
        return {}

    async def _handle_tools_list(self, params: Any) -> dict[str, Any]:
        self._note_early_request("tools/list")
        if isinstance(params, dict) and "cursor" in params:
            # 단일 페이지라서 커서는 기록만 해요.
            logger.debug("tools_list_cursor_ignored", cursor=params.get("cursor"))
        return {"tools": self._catalog.list_definitions()}

    async def _handle_tools_call(self, params: Any) -> dict[str, Any]:
        self._note_early_request("tools/call")
        if not isinstance(params, dict):
            raise JsonRpcFault(JsonRpcError(INVALID_PARAMS, "Invalid params"))
        name = params.get("name")
        arguments = params.get("arguments")
        if not isinstance(name, str) or not name:
            raise JsonRpcFault(JsonRpcError(INVALID_PARAMS, "Invalid params"))
        if arguments is not None and not isinstance(arguments, dict):
            raise JsonRpcFault(JsonRpcError(INVALID_PARAMS, "Invalid params"))

        result = await self._invoker.call(name, arguments)
        return result.to_dict()

    async def _handle_resources_list(self, params: Any) -> dict[str, Any]:
        del params
        return {"resources": []}

    async def _handle_resources_read(self, params: Any) -> dict[str, Any]:
        del params
        raise JsonRpcFault(JsonRpcError(METHOD_NOT_FOUND, "No resources available"))

    def _note_early_request(self, method: str) -> None:
        if self._state is HandshakeState.UNSTARTED:
            logger.debug("request_before_initialize", method=method)


def _encode(response: dict[str, Any]) -> bytes:
    try:
        return json.dumps(response, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
    except (TypeError, ValueError, RecursionError) as exc:
        logger.exception("jsonrpc_encode_failed", error=str(exc))
        fallback = error_response(response.get("id"), JsonRpcError(INTERNAL_ERROR, "Internal error"))
        return json.dumps(fallback, separators=(",", ":")).encode("utf-8")
