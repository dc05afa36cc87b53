"""`tools/call` 요청을 백엔드 호출로 바꾸는 실행기예요."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from commerce_gateway.app.backend_client import BackendClient, HttpMethod
from commerce_gateway.app.mcp_protocol import McpToolCallResult
from commerce_gateway.app.tools.catalog import ToolCatalog
from commerce_gateway.app.tools.errors import ArgumentError
from commerce_gateway.app.tools.query_settings import QUERY_RESULT_SETTINGS_KEY
from libs.common.logging import get_logger

logger = get_logger("commerce_gateway.tools")


class ToolInvoker:
    """도구 이름으로 백엔드 요청 템플릿을 고르고 결과를 MCP 도구 결과로 감싸요.

    - 모르는 도구, 인자 오류, 백엔드 4xx는 `isError: true` 도구 결과로 보고돼요.
    - 백엔드 5xx와 전송 실패는 `BackendServerError`가 그대로 올라가요.
      디스패처가 이를 JSON-RPC 내부 오류로 바꿔요.

    호출 사이에 공유하는 가변 상태가 없어서 동시에 여러 요청을 처리해도 안전해요.
    """

    def __init__(self, *, catalog: ToolCatalog, backend: BackendClient) -> None:
        self._catalog = catalog
        self._backend = backend

    async def call(self, name: str, arguments: Mapping[str, Any] | None) -> McpToolCallResult:
        spec = self._catalog.get(name)
        if spec is None:
            logger.warning("tool_unknown", tool=name)
            return McpToolCallResult.from_text(f"Unknown tool: {name}", is_error=True)

        try:
            decoded = spec.decode_arguments(arguments)
        except ArgumentError as exc:
            logger.warning("tool_arguments_rejected", tool=name, field=exc.field, message=exc.message)
            return McpToolCallResult.from_payload(
                {
                    "error": True,
                    "tool": name,
                    "field": exc.field,
                    "message": exc.message,
                },
                is_error=True,
            )

        logger.info("tool_call_started", tool=name, operation=spec.operation)

        if spec.method is HttpMethod.GET:
            params = {
                key: _query_value(value)
                for key, value in decoded.items()
                if key not in spec.path_fields and key != QUERY_RESULT_SETTINGS_KEY
            }
            outcome = await self._backend.request(
                spec.render_path(decoded),
                HttpMethod.GET,
                operation=spec.operation,
                params=params or None,
            )
        else:
            outcome = await self._backend.request(
                spec.path,
                HttpMethod.POST,
                operation=spec.operation,
                body=decoded,
            )

        # 4xx 결과에만 오류 정보가 들어 있어요.
        error = outcome.error
        if error is None:
            logger.info("tool_call_succeeded", tool=name)
            return McpToolCallResult.from_payload(outcome.payload)

        logger.warning("tool_call_reported_error", tool=name, status_code=error.status_code)
        return McpToolCallResult.from_payload(error.to_dict(), is_error=True)


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
