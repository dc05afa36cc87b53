from __future__ import annotations

from dataclasses import dataclass

import httpx

from commerce_gateway.app.backend_client import BackendClient
from commerce_gateway.app.dispatcher import JsonRpcDispatcher
from commerce_gateway.app.mcp_protocol import McpServerInfo
from commerce_gateway.app.settings import Settings
from commerce_gateway.app.tools.catalog import ToolCatalog, build_default_catalog
from commerce_gateway.app.tools.invoker import ToolInvoker
from libs.common.logging import get_logger

logger = get_logger("commerce_gateway.container")


@dataclass(frozen=True, slots=True)
class RuntimeComponents:
    """두 전송 계층이 함께 쓰는 프로세스 단위 컨텍스트예요. 만든 뒤에는 바뀌지 않아요."""

    settings: Settings
    backend: BackendClient
    catalog: ToolCatalog
    invoker: ToolInvoker
    server_info: McpServerInfo

    def new_dispatcher(self) -> JsonRpcDispatcher:
        return JsonRpcDispatcher(
            catalog=self.catalog,
            invoker=self.invoker,
            server_info=self.server_info,
        )

    async def aclose(self) -> None:
        await self.backend.aclose()


async def build_runtime_components(
    settings: Settings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> RuntimeComponents:
    if settings.uses_placeholder_backend:
        logger.warning("backend_base_url_placeholder", backend_base_url=settings.backend_base_url)
    backend = BackendClient(
        base_url=settings.backend_base_url,
        api_path=settings.backend_api_path,
        timeout_seconds=settings.request_timeout_seconds,
        role=settings.commerce_role,
        user_agent=settings.user_agent,
        transport=transport,
    )
    catalog = build_default_catalog()
    invoker = ToolInvoker(catalog=catalog, backend=backend)
    server_info = McpServerInfo(
        name=settings.server_name,
        version=settings.server_version,
        protocol_version=settings.protocol_version,
    )
    return RuntimeComponents(
        settings=settings,
        backend=backend,
        catalog=catalog,
        invoker=invoker,
        server_info=server_info,
    )
