from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest
from commerce_gateway.app.backend_client import BackendClient
from commerce_gateway.app.dispatcher import JsonRpcDispatcher
from commerce_gateway.app.mcp_protocol import McpServerInfo
from commerce_gateway.app.tools.catalog import ToolCatalog, build_default_catalog
from commerce_gateway.app.tools.invoker import ToolInvoker

BACKEND_BASE_URL = "https://csu.test"

Responder = Callable[[httpx.Request], httpx.Response]


class FakeBackend:
    """`httpx.MockTransport` 위에서 받은 요청을 기록하는 가짜 Commerce 백엔드예요."""

    def __init__(self, responder: Responder | None = None) -> None:
        self.requests: list[httpx.Request] = []
        self._responder = responder or (lambda request: httpx.Response(200, json={"value": []}))

    def respond_with(self, responder: Responder) -> None:
        self._responder = responder

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)

    def client(self) -> BackendClient:
        return BackendClient(base_url=BACKEND_BASE_URL, transport=self.transport())

    def last_body(self) -> Any:
        return json.loads(self.requests[-1].content)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._responder(request)


@pytest.fixture
def catalog() -> ToolCatalog:
    return build_default_catalog()


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def invoker(catalog: ToolCatalog, fake_backend: FakeBackend) -> ToolInvoker:
    return ToolInvoker(catalog=catalog, backend=fake_backend.client())


@pytest.fixture
def dispatcher(catalog: ToolCatalog, invoker: ToolInvoker) -> JsonRpcDispatcher:
    return JsonRpcDispatcher(
        catalog=catalog,
        invoker=invoker,
        server_info=McpServerInfo(name="D365 Commerce MCP Server", version="1.0.0"),
    )


def rpc(method: str, params: Any = None, request_id: Any = 1) -> dict[str, Any]:
    """테스트용 JSON-RPC 요청 봉투를 만드는 헬퍼예요."""
    message: dict[str, Any] = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        message["params"] = params
    return message


def tool_payload(response: dict[str, Any]) -> Any:
    """`tools/call` 응답의 첫 번째 텍스트 블록을 JSON으로 풀어요."""
    return json.loads(response["result"]["content"][0]["text"])
