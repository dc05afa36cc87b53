from __future__ import annotations

import json
from collections.abc import Iterator

import httpx
import pytest
from commerce_gateway.app.main import create_app
from commerce_gateway.app.settings import Settings
from fastapi.testclient import TestClient

from tests.conftest import BACKEND_BASE_URL, FakeBackend


@pytest.fixture
def http_backend() -> FakeBackend:
    return FakeBackend(lambda request: httpx.Response(200, json={"products": []}))


@pytest.fixture
def client(http_backend: FakeBackend) -> Iterator[TestClient]:
    app = create_app(Settings(backend_base_url=BACKEND_BASE_URL), transport=http_backend.transport())
    with TestClient(app) as test_client:
        yield test_client


def test_envelope_endpoint_returns_jsonrpc_response(client: TestClient) -> None:
    response = client.post("/api/mcp", content=b'{"jsonrpc":"2.0","id":1,"method":"tools/list"}')
    assert response.status_code == 200
    body = response.json()
    assert body["id"] == 1
    assert len(body["result"]["tools"]) == 18


def test_alias_endpoint_matches_primary(client: TestClient) -> None:
    message = b'{"jsonrpc":"2.0","id":2,"method":"initialize","params":{}}'
    primary = client.post("/api/mcp", content=message).json()
    alias = client.post("/mcp", content=message).json()
    assert primary == alias


def test_notification_gets_202_without_body(client: TestClient) -> None:
    response = client.post("/api/mcp", content=b'{"jsonrpc":"2.0","method":"notifications/initialized"}')
    assert response.status_code == 202
    assert response.content == b""


def test_malformed_body_is_parse_error(client: TestClient) -> None:
    response = client.post("/mcp", content=b"{oops")
    assert response.status_code == 200
    assert response.json()["error"]["code"] == -32700


def test_tools_call_reaches_backend(client: TestClient, http_backend: FakeBackend) -> None:
    message = {
        "jsonrpc": "2.0",
        "id": "c1",
        "method": "tools/call",
        "params": {
            "name": "products_search_by_text",
            "arguments": {"channelId": 1, "catalogId": 0, "searchText": "bike"},
        },
    }
    body = client.post("/api/mcp", content=json.dumps(message)).json()
    assert body["result"]["isError"] is False
    assert json.loads(body["result"]["content"][0]["text"]) == {"products": []}
    assert http_backend.requests[0].url.path == "/Commerce/Products/SearchByText"


def test_capabilities_describe_http_transport(client: TestClient) -> None:
    body = client.get("/api/mcp/capabilities").json()
    assert body["protocolVersion"] == "2024-11-05"
    assert body["serverName"] == "D365 Commerce MCP Server"
    assert body["transport"] == "http"
    assert body["capabilities"]["tools"] == {"listChanged": False}
    assert "/api/mcp" in body["endpoints"]


def test_health_reports_healthy(client: TestClient) -> None:
    body = client.get("/api/mcp/health").json()
    assert body["status"] == "healthy"
    assert body["version"] == "1.0.0"
    assert body["timestamp"]


def test_convenience_initialize_keeps_body_id(client: TestClient) -> None:
    body = client.post("/api/mcp/initialize", json={"id": 5, "params": {"clientInfo": {"name": "t"}}}).json()
    assert body["id"] == 5
    assert body["result"]["serverInfo"]["name"] == "D365 Commerce MCP Server"


def test_convenience_tools_list_tolerates_empty_body(client: TestClient) -> None:
    body = client.post("/api/mcp/tools/list").json()
    assert body["id"] == "1"
    assert len(body["result"]["tools"]) == 18


def test_convenience_tools_call_accepts_bare_call(client: TestClient) -> None:
    body = client.post(
        "/api/mcp/tools/call",
        json={"name": "products_get_by_id", "arguments": {"channelId": 1}},
    ).json()
    assert body["id"] == "1"
    assert body["result"]["isError"] is True
    assert json.loads(body["result"]["content"][0]["text"])["field"] == "recordId"


def test_convenience_resources_list_tolerates_invalid_body(client: TestClient) -> None:
    body = client.post("/api/mcp/resources/list", content=b"not json").json()
    assert body["result"] == {"resources": []}


def test_routes_are_unavailable_without_runtime() -> None:
    app = create_app(Settings(backend_base_url=BACKEND_BASE_URL))
    bare_client = TestClient(app)
    response = bare_client.get("/api/mcp/health")
    assert response.status_code == 503
    assert response.json()["error_code"] == "CONFIGURATION_ERROR"
    assert response.json()["trace_id"]


def test_convenience_route_ignores_non_standard_json(client: TestClient) -> None:
    body = client.post("/api/mcp/tools/list", content=b'{"id": NaN}').json()
    assert body["id"] == "1"
    assert len(body["result"]["tools"]) == 18


def test_envelope_endpoint_rejects_deep_nesting(client: TestClient) -> None:
    response = client.post("/api/mcp", content=b"[" * 100_000 + b"]" * 100_000)
    assert response.status_code == 200
    assert response.json()["error"]["code"] == -32700
