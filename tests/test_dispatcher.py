from __future__ import annotations

import json
from typing import Any

import httpx
import pytest
from commerce_gateway.app.dispatcher import HandshakeState, JsonRpcDispatcher

from tests.conftest import FakeBackend, rpc, tool_payload


async def _roundtrip(dispatcher: JsonRpcDispatcher, message: Any) -> dict[str, Any]:
    raw = await dispatcher.handle(json.dumps(message))
    assert raw is not None
    return json.loads(raw)


@pytest.mark.asyncio
async def test_malformed_json_returns_parse_error_with_null_id(dispatcher: JsonRpcDispatcher) -> None:
    raw = await dispatcher.handle(b'{"jsonrpc": "2.0", "id": 1, "method": ')
    assert raw is not None
    assert json.loads(raw) == {
        "jsonrpc": "2.0",
        "id": None,
        "error": {"code": -32700, "message": "Parse error"},
    }


@pytest.mark.asyncio
async def test_invalid_utf8_returns_parse_error(dispatcher: JsonRpcDispatcher) -> None:
    raw = await dispatcher.handle(b"\xff\xfe{}")
    assert raw is not None
    assert json.loads(raw)["error"]["code"] == -32700


@pytest.mark.asyncio
async def test_deeply_nested_message_returns_parse_error(dispatcher: JsonRpcDispatcher) -> None:
    raw = await dispatcher.handle(b"[" * 100_000 + b"]" * 100_000)
    assert raw is not None
    response = json.loads(raw)
    assert response["id"] is None
    assert response["error"]["code"] == -32700


@pytest.mark.asyncio
@pytest.mark.parametrize("constant", ["NaN", "Infinity", "-Infinity"])
async def test_non_standard_number_constants_are_parse_errors(
    dispatcher: JsonRpcDispatcher,
    fake_backend: FakeBackend,
    constant: str,
) -> None:
    raw = await dispatcher.handle(
        '{"jsonrpc":"2.0","id":3,"method":"tools/call","params":'
        '{"name":"products_search","arguments":{"productSearchCriteria":{"x":' + constant + "}}}}"
    )
    assert raw is not None
    assert json.loads(raw)["error"] == {"code": -32700, "message": "Parse error"}
    assert fake_backend.requests == []


@pytest.mark.asyncio
async def test_unknown_method_returns_method_not_found(dispatcher: JsonRpcDispatcher) -> None:
    response = await _roundtrip(dispatcher, rpc("products/explode", request_id=7))
    assert response["id"] == 7
    assert response["error"] == {"code": -32601, "message": "Method not found"}
    assert "result" not in response


@pytest.mark.asyncio
async def test_non_object_message_is_invalid_request(dispatcher: JsonRpcDispatcher) -> None:
    response = await _roundtrip(dispatcher, [rpc("tools/list")])
    assert response["id"] is None
    assert response["error"]["code"] == -32600


@pytest.mark.asyncio
async def test_missing_method_with_id_is_method_not_found(dispatcher: JsonRpcDispatcher) -> None:
    response = await _roundtrip(dispatcher, {"jsonrpc": "2.0", "id": "abc"})
    assert response["id"] == "abc"
    assert response["error"]["code"] == -32601


@pytest.mark.asyncio
async def test_missing_method_without_id_is_invalid_request(dispatcher: JsonRpcDispatcher) -> None:
    response = await _roundtrip(dispatcher, {"jsonrpc": "2.0", "params": {}})
    assert response["id"] is None
    assert response["error"]["code"] == -32600


@pytest.mark.asyncio
async def test_null_id_is_a_request_not_a_notification(dispatcher: JsonRpcDispatcher) -> None:
    response = await _roundtrip(dispatcher, rpc("ping", request_id=None))
    assert response == {"jsonrpc": "2.0", "id": None, "result": {}}


@pytest.mark.asyncio
async def test_initialize_reports_server_info_and_capabilities(dispatcher: JsonRpcDispatcher) -> None:
    response = await _roundtrip(
        dispatcher,
        rpc(
            "initialize",
            {
                "protocolVersion": "2025-06-18",
                "clientInfo": {"name": "test-client", "version": "0.1.0"},
            },
        ),
    )
    assert response["result"] == {
        "protocolVersion": "2024-11-05",
        "capabilities": {
            "tools": {"listChanged": False},
            "resources": {"subscribe": False, "listChanged": False},
        },
        "serverInfo": {"name": "D365 Commerce MCP Server", "version": "1.0.0"},
    }
    assert dispatcher.state is HandshakeState.INITIALIZED


@pytest.mark.asyncio
async def test_initialized_notification_produces_no_response(dispatcher: JsonRpcDispatcher) -> None:
    await dispatcher.handle(json.dumps(rpc("initialize", {})))
    raw = await dispatcher.handle(json.dumps({"jsonrpc": "2.0", "method": "notifications/initialized"}))
    assert raw is None
    assert dispatcher.state is HandshakeState.READY


@pytest.mark.asyncio
async def test_unknown_notification_is_silently_dropped(dispatcher: JsonRpcDispatcher) -> None:
    raw = await dispatcher.handle(json.dumps({"jsonrpc": "2.0", "method": "notifications/cancelled"}))
    assert raw is None


@pytest.mark.asyncio
async def test_tools_are_served_before_initialize(dispatcher: JsonRpcDispatcher) -> None:
    response = await _roundtrip(dispatcher, rpc("tools/list"))
    assert dispatcher.state is HandshakeState.UNSTARTED
    assert len(response["result"]["tools"]) == 18


@pytest.mark.asyncio
async def test_tools_list_is_stable_across_calls(dispatcher: JsonRpcDispatcher) -> None:
    first = await _roundtrip(dispatcher, rpc("tools/list", request_id=1))
    second = await _roundtrip(dispatcher, rpc("tools/list", {"cursor": "ignored"}, request_id=2))
    assert first["result"] == second["result"]
    assert "nextCursor" not in first["result"]


@pytest.mark.asyncio
async def test_search_by_text_required_fields(dispatcher: JsonRpcDispatcher) -> None:
    response = await _roundtrip(dispatcher, rpc("tools/list"))
    tools = {tool["name"]: tool for tool in response["result"]["tools"]}
    assert tools["products_search_by_text"]["inputSchema"]["required"] == ["channelId", "catalogId", "searchText"]


@pytest.mark.asyncio
async def test_unknown_tool_is_reported_not_faulted(dispatcher: JsonRpcDispatcher, fake_backend: FakeBackend) -> None:
    response = await _roundtrip(dispatcher, rpc("tools/call", {"name": "products_teleport", "arguments": {}}))
    assert "error" not in response
    assert response["result"] == {
        "content": [{"type": "text", "text": "Unknown tool: products_teleport"}],
        "isError": True,
    }
    assert fake_backend.requests == []


@pytest.mark.asyncio
async def test_get_by_id_without_record_id_is_reported(dispatcher: JsonRpcDispatcher, fake_backend: FakeBackend) -> None:
    response = await _roundtrip(
        dispatcher,
        rpc("tools/call", {"name": "products_get_by_id", "arguments": {"channelId": 1}}),
    )
    assert response["result"]["isError"] is True
    payload = tool_payload(response)
    assert payload["error"] is True
    assert payload["tool"] == "products_get_by_id"
    assert payload["field"] == "recordId"
    assert fake_backend.requests == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "params",
    [
        None,
        ["products_search"],
        {"arguments": {}},
        {"name": 3},
        {"name": "products_search", "arguments": "channelId=1"},
    ],
)
async def test_malformed_tools_call_params_are_invalid_params(dispatcher: JsonRpcDispatcher, params: Any) -> None:
    message = {"jsonrpc": "2.0", "id": 4, "method": "tools/call"}
    if params is not None:
        message["params"] = params
    response = await _roundtrip(dispatcher, message)
    assert response["error"] == {"code": -32602, "message": "Invalid params"}


@pytest.mark.asyncio
async def test_search_by_text_success_round_trips_payload(
    dispatcher: JsonRpcDispatcher,
    fake_backend: FakeBackend,
) -> None:
    fake_backend.respond_with(lambda request: httpx.Response(200, json={"products": []}))
    response = await _roundtrip(
        dispatcher,
        rpc(
            "tools/call",
            {
                "name": "products_search_by_text",
                "arguments": {"channelId": 1, "catalogId": 0, "searchText": "bike"},
            },
        ),
    )
    assert response["result"]["isError"] is False
    assert tool_payload(response) == {"products": []}


@pytest.mark.asyncio
async def test_backend_client_error_is_reported_with_status(
    dispatcher: JsonRpcDispatcher,
    fake_backend: FakeBackend,
) -> None:
    fake_backend.respond_with(lambda request: httpx.Response(404, text="no such product"))
    response = await _roundtrip(
        dispatcher,
        rpc("tools/call", {"name": "products_get_by_id", "arguments": {"recordId": 5, "channelId": 1}}),
    )
    assert response["result"]["isError"] is True
    payload = tool_payload(response)
    assert payload["statusCode"] == 404
    assert payload["operation"] == "Products/GetById"
    assert payload["details"] == "no such product"


@pytest.mark.asyncio
async def test_backend_server_error_becomes_internal_error(
    dispatcher: JsonRpcDispatcher,
    fake_backend: FakeBackend,
) -> None:
    fake_backend.respond_with(lambda request: httpx.Response(503, text="maintenance"))
    response = await _roundtrip(
        dispatcher,
        rpc(
            "tools/call",
            {
                "name": "products_search_by_text",
                "arguments": {"channelId": 1, "catalogId": 0, "searchText": "bike"},
            },
            request_id="call-9",
        ),
    )
    assert response["id"] == "call-9"
    assert response["error"]["code"] == -32603
    assert response["error"]["message"] == "Internal error"
    assert "503" in response["error"]["data"]
    assert "maintenance" in response["error"]["data"]


@pytest.mark.asyncio
async def test_backend_timeout_becomes_internal_error(
    dispatcher: JsonRpcDispatcher,
    fake_backend: FakeBackend,
) -> None:
    def _timeout(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    fake_backend.respond_with(_timeout)
    response = await _roundtrip(
        dispatcher,
        rpc("tools/call", {"name": "products_get_units_of_measure", "arguments": {"recordId": 1}}),
    )
    assert response["error"]["code"] == -32603
    assert len(fake_backend.requests) == 1


@pytest.mark.asyncio
async def test_resources_are_empty(dispatcher: JsonRpcDispatcher) -> None:
    listed = await _roundtrip(dispatcher, rpc("resources/list"))
    assert listed["result"] == {"resources": []}

    read = await _roundtrip(dispatcher, rpc("resources/read", {"uri": "commerce://x"}))
    assert read["error"] == {"code": -32601, "message": "No resources available"}


class _ExplodingInvoker:
    async def call(self, name: str, arguments: Any) -> Any:
        del name, arguments
        raise RuntimeError("boom")


@pytest.mark.asyncio
async def test_unexpected_handler_failure_becomes_internal_error(dispatcher: JsonRpcDispatcher) -> None:
    dispatcher._invoker = _ExplodingInvoker()  # type: ignore[assignment]
    response = await _roundtrip(dispatcher, rpc("tools/call", {"name": "products_search", "arguments": {}}))
    assert response["error"] == {"code": -32603, "message": "Internal error"}

    raw = await dispatcher.handle(
        json.dumps({"jsonrpc": "2.0", "method": "tools/call", "params": {"name": "products_search"}})
    )
    assert raw is None
