from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

JSONRPC_VERSION = "2.0"
MCP_PROTOCOL_VERSION = "2024-11-05"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# id 키 자체가 없는 메시지(알림)와 "id": null 을 구분하기 위한 표식이에요.
NO_ID: Any = object()


@dataclass(frozen=True, slots=True)
class JsonRpcError:
    code: int
    message: str
    data: Any = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            payload["data"] = self.data
        return payload


@dataclass(slots=True)
class McpTextContent:
    text: str
    type: str = "text"

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type, "text": self.text}


@dataclass(slots=True)
class McpToolCallResult:
    """`tools/call` 결과예요. `text`에는 실제 결과를 JSON으로 직렬화한 문자열이 들어가요."""

    content: list[McpTextContent] = field(default_factory=list)
    is_error: bool = False

    @classmethod
    def from_text(cls, text: str, *, is_error: bool = False) -> McpToolCallResult:
        return cls(content=[McpTextContent(text=text)], is_error=is_error)

    @classmethod
    def from_payload(cls, payload: Any, *, is_error: bool = False) -> McpToolCallResult:
        return cls.from_text(json.dumps(payload, indent=2, ensure_ascii=False), is_error=is_error)

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": [block.to_dict() for block in self.content],
            "isError": self.is_error,
        }


@dataclass(frozen=True, slots=True)
class McpServerInfo:
    name: str
    version: str
    protocol_version: str = MCP_PROTOCOL_VERSION

    def capabilities(self) -> dict[str, Any]:
        return {
            "tools": {"listChanged": False},
            "resources": {"subscribe": False, "listChanged": False},
        }

    def initialize_result(self) -> dict[str, Any]:
        return {
            "protocolVersion": self.protocol_version,
            "capabilities": self.capabilities(),
            "serverInfo": {"name": self.name, "version": self.version},
        }


def _reject_constant(name: str) -> Any:
    raise ValueError(f"JSON에는 {name} 값을 쓸 수 없어요.")


def parse_json(text: str | bytes) -> Any:
    """표준 JSON만 받아요. `NaN`, `Infinity`나 너무 깊은 중첩은 `ValueError`로 바꿔서 던져요."""
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except RecursionError as exc:
        raise ValueError("JSON 중첩이 너무 깊어요.") from exc


def success_response(request_id: Any, result: Any) -> dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def error_response(request_id: Any, error: JsonRpcError) -> dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error.to_dict()}
