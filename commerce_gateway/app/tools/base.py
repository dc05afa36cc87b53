"""Commerce 도구 정의와 인자 디코딩 규칙이에요.

도구 하나는 `ToolSpec` 하나로 표현돼요. `ToolSpec.arguments`에서 MCP `inputSchema`와
인자 디코더가 함께 만들어지기 때문에 스키마와 실제 검증이 어긋나지 않아요.

새 도구를 추가하려면:
    1. `ArgumentSpec` 목록으로 인자를 선언해요.
    2. HTTP 메서드와 백엔드 경로를 정해요. GET 도구는 경로 템플릿에 식별자를 넣어요.
    3. `catalog.build_default_catalog()`에 등록하면 끝이에요.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from string import Formatter
from typing import Any

from commerce_gateway.app.backend_client import HttpMethod
from commerce_gateway.app.tools.errors import ArgumentError
from commerce_gateway.app.tools.query_settings import (
    QUERY_RESULT_SETTINGS_KEY,
    as_integer,
    decode_query_result_settings,
    query_result_settings_schema,
)


class ArgumentKind(str, enum.Enum):
    INTEGER = "integer"
    STRING = "string"
    BOOLEAN = "boolean"
    INTEGER_ARRAY = "integer_array"
    OBJECT_ARRAY = "object_array"
    OBJECT = "object"


_MISSING: Any = object()


@dataclass(frozen=True, slots=True)
class ArgumentSpec:
    name: str
    kind: ArgumentKind
    description: str
    required: bool = True
    default: Any = _MISSING
    properties: Mapping[str, Any] | None = None

    def to_schema(self) -> dict[str, Any]:
        schema: dict[str, Any]
        if self.kind is ArgumentKind.INTEGER_ARRAY:
            schema = {"type": "array", "items": {"type": "integer"}}
        elif self.kind is ArgumentKind.OBJECT_ARRAY:
            schema = {"type": "array", "items": {"type": "object"}}
        else:
            schema = {"type": self.kind.value}
        schema["description"] = self.description
        if self.properties is not None:
            schema["properties"] = dict(self.properties)
        return schema

    def decode(self, value: Any) -> Any:
        if self.kind is ArgumentKind.INTEGER:
            return as_integer(self.name, value)
        if self.kind is ArgumentKind.STRING:
            if not isinstance(value, str):
                raise ArgumentError(self.name, f"{self.name} 값은 문자열이어야 해요.")
            return value
        if self.kind is ArgumentKind.BOOLEAN:
            if not isinstance(value, bool):
                raise ArgumentError(self.name, f"{self.name} 값은 true 또는 false여야 해요.")
            return value
        if self.kind is ArgumentKind.INTEGER_ARRAY:
            if not isinstance(value, list):
                raise ArgumentError(self.name, f"{self.name} 값은 정수 배열이어야 해요.")
            return [as_integer(f"{self.name}[{index}]", item) for index, item in enumerate(value)]
        if self.kind is ArgumentKind.OBJECT_ARRAY:
            if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
                raise ArgumentError(self.name, f"{self.name} 값은 객체 배열이어야 해요.")
            return list(value)
        if not isinstance(value, dict):
            raise ArgumentError(self.name, f"{self.name} 값은 객체여야 해요.")
        return dict(value)


@dataclass(frozen=True, slots=True)
class ToolSpec:
    name: str
    title: str
    description: str
    method: HttpMethod
    path: str
    operation: str
    arguments: tuple[ArgumentSpec, ...] = ()
    default_top: int | None = None
    """`None`이면 페이징을 받지 않는 도구예요."""

    path_fields: tuple[str, ...] = field(init=False)

    def __post_init__(self) -> None:
        fields = tuple(name for _, name, _, _ in Formatter().parse(self.path) if name)
        object.__setattr__(self, "path_fields", fields)

    @property
    def paged(self) -> bool:
        return self.default_top is not None

    @property
    def required(self) -> list[str]:
        return [argument.name for argument in self.arguments if argument.required]

    def input_schema(self) -> dict[str, Any]:
        properties: dict[str, Any] = {argument.name: argument.to_schema() for argument in self.arguments}
        if self.default_top is not None:
            properties[QUERY_RESULT_SETTINGS_KEY] = query_result_settings_schema(self.default_top)
        return {
            "type": "object",
            "properties": properties,
            "required": self.required,
        }

    def to_definition(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "description": self.description,
            "inputSchema": self.input_schema(),
        }

    def decode_arguments(self, arguments: Mapping[str, Any] | None) -> dict[str, Any]:
        """인자를 검증하고 백엔드 요청 본문에 쓸 값만 골라내요.

        필수 인자가 없거나 타입이 틀리면 `ArgumentError`를 던져요. 선택 인자는 값이 없으면
        기본값을 쓰고, 기본값도 없으면 결과에서 빠져요.
        """
        source: Mapping[str, Any] = arguments if arguments is not None else {}
        decoded: dict[str, Any] = {}
        for argument in self.arguments:
            value = source.get(argument.name)
            if value is None:
                if argument.required:
                    raise ArgumentError(argument.name, f"{argument.name} 파라미터가 필요해요.")
                if argument.default is not _MISSING:
                    decoded[argument.name] = _copy_default(argument.default)
                continue
            decoded[argument.name] = argument.decode(value)

        if self.default_top is not None:
            decoded[QUERY_RESULT_SETTINGS_KEY] = decode_query_result_settings(
                source.get(QUERY_RESULT_SETTINGS_KEY),
                default_top=self.default_top,
            )
        return decoded

    def render_path(self, decoded: Mapping[str, Any]) -> str:
        return self.path.format(**{name: decoded[name] for name in self.path_fields})


def _copy_default(value: Any) -> Any:
    if isinstance(value, list):
        return list(value)
    if isinstance(value, dict):
        return dict(value)
    return value
