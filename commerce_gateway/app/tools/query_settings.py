"""페이징/정렬 지시(`queryResultSettings`)를 검증하고 기본값을 채워요.

목록을 돌려주는 도구는 호출자가 값을 생략해도 백엔드로 `null`을 보내지 않아요.
항상 `{"paging": {"top": <도구 기본값>, "skip": 0}}`이 채워진 채로 나가요.
"""

from __future__ import annotations

from typing import Any

from commerce_gateway.app.tools.errors import ArgumentError

QUERY_RESULT_SETTINGS_KEY = "queryResultSettings"
DEFAULT_TOP = 50
SUGGESTION_TOP = 10


def default_query_result_settings(default_top: int) -> dict[str, Any]:
    return {"paging": {"top": default_top, "skip": 0}}


def decode_query_result_settings(value: Any, *, default_top: int) -> dict[str, Any]:
    if value is None:
        return default_query_result_settings(default_top)
    if not isinstance(value, dict):
        raise ArgumentError(QUERY_RESULT_SETTINGS_KEY, "queryResultSettings 값은 객체여야 해요.")

    decoded = dict(value)
    decoded["paging"] = _decode_paging(value.get("paging"), default_top=default_top)

    sorting_value = value.get("sorting")
    if sorting_value is not None:
        decoded["sorting"] = _decode_sorting(sorting_value)
    else:
        decoded.pop("sorting", None)
    return decoded


def _decode_paging(value: Any, *, default_top: int) -> dict[str, int]:
    if value is None:
        return {"top": default_top, "skip": 0}
    if not isinstance(value, dict):
        raise ArgumentError("queryResultSettings.paging", "paging 값은 객체여야 해요.")

    top = _optional_integer("queryResultSettings.paging.top", value.get("top"), default=default_top)
    skip = _optional_integer("queryResultSettings.paging.skip", value.get("skip"), default=0)
    if top < 1:
        raise ArgumentError("queryResultSettings.paging.top", "top 값은 1 이상이어야 해요.")
    if skip < 0:
        raise ArgumentError("queryResultSettings.paging.skip", "skip 값은 0 이상이어야 해요.")
    return {"top": top, "skip": skip}


def _decode_sorting(value: Any) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ArgumentError("queryResultSettings.sorting", "sorting 값은 객체여야 해요.")

    sorting = dict(value)
    for key in ("field", "sortingKey"):
        key_value = sorting.get(key)
        if key_value is not None and not isinstance(key_value, str):
            raise ArgumentError(f"queryResultSettings.sorting.{key}", f"{key} 값은 문자열이어야 해요.")

    is_descending = sorting.get("isDescending")
    if is_descending is None:
        sorting["isDescending"] = False
    elif not isinstance(is_descending, bool):
        raise ArgumentError("queryResultSettings.sorting.isDescending", "isDescending 값은 true 또는 false여야 해요.")
    return sorting


def _optional_integer(field_name: str, value: Any, *, default: int) -> int:
    if value is None:
        return default
    return as_integer(field_name, value)


def as_integer(field_name: str, value: Any) -> int:
    # bool은 int의 하위 타입이라 먼저 걸러내요.
    if isinstance(value, bool):
        raise ArgumentError(field_name, f"{field_name} 값은 정수여야 해요.")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise ArgumentError(field_name, f"{field_name} 값은 정수여야 해요.")


def query_result_settings_schema(default_top: int) -> dict[str, Any]:
    return {
        "type": "object",
        "description": "QueryResultSettings for paging and sorting",
        "properties": {
            "paging": {
                "type": "object",
                "properties": {
                    "top": {
                        "type": "integer",
                        "minimum": 1,
                        "description": f"Number of results to return (default: {default_top})",
                    },
                    "skip": {
                        "type": "integer",
                        "minimum": 0,
                        "description": "Number of results to skip (default: 0)",
                    },
                },
            },
            "sorting": {
                "type": "object",
                "properties": {
                    "field": {"type": "string", "description": "Field to sort by"},
                    "isDescending": {
                        "type": "boolean",
                        "description": "Sort in descending order (default: false)",
                    },
                },
            },
        },
    }
