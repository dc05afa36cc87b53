from __future__ import annotations

from libs.common.errors import ValidationError


class ArgumentError(ValidationError):
    """필수 인자가 없거나 타입이 맞지 않을 때 발생해요. 항상 도구 결과로 보고돼요."""

    def __init__(self, field_name: str, message: str) -> None:
        super().__init__(message)
        self.field = field_name
