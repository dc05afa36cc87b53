from __future__ import annotations


class DomainError(Exception):
    def __init__(self, error_code: str, message: str, retryable: bool = False) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.message = message
        self.retryable = retryable


class ValidationError(DomainError):
    def __init__(self, message: str = "검증에 실패했어요.") -> None:
        super().__init__("VALIDATION_FAILED", message, retryable=False)


class UpstreamTransientError(DomainError):
    def __init__(self, message: str = "외부 시스템에 일시적인 문제가 발생했어요.") -> None:
        super().__init__("UPSTREAM_TRANSIENT", message, retryable=True)


class ConfigurationError(DomainError):
    def __init__(self, message: str = "설정이 올바르지 않아요.") -> None:
        super().__init__("CONFIGURATION_ERROR", message, retryable=False)
