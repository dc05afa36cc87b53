from __future__ import annotations

import uuid
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from libs.common.errors import ConfigurationError, DomainError, UpstreamTransientError
from libs.common.logging import get_logger


def _status_for(exc: DomainError) -> int:
    if isinstance(exc, ConfigurationError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    if isinstance(exc, UpstreamTransientError):
        return status.HTTP_502_BAD_GATEWAY
    return status.HTTP_400_BAD_REQUEST


def _error_body(error_code: str, message: str, trace_id: str, retryable: bool) -> dict[str, Any]:
    return {
        "error_code": error_code,
        "message": message,
        "trace_id": trace_id,
        "retryable": retryable,
    }


def register_exception_handlers(app: FastAPI, logger_name: str) -> None:
    """JSON-RPC 봉투 밖에서 생긴 오류를 공통 오류 본문으로 바꿔요.

    MCP 요청 자체의 오류는 디스패처가 JSON-RPC 오류로 돌려주기 때문에 여기까지 오지 않아요.
    """
    logger = get_logger(logger_name)

    @app.exception_handler(DomainError)
    async def handle_domain_error(request: Request, exc: DomainError) -> JSONResponse:
        trace_id = str(uuid.uuid4())
        status_code = _status_for(exc)
        logger.warning(
            "domain_error",
            path=request.url.path,
            method=request.method,
            status_code=status_code,
            trace_id=trace_id,
            error_code=exc.error_code,
            message=exc.message,
        )
        return JSONResponse(
            status_code=status_code,
            content=_error_body(exc.error_code, exc.message, trace_id, exc.retryable),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        trace_id = str(uuid.uuid4())
        logger.exception("unhandled_error", path=request.url.path, trace_id=trace_id, error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body("INTERNAL_ERROR", "예상하지 못한 내부 오류가 발생했어요.", trace_id, True),
        )
