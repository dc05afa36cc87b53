"""Commerce 백엔드(Commerce Scale Unit) REST 호출을 담당해요.

호출 결과는 세 갈래로 분류돼요.

- 2xx: `BackendOutcome.success`: 본문 JSON을 그대로 담아요.
- 4xx: `BackendOutcome.client_error`: 예외 없이 오류 정보를 데이터로 돌려줘요.
- 5xx, 시간 초과, 네트워크 오류: `BackendServerError`를 던져요.

재시도는 하지 않아요. 호출 한 번에 요청 한 번이에요.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import httpx

from libs.common.errors import ConfigurationError, UpstreamTransientError
from libs.common.logging import get_logger

logger = get_logger("commerce_gateway.backend")

_NO_DATA: dict[str, Any] = {"error": "No data returned"}


class HttpMethod(str, enum.Enum):
    GET = "GET"
    POST = "POST"


class OutcomeKind(str, enum.Enum):
    SUCCESS = "success"
    CLIENT_ERROR = "client_error"


class BackendServerError(UpstreamTransientError):
    """백엔드 5xx 응답이나 전송 실패예요. 도구 결과가 아니라 프로토콜 오류로 올라가요."""

    def __init__(self, operation: str, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.operation = operation
        self.status_code = status_code


@dataclass(frozen=True, slots=True)
class BackendErrorDetail:
    operation: str
    status_code: int
    reason_phrase: str
    details: str
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": True,
            "operation": self.operation,
            "statusCode": self.status_code,
            "reasonPhrase": self.reason_phrase,
            "details": self.details,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True, slots=True)
class BackendOutcome:
    kind: OutcomeKind
    payload: Any = None
    error: BackendErrorDetail | None = None

    @classmethod
    def success(cls, payload: Any) -> BackendOutcome:
        return cls(kind=OutcomeKind.SUCCESS, payload=payload)

    @classmethod
    def client_error(cls, error: BackendErrorDetail) -> BackendOutcome:
        return cls(kind=OutcomeKind.CLIENT_ERROR, error=error)

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS


class BackendClient:
    def __init__(
        self,
        *,
        base_url: str,
        api_path: str = "/Commerce",
        timeout_seconds: float = 30.0,
        role: str = "Anonymous",
        user_agent: str = "MCP-Commerce-Server/1.0",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not base_url.strip():
            raise ConfigurationError("Commerce 백엔드 주소가 비어 있어요.")
        self._base_url = base_url.rstrip("/")
        self._api_path = "/" + api_path.strip("/") if api_path.strip("/") else ""
        self._timeout_seconds = timeout_seconds
        self._headers = {
            "Commerce-Role": role,
            "Accept": "application/json",
            "OData-Version": "4.0",
            "OData-MaxVersion": "4.0",
            "User-Agent": user_agent,
        }
        self._client = httpx.AsyncClient(timeout=self._timeout_seconds, transport=transport)

    @property
    def headers(self) -> dict[str, str]:
        return dict(self._headers)

    def build_url(self, path: str) -> str:
        return f"{self._base_url}{self._api_path}/{path.lstrip('/')}"

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        path: str,
        method: HttpMethod,
        *,
        operation: str,
        body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> BackendOutcome:
        url = self.build_url(path)
        logger.info("backend_request_started", operation=operation, method=method.value, url=url)

        try:
            if method is HttpMethod.GET:
                response = await self._client.get(url, params=params, headers=self._headers)
            else:
                response = await self._client.post(url, json=body, params=params, headers=self._headers)
        except httpx.TimeoutException as exc:
            logger.error("backend_request_timeout", operation=operation, url=url)
            raise BackendServerError(operation, f"{operation} 요청이 시간 초과됐어요.") from exc
        except httpx.HTTPError as exc:
            logger.error("backend_request_failed", operation=operation, url=url, error=str(exc))
            raise BackendServerError(operation, f"{operation} 요청 중 네트워크 오류가 발생했어요: {exc}") from exc

        return self._classify(operation, response)

    def _classify(self, operation: str, response: httpx.Response) -> BackendOutcome:
        status_code = response.status_code

        if 200 <= status_code < 300:
            if not response.content:
                return BackendOutcome.success(dict(_NO_DATA))
            try:
                payload = response.json()
            except ValueError as exc:
                raise BackendServerError(
                    operation,
                    f"{operation} 응답 본문이 JSON이 아니에요.",
                    status_code=status_code,
                ) from exc
            logger.info("backend_request_succeeded", operation=operation, status_code=status_code)
            # 본문이 JSON null이면 빈 본문과 똑같이 다뤄요.
            return BackendOutcome.success(dict(_NO_DATA) if payload is None else payload)

        logger.error(
            "backend_request_rejected",
            operation=operation,
            status_code=status_code,
            reason_phrase=response.reason_phrase,
        )

        if 400 <= status_code < 500:
            return BackendOutcome.client_error(
                BackendErrorDetail(
                    operation=operation,
                    status_code=status_code,
                    reason_phrase=response.reason_phrase,
                    details=response.text,
                    timestamp=datetime.now(timezone.utc).isoformat(),
                )
            )

        raise BackendServerError(
            operation,
            f"{operation} failed: {status_code} - {response.reason_phrase}. Details: {response.text}",
            status_code=status_code,
        )
