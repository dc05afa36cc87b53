from __future__ import annotations

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_PLACEHOLDER_BACKEND_URL = "https://your-d365-commerce-instance.com"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="COMMERCE_",
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    service_name: str = "commerce-mcp-gateway"
    host: str = "0.0.0.0"
    port: int = 8090
    backend_base_url: str = _PLACEHOLDER_BACKEND_URL
    backend_api_path: str = "/Commerce"
    request_timeout_seconds: float = 30.0
    commerce_role: str = "Anonymous"
    user_agent: str = "MCP-Commerce-Server/1.0"
    protocol_version: str = "2024-11-05"
    server_name: str = "D365 Commerce MCP Server"
    server_version: str = "1.0.0"
    log_level: str = "INFO"

    @field_validator("backend_base_url", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().rstrip("/")
        return value

    @field_validator("backend_api_path", mode="before")
    @classmethod
    def _normalize_api_path(cls, value: object) -> object:
        """`Commerce/` 처럼 들어와도 `/Commerce`로 맞춰요."""
        if isinstance(value, str):
            trimmed = value.strip().strip("/")
            return f"/{trimmed}" if trimmed else ""
        return value

    @property
    def uses_placeholder_backend(self) -> bool:
        return self.backend_base_url == _PLACEHOLDER_BACKEND_URL


settings = Settings()
