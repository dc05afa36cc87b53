from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from commerce_gateway.app.settings import Settings
from commerce_gateway.bootstrap.container import build_runtime_components
from libs.common.logging import get_logger

logger = get_logger("commerce_gateway.lifespan")


def create_lifespan(settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        runtime = await build_runtime_components(settings, transport=transport)

        app.state.runtime = runtime
        # HTTP 요청은 서로 독립적이라 디스패처 하나를 공유해요. 핸드셰이크 상태는 참고용이에요.
        app.state.dispatcher = runtime.new_dispatcher()
        logger.info(
            "gateway_started",
            backend_base_url=settings.backend_base_url,
            tool_count=len(runtime.catalog),
        )

        try:
            yield
        finally:
            await runtime.aclose()
            logger.info("gateway_stopped")

    return lifespan
