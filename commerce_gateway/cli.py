from __future__ import annotations

import asyncio
import sys

import uvicorn

from commerce_gateway.app.settings import settings
from commerce_gateway.app.stdio_transport import serve_stdio
from commerce_gateway.bootstrap import build_runtime_components
from libs.common.logging import configure_logging, get_logger


def _run(*, reload_enabled: bool) -> None:
    uvicorn.run(
        "commerce_gateway.app.main:app",
        host=settings.host,
        port=settings.port,
        reload=reload_enabled,
    )


def main() -> None:
    _run(reload_enabled=False)


def main_dev() -> None:
    _run(reload_enabled=True)


async def _serve_stdio() -> int:
    runtime = await build_runtime_components(settings)
    try:
        return await serve_stdio(runtime.new_dispatcher())
    finally:
        await runtime.aclose()


def main_stdio() -> None:
    # stdout은 프로토콜 프레임 전용이에요.
    configure_logging(stream=sys.stderr, level=settings.log_level)
    logger = get_logger("commerce_gateway.cli")
    logger.info("stdio_server_starting", backend_base_url=settings.backend_base_url)
    try:
        asyncio.run(_serve_stdio())
    except KeyboardInterrupt:
        logger.info("stdio_server_interrupted")
