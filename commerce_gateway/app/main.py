from __future__ import annotations

import httpx
from fastapi import FastAPI

from commerce_gateway.app.settings import Settings, settings
from commerce_gateway.bootstrap import create_lifespan
from commerce_gateway.modules import build_api_router
from libs.common.http_handlers import register_exception_handlers
from libs.common.logging import configure_logging


def create_app(
    app_settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    resolved = app_settings or settings
    app = FastAPI(title=resolved.service_name, lifespan=create_lifespan(resolved, transport=transport))
    app.include_router(build_api_router())
    register_exception_handlers(app, "commerce_gateway.errors")
    return app


configure_logging(level=settings.log_level)
app = create_app(settings)
