from __future__ import annotations

from fastapi import APIRouter


def build_api_router() -> APIRouter:
    from commerce_gateway.modules.mcp.api import alias_router, router as mcp_router

    api_router = APIRouter()
    api_router.include_router(mcp_router)
    api_router.include_router(alias_router)
    return api_router


__all__ = ["build_api_router"]
