from __future__ import annotations

from commerce_gateway.modules.mcp.api import alias_router, router

__all__ = [
    "alias_router",
    "router",
]
