from __future__ import annotations

from commerce_gateway.bootstrap.container import RuntimeComponents, build_runtime_components
from commerce_gateway.bootstrap.lifespan import create_lifespan

__all__ = [
    "RuntimeComponents",
    "build_runtime_components",
    "create_lifespan",
]
