from commerce_gateway.app.tools.base import ArgumentKind, ArgumentSpec, ToolSpec
from commerce_gateway.app.tools.catalog import ToolCatalog, build_default_catalog
from commerce_gateway.app.tools.errors import ArgumentError
from commerce_gateway.app.tools.invoker import ToolInvoker

__all__ = [
    "ArgumentError",
    "ArgumentKind",
    "ArgumentSpec",
    "ToolCatalog",
    "ToolInvoker",
    "ToolSpec",
    "build_default_catalog",
]
