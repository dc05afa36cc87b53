from __future__ import annotations

from commerce_gateway.modules.common.deps import get_dispatcher

__all__ = ["get_dispatcher"]
