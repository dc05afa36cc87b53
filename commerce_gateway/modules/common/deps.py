from __future__ import annotations

from fastapi import Request

from commerce_gateway.app.dispatcher import JsonRpcDispatcher
from libs.common.errors import ConfigurationError


def get_dispatcher(request: Request) -> JsonRpcDispatcher:
    dispatcher = getattr(request.app.state, "dispatcher", None)
    if not isinstance(dispatcher, JsonRpcDispatcher):
        raise ConfigurationError("게이트웨이 런타임이 아직 준비되지 않았어요.")
    return dispatcher
