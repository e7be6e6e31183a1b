"""Request dispatch: the controller lifecycle state machine."""

from roost.dispatch.context import DispatchContext, DispatchRequest, DispatchResponse, DispatchState
from roost.dispatch.dispatcher import Dispatcher
from roost.dispatch.registry import ControllerRegistry

__all__ = [
    "ControllerRegistry",
    "DispatchContext",
    "DispatchRequest",
    "DispatchResponse",
    "DispatchState",
    "Dispatcher",
]
