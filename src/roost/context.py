"""The dispatch context of the running request.

Set by the dispatcher for the duration of one request. Collaborators
without a controller handle (authentication, helpers built outside a
scope) look it up here instead of through a process-wide global.
"""

from __future__ import annotations

from contextvars import ContextVar
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from roost.dispatch.context import DispatchContext

_dispatch_context: ContextVar[DispatchContext | None] = ContextVar(
    "roost_dispatch_context", default=None
)


def get_dispatch_context() -> DispatchContext | None:
    return _dispatch_context.get()


def require_dispatch_context() -> DispatchContext:
    """Return the current dispatch context.

    Raises:
        LookupError: Outside of a request.
    """
    context = _dispatch_context.get()
    if context is None:
        msg = "No dispatch context is active. This is only available while a request is dispatched."
        raise LookupError(msg)
    return context
