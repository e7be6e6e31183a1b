"""Invoke helpers — call sync or async controller code uniformly.

Actions and lifecycle hooks can be ``def`` or ``async def``. The dispatcher
must handle both, so the sync/async check lives in exactly one place.

Usage::

    from roost._internal.invoke import invoke

    result = await invoke(controller.pre_dispatch)
"""

import inspect
from typing import Any


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call a handler and await the result if it's awaitable.

    Works with both sync and async callables::

        # sync: returns immediately
        def index_action(self):
            return self.get_view()

        # async: awaited before the post-dispatch hook runs
        async def index_action(self):
            posts = await self.get_service("PostService").recent()
            return self.get_view().set_variable("posts", posts)
    """
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
