"""Binding to the dispatching controller.

Plugins, helpers, and the registries that hand them out are all bound to
the controller that is handling the request before they are used.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Self

from roost.errors import ControllerBindingError

if TYPE_CHECKING:
    from roost.mvc.controller import BaseController


class ControllerBound:
    """Mixin for objects that act on behalf of one controller."""

    _controller: BaseController | None = None

    def set_controller(self, controller: BaseController) -> Self:
        from roost.mvc.controller import BaseController

        if not isinstance(controller, BaseController):
            msg = (
                f"{type(self).__name__} can only be bound to a BaseController, "
                f"got {type(controller).__name__}."
            )
            raise ControllerBindingError(msg)
        self._controller = controller
        return self

    @property
    def controller(self) -> BaseController | None:
        return self._controller

    def require_controller(self) -> BaseController:
        if self._controller is None:
            msg = f"{type(self).__name__} is not bound to a controller."
            raise ControllerBindingError(msg)
        return self._controller
