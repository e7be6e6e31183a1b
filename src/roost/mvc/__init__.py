"""Controllers and controller plugins."""

from roost.mvc.controller import BaseController, ErrorController

__all__ = ["BaseController", "ErrorController"]
