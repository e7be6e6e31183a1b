"""Roost — convention-driven MVC dispatch for Python web applications.

Routes map URLs to module/controller/action triples; controllers get
their collaborators from a service container; session state is mirrored
per request and reconciled before the response is sent.

Basic usage::

    from roost import Application, AppConfig, BaseController

    app = Application(
        {"routes": {"home": {"route": "/", "module": "site", "controller": "index", "action": "index"}}},
        AppConfig(secret_key="change-me"),
    )

    @app.controller("site", "index")
    class IndexController(BaseController):
        def index_action(self):
            return self.get_view().set_variable("title", "Home")
"""

__version__ = "0.1.0-dev"
__all__ = [
    "AppConfig",
    "Application",
    "ApplicationConfig",
    "BaseController",
    "ConfigurationError",
    "HTTPError",
    "NotFound",
    "Request",
    "Response",
    "RoostError",
    "ServiceFactory",
    "ViewModel",
    "get_dispatch_context",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import roost`` fast while providing a clean top-level API.
    """
    if name == "Application":
        from roost.app import Application

        return Application

    if name in ("AppConfig", "ApplicationConfig"):
        from roost import config as _config

        return getattr(_config, name)

    if name == "BaseController":
        from roost.mvc.controller import BaseController

        return BaseController

    if name == "ServiceFactory":
        from roost.services.container import ServiceFactory

        return ServiceFactory

    if name == "ViewModel":
        from roost.view.model import ViewModel

        return ViewModel

    if name == "Request":
        from roost.http.request import Request

        return Request

    if name == "Response":
        from roost.http.response import Response

        return Response

    if name == "get_dispatch_context":
        from roost.context import get_dispatch_context

        return get_dispatch_context

    if name in ("RoostError", "ConfigurationError", "HTTPError", "NotFound"):
        from roost import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
