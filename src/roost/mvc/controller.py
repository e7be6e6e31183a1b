"""Controller base class.

Controllers are constructed per request with a ``ScopedContainer`` and
expose ``<action>_action`` methods. Actions return a ``ViewModel``, a
mapping of variables, or ``None`` to render the controller's own view::

    class IndexController(BaseController):
        async def index_action(self):
            posts = self.get_service("PostService").latest()
            return self.get_view().set_variable("posts", posts)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from roost._internal.naming import action_label, controller_path, kebab_case
from roost.errors import HTTPError, NotFound
from roost.view.model import ViewModel

if TYPE_CHECKING:
    from roost.config import ApplicationConfig
    from roost.dispatch.context import DispatchContext, DispatchRequest, DispatchResponse
    from roost.mvc.plugins.manager import PluginManager
    from roost.services.container import ScopedContainer
    from roost.session.mirror import SessionMirror
    from roost.session.transport import TransportSession
    from roost.view.helpers.manager import ViewHelperManager

logger = logging.getLogger("roost.mvc")


class BaseController:
    def __init__(self, container: ScopedContainer) -> None:
        self.container = container
        container.bind(self)
        self._view = ViewModel()
        self._plugins: PluginManager | None = None
        self._helpers: ViewHelperManager | None = None

    # -- Request state --

    @property
    def context(self) -> DispatchContext:
        context = self.container.context
        if context is None:
            msg = f"{type(self).__name__} is not dispatching a request."
            raise LookupError(msg)
        return context

    @property
    def request(self) -> DispatchRequest:
        return self.context.request

    @property
    def response(self) -> DispatchResponse:
        return self.context.response

    @property
    def session(self) -> TransportSession | None:
        context = self.container.context
        return context.request.session if context is not None else None

    @property
    def session_mirror(self) -> SessionMirror | None:
        context = self.container.context
        return context.session_mirror if context is not None else None

    # -- Services --

    def get_service(self, name: str) -> Any:
        return self.container.get(name)

    def has_service(self, name: str) -> bool:
        return self.container.has(name)

    def get_config(self) -> ApplicationConfig:
        return self.container.get("Config")

    # -- Params --

    def get_param(self, name: str, default: Any = None) -> Any:
        return self.request.params.get(name, default)

    def get_query(self, name: str | None = None, default: Any = None) -> Any:
        query = self.request.query
        return dict(query) if name is None else query.get(name, default)

    def get_post(self, name: str | None = None, default: Any = None) -> Any:
        post = self.request.post
        return dict(post) if name is None else post.get(name, default)

    # -- View --

    def get_view(self) -> ViewModel:
        return self._view

    def set_view(self, view: ViewModel) -> ViewModel:
        """Replace the view, keeping metadata variables the new one does not set."""
        for name, value in self._view.variables.items():
            if not view.has_variable(name):
                view.set_variable(name, value)
        self._view = view
        return view

    def get_view_script(self) -> str:
        """The conventional template: ``<module>/<controller path>/<action>.html``."""
        request = self.request
        delimiter = self.container.settings.delimiter
        return "/".join(
            part
            for part in (
                kebab_case(request.module),
                controller_path(request.controller, delimiter),
                action_label(request.action),
            )
            if part
        ) + ".html"

    def prepare_view(self) -> ViewModel:
        """Attach request metadata and the conventional template to the view."""
        request = self.request
        view = self._view
        if view.template is None:
            view.set_template(self.get_view_script())
        view.set_variables(
            {
                "module_name": kebab_case(request.module),
                "controller_name": controller_path(request.controller, self.container.settings.delimiter),
                "action_name": action_label(request.action),
                "route_name": request.route_name,
                "is_authenticated": self.is_authenticated(),
            }
        )
        return view

    def render_context(self) -> dict[str, Any]:
        """Extra template context: the helper proxy and ``url_for``."""
        context: dict[str, Any] = {}
        helpers = self.helpers
        if helpers is not None:
            context["helpers"] = helpers.proxy()
        if self.has_service("RouteTable"):
            context["url_for"] = lambda name, **params: self.get_service("RouteTable").url_for(name, params)
        return context

    def is_authenticated(self) -> bool:
        if not self.has_service("AuthenticationService"):
            return False
        try:
            return bool(self.get_service("AuthenticationService").has_identity())
        except Exception:
            logger.warning("Could not determine authentication state", exc_info=True)
            return False

    # -- Lifecycle --

    def pre_dispatch(self) -> Any:
        """Runs before the action. Redirect here (or clear ``request.dispatched``) to skip it."""

    def post_dispatch(self) -> Any:
        """Runs after the action, before the session is reconciled."""

    # -- Errors --

    def not_found_action(self) -> ViewModel:
        view_manager = self.get_service("ViewManager")
        view = view_manager.create_error_view_model(404)
        self.response.set_status(404)
        return self.set_view(view)

    def trigger_404(self, message: str = "Not Found") -> None:
        raise NotFound(message)

    def server_error_action(self, error: BaseException | None = None) -> ViewModel:
        view_manager = self.get_service("ViewManager")
        view = view_manager.create_error_view_model(500, error=error)
        self.response.set_status(500)
        return self.set_view(view)

    def trigger_500(self, message: str = "Internal Server Error") -> None:
        raise HTTPError(status=500, detail=message)

    # -- Plugins and helpers --

    @property
    def plugins(self) -> PluginManager | None:
        if self._plugins is None and self.has_service("PluginManager"):
            self._plugins = self.get_service("PluginManager")
        return self._plugins

    @property
    def helpers(self) -> ViewHelperManager | None:
        if self._helpers is None and self.has_service("ViewHelperManager"):
            self._helpers = self.get_service("ViewHelperManager")
        return self._helpers

    def plugin(self, name: str, options: dict[str, Any] | None = None) -> Any:
        plugins = self.plugins
        return plugins.get(name, options) if plugins is not None else None

    def helper(self, name: str, options: dict[str, Any] | None = None) -> Any:
        helpers = self.helpers
        return helpers.get(name, options) if helpers is not None else None

    def get_flash_messages(self, *, clear: bool = True) -> dict[str, list[str]]:
        messenger = self.plugin("flash_messenger")
        if messenger is None:
            return {"errors": [], "success": [], "warnings": [], "info": []}
        return messenger.get_all_messages(clear=clear)


class ErrorController(BaseController):
    """Handles requests no route matched (``error``/``index``)."""

    def index_action(self) -> ViewModel:
        return self.not_found_action()
