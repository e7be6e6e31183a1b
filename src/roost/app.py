"""Roost application class.

Mutable during setup (controller registration, lifecycle hooks).
Frozen when the first ASGI scope arrives, or on ``freeze()``: the service
container, route table, controller registry, and session manager are
built and validated once, then shared by every request.
"""

from __future__ import annotations

import inspect
import logging
import threading
from collections.abc import Callable, Mapping
from typing import Any

from roost._internal.asgi import Receive, Scope, Send
from roost.config import AppConfig, ApplicationConfig
from roost.dispatch.dispatcher import Dispatcher
from roost.dispatch.registry import ERROR_CONTROLLER, ControllerRegistry
from roost.errors import ConfigurationError
from roost.http.request import Request
from roost.mvc.controller import BaseController
from roost.mvc.plugins.manager import validate_application_plugins
from roost.server.sender import send_response
from roost.services.container import ServiceContainer
from roost.session.manager import SessionManager
from roost.session.store import SessionStore
from roost.view.helpers.manager import validate_application_helpers

logger = logging.getLogger("roost.app")


class Application:
    """The ASGI application.

    Usage::

        app = Application(
            ApplicationConfig.from_json("config/application.json"),
            AppConfig(secret_key="...", controllers_package="myapp.module"),
        )

        @app.controller("blog", "index")
        class IndexController(BaseController):
            def index_action(self): ...

    Thread safety:
        The freeze transition uses a Lock + double-check so exactly one
        thread builds the runtime, even when several workers receive
        their first request at once.
    """

    __slots__ = (
        "_container",
        "_dispatcher",
        "_freeze_lock",
        "_frozen",
        "_session_manager",
        "_session_store",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
        "registry",
        "settings",
    )

    def __init__(
        self,
        config: ApplicationConfig | Mapping[str, Any] | None = None,
        settings: AppConfig | None = None,
        *,
        registry: ControllerRegistry | None = None,
        session_store: SessionStore | None = None,
    ) -> None:
        if config is None:
            config = ApplicationConfig()
        elif not isinstance(config, ApplicationConfig):
            config = ApplicationConfig.from_mapping(config)
        self.config: ApplicationConfig = config
        self.settings: AppConfig = settings or AppConfig()
        self.registry: ControllerRegistry = registry or ControllerRegistry(
            package=self.settings.controllers_package,
            delimiter=self.settings.delimiter,
        )
        self._session_store = session_store
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen = False
        self._freeze_lock = threading.Lock()
        self._container: ServiceContainer | None = None
        self._dispatcher: Dispatcher | None = None
        self._session_manager: SessionManager | None = None

    # -- Registration --

    def controller(self, module: str, controller: str) -> Callable[[type[BaseController]], type[BaseController]]:
        """Register a controller class for (*module*, *controller*) via decorator."""
        self._check_not_frozen()
        return self.registry.register(module, controller)  # type: ignore[return-value]

    def add_controller(self, module: str, controller: str, cls: type[BaseController]) -> None:
        self._check_not_frozen()
        self.registry.register(module, controller, cls)

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator."""
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Runtime state --

    @property
    def container(self) -> ServiceContainer:
        self._ensure_frozen()
        assert self._container is not None
        return self._container

    @property
    def dispatcher(self) -> Dispatcher:
        self._ensure_frozen()
        assert self._dispatcher is not None
        return self._dispatcher

    @property
    def session_manager(self) -> SessionManager | None:
        self._ensure_frozen()
        return self._session_manager

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return
        if scope["type"] != "http":
            msg = f"Unsupported ASGI scope type {scope['type']!r}"
            raise RuntimeError(msg)

        self._ensure_frozen()
        assert self._dispatcher is not None

        request = Request.from_asgi(scope, receive)
        manager = self._session_manager
        session = manager.load(request) if manager is not None else None
        response = await self._dispatcher.dispatch(request, session)
        if manager is not None and session is not None:
            response = manager.commit(session, response)
        await send_response(response, send, method=request.method)

    async def _handle_lifespan(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the app at startup, before the first HTTP request, then
        runs the startup and shutdown hooks.
        """
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    self._ensure_frozen()
                    for hook in self._startup_hooks:
                        result = hook()
                        if inspect.isawaitable(result):
                            await result
                    await send({"type": "lifespan.startup.complete"})
                except Exception as exc:
                    logger.exception("Startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return

            elif msg_type == "lifespan.shutdown":
                for hook in self._shutdown_hooks:
                    result = hook()
                    if inspect.isawaitable(result):
                        await result
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Freezing --

    def freeze(self) -> None:
        """Build and validate the runtime now instead of on the first request.

        Raises:
            ConfigurationError: On any configuration problem.
        """
        self._ensure_frozen()

    def _ensure_frozen(self) -> None:
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """MUST only be called while holding _freeze_lock."""
        container = ServiceContainer(self.config, self.settings)

        # 1. Routes, and a controller for every route
        routes = container.get("RouteTable")
        self.registry.validate([*(e.triple[:2] for e in routes), ERROR_CONTROLLER])

        # 2. Templates
        container.get("ViewManager")

        # 3. Plugins and helpers
        self._check_registries()

        # 4. Sessions
        if self.settings.secret_key:
            self._session_manager = SessionManager(self.settings, self._session_store)
        else:
            logger.warning(
                "AppConfig.secret_key is not set: sessions are disabled and "
                "session namespaces live only for the current request."
            )

        self._container = container
        self._dispatcher = Dispatcher(container, self.registry, self.settings)
        self._frozen = True
        logger.info(
            "Application ready: %d routes, %d controllers", len(routes), len(self.registry)
        )

    def _check_registries(self) -> None:
        plugins = validate_application_plugins(self.config.controller_plugins.get("invokables") or {})
        if plugins:
            logger.warning(
                "Controller plugin(s) %s redeclare framework plugins; the framework versions are used.",
                ", ".join(plugins),
            )
        helpers = validate_application_helpers(self.config.view_helpers.get("invokables") or {})
        if helpers:
            msg = (
                f"View helper(s) {', '.join(helpers)} redeclare framework helpers. "
                "Rename them in view_helpers.invokables."
            )
            raise ConfigurationError(msg)

    def check(self) -> None:
        """Freeze, print configuration problems, and exit 1 on errors."""
        from roost.checks import check_application, format_check_result

        result = check_application(self)
        print(format_check_result(result), end="")
        if not result.ok:
            raise SystemExit(1)

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the application after it has started serving requests. "
                "Register controllers and hooks before the first request."
            )
            raise RuntimeError(msg)
