"""Controller registry — maps (module, controller) to a controller class.

Classes are registered explicitly or found by convention when the
application freezes::

    registry = ControllerRegistry(package="myapp.module")

    @registry.register("blog", "index")
    class IndexController(BaseController): ...

Convention: module ``blog`` and controller ``admin_post`` resolve to
``myapp.module.blog.controller.admin.post:PostController``.
"""

from __future__ import annotations

import importlib
import logging
from collections.abc import Callable, Iterable

from roost._internal.naming import pascal_case, snake_case
from roost.errors import ConfigurationError
from roost.mvc.controller import BaseController, ErrorController

logger = logging.getLogger("roost.dispatch")

ERROR_CONTROLLER = ("error", "index")


class ControllerRegistry:
    def __init__(self, *, package: str | None = None, delimiter: str = "_") -> None:
        self.package = package
        self.delimiter = delimiter
        self._controllers: dict[tuple[str, str], type[BaseController]] = {}
        self._attempted: set[tuple[str, str]] = set()

    def key(self, module: str, controller: str) -> tuple[str, str]:
        return (snake_case(module), self.delimiter.join(snake_case(s) for s in controller.split(self.delimiter) if s))

    def register(
        self,
        module: str,
        controller: str,
        cls: type[BaseController] | None = None,
    ) -> Callable[[type[BaseController]], type[BaseController]] | type[BaseController]:
        """Register *cls* for (*module*, *controller*); usable as a decorator."""

        def decorator(target: type[BaseController]) -> type[BaseController]:
            if not (isinstance(target, type) and issubclass(target, BaseController)):
                msg = f"Controller for {module}/{controller} must subclass BaseController, got {target!r}."
                raise ConfigurationError(msg)
            key = self.key(module, controller)
            existing = self._controllers.get(key)
            if existing is not None and existing is not target:
                msg = (
                    f"Controller {module}/{controller} is already registered as "
                    f"{existing.__module__}.{existing.__qualname__}."
                )
                raise ConfigurationError(msg)
            self._controllers[key] = target
            return target

        if cls is not None:
            return decorator(cls)
        return decorator

    def resolve(self, module: str, controller: str) -> type[BaseController] | None:
        """Return the class for (*module*, *controller*), discovering it on first miss."""
        key = self.key(module, controller)
        cls = self._controllers.get(key)
        if cls is None and key not in self._attempted:
            self._attempted.add(key)
            cls = self._discover(*key)
            if cls is not None:
                self._controllers[key] = cls
        if cls is None and key == ERROR_CONTROLLER:
            return ErrorController
        return cls

    def convention_target(self, module: str, controller: str) -> tuple[str, str] | None:
        """The ``(module path, class name)`` convention discovery looks for."""
        if not self.package:
            return None
        segments = [s for s in controller.split(self.delimiter) if s]
        if not segments:
            return None
        module_path = ".".join([self.package, module, "controller", *segments])
        return module_path, f"{pascal_case(segments[-1])}Controller"

    def _discover(self, module: str, controller: str) -> type[BaseController] | None:
        target = self.convention_target(module, controller)
        if target is None:
            return None
        module_path, class_name = target
        try:
            found = importlib.import_module(module_path)
        except ModuleNotFoundError as exc:
            if exc.name and module_path.startswith(exc.name):
                return None
            raise
        cls = getattr(found, class_name, None)
        if not (isinstance(cls, type) and issubclass(cls, BaseController)):
            logger.warning("%s has no BaseController subclass named %s", module_path, class_name)
            return None
        logger.debug("Discovered controller %s.%s", module_path, class_name)
        return cls

    def validate(self, pairs: Iterable[tuple[str, str]]) -> None:
        """Resolve every (module, controller) pair a route references.

        Raises:
            ConfigurationError: Listing every pair with no controller.
        """
        missing = sorted({f"{m}/{c}" for m, c in pairs if self.resolve(m, c) is None})
        if missing:
            hint = (
                f" (looked under {self.package!r})" if self.package
                else "; set AppConfig.controllers_package for convention discovery"
            )
            msg = f"No controller registered for: {', '.join(missing)}{hint}."
            raise ConfigurationError(msg)

    def registered(self) -> dict[tuple[str, str], type[BaseController]]:
        return dict(self._controllers)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, tuple) and len(key) == 2 and self.resolve(*key) is not None

    def __len__(self) -> int:
        return len(self._controllers)
