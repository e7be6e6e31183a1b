"""Service container — lazily builds and caches named services.

Descriptors are loaded once at boot from three ordered layers:

1. framework factories (fixed, always win),
2. application factories (``service_manager.factories``),
3. application invokables (``service_manager.invokables``).

An application descriptor that redeclares a framework name is a
``ConfigurationError`` at construction, never a silent shadow.

Thread safety:
    First resolution of a cacheable name is guarded by a per-name lock
    with a double-check, so concurrent first ``get`` calls construct the
    service exactly once. The cache itself is only ever appended to.
    Names under construction are tracked per context; a factory that
    asks, directly or indirectly, for a service still being built gets a
    ``ServiceResolutionError`` naming the cycle.
"""

from __future__ import annotations

import logging
import threading
from contextvars import ContextVar
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from roost._internal.loading import describe, import_string
from roost.config import AppConfig, ApplicationConfig
from roost.errors import (
    ConfigurationError,
    ConfigValidationError,
    InvalidFactoryError,
    ServiceNotFoundError,
    ServiceResolutionError,
)

if TYPE_CHECKING:
    from roost.dispatch.context import DispatchContext
    from roost.mvc.controller import BaseController

logger = logging.getLogger("roost.services")

CONFIG_NAMES = frozenset({"Config", "config"})

_building: ContextVar[tuple[str, ...]] = ContextVar("roost_services_building", default=())

# Rebuilt on every get(): bound to the current request or controller.
NON_CACHEABLE = frozenset({"AuthenticationService", "PluginManager", "ViewHelperManager"})

FRAMEWORK_FACTORIES: Mapping[str, str] = {
    "PluginManager": "roost.services.factories:PluginManagerFactory",
    "ViewHelperManager": "roost.services.factories:ViewHelperManagerFactory",
    "ViewManager": "roost.services.factories:ViewManagerFactory",
    "RouteTable": "roost.services.factories:RouteTableFactory",
}


class ServiceKind(Enum):
    FRAMEWORK_FACTORY = "framework_factory"
    APPLICATION_FACTORY = "application_factory"
    INVOKABLE = "invokable"


@dataclass(frozen=True, slots=True)
class ServiceDescriptor:
    """How to build one named service."""

    name: str
    kind: ServiceKind
    target: Any  # class or "package.module:ClassName"

    @property
    def is_factory(self) -> bool:
        return self.kind is not ServiceKind.INVOKABLE


class ServiceFactory(ABC):
    """Builder for a service that needs more than a no-argument constructor.

    Subclasses implement ``create_service``; they may override
    ``validate_configuration`` to reject the loaded configuration before
    anything is constructed::

        class PostServiceFactory(ServiceFactory):
            def validate_configuration(self, config):
                return "database" in config

            def create_service(self, container):
                return PostService(container.get("Database"))
    """

    @abstractmethod
    def create_service(self, container: ServiceContainer | ScopedContainer) -> Any:
        """Build and return the service instance."""

    def validate_configuration(self, config: ApplicationConfig) -> bool:
        """Return ``False`` (or raise) when *config* cannot support this service."""
        return True


class ServiceContainer:
    """Process-wide service container.

    Usage::

        container = ServiceContainer(ApplicationConfig.from_mapping(data))
        posts = container.get("PostService")
        container.get("PostService") is posts   # cached
    """

    __slots__ = (
        "_cache",
        "_descriptors",
        "_lock_guard",
        "_locks",
        "config",
        "settings",
    )

    def __init__(
        self,
        config: ApplicationConfig | None = None,
        settings: AppConfig | None = None,
        *,
        framework_factories: Mapping[str, Any] | None = None,
    ) -> None:
        self.config: ApplicationConfig = config or ApplicationConfig()
        self.settings: AppConfig = settings or AppConfig()
        self._cache: dict[str, Any] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._lock_guard = threading.Lock()
        self._descriptors = self._load_descriptors(
            FRAMEWORK_FACTORIES if framework_factories is None else framework_factories
        )

    def _load_descriptors(self, framework: Mapping[str, Any]) -> dict[str, ServiceDescriptor]:
        service_manager = self.config.service_manager
        factories = dict(service_manager.get("factories") or {})
        invokables = dict(service_manager.get("invokables") or {})

        collisions = validate_application_services(framework, [*factories, *invokables])
        if collisions:
            msg = (
                f"Application services redeclare framework service(s): {', '.join(collisions)}. "
                "Rename them in service_manager; framework services cannot be overridden."
            )
            raise ConfigurationError(msg)

        duplicate = sorted(set(factories) & set(invokables))
        if duplicate:
            msg = (
                f"Service(s) declared as both factory and invokable: {', '.join(duplicate)}. "
                "Declare each service once."
            )
            raise ConfigurationError(msg)

        reserved = sorted(CONFIG_NAMES & {*factories, *invokables})
        if reserved:
            msg = f"Service name(s) {', '.join(reserved)} are reserved for the loaded configuration."
            raise ConfigurationError(msg)

        descriptors: dict[str, ServiceDescriptor] = {}
        for name, target in framework.items():
            descriptors[name] = ServiceDescriptor(name, ServiceKind.FRAMEWORK_FACTORY, target)
        for name, target in factories.items():
            descriptors[name] = ServiceDescriptor(name, ServiceKind.APPLICATION_FACTORY, target)
        for name, target in invokables.items():
            descriptors[name] = ServiceDescriptor(name, ServiceKind.INVOKABLE, target)
        return descriptors

    # -- Lookup --

    def get(self, name: str) -> Any:
        """Return the service called *name*, building it on first use.

        Raises:
            ServiceNotFoundError: No descriptor has this name.
            ServiceResolutionError: The descriptor failed to produce an instance.
        """
        if name in CONFIG_NAMES:
            return self.config
        if name in NON_CACHEABLE:
            return self.build(name, self)

        try:
            return self._cache[name]
        except KeyError:
            pass

        _check_cycle(name)
        with self._lock_for(name):
            if name in self._cache:
                return self._cache[name]
            instance = self.build(name, self)
            self._cache[name] = instance
            return instance

    def has(self, name: str) -> bool:
        return name in CONFIG_NAMES or name in self._descriptors or name in self._cache

    def set(self, name: str, instance: Any) -> None:
        """Register an already-built instance under *name*."""
        if name in CONFIG_NAMES or name in NON_CACHEABLE:
            msg = f"Service {name!r} cannot be replaced with a shared instance."
            raise ConfigurationError(msg)
        if self.is_framework_service(name) and name in self._cache:
            msg = f"Framework service {name!r} is already built and cannot be replaced."
            raise ConfigurationError(msg)
        self._cache[name] = instance

    def is_cached(self, name: str) -> bool:
        return name in self._cache

    def is_cacheable(self, name: str) -> bool:
        return name not in NON_CACHEABLE

    # -- Construction --

    def build(self, name: str, container: ServiceContainer | ScopedContainer) -> Any:
        """Construct a fresh instance of *name* without touching the cache.

        *container* is what a factory receives; request-scoped services are
        built through a ``ScopedContainer`` so they can see the request.
        """
        descriptor = self._descriptors.get(name)
        if descriptor is None:
            raise ServiceNotFoundError(name)

        _check_cycle(name)
        token = _building.set((*_building.get(), name))
        try:
            return self._construct(name, descriptor, container)
        finally:
            _building.reset(token)

    def _construct(
        self, name: str, descriptor: ServiceDescriptor, container: ServiceContainer | ScopedContainer
    ) -> Any:
        if descriptor.is_factory:
            factory = self._factory_for(descriptor)
            self._validate(descriptor, factory)
            logger.debug("Building service %r via %s", name, describe(descriptor.target))
            try:
                return factory.create_service(container)
            except (ConfigurationError, ServiceResolutionError):
                raise
            except Exception as exc:
                msg = f"Failed to create service {name!r} via factory: {exc}"
                raise ServiceResolutionError(name, msg) from exc

        try:
            cls = import_string(descriptor.target)
        except ConfigurationError as exc:
            raise ServiceResolutionError(name, f"Cannot load invokable {name!r}: {exc}") from exc
        logger.debug("Building invokable service %r (%s)", name, describe(cls))
        try:
            return cls()
        except Exception as exc:
            msg = f"Failed to create invokable service {name!r}: {exc}"
            raise ServiceResolutionError(name, msg) from exc

    def _factory_for(self, descriptor: ServiceDescriptor) -> ServiceFactory:
        name = descriptor.name
        try:
            target = import_string(descriptor.target)
        except ConfigurationError as exc:
            raise InvalidFactoryError(name, f"Cannot load factory for {name!r}: {exc}") from exc

        if isinstance(target, ServiceFactory):
            return target
        if not (isinstance(target, type) and issubclass(target, ServiceFactory)):
            msg = (
                f"Factory for service {name!r} ({describe(target)}) must subclass "
                "roost.services.ServiceFactory and implement create_service(container)."
            )
            raise InvalidFactoryError(name, msg)
        try:
            return target()
        except TypeError as exc:
            msg = f"Factory for service {name!r} could not be instantiated: {exc}"
            raise InvalidFactoryError(name, msg) from exc

    def _validate(self, descriptor: ServiceDescriptor, factory: ServiceFactory) -> None:
        name = descriptor.name
        try:
            ok = factory.validate_configuration(self.config)
        except Exception as exc:
            msg = f"Configuration validation failed for service {name!r}: {exc}"
            raise ConfigValidationError(name, msg) from exc
        if ok is False:
            msg = (
                f"Configuration validation failed for service {name!r}: "
                f"{describe(descriptor.target)} rejected the loaded configuration."
            )
            raise ConfigValidationError(name, msg)

    def _lock_for(self, name: str) -> threading.Lock:
        lock = self._locks.get(name)
        if lock is None:
            with self._lock_guard:
                lock = self._locks.setdefault(name, threading.Lock())
        return lock

    # -- Cache management --

    def clear_service(self, name: str) -> bool:
        """Drop the cached instance of *name*; returns whether one existed."""
        return self._cache.pop(name, None) is not None

    def clear_all(self) -> None:
        self._cache.clear()

    # -- Introspection --

    def descriptor(self, name: str) -> ServiceDescriptor | None:
        return self._descriptors.get(name)

    def is_framework_service(self, name: str) -> bool:
        descriptor = self._descriptors.get(name)
        return descriptor is not None and descriptor.kind is ServiceKind.FRAMEWORK_FACTORY

    def framework_service_names(self) -> list[str]:
        return [d.name for d in self._descriptors.values() if d.kind is ServiceKind.FRAMEWORK_FACTORY]

    def available_services(self) -> dict[str, list[str]]:
        """Service names grouped by descriptor kind, in resolution order."""
        grouped: dict[str, list[str]] = {kind.value: [] for kind in ServiceKind}
        for descriptor in self._descriptors.values():
            grouped[descriptor.kind.value].append(descriptor.name)
        return grouped

    def __repr__(self) -> str:
        return f"<ServiceContainer services={len(self._descriptors)} cached={len(self._cache)}>"


def validate_application_services(
    framework: Iterable[str], application: Iterable[str]
) -> list[str]:
    """Return the application service names that collide with framework names."""
    reserved = set(framework)
    return sorted({name for name in application if name in reserved})


class ScopedContainer:
    """The request-scoped view of a ``ServiceContainer``.

    Handed to controllers and to factories of request-scoped services.
    Cacheable names delegate to the shared container; names in the
    non-cacheable set are rebuilt on every ``get`` and bound to the current
    controller. ``Request`` and ``Response`` resolve to the dispatch
    request and response of this scope.
    """

    __slots__ = ("container", "context", "controller")

    def __init__(
        self,
        container: ServiceContainer,
        context: DispatchContext | None = None,
        controller: BaseController | None = None,
    ) -> None:
        self.container = container
        self.context = context
        self.controller = controller

    @property
    def config(self) -> ApplicationConfig:
        return self.container.config

    @property
    def settings(self) -> AppConfig:
        return self.container.settings

    def get(self, name: str) -> Any:
        if name == "Request":
            return self._require_context(name).request
        if name == "Response":
            return self._require_context(name).response
        if name in NON_CACHEABLE:
            instance = self.container.build(name, self)
            if self.controller is not None and hasattr(instance, "set_controller"):
                instance.set_controller(self.controller)
            return instance
        return self.container.get(name)

    def has(self, name: str) -> bool:
        if name in ("Request", "Response"):
            return self.context is not None
        return self.container.has(name)

    def bind(self, controller: BaseController) -> None:
        """Make *controller* the active controller of this scope."""
        self.controller = controller

    def _require_context(self, name: str) -> DispatchContext:
        if self.context is None:
            raise ServiceNotFoundError(name)
        return self.context

    def __repr__(self) -> str:
        return f"<ScopedContainer controller={type(self.controller).__name__ if self.controller else None}>"


def _check_cycle(name: str) -> None:
    stack = _building.get()
    if name in stack:
        chain = " -> ".join((*stack[stack.index(name) :], name))
        raise ServiceResolutionError(name, f"Circular dependency while building {name!r}: {chain}")
