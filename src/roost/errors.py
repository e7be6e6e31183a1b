"""Roost exception hierarchy.

Shared across the route table, service container, registries, session
mirror, and dispatcher so every module raises and catches the same types.
"""

from dataclasses import dataclass


class RoostError(Exception):
    """Base for all roost-specific errors."""


class ConfigurationError(RoostError):
    """Raised when application configuration is invalid.

    Typically raised during ``Application._freeze()`` at startup: duplicate
    route names, framework/application service collisions, controllers that
    a route references but nobody registered.
    """


class RoutingError(RoostError):
    """Raised when a URL cannot be generated for a named route."""


@dataclass(frozen=True, slots=True)
class HTTPError(RoostError):
    """An error that maps directly to an HTTP status code.

    Controllers may raise these from an action; the dispatcher turns them
    into the matching error page instead of a generic 500.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404 — no route or action matched the request."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


# -- Service resolution --


class ServiceResolutionError(RoostError):
    """A service could not be resolved or constructed.

    Attributes:
        name: The service name that was requested.
    """

    def __init__(self, name: str, message: str) -> None:
        super().__init__(message)
        self.name = name


class ServiceNotFoundError(ServiceResolutionError):
    """No framework factory, application factory, or invokable has this name."""

    def __init__(self, name: str) -> None:
        super().__init__(name, f"Service {name!r} not found")


class InvalidFactoryError(ServiceResolutionError):
    """A registered factory does not implement ``ServiceFactory``."""


class ConfigValidationError(ServiceResolutionError):
    """A factory rejected the loaded configuration before construction."""


# -- Controllers, templates, sessions --


class ControllerBindingError(RoostError):
    """A plugin or helper was bound to something that is not a controller."""


class TemplateResolutionError(RoostError):
    """No error template could be located for a status code."""


class SessionPersistError(RoostError):
    """The transport session could not be written to its store."""
