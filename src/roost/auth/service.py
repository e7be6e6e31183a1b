"""Authentication state for the current request.

The identity lives in the ``AuthIdentity`` session namespace under
``identity``. ``AuthenticationService`` is request-scoped: it is rebuilt on
every ``get`` so it always reads the session of the request being
dispatched. Register it under ``service_manager.factories``::

    "service_manager": {
        "factories": {
            "AuthenticationService": "roost.auth:AuthenticationServiceFactory",
        },
    }
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, Any, Protocol

from roost.context import get_dispatch_context
from roost.services.container import ScopedContainer, ServiceFactory
from roost.session.container import SessionContainer
from roost.session.mirror import SessionMirror
from roost.session.transport import TransportSession

if TYPE_CHECKING:
    from roost.services.container import ServiceContainer

NAMESPACE = "AuthIdentity"
IDENTITY_KEY = "identity"


class AuthCode(IntEnum):
    FAILURE = 0
    SUCCESS = 1
    IDENTITY_NOT_FOUND = -1
    CREDENTIAL_INVALID = -3


@dataclass(frozen=True, slots=True)
class AuthResult:
    code: AuthCode
    identity: Any = None
    messages: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return self.code is AuthCode.SUCCESS


class AuthAdapter(Protocol):
    """Checks credentials. Applications supply one per login attempt."""

    def authenticate(self) -> AuthResult: ...


class SessionStorage:
    """Identity storage backed by a ``SessionContainer``."""

    __slots__ = ("container",)

    def __init__(
        self,
        session: TransportSession | None = None,
        *,
        mirror: SessionMirror | None = None,
    ) -> None:
        self.container = SessionContainer(NAMESPACE, session, mirror=mirror)

    def is_empty(self) -> bool:
        return not self.container.has(IDENTITY_KEY)

    def read(self) -> Any:
        return self.container.get(IDENTITY_KEY)

    def write(self, contents: Any) -> None:
        self.container.set(IDENTITY_KEY, contents)

    def clear(self) -> None:
        self.container.remove(IDENTITY_KEY)


class AuthenticationService:
    __slots__ = ("storage",)

    def __init__(self, storage: SessionStorage | None = None) -> None:
        self.storage = storage or SessionStorage()

    def authenticate(self, adapter: AuthAdapter) -> AuthResult:
        """Run *adapter*; on success the previous identity is replaced."""
        result = adapter.authenticate()
        if self.has_identity():
            self.clear_identity()
        if result.is_valid:
            self.storage.write(result.identity)
        return result

    def has_identity(self) -> bool:
        return not self.storage.is_empty()

    def get_identity(self) -> Any:
        return None if self.storage.is_empty() else self.storage.read()

    def write_identity(self, identity: Any) -> None:
        self.storage.write(identity)

    def clear_identity(self) -> None:
        self.storage.clear()


class AuthenticationServiceFactory(ServiceFactory):
    """Builds an ``AuthenticationService`` over the current request's session.

    Uses the scope's dispatch context, else the active one. Outside a
    request the identity is kept in memory only.
    """

    def create_service(self, container: ServiceContainer | ScopedContainer) -> AuthenticationService:
        context = container.context if isinstance(container, ScopedContainer) else None
        if context is None:
            context = get_dispatch_context()
        if context is None:
            return AuthenticationService(SessionStorage())
        return AuthenticationService(
            SessionStorage(context.request.session, mirror=context.session_mirror)
        )
