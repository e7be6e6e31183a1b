"""Tests for roost.auth — session-backed identity storage."""

from roost.auth import (
    AuthCode,
    AuthenticationService,
    AuthenticationServiceFactory,
    AuthResult,
    SessionStorage,
)
from roost.auth.service import IDENTITY_KEY, NAMESPACE
from roost.config import ApplicationConfig
from roost.context import _dispatch_context
from roost.dispatch.context import DispatchContext, DispatchRequest, DispatchResponse
from roost.services import ScopedContainer, ServiceContainer
from roost.session import SessionMirror, TransportSession


class Adapter:
    def __init__(self, result: AuthResult) -> None:
        self.result = result

    def authenticate(self) -> AuthResult:
        return self.result


def _context(session=None) -> DispatchContext:
    return DispatchContext(DispatchRequest(session=session), DispatchResponse(), SessionMirror(session))


def _factory_container() -> ServiceContainer:
    config = ApplicationConfig.from_mapping(
        {"service_manager": {"factories": {"AuthenticationService": AuthenticationServiceFactory}}},
        environ={},
    )
    return ServiceContainer(config)


class TestAuthResult:
    def test_valid_only_on_success(self) -> None:
        assert AuthResult(AuthCode.SUCCESS).is_valid
        assert not AuthResult(AuthCode.CREDENTIAL_INVALID, messages=("Wrong password",)).is_valid
        assert not AuthResult(AuthCode.FAILURE).is_valid


class TestAuthenticationService:
    def test_starts_empty(self) -> None:
        service = AuthenticationService()
        assert not service.has_identity()
        assert service.get_identity() is None

    def test_successful_authentication(self) -> None:
        service = AuthenticationService()
        result = service.authenticate(Adapter(AuthResult(AuthCode.SUCCESS, {"username": "ada"})))
        assert result.is_valid
        assert service.get_identity() == {"username": "ada"}

    def test_failed_authentication_clears_previous(self) -> None:
        service = AuthenticationService()
        service.write_identity({"username": "ada"})
        result = service.authenticate(Adapter(AuthResult(AuthCode.IDENTITY_NOT_FOUND)))
        assert not result.is_valid
        assert not service.has_identity()

    def test_clear_identity(self) -> None:
        service = AuthenticationService()
        service.write_identity("ada")
        service.clear_identity()
        assert service.get_identity() is None

    def test_identity_in_session_namespace(self) -> None:
        session = TransportSession("i" * 32)
        service = AuthenticationService(SessionStorage(session))
        service.write_identity({"username": "ada"})
        assert session[NAMESPACE][IDENTITY_KEY] == {"username": "ada"}


class TestFactory:
    def test_uses_scope_context(self) -> None:
        session = TransportSession("i" * 32)
        scope = ScopedContainer(_factory_container(), _context(session))
        service = scope.get("AuthenticationService")
        service.write_identity("ada")
        assert session[NAMESPACE][IDENTITY_KEY] == "ada"
        assert service.storage.container.tier == "transport"

    def test_rebuilt_per_get(self) -> None:
        scope = ScopedContainer(_factory_container(), _context())
        assert scope.get("AuthenticationService") is not scope.get("AuthenticationService")

    def test_shared_state_within_request(self) -> None:
        context = _context()
        scope = ScopedContainer(_factory_container(), context)
        scope.get("AuthenticationService").write_identity("ada")
        assert scope.get("AuthenticationService").get_identity() == "ada"
        assert context.session_mirror.get(NAMESPACE, IDENTITY_KEY) == "ada"

    def test_falls_back_to_active_context(self) -> None:
        context = _context()
        token = _dispatch_context.set(context)
        try:
            service = _factory_container().get("AuthenticationService")
        finally:
            _dispatch_context.reset(token)
        assert service.storage.container.tier == "mirror"
        assert service.storage.container.mirror is context.session_mirror

    def test_memory_outside_request(self) -> None:
        service = _factory_container().get("AuthenticationService")
        assert service.storage.container.tier == "memory"
