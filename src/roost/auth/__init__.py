"""Session-backed authentication."""

from roost.auth.service import (
    AuthCode,
    AuthenticationService,
    AuthenticationServiceFactory,
    AuthResult,
    SessionStorage,
)

__all__ = [
    "AuthCode",
    "AuthResult",
    "AuthenticationService",
    "AuthenticationServiceFactory",
    "SessionStorage",
]
