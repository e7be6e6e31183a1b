"""Session manager — signed session-id cookies over a ``SessionStore``.

The cookie carries only the session id, signed with ``itsdangerous`` so a
client cannot forge or enumerate ids. Session data stays server-side.
"""

import logging
import secrets

from itsdangerous import BadSignature, URLSafeTimedSerializer

from roost.config import AppConfig
from roost.errors import ConfigurationError, SessionPersistError
from roost.http.cookies import SetCookie
from roost.http.request import Request
from roost.http.response import Response
from roost.session.store import SessionStore, create_store
from roost.session.transport import TransportSession

logger = logging.getLogger("roost.session")


class SessionManager:
    """Loads the transport session for a request and commits it afterwards.

    Usage::

        manager = SessionManager(AppConfig(secret_key="s3cr3t"))
        session = manager.load(request)
        ...
        response = manager.commit(session, response)
    """

    __slots__ = ("_serializer", "settings", "store")

    def __init__(self, settings: AppConfig, store: SessionStore | None = None) -> None:
        if not settings.secret_key:
            msg = "AppConfig.secret_key must not be empty when sessions are enabled."
            raise ConfigurationError(msg)
        self.settings = settings
        self.store = store if store is not None else create_store(settings)
        self._serializer = URLSafeTimedSerializer(settings.secret_key, salt="roost.session")

    def _cookie_options(self) -> dict[str, object]:
        s = self.settings
        return {
            "path": s.session_path,
            "max_age": s.session_max_age,
            "secure": s.session_secure,
            "httponly": s.session_httponly,
            "samesite": s.session_samesite,
        }

    def new_session(self) -> TransportSession:
        return TransportSession(
            secrets.token_urlsafe(32),
            store=self.store,
            is_new=True,
            cookie=self._cookie_options(),
        )

    def load(self, request: Request) -> TransportSession:
        """Return the session named by the request cookie, or a fresh one.

        Missing, tampered, expired, and unknown ids all yield a new session.
        """
        signed = request.cookies.get(self.settings.session_cookie)
        if not signed:
            return self.new_session()
        try:
            session_id = self._serializer.loads(signed, max_age=self.settings.session_max_age)
        except BadSignature:
            logger.debug("Ignoring session cookie with a bad or expired signature")
            return self.new_session()
        if not isinstance(session_id, str):
            return self.new_session()
        data = self.store.load(session_id)
        if data is None:
            return self.new_session()
        return TransportSession(session_id, data, self.store, cookie=self._cookie_options())

    def commit(self, session: TransportSession, response: Response) -> Response:
        """Persist pending changes and attach the session cookie.

        A new session that never received data gets no cookie. Store
        failures are logged; the response is still sent.
        """
        try:
            session.save()
        except SessionPersistError as exc:
            logger.warning("Session %s was not persisted: %s", session.id[:8], exc)

        if session.is_new and session.is_empty:
            return response
        s = self.settings
        return response.with_cookie(
            SetCookie(
                name=s.session_cookie,
                value=self._serializer.dumps(session.id),
                max_age=s.session_max_age,
                path=s.session_path,
                secure=s.session_secure,
                httponly=s.session_httponly,
                samesite=s.session_samesite,
            )
        )

    def signed_id(self, session: TransportSession) -> str:
        """The cookie value for *session* (used by the test client)."""
        return self._serializer.dumps(session.id)
