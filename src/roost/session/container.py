"""Per-namespace session view with tiered storage.

A ``SessionContainer`` reads and writes one namespace through the first
storage tier available:

1. a transport session handle passed in directly,
2. the session mirror of the current request,
3. a private in-memory dict (development and tests; never persisted).

Reading never creates the namespace; the first write does.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from roost.errors import SessionPersistError
from roost.session.mirror import SessionMirror
from roost.session.transport import RESERVED_KEYS, TransportSession

logger = logging.getLogger("roost.session")

MODIFIED_AT = "_modifiedAt"


class SessionContainer:
    """Key/value access to one session namespace.

    Usage::

        auth = SessionContainer("AuthIdentity", mirror=context.session_mirror)
        auth.set("identity", {"username": "admin"})
        auth.get("identity")
    """

    __slots__ = ("_memory", "mirror", "name", "session")

    def __init__(
        self,
        name: str = "Default",
        session: TransportSession | None = None,
        *,
        mirror: SessionMirror | None = None,
    ) -> None:
        if name in RESERVED_KEYS:
            msg = f"{name!r} is reserved and cannot be used as a session namespace"
            raise ValueError(msg)
        self.name = name
        self.session = session
        self.mirror = mirror
        self._memory: dict[str, Any] | None = None

    @property
    def tier(self) -> str:
        """Which storage tier this container is using."""
        if self.session is not None:
            return "transport"
        if self.mirror is not None:
            return "mirror"
        return "memory"

    def _read(self) -> dict[str, Any] | None:
        if self.session is not None:
            data = self.session.get(self.name)
            return data if isinstance(data, dict) else None
        if self.mirror is not None:
            return self.mirror.all(self.name) if self.mirror.has(self.name) else None
        return self._memory

    def _write(self, data: dict[str, Any]) -> None:
        data[MODIFIED_AT] = time.time()
        if self.session is not None:
            self.session[self.name] = data
            if self.mirror is not None:
                self.mirror.replace(self.name, data)
        elif self.mirror is not None:
            self.mirror.replace(self.name, data)
        else:
            self._memory = data

    def set(self, key: str, value: Any) -> SessionContainer:
        data = dict(self._read() or {})
        data[key] = value
        self._write(data)
        return self

    def get(self, key: str, default: Any = None) -> Any:
        data = self._read()
        if data is None:
            return default
        return data.get(key, default)

    def has(self, key: str) -> bool:
        data = self._read()
        return data is not None and key in data

    def remove(self, key: str) -> bool:
        data = self._read()
        if data is None or key not in data:
            return False
        data = dict(data)
        del data[key]
        self._write(data)
        return True

    def all(self) -> dict[str, Any]:
        """A copy of the namespace without bookkeeping keys."""
        data = self._read() or {}
        return {k: v for k, v in data.items() if k != MODIFIED_AT}

    def exists(self) -> bool:
        return self._read() is not None

    def clear(self) -> None:
        """Remove the whole namespace from its storage tier."""
        if self.session is not None:
            if self.name in self.session:
                del self.session[self.name]
            if self.mirror is not None:
                self.mirror.clear(self.name)
        elif self.mirror is not None:
            self.mirror.clear(self.name)
        else:
            self._memory = None

    def save(self) -> bool:
        """Force-persist the backing transport session, if any.

        Store failures are logged and swallowed.
        """
        session = self.session if self.session is not None else (
            self.mirror.transport if self.mirror is not None else None
        )
        if session is None:
            return False
        try:
            return session.save()
        except SessionPersistError as exc:
            logger.warning("Could not save session namespace %r: %s", self.name, exc)
            return False

    def __repr__(self) -> str:
        return f"<SessionContainer {self.name!r} tier={self.tier}>"
