"""Session mirror — the per-request working copy of session namespaces.

Feature code that has no direct handle on the transport session (plugins,
the authentication service, helpers) reads and writes namespaces here.
The dispatcher primes the mirror from the transport session before the
controller runs and reconciles it back after the post-dispatch hook,
before anything is sent.

A ``SharedMirror`` is the legacy process-wide variant. Concurrent requests
that share it can observe each other's data, so it is only used when
``AppConfig.shared_session_mirror`` is set explicitly (tests, diagnostics).
Production code paths must supply a transport session.
"""

from __future__ import annotations

import copy
import logging
import threading
from collections.abc import Iterator
from typing import Any

from roost.errors import SessionPersistError
from roost.session.transport import RESERVED_KEYS, TransportSession

logger = logging.getLogger("roost.session")


class SessionMirror:
    """Namespace → key → value store for one request.

    Usage::

        mirror = SessionMirror()
        mirror.prime(transport_session)
        mirror.set("FlashMessenger", "success", ["Saved."])
        mirror.reconcile()          # copies namespaces onto the transport session
    """

    __slots__ = ("_data", "_removed", "transport")

    def __init__(self, transport: TransportSession | None = None) -> None:
        self._data: dict[str, Any] = {}
        self._removed: set[str] = set()
        self.transport = transport

    # -- Priming --

    def attach(self, transport: TransportSession | None) -> None:
        self.transport = transport

    def prime(self, transport: TransportSession | None) -> None:
        """Attach *transport* and merge its namespaces into the mirror.

        Reserved keys are stripped. Namespaces already in the mirror keep
        their values.
        """
        self.attach(transport)
        if transport is None:
            return
        for key, value in transport.items():
            if key in RESERVED_KEYS or key in self._data:
                continue
            self._data[key] = copy.deepcopy(value)

    # -- Namespace access --

    def _namespace(self, namespace: str, *, create: bool) -> dict[str, Any] | None:
        if namespace in RESERVED_KEYS:
            msg = f"{namespace!r} is reserved and cannot be used as a session namespace"
            raise KeyError(msg)
        data = self._data.get(namespace)
        if not isinstance(data, dict):
            if not create:
                return None
            data = self._data[namespace] = {}
            self._removed.discard(namespace)
        return data

    def set(self, namespace: str, key: str, value: Any) -> None:
        self._namespace(namespace, create=True)[key] = value  # type: ignore[index]

    def get(self, namespace: str, key: str, default: Any = None) -> Any:
        data = self._namespace(namespace, create=False)
        if data is None:
            return default
        return data.get(key, default)

    def has(self, namespace: str, key: str | None = None) -> bool:
        """Whether *namespace* exists (and holds *key*, when given). Never creates it."""
        data = self._data.get(namespace)
        if data is None:
            return False
        return key is None or (isinstance(data, dict) and key in data)

    def remove(self, namespace: str, key: str) -> bool:
        data = self._namespace(namespace, create=False)
        if data is None or key not in data:
            return False
        del data[key]
        return True

    def clear(self, namespace: str) -> None:
        """Drop *namespace* entirely; reconciliation removes it from the transport session."""
        self._data.pop(namespace, None)
        self._removed.add(namespace)

    def all(self, namespace: str) -> dict[str, Any]:
        """A copy of every key in *namespace* (empty if it doesn't exist)."""
        data = self._data.get(namespace)
        return dict(data) if isinstance(data, dict) else {}

    def replace(self, namespace: str, data: dict[str, Any]) -> None:
        """Overwrite a namespace wholesale (keeps the mirror in step with a direct write)."""
        self._data[namespace] = dict(data)
        self._removed.discard(namespace)

    def namespaces(self) -> list[str]:
        return list(self._data)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._data))

    def __contains__(self, namespace: object) -> bool:
        return namespace in self._data

    def snapshot(self) -> dict[str, Any]:
        return copy.deepcopy(self._data)

    # -- Reconciliation --

    def reconcile(self) -> list[str]:
        """Copy every namespace onto the transport session.

        Reserved keys are never written. A key that cannot be written is
        logged and skipped. Running it twice leaves the transport session
        exactly as running it once.

        Returns:
            The keys that could not be written.
        """
        transport = self.transport
        if transport is None:
            return []
        failed: list[str] = []
        for key, value in list(self._data.items()):
            if key in RESERVED_KEYS:
                continue
            try:
                transport[key] = copy.deepcopy(value)
            except Exception as exc:
                logger.warning("Could not sync session namespace %r: %s", key, exc)
                failed.append(key)
        for key in sorted(self._removed):
            if key in RESERVED_KEYS or key in self._data:
                continue
            try:
                if key in transport:
                    del transport[key]
            except Exception as exc:
                logger.warning("Could not remove session namespace %r: %s", key, exc)
                failed.append(key)
        return failed

    def save(self) -> bool:
        """Force-persist the transport session (before a redirect, for example).

        Store failures are logged and swallowed.
        """
        if self.transport is None:
            return False
        try:
            return self.transport.save()
        except SessionPersistError as exc:
            logger.warning("Session save failed: %s", exc)
            return False

    def __repr__(self) -> str:
        return f"<{type(self).__name__} namespaces={sorted(self._data)}>"


class SharedMirror(SessionMirror):
    """Process-wide mirror, lock-guarded.

    Limitation: keyed by namespace only, never by request. Two requests
    that fall back to it see each other's data.
    """

    __slots__ = ("_lock",)

    def __init__(self) -> None:
        super().__init__()
        self._lock = threading.RLock()

    def prime(self, transport: TransportSession | None) -> None:
        with self._lock:
            super().prime(transport)

    def set(self, namespace: str, key: str, value: Any) -> None:
        with self._lock:
            super().set(namespace, key, value)

    def get(self, namespace: str, key: str, default: Any = None) -> Any:
        with self._lock:
            return super().get(namespace, key, default)

    def remove(self, namespace: str, key: str) -> bool:
        with self._lock:
            return super().remove(namespace, key)

    def clear(self, namespace: str) -> None:
        with self._lock:
            super().clear(namespace)

    def replace(self, namespace: str, data: dict[str, Any]) -> None:
        with self._lock:
            super().replace(namespace, data)

    def reconcile(self) -> list[str]:
        with self._lock:
            return super().reconcile()

    def reset(self) -> None:
        """Forget everything (between tests)."""
        with self._lock:
            self._data.clear()
            self._removed.clear()
            self.transport = None
