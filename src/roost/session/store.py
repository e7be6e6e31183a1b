"""Session stores: where transport sessions live between requests."""

import copy
import json
import logging
import os
import re
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from roost.config import AppConfig
from roost.errors import ConfigurationError, SessionPersistError

logger = logging.getLogger("roost.session")

_SESSION_ID = re.compile(r"^[A-Za-z0-9_-]{16,128}$")


class SessionStore(ABC):
    """Persistence backend for ``TransportSession`` data."""

    @abstractmethod
    def load(self, session_id: str) -> dict[str, Any] | None:
        """Return stored data for *session_id*, or ``None`` if unknown."""

    @abstractmethod
    def save(self, session_id: str, data: dict[str, Any]) -> None:
        """Persist *data*. Raises ``SessionPersistError`` on failure."""

    @abstractmethod
    def delete(self, session_id: str) -> None:
        """Forget *session_id*. Unknown ids are ignored."""


class MemorySessionStore(SessionStore):
    """In-process store. Data is lost on restart (development, tests)."""

    __slots__ = ("_data", "_lock")

    def __init__(self) -> None:
        self._data: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def load(self, session_id: str) -> dict[str, Any] | None:
        with self._lock:
            data = self._data.get(session_id)
            return copy.deepcopy(data) if data is not None else None

    def save(self, session_id: str, data: dict[str, Any]) -> None:
        try:
            snapshot = copy.deepcopy(data)
        except Exception as exc:
            msg = f"Session {session_id[:8]} holds data that cannot be stored: {exc}"
            raise SessionPersistError(msg) from exc
        with self._lock:
            self._data[session_id] = snapshot

    def delete(self, session_id: str) -> None:
        with self._lock:
            self._data.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._data)


class FileSessionStore(SessionStore):
    """One JSON file per session in *directory*.

    Writes go to a temporary file first and are moved into place, so a
    crashed write never leaves a half-written session behind.
    """

    __slots__ = ("_directory", "_lock")

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)
        self._lock = threading.Lock()

    @property
    def directory(self) -> Path:
        return self._directory

    def _path(self, session_id: str) -> Path:
        if not _SESSION_ID.match(session_id):
            msg = f"Refusing to use malformed session id {session_id[:16]!r}"
            raise SessionPersistError(msg)
        return self._directory / f"{session_id}.json"

    def load(self, session_id: str) -> dict[str, Any] | None:
        try:
            path = self._path(session_id)
        except SessionPersistError:
            return None
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("Could not read session file %s: %s", path.name, exc)
            return None
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Discarding corrupt session file %s", path.name)
            return None
        return data if isinstance(data, dict) else None

    def save(self, session_id: str, data: dict[str, Any]) -> None:
        path = self._path(session_id)
        try:
            payload = json.dumps(data)
        except (TypeError, ValueError) as exc:
            msg = f"Session {session_id[:8]} holds data that is not JSON-serializable: {exc}"
            raise SessionPersistError(msg) from exc
        with self._lock:
            try:
                self._directory.mkdir(parents=True, exist_ok=True)
                fd, tmp = tempfile.mkstemp(dir=self._directory, suffix=".tmp")
            except OSError as exc:
                msg = f"Could not write session file {path.name}: {exc}"
                raise SessionPersistError(msg) from exc
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(payload)
                os.replace(tmp, path)
            except OSError as exc:
                Path(tmp).unlink(missing_ok=True)
                msg = f"Could not write session file {path.name}: {exc}"
                raise SessionPersistError(msg) from exc

    def delete(self, session_id: str) -> None:
        try:
            self._path(session_id).unlink(missing_ok=True)
        except OSError as exc:
            msg = f"Could not delete session {session_id[:8]}: {exc}"
            raise SessionPersistError(msg) from exc


def create_store(settings: AppConfig) -> SessionStore:
    """Build the store named by ``settings.session_store``."""
    kind = settings.session_store.lower()
    if kind == "memory":
        return MemorySessionStore()
    if kind == "file":
        return FileSessionStore(settings.session_dir)
    msg = f"Unknown session_store {settings.session_store!r}. Use 'memory' or 'file'."
    raise ConfigurationError(msg)
