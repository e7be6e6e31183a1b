"""The transport-level session handle.

What the session store persists for one browser session: feature data at
the top level (one key per namespace) plus two reserved, read-only keys,
``id`` and ``cookie``, that describe the session itself.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterator, Mapping, MutableMapping
from typing import TYPE_CHECKING, Any

from roost.errors import SessionPersistError

if TYPE_CHECKING:
    from roost.session.store import SessionStore

logger = logging.getLogger("roost.session")

RESERVED_KEYS = frozenset({"id", "cookie"})


class TransportSession(MutableMapping[str, Any]):
    """A session loaded from (and saved to) a ``SessionStore``.

    Writes are deferred: nothing reaches the store until ``save()``.
    Assigning to ``id`` or ``cookie`` raises ``KeyError``; those keys
    describe the session and are never feature data.
    """

    __slots__ = ("_data", "_store", "cookie", "id", "is_new", "modified", "save_count")

    def __init__(
        self,
        session_id: str,
        data: Mapping[str, Any] | None = None,
        store: SessionStore | None = None,
        *,
        is_new: bool = False,
        cookie: Mapping[str, Any] | None = None,
    ) -> None:
        self.id = session_id
        self._data: dict[str, Any] = {
            k: v for k, v in (data or {}).items() if k not in RESERVED_KEYS
        }
        self._store = store
        self.is_new = is_new
        self.cookie: dict[str, Any] = dict(cookie or {})
        self.modified = False
        self.save_count = 0

    def __getitem__(self, key: str) -> Any:
        if key == "id":
            return self.id
        if key == "cookie":
            return self.cookie
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        if key in RESERVED_KEYS:
            msg = f"Session key {key!r} is read-only"
            raise KeyError(msg)
        if key in self._data and self._data[key] == value:
            return
        self._data[key] = value
        self.modified = True

    def __delitem__(self, key: str) -> None:
        if key in RESERVED_KEYS:
            msg = f"Session key {key!r} is read-only"
            raise KeyError(msg)
        del self._data[key]
        self.modified = True

    def __iter__(self) -> Iterator[str]:
        yield "id"
        yield "cookie"
        yield from self._data

    def __len__(self) -> int:
        return len(self._data) + len(RESERVED_KEYS)

    def __repr__(self) -> str:
        return f"<TransportSession id={self.id[:8]}… keys={sorted(self._data)}>"

    def data(self) -> dict[str, Any]:
        """A deep copy of the feature data (reserved keys excluded)."""
        return copy.deepcopy(self._data)

    @property
    def is_empty(self) -> bool:
        return not self._data

    def save(self) -> bool:
        """Persist pending changes to the store now.

        Returns ``True`` when a write happened. Calling it again without
        further changes is a no-op.

        Raises:
            SessionPersistError: If the store rejects the write.
        """
        if self._store is None or not (self.modified or (self.is_new and self._data)):
            return False
        self._store.save(self.id, self._data)
        self.modified = False
        self.is_new = False
        self.save_count += 1
        logger.debug("Persisted session %s (%d keys)", self.id[:8], len(self._data))
        return True

    def destroy(self) -> None:
        """Remove all feature data and delete the stored copy."""
        self._data.clear()
        self.modified = False
        if self._store is not None:
            try:
                self._store.delete(self.id)
            except SessionPersistError:
                logger.warning("Could not delete session %s from its store", self.id[:8])
