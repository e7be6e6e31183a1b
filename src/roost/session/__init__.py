"""Sessions — transport sessions, stores, the per-request mirror, and namespaces."""

from roost.session.container import SessionContainer
from roost.session.manager import SessionManager
from roost.session.mirror import SessionMirror, SharedMirror
from roost.session.store import FileSessionStore, MemorySessionStore, SessionStore, create_store
from roost.session.transport import RESERVED_KEYS, TransportSession

__all__ = [
    "RESERVED_KEYS",
    "FileSessionStore",
    "MemorySessionStore",
    "SessionContainer",
    "SessionManager",
    "SessionMirror",
    "SessionStore",
    "SharedMirror",
    "TransportSession",
    "create_store",
]
