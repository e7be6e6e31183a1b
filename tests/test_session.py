"""Tests for transport sessions, stores, namespace containers, and the session manager."""

import time

import pytest
from itsdangerous import URLSafeTimedSerializer

from roost.config import AppConfig
from roost.errors import ConfigurationError, SessionPersistError
from roost.http.request import Request
from roost.http.response import Response
from roost.session import (
    FileSessionStore,
    MemorySessionStore,
    SessionContainer,
    SessionManager,
    SessionMirror,
    SessionStore,
    TransportSession,
    create_store,
)
from roost.session.container import MODIFIED_AT

SESSION_ID = "s" * 32


class FailingStore(SessionStore):
    def load(self, session_id):
        return None

    def save(self, session_id, data):
        raise SessionPersistError("disk full")

    def delete(self, session_id):
        pass


def _cookie_value(response: Response) -> str:
    (cookie,) = response.cookies
    return cookie.value


class TestTransportSession:
    def test_reserved_keys_read_only(self) -> None:
        session = TransportSession(SESSION_ID)
        assert session["id"] == SESSION_ID
        with pytest.raises(KeyError):
            session["id"] = "other"
        with pytest.raises(KeyError):
            del session["cookie"]

    def test_reserved_keys_stripped_from_data(self) -> None:
        session = TransportSession(SESSION_ID, {"id": "forged", "Default": {}})
        assert session.id == SESSION_ID
        assert session.data() == {"Default": {}}

    def test_unchanged_assignment_not_modified(self) -> None:
        session = TransportSession(SESSION_ID, {"Default": {"a": 1}})
        session["Default"] = {"a": 1}
        assert not session.modified

    def test_save_only_when_modified(self) -> None:
        store = MemorySessionStore()
        session = TransportSession(SESSION_ID, store=store)
        assert session.save() is False
        session["Default"] = {"a": 1}
        assert session.save() is True
        assert session.save() is False
        assert session.save_count == 1
        assert store.load(SESSION_ID) == {"Default": {"a": 1}}

    def test_destroy(self) -> None:
        store = MemorySessionStore()
        session = TransportSession(SESSION_ID, store=store)
        session["Default"] = {"a": 1}
        session.save()
        session.destroy()
        assert session.is_empty
        assert store.load(SESSION_ID) is None


class TestStores:
    def test_memory_store_copies(self) -> None:
        store = MemorySessionStore()
        data = {"Default": {"items": [1]}}
        store.save(SESSION_ID, data)
        data["Default"]["items"].append(2)
        assert store.load(SESSION_ID) == {"Default": {"items": [1]}}

    def test_file_store_roundtrip(self, tmp_path) -> None:
        store = FileSessionStore(tmp_path / "sessions")
        store.save(SESSION_ID, {"Default": {"a": 1}})
        assert store.load(SESSION_ID) == {"Default": {"a": 1}}
        store.delete(SESSION_ID)
        assert store.load(SESSION_ID) is None

    def test_file_store_rejects_traversal(self, tmp_path) -> None:
        store = FileSessionStore(tmp_path)
        assert store.load("../../etc/passwd") is None
        with pytest.raises(SessionPersistError):
            store.save("../escape", {})

    def test_file_store_unserializable(self, tmp_path) -> None:
        with pytest.raises(SessionPersistError, match="not JSON-serializable"):
            FileSessionStore(tmp_path).save(SESSION_ID, {"Default": {"when": object()}})

    def test_file_store_failed_write_leaves_no_temp_file(self, tmp_path, monkeypatch) -> None:
        def refuse(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("roost.session.store.os.replace", refuse)
        store = FileSessionStore(tmp_path)
        with pytest.raises(SessionPersistError, match="disk full"):
            store.save(SESSION_ID, {"Default": {"a": 1}})
        assert list(tmp_path.iterdir()) == []

    def test_file_store_corrupt_file(self, tmp_path) -> None:
        (tmp_path / f"{SESSION_ID}.json").write_text("{not json", encoding="utf-8")
        assert FileSessionStore(tmp_path).load(SESSION_ID) is None

    def test_create_store(self, tmp_path) -> None:
        assert isinstance(create_store(AppConfig()), MemorySessionStore)
        store = create_store(AppConfig(session_store="file", session_dir=tmp_path))
        assert isinstance(store, FileSessionStore)
        with pytest.raises(ConfigurationError):
            create_store(AppConfig(session_store="redis"))


class TestSessionContainer:
    def test_tiers(self) -> None:
        assert SessionContainer("Default", TransportSession(SESSION_ID)).tier == "transport"
        assert SessionContainer("Default", mirror=SessionMirror()).tier == "mirror"
        assert SessionContainer("Default").tier == "memory"

    def test_reserved_name(self) -> None:
        with pytest.raises(ValueError):
            SessionContainer("cookie")

    def test_read_does_not_create(self) -> None:
        session = TransportSession(SESSION_ID)
        container = SessionContainer("Default", session)
        assert container.get("missing") is None
        assert not container.has("missing")
        assert not container.exists()
        assert "Default" not in session
        assert not session.modified

    def test_write_through_transport_updates_mirror(self) -> None:
        session = TransportSession(SESSION_ID)
        mirror = SessionMirror(session)
        container = SessionContainer("Default", session, mirror=mirror)
        container.set("user", "ada")
        assert session["Default"]["user"] == "ada"
        assert mirror.get("Default", "user") == "ada"

    def test_write_records_modified_at(self) -> None:
        container = SessionContainer("Default")
        before = time.time()
        container.set("a", 1)
        assert container.get(MODIFIED_AT) >= before
        assert container.all() == {"a": 1}

    def test_mirror_tier(self) -> None:
        mirror = SessionMirror()
        container = SessionContainer("Cart", mirror=mirror)
        container.set("items", [1, 2])
        assert mirror.get("Cart", "items") == [1, 2]
        assert container.remove("items") is True
        assert container.remove("items") is False

    def test_clear(self) -> None:
        session = TransportSession(SESSION_ID, {"Default": {"a": 1}})
        mirror = SessionMirror()
        mirror.prime(session)
        container = SessionContainer("Default", session, mirror=mirror)
        container.clear()
        assert "Default" not in session
        assert not mirror.has("Default")

    def test_memory_tier_not_shared(self) -> None:
        SessionContainer("Default").set("a", 1)
        assert SessionContainer("Default").get("a") is None

    def test_save_swallows_store_failure(self) -> None:
        session = TransportSession(SESSION_ID, store=FailingStore())
        container = SessionContainer("Default", session)
        container.set("a", 1)
        assert container.save() is False


class TestSessionManager:
    def test_requires_secret(self) -> None:
        with pytest.raises(ConfigurationError):
            SessionManager(AppConfig())

    def test_no_cookie_for_new_empty_session(self) -> None:
        manager = SessionManager(AppConfig(secret_key="k"))
        session = manager.load(Request(method="GET", path="/"))
        assert session.is_new
        response = manager.commit(session, Response("ok"))
        assert response.cookies == ()

    def test_roundtrip_through_cookie(self) -> None:
        settings = AppConfig(secret_key="k")
        manager = SessionManager(settings)
        session = manager.load(Request(method="GET", path="/"))
        session["Default"] = {"user": "ada"}
        response = manager.commit(session, Response("ok"))

        cookies = {settings.session_cookie: _cookie_value(response)}
        loaded = manager.load(Request(method="GET", path="/", cookies=cookies))
        assert loaded.id == session.id
        assert not loaded.is_new
        assert loaded["Default"] == {"user": "ada"}

    def test_cookie_attributes(self) -> None:
        manager = SessionManager(AppConfig(secret_key="k", session_max_age=60))
        session = manager.new_session()
        session["Default"] = {"a": 1}
        (cookie,) = manager.commit(session, Response()).cookies
        assert cookie.name == "roost_session"
        assert cookie.max_age == 60
        assert cookie.httponly

    def test_tampered_cookie_yields_new_session(self) -> None:
        settings = AppConfig(secret_key="k")
        manager = SessionManager(settings)
        forged = URLSafeTimedSerializer("other", salt="roost.session").dumps(SESSION_ID)
        session = manager.load(Request(method="GET", path="/", cookies={settings.session_cookie: forged}))
        assert session.is_new
        assert session.id != SESSION_ID

    def test_unknown_id_yields_new_session(self) -> None:
        settings = AppConfig(secret_key="k")
        manager = SessionManager(settings)
        signed = manager.signed_id(TransportSession(SESSION_ID))
        session = manager.load(Request(method="GET", path="/", cookies={settings.session_cookie: signed}))
        assert session.is_new

    def test_persist_failure_still_responds(self) -> None:
        manager = SessionManager(AppConfig(secret_key="k"), FailingStore())
        session = manager.new_session()
        session["Default"] = {"a": 1}
        response = manager.commit(session, Response("ok"))
        assert response.text == "ok"
