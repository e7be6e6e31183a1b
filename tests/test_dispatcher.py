"""End-to-end dispatch tests through the ASGI interface."""

from dataclasses import replace

import anyio
import pytest

from roost import Application, BaseController, HTTPError, ViewModel, get_dispatch_context
from roost.auth import AuthCode, AuthResult
from roost.dispatch.context import DispatchState
from roost.session import MemorySessionStore
from roost.testing import TestClient

EXTRA_ROUTES = {
    "blogFlash": {"route": "/flash", "module": "blog", "controller": "index", "action": "flash"},
    "blogSave": {"route": "/save", "module": "blog", "controller": "index", "action": "save"},
    "blogBoom": {"route": "/boom", "module": "blog", "controller": "index", "action": "boom"},
    "blogBroken": {"route": "/broken", "module": "blog", "controller": "index", "action": "broken"},
    "blogForbidden": {"route": "/forbidden", "module": "blog", "controller": "index", "action": "forbidden"},
    "blogMoved": {"route": "/moved", "module": "blog", "controller": "index", "action": "moved"},
    "blogCreated": {"route": "/created", "module": "blog", "controller": "index", "action": "created"},
    "blogSlow": {"route": "/slow", "module": "blog", "controller": "index", "action": "slow"},
    "blogOdd": {"route": "/odd", "module": "blog", "controller": "index", "action": "odd"},
    "blogNoAction": {"route": "/no-action", "module": "blog", "controller": "index", "action": "vanished"},
    "blogLogin": {"route": "/login", "module": "blog", "controller": "index", "action": "login"},
    "blogContext": {"route": "/context", "module": "blog", "controller": "index", "action": "context"},
    "blogDelayed": {"route": "/delayed", "module": "blog", "controller": "index", "action": "delayed"},
}

recorded: dict[str, object] = {}


class AlwaysValid:
    def authenticate(self) -> AuthResult:
        return AuthResult(AuthCode.SUCCESS, {"username": "ada"})


class IndexController(BaseController):
    def index_action(self):
        return {"title": "Welcome"}

    def archive_action(self):
        page = self.get_param("page", "1")
        return ViewModel({"title": f"Archive page {page}"}, "blog/index/index")

    def flash_action(self):
        return None

    def save_action(self):
        self.plugin("flash_messenger").add_success_message("Post saved.")
        return self.plugin("redirect").to_route("blogFlash")

    def boom_action(self):
        raise RuntimeError("kaboom")

    def broken_action(self):
        return None

    def forbidden_action(self):
        raise HTTPError(status=403, detail="Members only")

    def moved_action(self):
        raise HTTPError(status=301, headers=(("Location", "/"),))

    def created_action(self):
        return self.get_view().set_variable("title", "New").set_status(201)

    async def slow_action(self):
        await anyio.sleep(5)

    def odd_action(self):
        return 42

    def login_action(self):
        self.get_service("AuthenticationService").authenticate(AlwaysValid())
        return self.plugin("redirect").to_route("blogIndex")

    async def context_action(self):
        recorded["active"] = get_dispatch_context() is self.context
        return {"title": "Context"}

    async def delayed_action(self):
        await anyio.sleep(0.01)
        recorded.setdefault("events", []).append("action_done")
        return ViewModel({"title": "Delayed"}, "blog/index/index")

    def post_dispatch(self):
        recorded["history"] = list(self.context.history)
        recorded.setdefault("events", []).append(("post_dispatch", self.get_view().get_variable("title")))


class PostController(BaseController):
    def view_action(self):
        return {"slug": self.get_param("slug")}


class AdminPostController(BaseController):
    def pre_dispatch(self):
        if self.get_query("skip"):
            self.request.dispatched = False
            self.get_view().set_variable("post_id", "skipped")
        elif not self.get_query("token"):
            self.plugin("redirect").to_url("/login")

    def edit_article_action(self):
        recorded["edited"] = self.get_param("post_id")
        return {"post_id": self.get_param("post_id")}


class CountingStore(MemorySessionStore):
    def __init__(self) -> None:
        super().__init__()
        self.saves = 0

    def save(self, session_id, data) -> None:
        self.saves += 1
        super().save(session_id, data)


@pytest.fixture(autouse=True)
def _reset_recorded():
    recorded.clear()


@pytest.fixture
def store() -> CountingStore:
    return CountingStore()


@pytest.fixture
def make_app(make_config, settings, store):
    def build(settings_overrides=None, **sections) -> Application:
        config = make_config(
            service_manager={
                "factories": {"AuthenticationService": "roost.auth:AuthenticationServiceFactory"}
            },
            **sections,
        ).with_routes(EXTRA_ROUTES)
        app = Application(config, replace(settings, **(settings_overrides or {})), session_store=store)
        app.add_controller("blog", "index", IndexController)
        app.add_controller("blog", "post", PostController)
        app.add_controller("admin", "post", AdminPostController)
        return app

    return build


class TestRendering:
    async def test_index(self, make_app) -> None:
        async with TestClient(make_app()) as client:
            response = await client.get("/")
        assert response.status == 200
        assert response.content_type.startswith("text/html")
        assert "<h1>Welcome</h1>" in response.text
        assert "<title>Blog</title>" in response.text
        assert '<p class="meta">blog/index/index blogIndex</p>' in response.text
        assert "signed in" not in response.text

    async def test_route_params(self, make_app) -> None:
        async with TestClient(make_app()) as client:
            response = await client.get("/post/hello-world")
        assert "<h1>hello-world</h1>" in response.text
        assert 'href="/"' in response.text

    async def test_explicit_template(self, make_app) -> None:
        async with TestClient(make_app()) as client:
            response = await client.get("/archive/page/3")
        assert "<h1>Archive page 3</h1>" in response.text
        assert "blog/index/archive blogArchive" in response.text

    async def test_explicit_status(self, make_app) -> None:
        async with TestClient(make_app()) as client:
            response = await client.get("/created")
        assert response.status == 201
        assert "<h1>New</h1>" in response.text

    async def test_head_has_no_body(self, make_app) -> None:
        async with TestClient(make_app()) as client:
            response = await client.request("HEAD", "/")
        assert response.status == 200
        assert response.body == b""

    async def test_context_active_during_dispatch(self, make_app) -> None:
        async with TestClient(make_app()) as client:
            await client.get("/context")
        assert recorded["active"] is True
        assert get_dispatch_context() is None

    async def test_post_dispatch_waits_for_async_action(self, make_app) -> None:
        async with TestClient(make_app()) as client:
            response = await client.get("/delayed")
        assert recorded["events"] == ["action_done", ("post_dispatch", "Delayed")]
        assert response.status == 200
        assert "<h1>Delayed</h1>" in response.text

    async def test_state_history(self, make_app) -> None:
        async with TestClient(make_app()) as client:
            await client.get("/")
        assert recorded["history"] == [
            DispatchState.ROUTING,
            DispatchState.CONTROLLER_RESOLVED,
            DispatchState.SESSION_PRIMED,
            DispatchState.PRE_DISPATCH,
            DispatchState.ACTION_RUNNING,
            DispatchState.POST_DISPATCH,
        ]


class TestNotFound:
    async def test_route_miss(self, make_app) -> None:
        async with TestClient(make_app()) as client:
            response = await client.get("/no/such/page")
        assert response.status == 404
        assert "<h1>404 Page Not Found</h1>" in response.text

    async def test_missing_action(self, make_app) -> None:
        async with TestClient(make_app()) as client:
            response = await client.get("/no-action")
        assert response.status == 404
        assert "could not be found" in response.text

    async def test_configured_template(self, make_app) -> None:
        app = make_app(view_manager={"not_found_template": "custom/missing"})
        async with TestClient(app) as client:
            response = await client.get("/nowhere")
        assert response.status == 404
        assert "Custom not found" in response.text

    async def test_inline_without_templates(self, make_app, tmp_path) -> None:
        app = make_app({"template_dir": tmp_path})
        async with TestClient(app) as client:
            response = await client.get("/nowhere")
        assert response.status == 404
        assert "<h1>404 - Page Not Found</h1>" in response.text


class TestErrors:
    async def test_exception_development(self, make_app) -> None:
        async with TestClient(make_app()) as client:
            response = await client.get("/boom")
        assert response.status == 500
        assert "500 Server Error" in response.text
        assert 'class="trace"' in response.text
        assert "RuntimeError: kaboom" in response.text

    async def test_exception_production(self, make_app) -> None:
        async with TestClient(make_app({"environment": "production"})) as client:
            response = await client.get("/boom")
        assert response.status == 500
        assert "kaboom" not in response.text
        assert "internal server error" in response.text

    async def test_template_error(self, make_app) -> None:
        async with TestClient(make_app()) as client:
            response = await client.get("/broken")
        assert response.status == 500
        assert "500 Server Error" in response.text
        assert 'class="trace"' in response.text

    async def test_http_error_status(self, make_app) -> None:
        async with TestClient(make_app()) as client:
            response = await client.get("/forbidden")
        assert response.status == 403
        assert "Members only" in response.text

    async def test_http_error_redirect(self, make_app) -> None:
        async with TestClient(make_app()) as client:
            response = await client.get("/moved")
        assert response.status == 301
        assert response.location == "/"
        assert response.body == b""

    async def test_bad_action_return(self, make_app) -> None:
        async with TestClient(make_app()) as client:
            response = await client.get("/odd")
        assert response.status == 500
        assert "returned int" in response.text

    async def test_timeout(self, make_app) -> None:
        async with TestClient(make_app({"request_timeout": 0.05})) as client:
            response = await client.get("/slow")
        assert response.status == 500
        assert "took too long" in response.text


class TestLifecycleHooks:
    async def test_pre_dispatch_redirect_skips_action(self, make_app) -> None:
        async with TestClient(make_app()) as client:
            response = await client.get("/admin/post/7/edit")
        assert response.status == 302
        assert response.location == "/login"
        assert response.body == b""
        assert "edited" not in recorded

    async def test_not_dispatched_skips_action(self, make_app) -> None:
        async with TestClient(make_app()) as client:
            response = await client.get("/admin/post/7/edit?skip=1")
        assert response.status == 200
        assert "Edit skipped" in response.text
        assert "edited" not in recorded

    async def test_action_runs_with_token(self, make_app) -> None:
        async with TestClient(make_app()) as client:
            response = await client.get("/admin/post/7/edit?token=x")
        assert response.status == 200
        assert recorded["edited"] == "7"
        assert "Edit 7" in response.text
        assert 'name="csrf"' in response.text


class TestSessions:
    async def test_flash_survives_redirect(self, make_app) -> None:
        async with TestClient(make_app()) as client:
            response = await client.post("/save")
            assert response.status == 302
            assert response.location == "/flash"
            assert "roost_session" in client.cookies

            page = await client.get("/flash")
            assert '<p class="success">Post saved.</p>' in page.text

            again = await client.get("/flash")
            assert "Post saved." not in again.text

    async def test_saved_exactly_once(self, make_app, store) -> None:
        async with TestClient(make_app()) as client:
            await client.post("/save")
        assert store.saves == 1

    async def test_read_only_request_does_not_save(self, make_app, store) -> None:
        async with TestClient(make_app()) as client:
            response = await client.get("/")
        assert store.saves == 0
        assert response.header("set-cookie") is None

    async def test_sessions_disabled_without_secret(self, make_app, store) -> None:
        async with TestClient(make_app({"secret_key": ""})) as client:
            response = await client.post("/save")
            assert response.status == 302
            assert client.cookies == {}
            page = await client.get("/flash")
        assert "Post saved." not in page.text
        assert store.saves == 0

    async def test_login_persists_identity(self, make_app) -> None:
        async with TestClient(make_app()) as client:
            response = await client.get("/login")
            assert response.location == "/"
            page = await client.get("/")
        assert '<p class="auth">signed in</p>' in page.text

    async def test_csrf_token_stable_across_requests(self, make_app) -> None:
        async with TestClient(make_app()) as client:
            first = await client.get("/admin/post/1/edit?token=x")
            second = await client.get("/admin/post/1/edit?token=x")
        marker = 'name="csrf" value="'
        token = first.text.split(marker, 1)[1].split('"', 1)[0]
        assert token
        assert token in second.text

    async def test_shared_mirror(self, make_app) -> None:
        app = make_app({"secret_key": "", "shared_session_mirror": True})
        async with TestClient(app) as client:
            await client.post("/save")
            page = await client.get("/flash")
        assert '<p class="success">Post saved.</p>' in page.text
