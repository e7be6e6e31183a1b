"""Tests for roost.dispatch.registry — controller registration and discovery."""

import pytest

from roost.dispatch.registry import ERROR_CONTROLLER, ControllerRegistry
from roost.errors import ConfigurationError
from roost.mvc import BaseController, ErrorController

PACKAGE = "discovered_blog_app"


class IndexController(BaseController):
    pass


class OtherController(BaseController):
    pass


@pytest.fixture(scope="module")
def app_package(tmp_path_factory):
    root = tmp_path_factory.mktemp("discovery")
    base = root / PACKAGE / "blog" / "controller" / "admin"
    base.mkdir(parents=True)
    (base / "post.py").write_text(
        "from roost.mvc import BaseController\n\n\nclass PostController(BaseController):\n    pass\n",
        encoding="utf-8",
    )
    (base / "empty.py").write_text("VALUE = 1\n", encoding="utf-8")
    (base / "broken.py").write_text("import a_module_that_is_not_installed\n", encoding="utf-8")
    return root


@pytest.fixture
def discovery(app_package, monkeypatch) -> ControllerRegistry:
    monkeypatch.syspath_prepend(str(app_package))
    return ControllerRegistry(package=PACKAGE)


class TestRegistration:
    def test_decorator(self) -> None:
        registry = ControllerRegistry()

        @registry.register("blog", "index")
        class Controller(BaseController):
            pass

        assert registry.resolve("blog", "index") is Controller
        assert ("blog", "index") in registry
        assert len(registry) == 1

    def test_direct(self) -> None:
        registry = ControllerRegistry()
        registry.register("blog", "index", IndexController)
        assert registry.registered() == {("blog", "index"): IndexController}

    def test_names_normalized(self) -> None:
        registry = ControllerRegistry()
        registry.register("Blog", "adminPost", IndexController)
        assert registry.resolve("blog", "admin_post") is IndexController

    def test_rejects_non_controller(self) -> None:
        with pytest.raises(ConfigurationError, match="must subclass BaseController"):
            ControllerRegistry().register("blog", "index", object)  # type: ignore[arg-type]

    def test_conflicting_duplicate(self) -> None:
        registry = ControllerRegistry()
        registry.register("blog", "index", IndexController)
        registry.register("blog", "index", IndexController)
        with pytest.raises(ConfigurationError, match="already registered"):
            registry.register("blog", "index", OtherController)

    def test_unknown(self) -> None:
        assert ControllerRegistry().resolve("blog", "missing") is None

    def test_error_controller_fallback(self) -> None:
        assert ControllerRegistry().resolve(*ERROR_CONTROLLER) is ErrorController

    def test_error_controller_override(self) -> None:
        registry = ControllerRegistry()
        registry.register("error", "index", OtherController)
        assert registry.resolve("error", "index") is OtherController


class TestValidate:
    def test_lists_missing(self) -> None:
        registry = ControllerRegistry()
        registry.register("blog", "index", IndexController)
        with pytest.raises(ConfigurationError, match="blog/post, shop/cart") as exc_info:
            registry.validate([("blog", "index"), ("shop", "cart"), ("blog", "post")])
        assert "controllers_package" in str(exc_info.value)

    def test_passes(self) -> None:
        registry = ControllerRegistry()
        registry.register("blog", "index", IndexController)
        registry.validate([("blog", "index"), ERROR_CONTROLLER])


class TestDiscovery:
    def test_convention_target(self) -> None:
        registry = ControllerRegistry(package="myapp.module")
        assert registry.convention_target("blog", "admin_post") == (
            "myapp.module.blog.controller.admin.post",
            "PostController",
        )
        assert ControllerRegistry().convention_target("blog", "index") is None

    def test_discovers_by_convention(self, discovery) -> None:
        cls = discovery.resolve("blog", "admin_post")
        assert cls is not None
        assert cls.__name__ == "PostController"
        assert discovery.registered()[("blog", "admin_post")] is cls

    def test_missing_module(self, discovery) -> None:
        assert discovery.resolve("blog", "admin_nothing") is None

    def test_module_without_controller_class(self, discovery) -> None:
        assert discovery.resolve("blog", "admin_empty") is None

    def test_broken_import_propagates(self, discovery) -> None:
        with pytest.raises(ModuleNotFoundError, match="a_module_that_is_not_installed"):
            discovery.resolve("blog", "admin_broken")

    def test_discovery_attempted_once(self, discovery, monkeypatch) -> None:
        calls = []
        original = discovery._discover

        def counting(module, controller):
            calls.append((module, controller))
            return original(module, controller)

        monkeypatch.setattr(discovery, "_discover", counting)
        discovery.resolve("blog", "admin_nothing")
        discovery.resolve("blog", "admin_nothing")
        assert len(calls) == 1
