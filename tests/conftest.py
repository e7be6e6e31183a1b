"""Shared fixtures for roost tests."""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from roost.config import AppConfig, ApplicationConfig

TEMPLATES_DIR = Path(__file__).parent / "templates"


@pytest.fixture
def templates_dir() -> Path:
    return TEMPLATES_DIR


@pytest.fixture
def blog_routes() -> dict[str, dict[str, str]]:
    return {
        "blogIndex": {"route": "/", "module": "blog", "controller": "index", "action": "index"},
        "blogPost": {"route": "/post/:slug", "module": "blog", "controller": "post", "action": "view"},
        "blogArchive": {
            "route": "/archive(/page/:page)?",
            "module": "blog",
            "controller": "index",
            "action": "archive",
        },
        "adminPostEdit": {
            "route": "/admin/post/:post_id/edit",
            "module": "admin",
            "controller": "post",
            "action": "edit-article",
        },
    }


@pytest.fixture
def settings() -> AppConfig:
    return AppConfig(template_dir=TEMPLATES_DIR, secret_key="test-secret", environment="development")


@pytest.fixture
def make_config(blog_routes: dict[str, dict[str, str]]) -> Callable[..., ApplicationConfig]:
    """Build an ApplicationConfig with the blog routes plus extra sections."""

    def build(**sections: Any) -> ApplicationConfig:
        return ApplicationConfig.from_mapping({"routes": blog_routes, **sections}, environ={})

    return build


@pytest.fixture
def app_config(make_config: Callable[..., ApplicationConfig]) -> ApplicationConfig:
    return make_config()


@pytest.fixture
def make_controller(app_config: ApplicationConfig, settings: AppConfig) -> Callable[..., Any]:
    """Build a controller bound to a fresh dispatch context (no dispatcher involved)."""
    from roost.dispatch.context import DispatchContext, DispatchRequest, DispatchResponse
    from roost.mvc.controller import BaseController
    from roost.services import ScopedContainer, ServiceContainer
    from roost.session import SessionMirror

    def build(session: Any = None, controller_class: type = BaseController, **request: Any) -> Any:
        container = ServiceContainer(app_config, settings)
        context = DispatchContext(
            DispatchRequest(session=session, **request),
            DispatchResponse(),
            SessionMirror(session),
        )
        scope = ScopedContainer(container, context)
        context.container = scope
        controller = controller_class(scope)
        context.controller = controller
        return controller

    return build
