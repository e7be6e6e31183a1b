"""Params plugin — one lookup across route, query, and posted values."""

from typing import Any

from roost.mvc.plugins.base import BasePlugin


class Params(BasePlugin):
    """``self.plugin("params")("slug")`` checks route params, then query, then post."""

    def __call__(self, name: str | None = None, default: Any = None) -> Any:
        if name is None:
            return self.from_route()
        request = self.require_controller().request
        for source in (request.params, request.query, request.post):
            if name in source:
                return source[name]
        return default

    def from_route(self, name: str | None = None, default: Any = None) -> Any:
        params = self.require_controller().request.params
        return dict(params) if name is None else params.get(name, default)

    def from_query(self, name: str | None = None, default: Any = None) -> Any:
        query = self.require_controller().request.query
        return dict(query) if name is None else query.get(name, default)

    def from_post(self, name: str | None = None, default: Any = None) -> Any:
        post = self.require_controller().request.post
        return dict(post) if name is None else post.get(name, default)

    def from_header(self, name: str, default: str | None = None) -> str | None:
        return self.require_controller().request.headers.get(name.lower(), default)
