"""Url plugin — build URLs from named routes in controllers."""

from typing import Any

from roost.mvc.plugins.base import BasePlugin


class Url(BasePlugin):
    def from_route(self, name: str, params: dict[str, Any] | None = None, **kwargs: Any) -> str:
        routes = self.require_controller().get_service("RouteTable")
        return routes.url_for(name, {**(params or {}), **kwargs})

    def __call__(self, name: str, params: dict[str, Any] | None = None, **kwargs: Any) -> str:
        return self.from_route(name, params, **kwargs)
