"""``url`` — URL generation from named routes inside templates."""

from typing import Any

from roost.view.helpers.base import AbstractHelper


class Url(AbstractHelper):
    """``{{ helpers.url("blogPost", slug=post.slug) }}``"""

    def render(self, name: str, params: dict[str, Any] | None = None, **kwargs: Any) -> str:
        controller = self.require_controller()
        return controller.get_service("RouteTable").url_for(name, {**(params or {}), **kwargs})
