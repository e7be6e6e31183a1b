"""Redirect plugin — signal a redirect on the dispatch response.

The dispatcher skips rendering and emits the ``Location`` header. Session
data is reconciled and persisted before the response leaves.
"""

from typing import Any

from roost.dispatch.context import DispatchResponse
from roost.mvc.plugins.base import BasePlugin


class Redirect(BasePlugin):
    def to_url(self, url: str, code: int = 302) -> DispatchResponse:
        response = self.require_controller().response
        response.set_redirect(url, code)
        return response

    def to_route(
        self,
        name: str,
        params: dict[str, Any] | None = None,
        code: int = 302,
        **kwargs: Any,
    ) -> DispatchResponse:
        url = self.require_controller().get_service("RouteTable").url_for(
            name, {**(params or {}), **kwargs}
        )
        return self.to_url(url, code)

    def refresh(self) -> DispatchResponse:
        return self.to_url(self.require_controller().request.url)
