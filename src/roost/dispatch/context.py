"""Per-request dispatch state.

One ``DispatchContext`` is created for every inbound request and thrown
away once the response is finalized. It is never shared between requests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from roost.http.headers import Headers
from roost.session.mirror import SessionMirror
from roost.session.transport import TransportSession

if TYPE_CHECKING:
    from roost.mvc.controller import BaseController
    from roost.routing.route import RouteMatch
    from roost.services.container import ScopedContainer

logger = logging.getLogger("roost.dispatch")


class DispatchState(Enum):
    ROUTING = "routing"
    CONTROLLER_RESOLVED = "controller_resolved"
    SESSION_PRIMED = "session_primed"
    PRE_DISPATCH = "pre_dispatch"
    ACTION_RUNNING = "action_running"
    POST_DISPATCH = "post_dispatch"
    RESPONSE_FINALIZED = "response_finalized"
    ERROR = "error"


@dataclass(slots=True)
class DispatchRequest:
    """What the controller sees of the request.

    ``params`` are the route parameters; ``post`` the parsed body.
    Setting ``dispatched`` to ``False`` in ``pre_dispatch`` skips the action.
    """

    method: str = "GET"
    path: str = "/"
    url: str = "/"
    route_path: str | None = None
    route_name: str | None = None
    query: dict[str, Any] = field(default_factory=dict)
    params: dict[str, str] = field(default_factory=dict)
    post: dict[str, Any] = field(default_factory=dict)
    headers: Headers = field(default_factory=Headers)
    session: TransportSession | None = None
    module: str = ""
    controller: str = ""
    action: str = ""
    dispatched: bool = True
    transport: Any = None

    @property
    def is_post(self) -> bool:
        return self.method == "POST"

    def get_param(self, name: str, default: Any = None) -> Any:
        return self.params.get(name, default)


class DispatchResponse:
    """Headers, status, and redirect signal collected during dispatch."""

    __slots__ = ("_status", "headers", "redirect")

    def __init__(self) -> None:
        self.headers: dict[str, str] = {}
        self._status: int | None = None
        self.redirect = False

    @property
    def status(self) -> int | None:
        return self._status

    @status.setter
    def status(self, code: int) -> None:
        self.set_status(code)

    def set_status(self, code: int) -> DispatchResponse:
        if not isinstance(code, int) or not 100 <= code <= 599:
            msg = f"Invalid HTTP status code: {code!r}"
            raise ValueError(msg)
        self._status = code
        if 300 <= code <= 307 and "Location" in self.headers:
            self.redirect = True
        return self

    def set_header(self, name: str, value: str) -> DispatchResponse:
        self.headers[name] = value
        return self

    def set_redirect(self, url: str, code: int = 302) -> DispatchResponse:
        if not 300 <= code <= 308:
            msg = f"Invalid redirect status code: {code!r}"
            raise ValueError(msg)
        self.headers["Location"] = url
        self._status = code
        self.redirect = True
        return self

    @property
    def location(self) -> str | None:
        return self.headers.get("Location")

    def __repr__(self) -> str:
        return f"<DispatchResponse status={self._status} redirect={self.redirect}>"


@dataclass(slots=True)
class DispatchContext:
    request: DispatchRequest
    response: DispatchResponse
    session_mirror: SessionMirror
    container: ScopedContainer | None = None
    state: DispatchState | None = None
    route_match: RouteMatch | None = None
    not_found: bool = False
    controller: BaseController | None = None
    error: BaseException | None = None
    history: list[DispatchState] = field(default_factory=list)

    def transition(self, state: DispatchState) -> None:
        logger.debug(
            "%s %s: %s -> %s",
            self.request.method,
            self.request.path,
            self.state.value if self.state else "start",
            state.value,
        )
        self.state = state
        self.history.append(state)
