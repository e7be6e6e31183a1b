"""Immutable transport request.

Frozen metadata with async body access. This is what the ASGI layer
hands to the dispatcher; controllers see the richer ``DispatchRequest``.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Mapping
from dataclasses import dataclass, field
from typing import Any

from roost._internal.asgi import Receive, Scope
from roost.http.cookies import parse_cookies
from roost.http.forms import parse_body
from roost.http.headers import Headers
from roost.http.query import QueryParams


async def _empty_receive() -> dict[str, Any]:
    return {"type": "http.request", "body": b"", "more_body": False}


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Cookies are parsed once at creation (in ``from_asgi``) and stored as a
    frozen field. The body is read lazily and cached.
    """

    method: str
    path: str
    headers: Headers = field(default_factory=Headers)
    query: QueryParams = field(default_factory=QueryParams)
    cookies: Mapping[str, str] = field(default_factory=dict)
    http_version: str = "1.1"
    scheme: str = "http"
    server: tuple[str, int] | None = None
    client: tuple[str, int] | None = None

    _receive: Receive = field(default=_empty_receive, repr=False, compare=False)

    # dict contents are mutable even though the field reference is frozen
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def url(self) -> str:
        """Path plus query string, as the client requested it."""
        qs = self.query.raw
        if qs:
            return f"{self.path}?{qs.decode('latin-1')}"
        return self.path

    @property
    def host(self) -> str:
        host = self.headers.get("host")
        if host:
            return host
        if self.server:
            return f"{self.server[0]}:{self.server[1]}"
        return "localhost"

    @property
    def absolute_url(self) -> str:
        return f"{self.scheme}://{self.host}{self.url}"

    async def body(self) -> bytes:
        """Read the full request body (cached after the first call)."""
        if "_body" in self._cache:
            return self._cache["_body"]
        result = b"".join([chunk async for chunk in self.stream()])
        self._cache["_body"] = result
        return result

    async def stream(self) -> AsyncGenerator[bytes]:
        """Stream the request body in chunks."""
        while True:
            message = await self._receive()
            if message.get("type") == "http.disconnect":
                break
            body = message.get("body", b"")
            if body:
                yield body
            if not message.get("more_body", False):
                break

    async def text(self) -> str:
        raw = await self.body()
        return raw.decode("utf-8")

    async def post(self) -> dict[str, Any]:
        """Posted fields from a URL-encoded or JSON body (cached)."""
        if "_post" in self._cache:
            return self._cache["_post"]
        if self.method in ("GET", "HEAD", "OPTIONS"):
            result: dict[str, Any] = {}
        else:
            result = parse_body(await self.body(), self.content_type)
        self._cache["_post"] = result
        return result

    @classmethod
    def from_asgi(cls, scope: Scope, receive: Receive) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        headers = Headers(tuple(scope.get("headers", ())))
        server = scope.get("server")
        client = scope.get("client")
        return cls(
            method=scope["method"].upper(),
            path=scope["path"],
            headers=headers,
            query=QueryParams(scope.get("query_string", b"")),
            cookies=parse_cookies("; ".join(headers.get_list("cookie"))),
            http_version=scope.get("http_version", "1.1"),
            scheme=scope.get("scheme", "http"),
            server=tuple(server) if server else None,
            client=tuple(client) if client else None,
            _receive=receive,
        )
