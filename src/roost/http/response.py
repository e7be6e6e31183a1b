"""HTTP response with chainable ``.with_*()`` transformation API.

Each transformation returns a new Response. The dispatcher builds its
mutable ``DispatchResponse`` while the controller runs, then freezes it
into one of these for sending.
"""

from collections.abc import Mapping
from dataclasses import dataclass, replace

from roost.http.cookies import SetCookie


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response built through immutable transformations."""

    body: str | bytes = ""
    status: int = 200
    content_type: str = "text/html; charset=utf-8"
    headers: tuple[tuple[str, str], ...] = ()
    cookies: tuple[SetCookie, ...] = ()

    def with_status(self, status: int) -> "Response":
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> "Response":
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str]) -> "Response":
        return replace(self, headers=(*self.headers, *headers.items()))

    def with_content_type(self, content_type: str) -> "Response":
        return replace(self, content_type=content_type)

    def with_cookie(self, cookie: SetCookie) -> "Response":
        """Return a new Response with an additional ``Set-Cookie``."""
        return replace(self, cookies=(*self.cookies, cookie))

    def without_cookie(self, name: str, path: str = "/") -> "Response":
        """Return a new Response that deletes a cookie (``Max-Age=0``)."""
        return self.with_cookie(SetCookie(name=name, value="", max_age=0, path=path))

    def header(self, name: str, default: str | None = None) -> str | None:
        """First value of a header set on this response (case-insensitive)."""
        wanted = name.lower()
        for key, value in self.headers:
            if key.lower() == wanted:
                return value
        return default

    @property
    def location(self) -> str | None:
        return self.header("location")

    @property
    def is_redirect(self) -> bool:
        return 300 <= self.status < 400 and self.location is not None

    @property
    def body_bytes(self) -> bytes:
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def text(self) -> str:
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body
