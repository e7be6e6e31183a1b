"""ASGI response sending — translates a roost Response into ASGI messages."""

import logging

from roost._internal.asgi import Send
from roost.http.response import Response

logger = logging.getLogger("roost.server")


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    return not (100 <= status < 200 or status in {204, 304})


async def send_response(response: Response, send: Send, *, method: str = "GET") -> None:
    raw_headers: list[tuple[bytes, bytes]] = []
    body = response.body_bytes if _body_allowed(response.status) else b""
    if body or not response.is_redirect:
        raw_headers.append((b"content-type", response.content_type.encode("latin-1")))
    for name, value in response.headers:
        raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))
    raw_headers.extend(
        (b"set-cookie", cookie.to_header_value().encode("latin-1")) for cookie in response.cookies
    )
    raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

    await send({"type": "http.response.start", "status": response.status, "headers": raw_headers})
    await send({"type": "http.response.body", "body": b"" if method == "HEAD" else body})
