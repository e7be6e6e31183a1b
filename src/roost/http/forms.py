"""Request body parsing for posted data.

Controllers see posted fields as a flat mapping on the dispatch request.
URL-encoded forms and JSON objects are supported; other content types
yield an empty mapping and leave the raw body on the transport request.
"""

import json
import logging
from typing import Any
from urllib.parse import parse_qs

logger = logging.getLogger("roost.http")

FORM_URLENCODED = "application/x-www-form-urlencoded"
JSON = "application/json"


def media_type(content_type: str | None) -> str:
    """Strip parameters from a Content-Type value (``text/html; charset=...``)."""
    return (content_type or "").split(";", 1)[0].strip().lower()


def parse_urlencoded(raw: bytes) -> dict[str, str | list[str]]:
    """Parse an ``application/x-www-form-urlencoded`` body.

    Repeated fields become lists; single fields stay strings.
    """
    parsed = parse_qs(raw.decode("utf-8", errors="replace"), keep_blank_values=True)
    return {k: v[0] if len(v) == 1 else v for k, v in parsed.items()}


def parse_body(raw: bytes, content_type: str | None) -> dict[str, Any]:
    """Parse a request body into posted fields.

    A malformed JSON body is logged and treated as empty so the action can
    still run and report a validation problem of its own.
    """
    if not raw:
        return {}
    kind = media_type(content_type)
    if kind == FORM_URLENCODED:
        return parse_urlencoded(raw)
    if kind == JSON or kind.endswith("+json"):
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring malformed JSON request body (%d bytes)", len(raw))
            return {}
        return data if isinstance(data, dict) else {"_json": data}
    return {}
