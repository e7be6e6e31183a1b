"""``head_title`` and ``head_meta`` — accumulate ``<head>`` content while rendering."""

from __future__ import annotations

import html
from collections.abc import Mapping
from typing import Any

from kida.template import Markup

from roost.view.helpers.base import AbstractHelper


class HeadTitle(AbstractHelper):
    """Builds the document title from parts.

    Templates::

        {{ helpers.head_title("Blog") }}          {# appends, renders <title> #}
        {{ helpers.head_title("Home", "prepend") }}
    """

    def __init__(self, options: Mapping[str, Any] | None = None) -> None:
        super().__init__(options)
        self.parts: list[str] = []
        self.separator: str = str(self.options.get("separator", " - "))

    def render(self, title: str | None = None, mode: str = "append") -> Markup:
        if title:
            if mode == "prepend":
                self.parts.insert(0, str(title))
            elif mode == "set":
                self.parts = [str(title)]
            else:
                self.parts.append(str(title))
        return Markup(f"<title>{html.escape(self.text())}</title>")

    def set_separator(self, separator: str) -> HeadTitle:
        self.separator = separator
        return self

    def text(self) -> str:
        return self.separator.join(self.parts)


class HeadMeta(AbstractHelper):
    """Collects ``<meta>`` tags; calling with no arguments renders them."""

    def __init__(self, options: Mapping[str, Any] | None = None) -> None:
        super().__init__(options)
        self.items: list[tuple[str, str, str]] = []

    def render(self, name: str | None = None, content: str = "", *, kind: str = "name") -> Markup:
        if name is not None:
            self.append(name, content, kind=kind)
            return Markup("")
        return Markup("\n".join(
            f'<meta {attr}="{html.escape(key)}" content="{html.escape(value)}">'
            for attr, key, value in self.items
        ))

    def append(self, name: str, content: str, *, kind: str = "name") -> HeadMeta:
        if kind not in ("name", "property", "http-equiv"):
            msg = f"Unsupported meta attribute {kind!r}"
            raise ValueError(msg)
        self.items = [item for item in self.items if item[:2] != (kind, name)]
        self.items.append((kind, name, str(content)))
        return self
