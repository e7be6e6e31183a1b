"""View helper registry."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from roost._internal.registry import Registry, collisions
from roost.errors import ConfigurationError

FRAMEWORK_HELPERS: Mapping[str, Any] = {
    "head_title": {"class": "roost.view.helpers.head:HeadTitle", "description": "Document <title>"},
    "head_meta": {"class": "roost.view.helpers.head:HeadMeta", "description": "<meta> tags"},
    "url": {"class": "roost.view.helpers.url:Url", "description": "URLs from named routes"},
    "form_csrf": {"class": "roost.view.helpers.csrf:FormCsrf", "description": "CSRF hidden field"},
    "flash_messages": {
        "class": "roost.view.helpers.flash:FlashMessages",
        "description": "Queued flash messages",
    },
}


def validate_application_helpers(names: Mapping[str, Any] | list[str]) -> list[str]:
    """Return the configured helper names that redeclare a framework helper."""
    return collisions(FRAMEWORK_HELPERS, names)


class ViewHelperManager(Registry):
    """Request-scoped registry of template helpers.

    A configured helper that redeclares a framework helper is a
    ``ConfigurationError``.
    """

    kind = "view helper"

    def __init__(
        self,
        invokables: Mapping[str, Any] | None = None,
        *,
        framework: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(invokables, framework=FRAMEWORK_HELPERS if framework is None else framework)

    def _on_collision(self, names: list[str]) -> None:
        msg = (
            f"View helper(s) {', '.join(names)} redeclare framework helpers. "
            "Rename them in view_helpers.invokables."
        )
        raise ConfigurationError(msg)

    def is_framework_helper(self, name: str) -> bool:
        return self.is_framework(name)

    def available_helpers(self) -> dict[str, str]:
        return {entry.name: entry.description for entry in self.entries()}

    def proxy(self) -> HelperProxy:
        return HelperProxy(self)


class HelperProxy:
    """Attribute access to helpers for templates: ``helpers.head_title(...)``."""

    __slots__ = ("_manager",)

    def __init__(self, manager: ViewHelperManager) -> None:
        self._manager = manager

    def __getattr__(self, name: str) -> Any:
        helper = self._manager.get(name)
        if helper is None:
            raise AttributeError(name)
        return helper

    def __contains__(self, name: object) -> bool:
        return name in self._manager
