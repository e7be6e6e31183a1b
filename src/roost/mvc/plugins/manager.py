"""Controller plugin registry."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from roost._internal.loading import describe
from roost._internal.naming import snake_case
from roost._internal.registry import Registry, collisions

FRAMEWORK_PLUGINS: Mapping[str, Any] = {
    "flash_messenger": {
        "class": "roost.mvc.plugins.flash_messenger:FlashMessenger",
        "description": "One-shot messages across redirects",
    },
    "layout": {"class": "roost.mvc.plugins.layout:Layout", "description": "View script and layout"},
    "params": {"class": "roost.mvc.plugins.params:Params", "description": "Route/query/post values"},
    "redirect": {"class": "roost.mvc.plugins.redirect:Redirect", "description": "Redirect responses"},
    "url": {"class": "roost.mvc.plugins.url:Url", "description": "URLs from named routes"},
    "session": {"class": "roost.mvc.plugins.session:Session", "description": "Session namespaces"},
}


def validate_application_plugins(names: Mapping[str, Any] | list[str]) -> list[str]:
    """Return the configured plugin names that redeclare a framework plugin."""
    return collisions(FRAMEWORK_PLUGINS, names)


class PluginManager(Registry):
    """Request-scoped registry of controller plugins.

    A configured plugin that redeclares a framework plugin is ignored; the
    names are kept in ``conflicts``. ``Application.freeze`` warns about them
    once.
    """

    kind = "controller plugin"

    def __init__(
        self,
        invokables: Mapping[str, Any] | None = None,
        *,
        framework: Mapping[str, Any] | None = None,
    ) -> None:
        self.conflicts: list[str] = []
        super().__init__(invokables, framework=FRAMEWORK_PLUGINS if framework is None else framework)

    def _on_collision(self, names: list[str]) -> None:
        self.conflicts = names

    def has_plugin(self, name: str) -> bool:
        return self.has(name)

    def available_plugins(self) -> dict[str, str]:
        return {entry.name: entry.description for entry in self.entries()}

    def plugin_info(self, name: str) -> dict[str, Any] | None:
        for entry in self.entries():
            if entry.name == snake_case(name):
                return {
                    "name": entry.name,
                    "class": describe(entry.target),
                    "description": entry.description,
                    "framework": entry.framework,
                }
        return None
