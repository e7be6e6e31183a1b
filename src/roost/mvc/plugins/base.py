"""Base class for controller plugins."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from roost._internal.binding import ControllerBound


class BasePlugin(ControllerBound):
    """A collaborator a controller reaches through ``self.plugin(name)``.

    Built once per ``PluginManager`` and bound to the dispatching
    controller before it is handed out.
    """

    def __init__(self, options: Mapping[str, Any] | None = None) -> None:
        self.options: dict[str, Any] = dict(options or {})
