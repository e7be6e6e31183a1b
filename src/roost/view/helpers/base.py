"""Base class for view helpers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from roost._internal.binding import ControllerBound


class AbstractHelper(ControllerBound, ABC):
    """A callable exposed to templates through ``helpers.<name>``.

    A helper is built once per ``ViewHelperManager`` (that is, once per
    request) and bound to the controller that is rendering.
    """

    def __init__(self, options: Mapping[str, Any] | None = None) -> None:
        self.options: dict[str, Any] = dict(options or {})

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self.render(*args, **kwargs)

    @abstractmethod
    def render(self, *args: Any, **kwargs: Any) -> Any:
        """Produce the helper's output for a template."""
