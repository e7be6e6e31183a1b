"""Name → class registries bound to the active controller.

Shared by ``PluginManager`` and ``ViewHelperManager``. The framework set
and the configured set are merged once, at construction; the framework
entry wins a name both declare. What happens on such a collision is the
subclass's policy (``_on_collision``).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from roost._internal.binding import ControllerBound
from roost._internal.loading import describe, import_string, registry_entry
from roost._internal.naming import snake_case
from roost.errors import ConfigurationError, ControllerBindingError

if TYPE_CHECKING:
    from typing import Self

    from roost.mvc.controller import BaseController

logger = logging.getLogger("roost.mvc")


@dataclass(frozen=True, slots=True)
class RegistryEntry:
    name: str
    target: Any
    description: str = ""
    framework: bool = False


def collisions(framework: Iterable[str], application: Iterable[str]) -> list[str]:
    """Application names that redeclare a framework name (case/style-insensitive)."""
    reserved = {snake_case(name) for name in framework}
    return sorted({name for name in application if snake_case(name) in reserved})


class Registry(ControllerBound, ABC):
    kind = "entry"

    def __init__(
        self,
        invokables: Mapping[str, Any] | None = None,
        *,
        framework: Mapping[str, Any] | None = None,
    ) -> None:
        framework = dict(framework or {})
        invokables = dict(invokables or {})
        clashes = collisions(framework, invokables)
        if clashes:
            self._on_collision(clashes)

        self._entries: dict[str, RegistryEntry] = {}
        for name, value in invokables.items():
            key = snake_case(name)
            if key in self._entries:
                continue
            target, description = registry_entry(name, value)
            self._entries[key] = RegistryEntry(key, target, description)
        for name, value in framework.items():
            target, description = registry_entry(name, value)
            self._entries[snake_case(name)] = RegistryEntry(
                snake_case(name), target, description, framework=True
            )

        self._instances: dict[str, Any] = {}

    @abstractmethod
    def _on_collision(self, names: list[str]) -> None:
        """Apply this registry's policy to configured names that redeclare framework ones."""

    # -- Binding --

    def set_controller(self, controller: BaseController) -> Self:
        """Bind the registry, and every instance built so far, to *controller*."""
        super().set_controller(controller)
        for instance in self._instances.values():
            self._bind(instance)
        return self

    def _bind(self, instance: Any) -> None:
        if self._controller is not None and hasattr(instance, "set_controller"):
            instance.set_controller(self._controller)

    # -- Lookup --

    def get(self, name: str, options: Mapping[str, Any] | None = None) -> Any:
        """Return the instance registered as *name*, building it once.

        Names are matched style-insensitively (``flashMessenger`` and
        ``flash_messenger`` are the same entry). *options* only apply to
        the first build. Returns ``None`` for an unknown name or a failed
        build; both are logged.
        """
        key = snake_case(name)
        if key in self._instances:
            return self._instances[key]

        entry = self._entries.get(key)
        if entry is None:
            logger.warning("Unknown %s %r (available: %s)", self.kind, name, ", ".join(sorted(self._entries)))
            return None

        try:
            instance = self._construct(entry, options)
            self._bind(instance)
        except ControllerBindingError:
            raise
        except Exception:
            logger.exception("Could not build %s %r from %s", self.kind, name, describe(entry.target))
            return None
        self._instances[key] = instance
        return instance

    def _construct(self, entry: RegistryEntry, options: Mapping[str, Any] | None) -> Any:
        cls = import_string(entry.target)
        if not callable(cls):
            msg = f"{self.kind.capitalize()} {entry.name!r} ({describe(cls)}) is not callable."
            raise ConfigurationError(msg)
        return cls(options) if options is not None else cls()

    def has(self, name: str) -> bool:
        return snake_case(name) in self._entries

    def entries(self) -> list[RegistryEntry]:
        return list(self._entries.values())

    def is_framework(self, name: str) -> bool:
        entry = self._entries.get(snake_case(name))
        return entry is not None and entry.framework

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has(name)

    def __len__(self) -> int:
        return len(self._entries)
