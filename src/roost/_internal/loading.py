"""Import-string resolution for configured classes.

Configuration names classes as ``"package.module:ClassName"`` (or the
dotted ``"package.module.ClassName"``). Classes may also be given
directly. Resolution happens once, at boot.
"""

import importlib
from collections.abc import Mapping
from typing import Any

from roost.errors import ConfigurationError


def import_string(target: str | type | Any) -> Any:
    """Resolve *target* to the object it names.

    Non-string targets are returned unchanged.

    Raises:
        ConfigurationError: If the module or attribute cannot be found.
    """
    if not isinstance(target, str):
        return target

    if ":" in target:
        module_path, _, attr_path = target.partition(":")
    else:
        module_path, _, attr_path = target.rpartition(".")
    if not module_path or not attr_path:
        msg = f"Invalid import string {target!r}. Expected 'package.module:ClassName'."
        raise ConfigurationError(msg)

    try:
        obj: Any = importlib.import_module(module_path)
    except ImportError as exc:
        msg = f"Cannot import module {module_path!r} for {target!r}: {exc}"
        raise ConfigurationError(msg) from exc

    for attr in attr_path.split("."):
        try:
            obj = getattr(obj, attr)
        except AttributeError as exc:
            msg = f"Module {module_path!r} has no attribute {attr_path!r}."
            raise ConfigurationError(msg) from exc
    return obj


def describe(target: Any) -> str:
    """Human-readable name for a class or import string (for logs and errors)."""
    if isinstance(target, str):
        return target
    module = getattr(target, "__module__", None)
    qualname = getattr(target, "__qualname__", None) or type(target).__name__
    return f"{module}:{qualname}" if module else qualname


def registry_entry(name: str, value: Any) -> tuple[Any, str]:
    """Normalize an ``invokables`` value to ``(target, description)``.

    Accepts a class, an import string, or ``{"class": ..., "description": ...}``.
    """
    if isinstance(value, Mapping):
        target = value.get("class")
        if target is None:
            msg = f"Registry entry {name!r} is missing its 'class'."
            raise ConfigurationError(msg)
        return target, str(value.get("description") or "")
    if isinstance(value, str) or isinstance(value, type) or callable(value):
        return value, ""
    msg = f"Registry entry {name!r} must be a class, an import string, or a mapping with 'class'."
    raise ConfigurationError(msg)
