"""Application configuration.

Two frozen dataclasses — immutable after creation, IDE-autocompletable:

- ``AppConfig`` holds runtime settings (templates, sessions, deadlines).
- ``ApplicationConfig`` holds the application structure: routes, service
  factories, controller plugins, view helpers, and view manager settings.
"""

from __future__ import annotations

import json
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

from roost.errors import ConfigurationError


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes", "on")


def _parse_timeout(value: str) -> float | None:
    value = value.strip().lower()
    if value in ("", "none", "off", "0"):
        return None
    return float(value)


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Runtime configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(environment="development", secret_key="s3cr3t")
    """

    debug: bool = False
    environment: str = "production"

    # Templates
    template_dir: str | Path = "templates"
    component_dirs: tuple[str | Path, ...] = ()
    autoescape: bool = True
    trim_blocks: bool = True
    lstrip_blocks: bool = True

    # Controllers
    delimiter: str = "_"  # Separates path segments inside a controller name
    controllers_package: str | None = None  # Convention discovery root, e.g. "myapp.module"

    # Dispatch
    request_timeout: float | None = 30.0
    expose_exceptions: bool | None = None  # None derives from environment

    # Sessions
    secret_key: str = ""
    session_cookie: str = "roost_session"
    session_max_age: int = 86400
    session_store: str = "memory"  # "memory" | "file"
    session_dir: str | Path = ".sessions"
    session_path: str = "/"
    session_secure: bool = False
    session_httponly: bool = True
    session_samesite: str = "lax"
    shared_session_mirror: bool = False  # Legacy process-wide fallback

    log_level: str = "info"

    @property
    def show_exceptions(self) -> bool:
        """Whether 500 pages include the exception traceback."""
        if self.expose_exceptions is not None:
            return self.expose_exceptions
        return self.environment == "development"

    @classmethod
    def from_env(
        cls,
        prefix: str = "ROOST_",
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> AppConfig:
        """Build a config from ``{prefix}{FIELD}`` environment variables.

        Explicit keyword *overrides* win over the environment::

            ROOST_ENVIRONMENT=development ROOST_REQUEST_TIMEOUT=5 python app.py
        """
        environ = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for f in fields(cls):
            raw = environ.get(f"{prefix}{f.name.upper()}")
            if raw is None:
                continue
            converter = _ENV_CONVERTERS.get(f.name, str)
            try:
                values[f.name] = converter(raw)
            except ValueError as exc:
                msg = f"Invalid value for {prefix}{f.name.upper()}: {raw!r} ({exc})"
                raise ConfigurationError(msg) from exc
        values.update(overrides)
        return cls(**values)


_ENV_CONVERTERS: dict[str, Callable[[str], Any]] = {
    "debug": _parse_bool,
    "autoescape": _parse_bool,
    "trim_blocks": _parse_bool,
    "lstrip_blocks": _parse_bool,
    "request_timeout": _parse_timeout,
    "expose_exceptions": _parse_bool,
    "session_max_age": int,
    "session_secure": _parse_bool,
    "session_httponly": _parse_bool,
    "shared_session_mirror": _parse_bool,
    "component_dirs": lambda raw: tuple(p for p in raw.split(os.pathsep) if p),
}


# -- Application structure --

_SECTIONS = ("routes", "service_manager", "controller_plugins", "view_helpers", "view_manager")

_ROUTE_KEYS = ("route", "module", "controller", "action")

_VIEW_ENV_OVERRIDES = {
    "VIEW_NOT_FOUND_TEMPLATE": "not_found_template",
    "VIEW_EXCEPTION_TEMPLATE": "exception_template",
}


def _require_mapping(value: Any, where: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        msg = f"Configuration section {where!r} must be a mapping, got {type(value).__name__}."
        raise ConfigurationError(msg)
    return dict(value)


@dataclass(frozen=True, slots=True)
class ApplicationConfig:
    """The static structure of an application.

    Mirrors the configuration shape the dispatcher consumes::

        ApplicationConfig.from_mapping({
            "routes": {
                "blogIndexIndex": {
                    "route": "/(page/:page/index.html)?",
                    "module": "blog",
                    "controller": "index",
                    "action": "index",
                },
            },
            "service_manager": {"factories": {"PostService": "myapp.services:PostServiceFactory"}},
            "view_manager": {"not_found_template": "error/404"},
        })
    """

    routes: Mapping[str, Mapping[str, str]] = field(default_factory=dict)
    service_manager: Mapping[str, Any] = field(default_factory=dict)
    controller_plugins: Mapping[str, Any] = field(default_factory=dict)
    view_helpers: Mapping[str, Any] = field(default_factory=dict)
    view_manager: Mapping[str, Any] = field(default_factory=dict)
    extra: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any],
        *,
        environ: Mapping[str, str] | None = None,
    ) -> ApplicationConfig:
        """Validate *data* and build a config.

        ``VIEW_NOT_FOUND_TEMPLATE`` and ``VIEW_EXCEPTION_TEMPLATE`` in the
        environment override the matching ``view_manager`` keys.

        Raises:
            ConfigurationError: If a section or route has the wrong shape.
        """
        if not isinstance(data, Mapping):
            msg = f"Application configuration must be a mapping, got {type(data).__name__}."
            raise ConfigurationError(msg)

        sections = {name: _require_mapping(data.get(name), name) for name in _SECTIONS}

        for route_name, spec in sections["routes"].items():
            if not isinstance(spec, Mapping):
                msg = f"Route {route_name!r} must be a mapping with keys {', '.join(_ROUTE_KEYS)}."
                raise ConfigurationError(msg)
            missing = [key for key in _ROUTE_KEYS if not isinstance(spec.get(key), str)]
            if missing:
                msg = f"Route {route_name!r} is missing string value(s) for: {', '.join(missing)}."
                raise ConfigurationError(msg)

        for sub in ("invokables", "factories"):
            _require_mapping(sections["service_manager"].get(sub), f"service_manager.{sub}")
        for section in ("controller_plugins", "view_helpers"):
            _require_mapping(sections[section].get("invokables"), f"{section}.invokables")

        view_manager = sections["view_manager"]
        environ = os.environ if environ is None else environ
        for env_key, vm_key in _VIEW_ENV_OVERRIDES.items():
            value = environ.get(env_key)
            if value:
                view_manager[vm_key] = value
        _require_mapping(view_manager.get("template_map"), "view_manager.template_map")

        extra = {k: v for k, v in data.items() if k not in _SECTIONS}
        return cls(**sections, extra=extra)

    @classmethod
    def from_json(cls, path: str | Path, **kwargs: Any) -> ApplicationConfig:
        """Load configuration from a JSON file."""
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            msg = f"Could not load application configuration from {str(path)!r}: {exc}"
            raise ConfigurationError(msg) from exc
        return cls.from_mapping(data, **kwargs)

    def section(self, name: str) -> Mapping[str, Any]:
        """Return any configuration section by name (empty if absent)."""
        if name in _SECTIONS:
            return getattr(self, name)
        value = self.extra.get(name)
        return value if isinstance(value, Mapping) else {}

    def get(self, name: str, default: Any = None) -> Any:
        """Dict-style access to a section, for factories that validate config."""
        if name in _SECTIONS:
            return getattr(self, name)
        return self.extra.get(name, default)

    def __contains__(self, name: object) -> bool:
        if name in _SECTIONS:
            return bool(getattr(self, name))  # type: ignore[arg-type]
        return name in self.extra

    def with_routes(self, routes: Mapping[str, Mapping[str, str]]) -> ApplicationConfig:
        """Return a copy with additional routes appended in order."""
        return replace(self, routes={**self.routes, **routes})
