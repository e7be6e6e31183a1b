"""Kida environment setup.

Creates a kida Environment from ``AppConfig`` and the ``view_manager``
configuration section. The environment is created once, when the view
manager is first built, and shared by every request.
"""

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from kida import ChoiceLoader, Environment, FileSystemLoader

from roost.config import AppConfig


def template_dirs(settings: AppConfig, view_config: Mapping[str, Any]) -> list[Path]:
    """Template roots in lookup order.

    ``template_dir`` first, then ``component_dirs``, then the
    ``view_manager.template_path_stack`` entries.
    """
    dirs = [Path(settings.template_dir)]
    dirs.extend(Path(d) for d in settings.component_dirs)
    dirs.extend(Path(d) for d in view_config.get("template_path_stack") or ())
    return list(dict.fromkeys(dirs))


def create_environment(
    settings: AppConfig,
    view_config: Mapping[str, Any] | None = None,
    globals_: Mapping[str, Any] | None = None,
    filters: Mapping[str, Callable[..., Any]] | None = None,
) -> Environment:
    """Create a kida Environment for the application's templates."""
    view_config = view_config or {}
    loader = ChoiceLoader(
        [FileSystemLoader(str(d)) for d in template_dirs(settings, view_config)]
    )
    env = Environment(
        loader=loader,
        autoescape=settings.autoescape,
        auto_reload=settings.debug,
        trim_blocks=settings.trim_blocks,
        lstrip_blocks=settings.lstrip_blocks,
    )
    if filters:
        env.update_filters(dict(filters))
    for name, value in (globals_ or {}).items():
        env.add_global(name, value)
    return env


def render_template(env: Environment, name: str, context: Mapping[str, Any]) -> str:
    """Render a full template to string."""
    return env.get_template(name).render(dict(context))
