"""Name folding for routes, controllers, and actions.

Route configuration spells names in several ways (``edit-article``,
``editArticle``, ``admin_post``). Everything is folded once, at the point
the dispatcher resolves a controller, into the forms the rest of the
runtime uses:

- ``snake_case`` for Python attribute names (``edit_article_action``)
- ``kebab-case`` for view metadata and template paths (``edit-article``)
- ``camelCase`` for route names (``adminIndexDashboard``)
"""

import re

_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|[-_\s]+")


def words(name: str) -> list[str]:
    """Split *name* on case changes, dashes, underscores, and spaces."""
    return [w.lower() for w in _BOUNDARY.split(name.strip()) if w]


def snake_case(name: str) -> str:
    return "_".join(words(name))


def kebab_case(name: str) -> str:
    return "-".join(words(name))


def camel_case(name: str) -> str:
    parts = words(name)
    if not parts:
        return ""
    return parts[0] + "".join(p.capitalize() for p in parts[1:])


def pascal_case(name: str) -> str:
    return "".join(p.capitalize() for p in words(name))


def action_method(action: str) -> str:
    """Return the controller method name for a route action.

    ``edit-article`` → ``edit_article_action``. A trailing ``Action`` or
    ``-action`` already present on *action* is not doubled.
    """
    base = snake_case(action)
    if base.endswith("_action"):
        base = base[: -len("_action")]
    elif base == "action":
        base = ""
    return f"{base}_action" if base else "index_action"


def action_label(action: str) -> str:
    """Return the kebab form of an action without any ``-action`` suffix."""
    label = kebab_case(action)
    if label.endswith("-action"):
        label = label[: -len("-action")]
    return label


def controller_segments(controller: str, delimiter: str = "_") -> list[str]:
    """Split a controller name into path segments on *delimiter*.

    ``admin_post`` → ``["admin", "post"]``. Each segment is kebab-folded.
    """
    return [kebab_case(s) for s in controller.split(delimiter) if s]


def controller_path(controller: str, delimiter: str = "_") -> str:
    """Return the template/lookup path of a controller (``admin/post``)."""
    return "/".join(controller_segments(controller, delimiter))
