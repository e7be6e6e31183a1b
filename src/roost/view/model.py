"""ViewModel — what a controller action hands back for rendering."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

STATUS_VARIABLE = "_status"


class ViewModel:
    """A template name, the variables to render it with, and an optional status.

    Variables accumulate across the lifecycle: the dispatcher adds request
    metadata, hooks and the action add their own::

        view = self.get_view()
        view.set_variable("posts", posts).set_status(200)
        return view
    """

    __slots__ = ("_variables", "status", "template")

    def __init__(
        self,
        variables: Mapping[str, Any] | None = None,
        template: str | None = None,
        *,
        status: int | None = None,
    ) -> None:
        self._variables: dict[str, Any] = dict(variables or {})
        self.template = template
        self.status: int | None = None
        if status is not None:
            self.set_status(status)

    def set_template(self, template: str) -> ViewModel:
        self.template = template
        return self

    def get_template(self) -> str | None:
        return self.template

    def set_variable(self, name: str, value: Any) -> ViewModel:
        self._variables[name] = value
        return self

    def set_variables(self, variables: Mapping[str, Any]) -> ViewModel:
        self._variables.update(variables)
        return self

    def get_variable(self, name: str, default: Any = None) -> Any:
        return self._variables.get(name, default)

    def has_variable(self, name: str) -> bool:
        return name in self._variables

    @property
    def variables(self) -> dict[str, Any]:
        """A copy of the accumulated variables."""
        return dict(self._variables)

    def set_status(self, status: int) -> ViewModel:
        if not isinstance(status, int) or not 100 <= status <= 599:
            msg = f"Invalid HTTP status code: {status!r}"
            raise ValueError(msg)
        self.status = status
        return self

    @property
    def resolved_status(self) -> int | None:
        """The explicit status, or a ``_status`` variable set by older templates' code."""
        if self.status is not None:
            return self.status
        value = self._variables.get(STATUS_VARIABLE)
        return value if isinstance(value, int) else None

    def __repr__(self) -> str:
        return f"ViewModel(template={self.template!r}, variables={sorted(self._variables)!r})"
