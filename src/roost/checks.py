"""Startup checks — configuration problems reported before serving.

``Application.check()`` and ``roost check`` run these after freezing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from roost.errors import RoostError, TemplateResolutionError

if TYPE_CHECKING:
    from roost.app import Application


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True, slots=True)
class CheckIssue:
    severity: Severity
    category: str
    message: str
    route: str | None = None


@dataclass(slots=True)
class CheckResult:
    issues: list[CheckIssue] = field(default_factory=list)
    routes_checked: int = 0

    @property
    def errors(self) -> list[CheckIssue]:
        return [i for i in self.issues if i.severity is Severity.ERROR]

    @property
    def warnings(self) -> list[CheckIssue]:
        return [i for i in self.issues if i.severity is Severity.WARNING]

    @property
    def ok(self) -> bool:
        return not self.errors

    def summary(self) -> str:
        errors, warnings = len(self.errors), len(self.warnings)
        status = "ok" if self.ok else "failed"
        return f"{self.routes_checked} routes checked: {errors} error(s), {warnings} warning(s) [{status}]"


def check_application(app: Application) -> CheckResult:
    """Freeze *app* and collect every problem found.

    A freeze failure is reported as a single error; the remaining checks
    need a frozen application and are skipped.
    """
    result = CheckResult()
    try:
        app.freeze()
    except RoostError as exc:
        result.issues.append(CheckIssue(Severity.ERROR, "config", str(exc)))
        return result

    result.routes_checked = len(app.container.get("RouteTable"))

    view_manager = app.container.get("ViewManager")
    for status in (404, 500):
        try:
            view_manager.resolve_error_template(status)
        except TemplateResolutionError as exc:
            result.issues.append(CheckIssue(Severity.WARNING, "template", str(exc)))

    plugins = app.container.get("PluginManager")
    if plugins.conflicts:
        result.issues.append(
            CheckIssue(
                Severity.WARNING,
                "plugins",
                f"Controller plugins shadowed by framework plugins: {', '.join(plugins.conflicts)}",
            )
        )

    if not app.settings.secret_key:
        result.issues.append(
            CheckIssue(
                Severity.WARNING,
                "session",
                "AppConfig.secret_key is empty; sessions are disabled and session data is not persisted.",
            )
        )
    return result


def format_check_result(result: CheckResult) -> str:
    lines = []
    for issue in result.issues:
        marker = "x" if issue.severity is Severity.ERROR else "!"
        where = f" [{issue.route}]" if issue.route else ""
        lines.append(f"  {marker} {issue.category}{where}: {issue.message}")
    lines.append(result.summary())
    return "\n".join(lines) + "\n"
