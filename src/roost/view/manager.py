"""View manager — template lookup, rendering, and error pages.

Error templates are resolved in layers:

1. the configured key (``view_manager.not_found_template`` for 404,
   ``view_manager.exception_template`` for 500), mapped through
   ``view_manager.template_map`` when the key has an entry there;
2. the conventional ``error/<status>.html``;
3. each candidate must exist in a template directory.

When nothing exists the page degrades to a minimal inline body. Error
rendering never raises.
"""

import html
import logging
import traceback
from collections.abc import Mapping
from typing import Any

from kida import Environment
from kida.environment.exceptions import TemplateNotFoundError

from roost.config import AppConfig
from roost.errors import TemplateResolutionError
from roost.templating.integration import render_template, template_dirs
from roost.view.model import ViewModel

logger = logging.getLogger("roost.view")

TEMPLATE_SUFFIX = ".html"

_ERROR_KEYS = {404: ("not_found_template", "error/404"), 500: ("exception_template", "error/500")}

ERROR_TITLES = {404: "Page Not Found", 500: "Server Error"}
ERROR_MESSAGES = {
    404: "The page you requested could not be found.",
    500: "Sorry, there was an internal server error. Please try again later.",
}


def with_suffix(name: str) -> str:
    """Add the template suffix to a bare template key (``error/404`` → ``error/404.html``)."""
    tail = name.rsplit("/", 1)[-1]
    return name if "." in tail else f"{name}{TEMPLATE_SUFFIX}"


def format_exception(error: BaseException) -> str:
    return "".join(traceback.format_exception(type(error), error, error.__traceback__))


def inline_error_body(
    status: int,
    message: str | None = None,
    *,
    note: str | None = None,
    details: str | None = None,
) -> str:
    """Minimal HTML for when no error template can be rendered."""
    title = ERROR_TITLES.get(status, "Error")
    message = message or ERROR_MESSAGES.get(status, "An error occurred.")
    parts = [
        "<!DOCTYPE html>",
        f"<html><head><title>{status} - {html.escape(title)}</title></head><body>",
        f"<h1>{status} - {html.escape(title)}</h1>",
        f"<p>{html.escape(message)}</p>",
    ]
    if note:
        parts.append(f"<hr><p><strong>Developer Note:</strong> {html.escape(note)}</p>")
    if details:
        parts.append(f"<pre>{html.escape(details)}</pre>")
    parts.append("</body></html>")
    return "\n".join(parts)


class ViewManager:
    """Resolves and renders templates for the dispatcher.

    Built once per application by ``ViewManagerFactory``; shared by all
    requests.
    """

    __slots__ = ("config", "env", "settings")

    def __init__(
        self,
        env: Environment,
        settings: AppConfig | None = None,
        config: Mapping[str, Any] | None = None,
    ) -> None:
        self.env = env
        self.settings = settings or AppConfig()
        self.config: Mapping[str, Any] = config or {}

    @property
    def show_exceptions(self) -> bool:
        """``view_manager.display_exceptions`` when set, else the environment default."""
        configured = self.config.get("display_exceptions")
        if configured is not None:
            return bool(configured)
        return self.settings.show_exceptions

    @property
    def template_map(self) -> Mapping[str, str]:
        return self.config.get("template_map") or {}

    # -- Lookup --

    def resolve_template_name(self, name: str) -> str:
        """Map a template key through ``template_map`` and add the suffix."""
        return with_suffix(self.template_map.get(name, name))

    def template_exists(self, name: str) -> bool:
        try:
            self.env.get_template(name)
        except TemplateNotFoundError:
            return False
        return True

    def resolve_error_template(self, status: int) -> str:
        """Return the template name to render for an error *status*.

        Raises:
            TemplateResolutionError: If neither the configured nor the
                conventional template exists.
        """
        config_key, default_key = _ERROR_KEYS.get(status, (None, f"error/{status}"))
        key = (self.config.get(config_key) if config_key else None) or default_key

        candidates = [self.resolve_template_name(key)]
        conventional = with_suffix(f"error/{status}")
        if conventional not in candidates:
            candidates.append(conventional)

        for candidate in candidates:
            if self.template_exists(candidate):
                return candidate

        searched = ", ".join(str(d) for d in template_dirs(self.settings, self.config))
        msg = (
            f"Error {status} template not found (tried {', '.join(candidates)} in {searched}). "
            f"Create {conventional} in a template directory, map {key!r} in "
            "view_manager.template_map, or set "
            f"{'VIEW_NOT_FOUND_TEMPLATE' if status == 404 else 'VIEW_EXCEPTION_TEMPLATE'}."
        )
        raise TemplateResolutionError(msg)

    # -- Error view models --

    def create_error_view_model(
        self,
        status: int,
        message: str | None = None,
        error: BaseException | None = None,
    ) -> ViewModel:
        """Build the view model for an error page.

        ``error_details`` carries the traceback only when exceptions are
        exposed; otherwise it is ``None``. The template is ``None`` when no
        error template exists, which ``render`` turns into the inline body.
        """
        details = format_exception(error) if error is not None and self.show_exceptions else None
        try:
            template: str | None = self.resolve_error_template(status)
        except TemplateResolutionError as exc:
            logger.warning("%s", exc)
            template = None
        return ViewModel(
            {
                "page_title": ERROR_TITLES.get(status, "Error"),
                "error_code": status,
                "error_message": message or ERROR_MESSAGES.get(status, "An error occurred."),
                "error_details": details,
            },
            template,
            status=status,
        )

    # -- Rendering --

    def render(self, view: ViewModel, extra: Mapping[str, Any] | None = None) -> str:
        """Render *view* with its variables (and *extra* context such as helpers).

        A view without a template renders the inline error body for its
        status, so an error page is always produced.
        """
        if view.template is None:
            status = view.resolved_status or 500
            return inline_error_body(
                status,
                view.get_variable("error_message"),
                details=view.get_variable("error_details"),
            )
        context = {**(extra or {}), **view.variables}
        return render_template(self.env, self.resolve_template_name(view.template), context)

    def render_error(
        self,
        status: int,
        message: str | None = None,
        error: BaseException | None = None,
        extra: Mapping[str, Any] | None = None,
    ) -> str:
        """Render an error page; falls back to inline HTML instead of raising."""
        view = self.create_error_view_model(status, message, error)
        try:
            return self.render(view, extra)
        except Exception as exc:
            logger.exception("Error template for %d failed to render", status)
            note = str(exc) if self.show_exceptions else None
            return inline_error_body(
                status,
                view.get_variable("error_message"),
                note=note,
                details=view.get_variable("error_details"),
            )
