"""``form_csrf`` — per-session CSRF token for forms.

The token lives in the ``security`` session namespace and is created on
first use::

    <form method="post">
        {{ helpers.form_csrf() }}
    </form>

Controllers validate the posted value with ``FormCsrf.validate``.
"""

import hmac
import secrets
from collections.abc import Mapping
from typing import Any

from kida.template import Markup

from roost.session.container import SessionContainer
from roost.view.helpers.base import AbstractHelper

NAMESPACE = "security"
TOKEN_KEY = "csrf_token"
FIELD_NAME = "csrf"


class FormCsrf(AbstractHelper):
    def __init__(self, options: Mapping[str, Any] | None = None) -> None:
        super().__init__(options)
        self.field_name: str = str(self.options.get("field_name", FIELD_NAME))
        self._container: SessionContainer | None = None

    def container(self) -> SessionContainer:
        if self._container is None:
            controller = self.require_controller()
            self._container = SessionContainer(
                NAMESPACE, controller.session, mirror=controller.session_mirror
            )
        return self._container

    def token(self) -> str:
        """Return the session's token, creating it on first use."""
        container = self.container()
        token = container.get(TOKEN_KEY)
        if not token:
            token = secrets.token_urlsafe(32)
            container.set(TOKEN_KEY, token)
        return token

    def validate(self, value: str | None) -> bool:
        expected = self.container().get(TOKEN_KEY)
        if not expected or not value:
            return False
        return hmac.compare_digest(str(expected), str(value))

    def render(self) -> Markup:
        return Markup(f'<input type="hidden" name="{self.field_name}" value="{self.token()}">')
