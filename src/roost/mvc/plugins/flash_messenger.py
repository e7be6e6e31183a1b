"""Flash messages — one-shot notices carried across a redirect.

Messages live in the ``FlashMessenger`` session namespace, one list per
type. Reading a type clears it unless ``clear=False``::

    self.plugin("flash_messenger").add_success_message("Post saved.")
    return self.plugin("redirect").to_route("blogAdminIndex")
"""

from __future__ import annotations

from roost.mvc.plugins.base import BasePlugin
from roost.session.container import SessionContainer

NAMESPACE = "FlashMessenger"

DEFAULT = "default"
SUCCESS = "success"
WARNING = "warning"
ERROR = "error"
INFO = "info"

TYPES = (DEFAULT, SUCCESS, WARNING, ERROR, INFO)


class FlashMessenger(BasePlugin):
    _container: SessionContainer | None = None

    def container(self) -> SessionContainer:
        if self._container is None:
            controller = self.controller
            if controller is None:
                self._container = SessionContainer(NAMESPACE)
            else:
                self._container = SessionContainer(
                    NAMESPACE, controller.session, mirror=controller.session_mirror
                )
        return self._container

    def add_message(self, message: str, type: str = DEFAULT) -> FlashMessenger:
        if type not in TYPES:
            msg = f"Unknown flash message type {type!r} (expected one of {', '.join(TYPES)})"
            raise ValueError(msg)
        container = self.container()
        container.set(type, [*(container.get(type) or []), str(message)])
        return self

    def add_success_message(self, message: str) -> FlashMessenger:
        return self.add_message(message, SUCCESS)

    def add_warning_message(self, message: str) -> FlashMessenger:
        return self.add_message(message, WARNING)

    def add_error_message(self, message: str) -> FlashMessenger:
        return self.add_message(message, ERROR)

    def add_info_message(self, message: str) -> FlashMessenger:
        return self.add_message(message, INFO)

    def has_messages(self, type: str = DEFAULT) -> bool:
        return bool(self.container().get(type))

    def peek(self, type: str = DEFAULT) -> list[str]:
        return list(self.container().get(type) or [])

    def get_messages(self, type: str = DEFAULT, *, clear: bool = True) -> list[str]:
        messages = self.peek(type)
        if clear and messages:
            self.container().remove(type)
        return messages

    def clear_messages(self, type: str | None = None) -> None:
        if type is None:
            self.container().clear()
        else:
            self.container().remove(type)

    def get_all_messages(self, *, clear: bool = True) -> dict[str, list[str]]:
        """Messages grouped for templates; ``default`` messages are reported as ``info``."""
        return {
            "errors": self.get_messages(ERROR, clear=clear),
            "success": self.get_messages(SUCCESS, clear=clear),
            "warnings": self.get_messages(WARNING, clear=clear),
            "info": self.get_messages(DEFAULT, clear=clear) + self.get_messages(INFO, clear=clear),
        }
