"""Session plugin — namespaced session containers for the current request."""

from roost.mvc.plugins.base import BasePlugin
from roost.session.container import SessionContainer


class Session(BasePlugin):
    """``self.plugin("session")("Cart").set("items", [...])``"""

    def container(self, namespace: str = "Default") -> SessionContainer:
        controller = self.require_controller()
        return SessionContainer(namespace, controller.session, mirror=controller.session_mirror)

    __call__ = container

    def save(self) -> bool:
        """Force-persist the transport session now."""
        mirror = self.require_controller().session_mirror
        return mirror.save() if mirror is not None else False
