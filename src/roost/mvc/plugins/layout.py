"""Layout plugin — the view script and the layout it extends."""

from __future__ import annotations

from roost.mvc.plugins.base import BasePlugin

LAYOUT_VARIABLE = "layout"


class Layout(BasePlugin):
    """Templates extend ``{{ layout }}``; actions switch it::

        self.plugin("layout").set_layout("layout/admin.html")
    """

    def set_layout(self, template: str | None) -> Layout:
        self.require_controller().get_view().set_variable(LAYOUT_VARIABLE, template)
        return self

    def get_layout(self) -> str | None:
        return self.require_controller().get_view().get_variable(LAYOUT_VARIABLE)

    def set_template(self, template: str) -> Layout:
        """Render *template* instead of the conventional view script."""
        self.require_controller().get_view().set_template(template)
        return self

    def get_template(self) -> str:
        controller = self.require_controller()
        return controller.get_view().get_template() or controller.get_view_script()
