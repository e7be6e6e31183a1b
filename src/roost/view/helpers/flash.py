"""``flash_messages`` — read queued flash messages from templates.

Templates::

    {% for message in helpers.flash_messages()["success"] %}
        <div class="alert-success">{{ message }}</div>
    {% end %}
"""

from roost.view.helpers.base import AbstractHelper


class FlashMessages(AbstractHelper):
    def render(self, clear: bool = True) -> dict[str, list[str]]:
        plugin = self.require_controller().plugin("flash_messenger")
        if plugin is None:
            return {"errors": [], "success": [], "warnings": [], "info": []}
        return plugin.get_all_messages(clear=clear)
