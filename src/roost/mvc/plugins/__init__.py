"""Controller plugins and their registry."""

from roost.mvc.plugins.base import BasePlugin
from roost.mvc.plugins.manager import FRAMEWORK_PLUGINS, PluginManager

__all__ = ["FRAMEWORK_PLUGINS", "BasePlugin", "PluginManager"]
