"""View helpers and their registry."""

from roost.view.helpers.base import AbstractHelper
from roost.view.helpers.manager import FRAMEWORK_HELPERS, HelperProxy, ViewHelperManager

__all__ = ["FRAMEWORK_HELPERS", "AbstractHelper", "HelperProxy", "ViewHelperManager"]
