"""View layer: view models, the view manager, and template helpers."""

from roost.view.manager import ViewManager
from roost.view.model import ViewModel

__all__ = ["ViewManager", "ViewModel"]
