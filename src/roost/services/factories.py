"""Factories for the framework services.

These are registered by ``ServiceContainer`` itself and cannot be
redeclared by applications.
"""

from roost.mvc.plugins.manager import PluginManager
from roost.routing.router import RouteTable
from roost.services.container import ScopedContainer, ServiceContainer, ServiceFactory
from roost.templating.integration import create_environment
from roost.view.helpers.manager import ViewHelperManager
from roost.view.manager import ViewManager


class PluginManagerFactory(ServiceFactory):
    def create_service(self, container: ServiceContainer | ScopedContainer) -> PluginManager:
        return PluginManager(container.config.controller_plugins.get("invokables"))


class ViewHelperManagerFactory(ServiceFactory):
    def create_service(self, container: ServiceContainer | ScopedContainer) -> ViewHelperManager:
        return ViewHelperManager(container.config.view_helpers.get("invokables"))


class ViewManagerFactory(ServiceFactory):
    def create_service(self, container: ServiceContainer | ScopedContainer) -> ViewManager:
        view_config = container.config.view_manager
        env = create_environment(container.settings, view_config)
        return ViewManager(env, container.settings, view_config)


class RouteTableFactory(ServiceFactory):
    def create_service(self, container: ServiceContainer | ScopedContainer) -> RouteTable:
        return RouteTable.from_config(container.config.routes)
