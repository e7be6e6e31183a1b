"""Routing — ordered route table with named and optional segments.

Routes are loaded from configuration and compiled into an immutable
table when the application freezes.
"""

from roost.routing.route import RouteEntry, RouteMatch
from roost.routing.router import RouteTable

__all__ = ["RouteEntry", "RouteMatch", "RouteTable"]
