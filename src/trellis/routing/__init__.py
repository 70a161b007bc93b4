"""Routing — ordered route table with first-match-wins resolution.

Routes are registered during setup and the table is frozen when the
app starts serving.
"""

from trellis.routing.route import Method, NoMatch, Route, RouteMatch
from trellis.routing.router import RouteGroup, Router

__all__ = [
    "Method",
    "NoMatch",
    "Route",
    "RouteGroup",
    "RouteMatch",
    "Router",
]
