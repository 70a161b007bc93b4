"""Middleware — Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(request: Request, next: Next) -> Response

Built-in middleware:
    ErrorMiddleware -- Maps exceptions to 404/500 responses, optionally with details
"""

from trellis.middleware.errors import ErrorMiddleware
from trellis.middleware.protocol import Middleware, Next

__all__ = [
    "ErrorMiddleware",
    "Middleware",
    "Next",
]
