"""Shared type aliases used across trellis modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Route handler, called as handler(request, response, path_args)
Handler: TypeAlias = Callable[..., Any]

# Error handler: receives (request, error?) and returns a Response
ErrorHandler: TypeAlias = Callable[..., Any]
