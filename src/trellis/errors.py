"""Trellis exception hierarchy.

Shared across Router, ViewRenderer, dispatch, and middleware so every
module raises and catches the same types.
"""

from dataclasses import dataclass


class TrellisError(Exception):
    """Base for all trellis-specific errors."""


class ConfigurationError(TrellisError):
    """Raised when app configuration or a route pattern is invalid.

    Typically raised at startup, while routes are being registered.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(TrellisError):
    """An error that maps directly to an HTTP status code.

    Raised by routing, middleware, or handlers. The error middleware
    catches these and dispatches to the matching ``@app.error()`` handler.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404: no registered route matches the request.

    ``method`` and ``path`` hold the attempted request line when the
    error comes from the router.
    """

    def __init__(self, detail: str = "Not Found", *, method: str = "", path: str = "") -> None:
        super().__init__(status=404, detail=detail)
        object.__setattr__(self, "method", method)
        object.__setattr__(self, "path", path)


class TemplateNotFound(TrellisError):  # noqa: N818
    """The renderer could not locate a template inside its base directory."""

    def __init__(self, name: str, detail: str = "") -> None:
        self.name = name
        super().__init__(detail or f"Template {name!r} not found")


class RenderError(TrellisError):
    """A template raised while it was being executed."""

    def __init__(self, name: str, detail: str) -> None:
        self.name = name
        super().__init__(f"Error rendering {name!r}: {detail}")


class HandlerError(TrellisError):
    """An uncaught failure inside a route handler.

    The original exception is available as ``__cause__``.
    """

    def __init__(self, handler_name: str, detail: str) -> None:
        self.handler_name = handler_name
        super().__init__(f"Handler {handler_name} failed: {detail}")
