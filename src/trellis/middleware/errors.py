"""Error middleware — the one place failures become HTTP statuses.

Sits outermost in the pipeline. ``HTTPError`` keeps its own status
(``NotFound`` -> 404); everything else, including ``HandlerError`` and
``RenderError``, becomes a 500. Handlers registered with ``@app.error()``
take precedence over the built-in responses.
"""

import inspect
import logging
from collections.abc import Callable, Mapping
from typing import Any

from trellis._internal.invoke import invoke
from trellis.errors import HandlerError, HTTPError
from trellis.http.request import Request
from trellis.http.response import HTML, TEXT, Response
from trellis.middleware.protocol import Next
from trellis.server.debug_page import render_debug_page

logger = logging.getLogger("trellis.server")

GENERIC_MESSAGE = "Internal Server Error"


class ErrorMiddleware:
    """Translate exceptions raised further down the pipeline into responses.

    Args:
        display_details: Include exception type, message and traceback in
            500 responses. Development only.
        log_errors: Log unexpected failures.
        log_error_details: Include the traceback when logging.
        handlers: User error handlers keyed by status code or exception type.

    Usage::

        app.add_error_middleware(display_details=config.debug)
    """

    __slots__ = ("display_details", "handlers", "log_error_details", "log_errors")

    def __init__(
        self,
        *,
        display_details: bool = False,
        log_errors: bool = True,
        log_error_details: bool = True,
        handlers: Mapping[int | type, Callable[..., Any]] | None = None,
    ) -> None:
        self.display_details = display_details
        self.log_errors = log_errors
        self.log_error_details = log_error_details
        # Held by reference: handlers registered later on the app still apply
        self.handlers: Mapping[int | type, Callable[..., Any]] = (
            handlers if handlers is not None else {}
        )

    async def __call__(self, request: Request, next: Next) -> Response:
        try:
            return await next(request)
        except HTTPError as exc:
            return await self.handle_http_error(exc, request)
        except Exception as exc:
            return await self.handle_internal_error(exc, request)

    async def handle_http_error(self, exc: HTTPError, request: Request) -> Response:
        """Map an HTTPError to a Response using registered error handlers."""
        logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)

        handler = (
            self.handlers.get(type(exc)) or self.handlers.get(exc.status) or self._lookup(exc)
        )
        if handler is not None:
            response = await call_error_handler(handler, request, exc)
            # Keep the error's status unless the handler chose its own
            if response.status == 200:
                response.with_status(exc.status)
            return response

        detail = exc.detail or f"Error {exc.status}"
        response = Response(detail, status=exc.status, content_type=TEXT)
        for name, value in exc.headers:
            response.add_header(name, value)
        return response

    async def handle_internal_error(self, exc: Exception, request: Request) -> Response:
        """Handle unexpected exceptions as 500 errors."""
        if self.log_errors:
            if self.log_error_details:
                logger.exception("500 %s %s", request.method, request.path)
            else:
                logger.error(
                    "500 %s %s (%s: %s)", request.method, request.path, type(exc).__name__, exc
                )

        handler = self._lookup(exc)
        if handler is None and isinstance(exc, HandlerError) and exc.__cause__ is not None:
            handler = self._lookup(exc.__cause__)
        handler = handler or self.handlers.get(500)
        if handler is not None:
            response = await call_error_handler(handler, request, exc)
            if response.status == 200:
                response.with_status(500)
            return response

        if self.display_details:
            return Response(render_debug_page(exc, request), status=500, content_type=HTML)
        return Response(GENERIC_MESSAGE, status=500, content_type=TEXT)

    def _lookup(self, exc: BaseException) -> Callable[..., Any] | None:
        """Find a handler registered for the exception's type or a base class."""
        for cls in type(exc).__mro__:
            handler = self.handlers.get(cls)
            if handler is not None:
                return handler
        return None


async def call_error_handler(
    handler: Callable[..., Any],
    request: Request,
    exc: Exception,
) -> Response:
    """Invoke a user-registered error handler with introspected arguments.

    Error handlers may accept zero, one (request), or two (request, exc)
    args and may be sync or async. A returned ``str``/``bytes`` becomes an
    HTML body.
    """
    params = list(inspect.signature(handler).parameters.values())

    if len(params) >= 2:
        result = await invoke(handler, request, exc)
    elif len(params) == 1:
        result = await invoke(handler, request)
    else:
        result = await invoke(handler)

    if isinstance(result, Response):
        return result
    if isinstance(result, (str, bytes)):
        return Response(result, content_type=HTML)
    msg = f"Error handler {handler!r} returned {type(result).__name__}, expected a Response"
    raise TypeError(msg)
