"""ASGI handler — translates ASGI scope/messages to trellis types.

The only component that touches raw ASGI directly. Converts scope dicts
to typed Request objects, dispatches through middleware and routing,
and sends the Response back through ASGI send().
"""

import logging
from collections.abc import Callable
from typing import Any

from trellis._internal.asgi import Receive, Scope, Send
from trellis._internal.invoke import invoke
from trellis.errors import HandlerError, NotFound, TrellisError
from trellis.http.request import Request
from trellis.http.response import TEXT, Response
from trellis.middleware.protocol import Next
from trellis.routing.route import NoMatch, RouteMatch
from trellis.routing.router import Router
from trellis.server.sender import send_response

logger = logging.getLogger("trellis.server")


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    router: Router,
    middleware: tuple[Callable[..., Any], ...],
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)

    # Resolve up front so middleware (and error pages) see the path args
    resolved = router.resolve(request.method, request.path)
    if isinstance(resolved, RouteMatch):
        request = request.with_path_args(resolved.path_args)

    async def dispatch(req: Request) -> Response:
        result = resolved
        if (req.method, req.path) != (request.method, request.path):
            # A middleware rewrote the request line
            result = router.resolve(req.method, req.path)
        if isinstance(result, NoMatch):
            raise NotFound(
                f"No route matches {result.method} {result.path!r}",
                method=result.method,
                path=result.path,
            )
        return await invoke_handler(result, req)

    # Wrap middleware around the dispatch, first registered outermost
    handler: Next = dispatch
    for mw in reversed(middleware):

        async def make_next(req: Request, _mw: Any = mw, _next: Next = handler) -> Response:
            return await _mw(req, _next)

        handler = make_next

    try:
        response = await handler(request)
    except Exception:
        # Only reached when the error middleware itself fails
        logger.exception("Unhandled error while serving %s %s", request.method, request.path)
        response = Response("Internal Server Error", status=500, content_type=TEXT)

    await send_response(response, send, head=request.method == "HEAD")


async def invoke_handler(match: RouteMatch, request: Request) -> Response:
    """Call the matched handler as ``handler(request, response, path_args)``.

    The handler fills in the response it is given and returns it. Returning
    ``None`` counts as returning that same response.
    """
    handler = match.handler
    request = request.with_path_args(match.path_args)
    response = Response()

    try:
        result = await invoke(handler, request, response, dict(match.path_args))
    except TrellisError:
        raise
    except Exception as exc:
        raise HandlerError(_handler_name(handler), f"{type(exc).__name__}: {exc}") from exc

    if result is None:
        return response
    if isinstance(result, Response):
        return result
    raise HandlerError(
        _handler_name(handler),
        f"returned {type(result).__name__}, expected a Response",
    )


def _handler_name(handler: Callable[..., Any]) -> str:
    return getattr(handler, "__qualname__", None) or repr(handler)
