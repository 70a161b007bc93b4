"""Trellis application class.

The explicit application context: routes, middleware, error handlers and
the view renderer hang off one ``App`` object that registration code and
controllers receive as an argument.

Mutable during setup. Frozen at runtime when ``app.run()`` or
``__call__()`` is first invoked.
"""

import logging
import threading
from collections.abc import Callable
from typing import Any

from trellis._internal.asgi import Receive, Scope, Send
from trellis._internal.invoke import invoke
from trellis._internal.types import ErrorHandler, Handler
from trellis.config import AppConfig
from trellis.middleware.errors import ErrorMiddleware
from trellis.middleware.protocol import Middleware
from trellis.routing.route import Method, Route
from trellis.routing.router import RouteRegistrar, Router
from trellis.server.handler import handle_request
from trellis.templating.renderer import ViewRenderer

logger = logging.getLogger("trellis.app")


class App(RouteRegistrar):
    """The trellis application.

    Usage::

        app = App(AppConfig.from_env())
        controller = MainController(app)
        app.get("/", controller.home)
        app.run()

    Handlers are called as ``handler(request, response, path_args)`` and
    return the response.

    Thread safety:
        Setup is single-threaded. The freeze transition uses a Lock +
        double-check so exactly one thread compiles the app, even when
        several ASGI workers call ``__call__()`` on their first request.
    """

    __slots__ = (
        "_error_handlers",
        "_error_middleware",
        "_freeze_lock",
        "_frozen",
        "_middleware",
        "_middleware_list",
        "_renderer",
        "_router",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
    )

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config: AppConfig = config or AppConfig()
        self._router = Router()
        self._middleware_list: list[Middleware] = []
        self._error_handlers: dict[int | type, ErrorHandler] = {}
        self._error_middleware: ErrorMiddleware | None = None
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._renderer = ViewRenderer(
            self.config.template_dir,
            layout=self.config.layout,
            cache=not self.config.debug,
        )
        self._frozen = False
        self._freeze_lock = threading.Lock()

        # Compiled state, set during _freeze()
        self._middleware: tuple[Callable[..., Any], ...] = ()

    # -- Route registration --

    def register(
        self,
        method: Method | str,
        pattern: str,
        handler: Handler,
        *,
        name: str | None = None,
    ) -> Route:
        """Register *handler* for *method* requests matching *pattern*.

        Routes are tried in registration order; the first match wins.
        """
        self._check_not_frozen()
        return self._router.register(method, pattern, handler, name=name)

    @property
    def router(self) -> Router:
        return self._router

    def url_for(self, name: str, /, **args: Any) -> str:
        """Build the path of the route registered as *name*."""
        return self._router.url_for(name, **args)

    # -- Views --

    @property
    def renderer(self) -> ViewRenderer:
        """The view renderer, rooted at ``config.template_dir``."""
        return self._renderer

    def template_global(
        self,
        name: str | None = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register a template global via decorator."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self._check_not_frozen()
            self._renderer.add_global(name or func.__name__, func)
            return func

        return decorator

    def template_filter(
        self,
        name: str | None = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register a template filter via decorator."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self._check_not_frozen()
            self._renderer.add_filter(name or func.__name__, func)
            return func

        return decorator

    # -- Error handling --

    def error(
        self,
        code_or_exception: int | type[Exception],
    ) -> Callable[[ErrorHandler], ErrorHandler]:
        """Register an error handler via decorator."""

        def decorator(func: ErrorHandler) -> ErrorHandler:
            self._check_not_frozen()
            self._error_handlers[code_or_exception] = func
            return func

        return decorator

    def add_error_middleware(
        self,
        *,
        display_details: bool | None = None,
        log_errors: bool = True,
        log_error_details: bool = True,
    ) -> ErrorMiddleware:
        """Configure the outermost error middleware.

        *display_details* defaults to ``config.debug``. Without this call
        the app installs one with the defaults when it freezes.
        """
        self._check_not_frozen()
        self._error_middleware = ErrorMiddleware(
            display_details=self.config.debug if display_details is None else display_details,
            log_errors=log_errors,
            log_error_details=log_error_details,
            handlers=self._error_handlers,
        )
        return self._error_middleware

    # -- Middleware --

    def add_middleware(self, middleware: Middleware) -> None:
        """Add a middleware to the pipeline, inside the error middleware."""
        self._check_not_frozen()
        self._middleware_list.append(middleware)

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator.

        Hooks run once, in registration order, before the server begins
        accepting HTTP requests. One-time initialization (sessions,
        connections) belongs here rather than in module import side effects.
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    async def startup(self) -> None:
        """Freeze the app and run startup hooks."""
        self._ensure_frozen()
        for hook in self._startup_hooks:
            await invoke(hook)

    async def shutdown(self) -> None:
        for hook in self._shutdown_hooks:
            await invoke(hook)

    # -- Server --

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Start the server.

        Debug mode runs a single auto-reloading worker; otherwise
        ``config.workers`` workers.
        """
        self._ensure_frozen()

        from trellis.server.serve import run_server

        run_server(
            self,
            host or self.config.host,
            port or self.config.port,
            reload=self.config.debug,
            workers=self.config.workers,
            log_level=self.config.log_level,
        )

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        self._ensure_frozen()

        await handle_request(
            scope,
            receive,
            send,
            router=self._router,
            middleware=self._middleware,
        )

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol."""
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    await self.startup()
                except Exception as exc:
                    logger.exception("Startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await self.shutdown()
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock.
        """
        self._router.compile()

        error_middleware = self._error_middleware or ErrorMiddleware(
            display_details=self.config.debug,
            handlers=self._error_handlers,
        )
        self._middleware = (error_middleware, *self._middleware_list)
        self._frozen = True

        logger.debug(
            "App frozen: %d route(s), %d middleware", len(self._router), len(self._middleware)
        )

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register routes, middleware, and handlers before calling app.run()."
            )
            raise RuntimeError(msg)
