"""Trellis — routes, controllers and layout-aware views over ASGI.

Basic usage::

    from trellis import App, AppConfig

    app = App(AppConfig.from_env(layout="layout.html"))

    def home(request, response, args):
        return app.renderer.render_to(response, "home.html", {"title": "Homepage"})

    app.get("/", home)
    app.run()
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "ErrorMiddleware",
    "HTTPError",
    "HandlerError",
    "Method",
    "Middleware",
    "Next",
    "NoMatch",
    "NotFound",
    "RenderError",
    "RenderRequest",
    "Request",
    "Response",
    "RouteGroup",
    "Router",
    "TemplateNotFound",
    "TrellisError",
    "ViewRenderer",
    "escape",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import trellis`` fast while providing a clean top-level API.
    """
    if name == "App":
        from trellis.app import App

        return App

    if name == "AppConfig":
        from trellis.config import AppConfig

        return AppConfig

    if name == "Request":
        from trellis.http.request import Request

        return Request

    if name == "Response":
        from trellis.http.response import Response

        return Response

    if name in ("Method", "NoMatch", "RouteGroup", "Router"):
        from trellis import routing as _routing

        return getattr(_routing, name)

    if name in ("RenderRequest", "ViewRenderer"):
        from trellis.templating import renderer as _renderer

        return getattr(_renderer, name)

    if name == "escape":
        from trellis.templating.integration import escape

        return escape

    if name in ("ErrorMiddleware", "Middleware", "Next"):
        from trellis import middleware as _mw

        return getattr(_mw, name)

    if name in (
        "ConfigurationError",
        "HTTPError",
        "HandlerError",
        "NotFound",
        "RenderError",
        "TemplateNotFound",
        "TrellisError",
    ):
        from trellis import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
