"""Ordered router with first-match-wins resolution.

Patterns are parsed into regular expressions when a route is registered,
so malformed patterns fail at startup instead of on the first request.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from typing import Any
from urllib.parse import quote

from trellis.errors import ConfigurationError, NotFound
from trellis.routing.params import CONVERTERS, NAME, PLACEHOLDER
from trellis.routing.route import Method, NoMatch, PatternPart, Route, RouteMatch


def parse_pattern(pattern: str) -> tuple[re.Pattern[str], tuple[PatternPart, ...]]:
    """Compile a route pattern into a regex and its required/optional parts.

    Examples (``SEG`` is the ``str`` converter, one segment without
    control characters)::

        "/users"                -> ^/users\\Z
        "/users/{id}"           -> ^/users/(?P<id>SEG)\\Z
        "/users/{id:int}"       -> ^/users/(?P<id>\\d+)\\Z
        "/search[/{query}]"     -> ^/search(?:/(?P<query>SEG))?\\Z
        "/archive[/{y}[/{m}]]"  -> ^/archive(?:/(?P<y>SEG)(?:/(?P<m>SEG))?)?\\Z

    ``\\Z`` rather than ``$``: a path ending in a newline must not match.

    Raises ``ConfigurationError`` for anything it cannot parse.
    """
    if not pattern.startswith("/"):
        msg = f"Route pattern {pattern!r} must start with '/'."
        raise ConfigurationError(msg)
    if "<" in pattern and ">" in pattern:
        msg = (
            f"Route pattern {pattern!r} uses <param> syntax. "
            "Trellis placeholders are written as {param}."
        )
        raise ConfigurationError(msg)

    stripped = pattern.rstrip("]")
    closing = len(pattern) - len(stripped)
    pieces = stripped.split("[")
    if len(pieces) - 1 != closing or "]" in stripped:
        msg = f"Route pattern {pattern!r}: optional segments must be trailing and balanced."
        raise ConfigurationError(msg)

    seen: set[str] = set()
    parts: list[PatternPart] = []
    fragments: list[str] = []
    for index, piece in enumerate(pieces):
        if index and not piece:
            msg = f"Route pattern {pattern!r} has an empty optional segment."
            raise ConfigurationError(msg)
        fragment, params = _compile_piece(piece, pattern, seen)
        fragments.append(fragment)
        parts.append(PatternPart(template=piece, params=params, optional=index > 0))

    body = fragments[0] + "".join(f"(?:{f}" for f in fragments[1:]) + ")?" * closing
    return re.compile(f"^{body}\\Z"), tuple(parts)


def _compile_piece(piece: str, pattern: str, seen: set[str]) -> tuple[str, tuple[str, ...]]:
    fragment: list[str] = []
    params: list[str] = []
    position = 0
    for placeholder in PLACEHOLDER.finditer(piece):
        fragment.append(_literal(piece[position : placeholder.start()], pattern))
        name, _, param_type = placeholder.group(1).partition(":")
        param_type = param_type or "str"
        if not NAME.match(name):
            msg = f"Route pattern {pattern!r} has an invalid placeholder name {name!r}."
            raise ConfigurationError(msg)
        if name in seen:
            msg = f"Route pattern {pattern!r} uses placeholder {name!r} twice."
            raise ConfigurationError(msg)
        if param_type not in CONVERTERS:
            msg = (
                f"Route pattern {pattern!r} uses unknown converter {param_type!r}. "
                f"Known converters: {', '.join(sorted(CONVERTERS))}."
            )
            raise ConfigurationError(msg)
        seen.add(name)
        params.append(name)
        fragment.append(f"(?P<{name}>{CONVERTERS[param_type]})")
        position = placeholder.end()
    fragment.append(_literal(piece[position:], pattern))
    return "".join(fragment), tuple(params)


def _literal(text: str, pattern: str) -> str:
    if "{" in text or "}" in text:
        msg = f"Route pattern {pattern!r} has unbalanced braces."
        raise ConfigurationError(msg)
    return re.escape(text)


def join_prefix(prefix: str, pattern: str) -> str:
    """Prepend a group *prefix* to *pattern*.

    ``""`` registers the prefix itself; ``"/"`` registers the prefix with a
    trailing slash.
    """
    if not prefix.startswith("/"):
        msg = f"Group prefix {prefix!r} must start with '/'."
        raise ConfigurationError(msg)
    prefix = prefix.rstrip("/")
    if not pattern:
        return prefix or "/"
    if not pattern.startswith(("/", "[")):
        msg = f"Route pattern {pattern!r} must start with '/' or '['."
        raise ConfigurationError(msg)
    return prefix + pattern


class RouteRegistrar:
    """Verb helpers shared by ``Router``, ``RouteGroup`` and ``App``.

    Subclasses provide ``register``; everything else funnels into it.
    """

    __slots__ = ()

    def register(
        self,
        method: Method | str,
        pattern: str,
        handler: Callable[..., Any],
        *,
        name: str | None = None,
    ) -> Route:
        raise NotImplementedError

    def get(self, pattern: str, handler: Callable[..., Any], *, name: str | None = None) -> Route:
        return self.register(Method.GET, pattern, handler, name=name)

    def post(self, pattern: str, handler: Callable[..., Any], *, name: str | None = None) -> Route:
        return self.register(Method.POST, pattern, handler, name=name)

    def put(self, pattern: str, handler: Callable[..., Any], *, name: str | None = None) -> Route:
        return self.register(Method.PUT, pattern, handler, name=name)

    def delete(
        self, pattern: str, handler: Callable[..., Any], *, name: str | None = None
    ) -> Route:
        return self.register(Method.DELETE, pattern, handler, name=name)

    def patch(self, pattern: str, handler: Callable[..., Any], *, name: str | None = None) -> Route:
        return self.register(Method.PATCH, pattern, handler, name=name)

    def options(
        self, pattern: str, handler: Callable[..., Any], *, name: str | None = None
    ) -> Route:
        return self.register(Method.OPTIONS, pattern, handler, name=name)

    def any(self, pattern: str, handler: Callable[..., Any], *, name: str | None = None) -> Route:
        return self.register(Method.ANY, pattern, handler, name=name)

    def map(
        self,
        methods: Iterable[Method | str],
        pattern: str,
        handler: Callable[..., Any],
        *,
        name: str | None = None,
    ) -> list[Route]:
        """Register *handler* for several methods at once.

        The route name, if any, goes on the first registered route.
        """
        routes: list[Route] = []
        for method in methods:
            routes.append(self.register(method, pattern, handler, name=None if routes else name))
        return routes

    def route(
        self,
        pattern: str,
        *,
        methods: Iterable[Method | str] = (Method.GET,),
        name: str | None = None,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register a handler via decorator."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self.map(methods, pattern, func, name=name)
            return func

        return decorator

    def group(self, prefix: str) -> RouteGroup:
        """Return a helper that registers routes under *prefix*."""
        return RouteGroup(self, prefix)


class RouteGroup(RouteRegistrar):
    """Registers routes under a shared path prefix.

    Groups nest, composing their prefixes::

        with router.group("/api") as api:
            with api.group("/v1") as v1:
                v1.get("/users/{id}", show_user)  # -> /api/v1/users/{id}
    """

    __slots__ = ("_target", "prefix")

    def __init__(self, target: RouteRegistrar, prefix: str) -> None:
        join_prefix(prefix, "")
        self._target = target
        self.prefix = prefix.rstrip("/")

    def __enter__(self) -> RouteGroup:
        return self

    def __exit__(self, *args: object) -> None:
        return None

    def register(
        self,
        method: Method | str,
        pattern: str,
        handler: Callable[..., Any],
        *,
        name: str | None = None,
    ) -> Route:
        return self._target.register(
            method, join_prefix(self.prefix or "/", pattern), handler, name=name
        )

    def group(self, prefix: str) -> RouteGroup:
        join_prefix(prefix, "")
        return RouteGroup(self._target, join_prefix(self.prefix or "/", prefix))


class Router(RouteRegistrar):
    """Ordered route table.

    Usage::

        router = Router()
        router.get("/users/{id}", show_user)
        router.get("/search[/{query}]", search)
        match = router.resolve("GET", "/users/42")
        if match:
            match.handler(request, response, match.path_args)
    """

    __slots__ = ("_compiled", "_names", "_routes")

    def __init__(self) -> None:
        self._routes: list[Route] = []
        self._names: dict[str, Route] = {}
        self._compiled = False

    def __len__(self) -> int:
        return len(self._routes)

    def register(
        self,
        method: Method | str,
        pattern: str,
        handler: Callable[..., Any],
        *,
        name: str | None = None,
    ) -> Route:
        """Add a route to the table. Must be called before compile()."""
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)
        if not callable(handler):
            msg = f"Handler for {pattern!r} must be callable, got {type(handler).__name__}."
            raise ConfigurationError(msg)
        try:
            method = Method.parse(method)
        except ValueError:
            msg = f"Unsupported HTTP method {method!r} for route {pattern!r}."
            raise ConfigurationError(msg) from None
        if name is not None and name in self._names:
            msg = f"Route name {name!r} is already registered."
            raise ConfigurationError(msg)

        regex, parts = parse_pattern(pattern)
        route = Route(
            method=method,
            pattern=pattern,
            handler=handler,
            regex=regex,
            parts=parts,
            name=name,
        )
        self._routes.append(route)
        if name is not None:
            self._names[name] = route
        return route

    @property
    def routes(self) -> tuple[Route, ...]:
        """All registered routes in registration order."""
        return tuple(self._routes)

    def compile(self) -> None:
        """Freeze the router. No more routes can be added."""
        self._compiled = True

    def resolve(self, method: str, path: str) -> RouteMatch | NoMatch:
        """Find the first route answering *method* whose pattern matches *path*.

        Never raises: an unmatched request returns ``NoMatch``.
        """
        method = method.upper()
        for route in self._routes:
            if not route.accepts(method):
                continue
            found = route.regex.fullmatch(path)
            if found is not None:
                args = {k: v for k, v in found.groupdict().items() if v is not None}
                return RouteMatch(route=route, path_args=args)
        return NoMatch(method=method, path=path)

    def match(self, method: str, path: str) -> RouteMatch:
        """Like ``resolve`` but raises ``NotFound`` when nothing matches."""
        result = self.resolve(method, path)
        if isinstance(result, NoMatch):
            raise NotFound(
                f"No route matches {result.method} {result.path!r}",
                method=result.method,
                path=result.path,
            )
        return result

    def url_for(self, name: str, /, **args: Any) -> str:
        """Build a path for the route registered as *name*.

        Optional trailing segments are emitted while their arguments are
        given. Raises ``ConfigurationError`` for unknown names, missing
        required arguments, or arguments the route doesn't take.
        """
        route = self._names.get(name)
        if route is None:
            msg = f"No route named {name!r}."
            raise ConfigurationError(msg)
        unknown = set(args) - set(route.param_names)
        if unknown:
            msg = f"Route {name!r} takes no argument(s) {', '.join(sorted(unknown))}."
            raise ConfigurationError(msg)

        def substitute(placeholder: re.Match[str]) -> str:
            param, _, param_type = placeholder.group(1).partition(":")
            return quote(str(args[param]), safe="/" if param_type == "path" else "")

        out: list[str] = []
        for part in route.parts:
            if not all(param in args for param in part.params):
                if part.optional:
                    break
                missing = [p for p in part.params if p not in args]
                msg = f"Route {name!r} requires argument(s) {', '.join(missing)}."
                raise ConfigurationError(msg)
            out.append(PLACEHOLDER.sub(substitute, part.template))
        return "".join(out)
