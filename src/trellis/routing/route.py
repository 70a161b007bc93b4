"""Route, RouteMatch and NoMatch frozen dataclasses."""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class Method(StrEnum):
    """HTTP methods a route can be registered for.

    ``ANY`` is the wildcard: the route answers every method.
    """

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    OPTIONS = "OPTIONS"
    ANY = "ANY"

    @classmethod
    def parse(cls, value: str) -> Method:
        """Look up a method by name, case-insensitively.

        Raises ``ValueError`` for names outside the supported set.
        """
        return cls(value.upper())


@dataclass(frozen=True, slots=True)
class PatternPart:
    """One required or optional piece of a compiled pattern.

    ``template`` is the literal text with ``{name}`` placeholders left in,
    used to build URLs back from a route.
    """

    template: str
    params: tuple[str, ...]
    optional: bool


@dataclass(frozen=True, slots=True)
class Route:
    """A registered (method, pattern, handler) triple.

    Created once during setup and never mutated.
    """

    method: Method
    pattern: str
    handler: Callable[..., Any]
    regex: re.Pattern[str]
    parts: tuple[PatternPart, ...]
    name: str | None = None

    def accepts(self, method: str) -> bool:
        """Whether this route answers requests made with *method*."""
        if self.method is Method.ANY or self.method == method:
            return True
        return method == "HEAD" and self.method is Method.GET

    @property
    def param_names(self) -> tuple[str, ...]:
        return tuple(name for part in self.parts for name in part.params)


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route resolution."""

    route: Route
    path_args: Mapping[str, str]

    @property
    def handler(self) -> Callable[..., Any]:
        return self.route.handler


@dataclass(frozen=True, slots=True)
class NoMatch:
    """Result of a failed route resolution: the attempted request line."""

    method: str
    path: str

    def __bool__(self) -> bool:
        return False
