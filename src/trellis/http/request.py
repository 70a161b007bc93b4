"""Incoming HTTP request.

Everything known when the request arrives (request line, headers, query,
peer addresses) is frozen. The body is read lazily from the ASGI
``receive`` channel, at most once.
"""

from __future__ import annotations

import json as json_module
from collections.abc import AsyncGenerator, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from trellis._internal.asgi import Receive, Scope
from trellis.http.headers import Headers
from trellis.http.query import QueryParams


@dataclass(frozen=True, slots=True)
class Request:
    """A received HTTP request.

    ``path_args`` is empty until the router matches the request; the
    handler gets a copy with the captured placeholder values filled in.
    """

    method: str
    path: str
    headers: Headers
    query: QueryParams
    path_args: Mapping[str, str]
    http_version: str
    server: tuple[str, int] | None
    client: tuple[str, int] | None

    _receive: Receive
    # Shared between copies made by with_path_args()
    _state: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_asgi(cls, scope: Scope, receive: Receive) -> Request:
        """Build a Request from an ASGI ``http`` scope."""
        server = scope.get("server")
        client = scope.get("client")
        return cls(
            method=scope["method"].upper(),
            path=scope["path"],
            headers=Headers(tuple(scope.get("headers") or ())),
            query=QueryParams(scope.get("query_string", b"")),
            path_args={},
            http_version=scope.get("http_version", "1.1"),
            server=(server[0], server[1]) if server else None,
            client=(client[0], client[1]) if client else None,
            _receive=receive,
        )

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def url(self) -> str:
        """Path with the query string appended, if there is one."""
        if not self.query.raw:
            return self.path
        return f"{self.path}?{self.query.raw.decode('latin-1')}"

    def with_path_args(self, path_args: Mapping[str, str]) -> Request:
        return replace(self, path_args=dict(path_args))

    # -- Body --

    async def stream(self) -> AsyncGenerator[bytes, None]:
        """Yield body chunks as they arrive on the receive channel."""
        more_body = True
        while more_body:
            message = await self._receive()
            chunk = message.get("body", b"")
            if chunk:
                yield chunk
            more_body = message.get("more_body", False)

    async def body(self) -> bytes:
        """The whole body. Later calls return the bytes read the first time."""
        if "body" not in self._state:
            self._state["body"] = b"".join([chunk async for chunk in self.stream()])
        return self._state["body"]

    async def text(self) -> str:
        return (await self.body()).decode("utf-8")

    async def json(self) -> Any:
        return json_module.loads(await self.body())
