"""Mutable HTTP response.

Handlers receive an empty ``Response`` alongside the request, write into
it, and return it. Middleware wrapping the handler may adjust status and
headers on the way out. The response is written to the wire once.
"""

from __future__ import annotations

import json as json_module
from typing import Any

from trellis.http.headers import MutableHeaders

HTML = "text/html; charset=utf-8"
JSON = "application/json"
TEXT = "text/plain; charset=utf-8"


class Response:
    """An HTTP response built up by the handler.

    ``write()`` appends to the body; headers are multi-valued::

        response.write("<h1>Hi</h1>")
        response.set_header("Content-Type", HTML)
        return response.with_status(201)
    """

    __slots__ = ("_chunks", "headers", "status")

    def __init__(
        self,
        body: str | bytes = b"",
        *,
        status: int = 200,
        headers: tuple[tuple[str, str], ...] = (),
        content_type: str | None = None,
    ) -> None:
        self.status = status
        self.headers = MutableHeaders(headers)
        self._chunks: list[bytes] = []
        if content_type is not None:
            self.headers.set("Content-Type", content_type)
        if body:
            self.write(body)

    def __repr__(self) -> str:
        return f"<Response {self.status} {self.content_type or '-'} {len(self.body_bytes)} bytes>"

    # -- Status & headers --

    def with_status(self, status: int) -> Response:
        """Set the status code and return this response."""
        self.status = status
        return self

    def add_header(self, name: str, value: str) -> Response:
        self.headers.add(name, value)
        return self

    def set_header(self, name: str, value: str) -> Response:
        self.headers.set(name, value)
        return self

    def remove_header(self, name: str) -> Response:
        self.headers.remove(name)
        return self

    def get_header(self, name: str, default: str | None = None) -> str | None:
        return self.headers.get(name, default)

    def get_headers(self, name: str) -> list[str]:
        return self.headers.get_list(name)

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    # -- Body --

    def write(self, data: str | bytes) -> Response:
        """Append *data* (UTF-8 encoded when ``str``) to the body."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._chunks.append(data)
        return self

    def write_json(self, data: Any, *, status: int | None = None) -> Response:
        """Write *data* as a JSON body and set ``application/json``."""
        self.write(json_module.dumps(data, default=str))
        self.headers.set("Content-Type", JSON)
        if status is not None:
            self.status = status
        return self

    def clear(self) -> Response:
        """Discard everything written to the body so far."""
        self._chunks.clear()
        return self

    @property
    def body_bytes(self) -> bytes:
        """Body as bytes."""
        return b"".join(self._chunks)

    @property
    def text(self) -> str:
        """Body as string."""
        return self.body_bytes.decode("utf-8")

    def json(self) -> Any:
        """Parse the body as JSON."""
        return json_module.loads(self.body_bytes)
