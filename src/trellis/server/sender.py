"""ASGI response sending — translates a trellis Response to ASGI messages."""

from trellis._internal.asgi import Send
from trellis.http.response import HTML, Response


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


async def send_response(response: Response, send: Send, *, head: bool = False) -> None:
    """Translate a Response into ASGI send() calls.

    The body is sent exactly as the handler wrote it. A body without a
    Content-Type is labelled as HTML.
    """
    body = response.body_bytes if _body_allowed(response.status) else b""

    raw_headers = [
        (name, value) for name, value in response.headers.raw() if name != b"content-length"
    ]
    if body and response.content_type is None:
        raw_headers.insert(0, (b"content-type", HTML.encode("latin-1")))
    raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": raw_headers,
        }
    )
    await send(
        {
            "type": "http.response.body",
            "body": b"" if head else body,
        }
    )
