"""Self-contained debug error page.

Rendered with plain f-strings, never through the template engine, so a
broken template still produces a readable error page. Only served when
the error middleware is told to display details.

The page shows:
- Exception type and message, plus the exception it was raised from
- Traceback with source context, app frames highlighted
- Request line, path arguments, query and (masked) headers
"""

import html
import linecache
import os
import sys
import types
from typing import Any

# Headers whose values are masked in debug output
_SENSITIVE_HEADERS = frozenset({
    "authorization",
    "cookie",
    "proxy-authorization",
    "x-api-key",
    "x-auth-token",
})

_CSS = """\
body { font-family: ui-monospace, Menlo, Consolas, monospace; background: #1a1b26;
       color: #a9b1d6; line-height: 1.5; padding: 2rem; font-size: 14px; margin: 0; }
.error-page { max-width: 960px; margin: 0 auto; }
h1 { color: #f7768e; font-size: 1.4rem; margin: 0 0 0.5rem; }
h2 { color: #7aa2f7; font-size: 1.1rem; margin: 1.5rem 0 0.5rem;
     border-bottom: 1px solid #2f3549; padding-bottom: 0.3rem; }
.exc-message { color: #e0af68; white-space: pre-wrap; word-break: break-word; }
.exc-chain { color: #565f89; font-style: italic; margin: 0.5rem 0; }
.frame { margin: 0.5rem 0; border: 1px solid #2f3549; border-radius: 6px; }
.frame.app-frame { border-color: #7aa2f7; }
.frame-header { padding: 0.4rem 0.8rem; background: #24283b; font-size: 0.85rem; }
.frame-header .func { color: #bb9af7; margin-left: 0.5rem; }
.source-line { display: flex; padding: 0 0.8rem; font-size: 0.82rem; }
.source-line .lineno { color: #565f89; min-width: 3.5rem; text-align: right; padding-right: 1rem; }
.source-line .code { white-space: pre; }
.source-line.error-line { background: rgba(247, 118, 142, 0.15); }
.request-line { display: flex; gap: 0.5rem; font-size: 0.85rem; }
.request-line .label { color: #7aa2f7; min-width: 140px; }
"""


def _esc(text: object) -> str:
    return html.escape(str(text), quote=True)


def _is_app_frame(filename: str) -> bool:
    """True if the frame is from the application (not stdlib/site-packages)."""
    if "site-packages" in filename or filename.startswith("<"):
        return False
    return not filename.startswith(os.path.dirname(os.__file__))


def _extract_frames(tb: types.TracebackType | None) -> list[dict[str, Any]]:
    """Walk a traceback and collect each frame with 3 lines of context."""
    frames: list[dict[str, Any]] = []
    while tb is not None:
        frame = tb.tb_frame
        filename = frame.f_code.co_filename
        lineno = tb.tb_lineno
        source = [
            (i, line.rstrip())
            for i in range(max(1, lineno - 3), lineno + 4)
            if (line := linecache.getline(filename, i, frame.f_globals))
        ]
        frames.append({
            "filename": filename,
            "lineno": lineno,
            "func_name": frame.f_code.co_name,
            "source_lines": source,
            "is_app": _is_app_frame(filename),
        })
        tb = tb.tb_next
    return frames


def _render_frame(frame: dict[str, Any]) -> str:
    lines = "".join(
        f'<div class="source-line{" error-line" if n == frame["lineno"] else ""}">'
        f'<span class="lineno">{n}</span><span class="code">{_esc(code)}</span></div>'
        for n, code in frame["source_lines"]
    )
    css_class = "frame app-frame" if frame["is_app"] else "frame"
    return (
        f'<div class="{css_class}"><div class="frame-header">'
        f'{_esc(frame["filename"])}:{frame["lineno"]}'
        f'<span class="func">{_esc(frame["func_name"])}</span></div>'
        f"<div>{lines}</div></div>"
    )


def _request_line(label: str, value: str) -> str:
    return f'<div class="request-line"><span class="label">{_esc(label)}</span><span>{value}</span></div>'


def _render_request_panel(request: Any) -> str:
    rows = [
        _request_line(
            "Request",
            f"{_esc(request.method)} {_esc(request.url)} HTTP/{_esc(request.http_version)}",
        )
    ]
    if request.path_args:
        args = ", ".join(f"{k}={v!r}" for k, v in request.path_args.items())
        rows.append(_request_line("Path Args", _esc(args)))
    if request.client:
        rows.append(_request_line("Client", _esc(f"{request.client[0]}:{request.client[1]}")))
    headers = [
        f"{_esc(name)}: {'••••••••' if name in _SENSITIVE_HEADERS else _esc(value)}"
        for name, value in request.headers.items()
    ]
    if headers:
        rows.append(_request_line("Headers", "<br>".join(headers)))
    return "".join(rows)


def render_debug_page(exc: BaseException, request: Any) -> str:
    """Render a full HTML debug page for *exc* raised while serving *request*."""
    exc_type = type(exc).__name__
    module = type(exc).__module__ or ""
    qualified = f"{module}.{exc_type}" if module and module != "builtins" else exc_type

    sections = [
        f"<h1>{_esc(qualified)}</h1>",
        f'<div class="exc-message">{_esc(exc)}</div>',
    ]

    chain: list[BaseException] = [exc]
    cause = exc.__cause__
    while cause is not None and cause not in chain:
        chain.append(cause)
        sections.append(
            f'<div class="exc-chain">Raised from {_esc(type(cause).__name__)}: {_esc(cause)}</div>'
        )
        cause = cause.__cause__

    sections.append("<h2>Traceback</h2>")
    for error in reversed(chain):
        sections.extend(_render_frame(f) for f in _extract_frames(error.__traceback__))

    sections.append("<h2>Request</h2>")
    sections.append(_render_request_panel(request))
    sections.append("<h2>Environment</h2>")
    sections.append(_request_line("Python", _esc(sys.version)))

    body = "\n".join(sections)
    return (
        "<!DOCTYPE html>"
        '<html lang="en"><head><meta charset="utf-8">'
        f"<title>{_esc(qualified)}: {_esc(str(exc)[:80])}</title>"
        f"<style>{_CSS}</style>"
        f'</head><body><div class="error-page">{body}</div></body></html>'
    )
