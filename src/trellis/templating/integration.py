"""Kida environment setup.

Creates a kida Environment rooted at a single template directory. The
environment is built once per renderer and reused for every request, so
compiled templates are cached in memory unless auto-reload is on.
"""

import html
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from kida import Environment, FileSystemLoader


def escape(value: Any) -> str:
    """HTML-escape *value* for interpolation into markup.

    Templates render without autoescaping; anything user-controlled must
    pass through this (``{{ escape(name) }}`` in a template).
    """
    if value is None:
        return ""
    return html.escape(str(value), quote=True)


BUILTIN_GLOBALS: dict[str, Any] = {
    "escape": escape,
}


def create_environment(
    template_dir: str | Path,
    *,
    auto_reload: bool = False,
    filters: Mapping[str, Callable[..., Any]] | None = None,
    globals_: Mapping[str, Any] | None = None,
) -> Environment:
    """Create a kida Environment for *template_dir*.

    Autoescape is always off: templates emit variables verbatim.
    """
    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=False,
        auto_reload=auto_reload,
    )

    for name, value in BUILTIN_GLOBALS.items():
        env.add_global(name, value)

    if filters:
        env.update_filters(dict(filters))

    for name, value in (globals_ or {}).items():
        env.add_global(name, value)

    return env
