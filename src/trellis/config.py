"""Application configuration.

AppConfig is a frozen dataclass: immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from trellis.errors import ConfigurationError

_TRUTHY = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, port=3000, template_dir="views")
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    workers: int = 0  # 0 = auto-detect from CPU count (production only)
    log_level: str = "info"

    # Templates
    template_dir: str | Path = "templates"
    layout: str | None = None  # Default layout wrapped around every render

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> AppConfig:
        """Build a config from environment variables.

        Reads ``PORT``, ``HOST``, ``APP_DEBUG``, ``TEMPLATE_DIR`` and
        ``LOG_LEVEL``. Keyword *overrides* win over the environment.

        Raises ``ConfigurationError`` if ``PORT`` is not a valid port number.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}

        if "PORT" in env:
            values["port"] = _parse_port(env["PORT"])
        if "HOST" in env:
            values["host"] = env["HOST"]
        if "APP_DEBUG" in env:
            values["debug"] = env["APP_DEBUG"].strip().lower() in _TRUTHY
        if "TEMPLATE_DIR" in env:
            values["template_dir"] = env["TEMPLATE_DIR"]
        if "LOG_LEVEL" in env:
            values["log_level"] = env["LOG_LEVEL"].strip().lower()

        return replace(cls(), **{**values, **overrides})


def _parse_port(raw: str) -> int:
    try:
        port = int(raw)
    except ValueError:
        msg = f"PORT must be an integer, got {raw!r}"
        raise ConfigurationError(msg) from None
    if not 0 < port < 65536:
        msg = f"PORT must be between 1 and 65535, got {port}"
        raise ConfigurationError(msg)
    return port
