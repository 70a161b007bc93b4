"""Server startup.

Starts a pounce ASGI server with the live trellis App object. Debug mode
runs a single worker with auto-reload; otherwise pounce runs the
configured number of workers.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from trellis.app import App

logger = logging.getLogger("trellis.server")


def run_server(
    app: App,
    host: str,
    port: int,
    *,
    reload: bool = False,
    workers: int = 0,
    log_level: str = "info",
) -> None:
    """Start a pounce server for *app*.

    Pounce's ``run()`` takes an import string, but trellis has a live
    ``App`` object, so ``pounce.Server`` is used directly with the ASGI
    callable.

    Args:
        app: The trellis App (an ASGI callable).
        host: Bind host address.
        port: Bind port number.
        reload: Single worker with auto-reload on file changes.
        workers: Worker count when not reloading (0 = auto-detect).
        log_level: Server log level (debug, info, warning, error).
    """
    from pounce.config import ServerConfig
    from pounce.server import Server

    config = ServerConfig(
        host=host,
        port=port,
        workers=1 if reload else workers,
        reload=reload,
        log_level=log_level,
    )
    logger.info("Serving on http://%s:%d (reload=%s)", host, port, reload)
    Server(config, app).run()
