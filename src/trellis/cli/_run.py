"""``trellis run`` — resolve an app and start serving it."""

import argparse
import sys

from trellis.cli._resolve import resolve_app


def run_server(args: argparse.Namespace) -> None:
    """Start the server for ``args.app``; ``--host``/``--port`` override config."""
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    app.run(host=args.host, port=args.port)
