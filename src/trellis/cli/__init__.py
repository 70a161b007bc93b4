"""Trellis CLI — starts an application server.

Entry point registered as ``trellis`` in ``pyproject.toml``::

    [project.scripts]
    trellis = "trellis.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``trellis`` command."""
    parser = argparse.ArgumentParser(
        prog="trellis",
        description="Trellis — routing, controllers and layout-aware views over ASGI.",
    )
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Start the application server")
    run_parser.add_argument("app", help="Import string (e.g. myapp:app)")
    run_parser.add_argument("--host", default=None, help="Bind host address")
    run_parser.add_argument("--port", type=int, default=None, help="Bind port number")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "run":
        from trellis.cli._run import run_server

        run_server(args)
