"""Roost CLI — route listing and configuration checks.

Entry point registered as ``roost`` in ``pyproject.toml``::

    [project.scripts]
    roost = "roost.cli:main"
"""

import argparse
import sys

from roost.logging import configure_logging


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``roost`` command."""
    parser = argparse.ArgumentParser(
        prog="roost",
        description="Roost — convention-driven MVC dispatch for Python web applications.",
    )
    parser.add_argument(
        "--log-level",
        default="warning",
        help="Logging level for roost loggers (default: warning)",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- roost routes -----------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List configured routes")
    routes_parser.add_argument("app", help="Import string (e.g. myapp:app)")

    # -- roost check ------------------------------------------------------
    check_parser = subparsers.add_parser("check", help="Validate application configuration")
    check_parser.add_argument("app", help="Import string (e.g. myapp:app)")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    configure_logging(args.log_level)

    if args.command == "routes":
        from roost.cli._routes import run_routes

        run_routes(args)
    elif args.command == "check":
        from roost.cli._check import run_check

        run_check(args)
