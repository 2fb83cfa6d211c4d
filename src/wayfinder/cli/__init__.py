"""Wayfinder CLI — inspect route trees and try out resolutions.

Entry point registered as ``wayfinder`` in ``pyproject.toml``::

    [project.scripts]
    wayfinder = "wayfinder.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``wayfinder`` command."""
    parser = argparse.ArgumentParser(
        prog="wayfinder",
        description="Wayfinder — route resolution and navigation for nested view trees.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- wayfinder routes -------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List the normalized route tree")
    routes_parser.add_argument(
        "tree",
        help="Import string (e.g. myapp.routes:routes)",
    )

    # -- wayfinder resolve ------------------------------------------------
    resolve_parser = subparsers.add_parser("resolve", help="Resolve a path against a route tree")
    resolve_parser.add_argument(
        "tree",
        help="Import string (e.g. myapp.routes:routes)",
    )
    resolve_parser.add_argument("path", help="Path to resolve (e.g. /users/42?tab=a)")
    resolve_parser.add_argument("--basename", default="", help="Mount prefix stripped from the path")
    resolve_parser.add_argument(
        "--no-load",
        action="store_true",
        help="Skip running route loaders",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "routes":
        from wayfinder.cli._routes import run_routes

        run_routes(args)
    elif args.command == "resolve":
        from wayfinder.cli._match import run_resolve

        run_resolve(args)
