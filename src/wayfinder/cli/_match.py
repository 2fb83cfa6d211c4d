"""``wayfinder resolve`` — resolve one path and print the outcome.

Runs the same one-shot resolution a server uses, then prints the
status, the match chain, merged params, and loader results.
"""

import argparse
import sys
from functools import partial

import anyio

from wayfinder.cli._resolve import resolve_tree
from wayfinder.config import RouterConfig
from wayfinder.errors import ConfigurationError, NavigationAborted
from wayfinder.navigation.state import Status
from wayfinder.server import resolve


def run_resolve(args: argparse.Namespace) -> None:
    """Resolve ``args.path`` against ``args.tree`` and print the result.

    Exits with status 1 when the path does not resolve to ``ok``.
    """
    try:
        tree = resolve_tree(args.tree)
        config = RouterConfig(basename=args.basename)
    except (ModuleNotFoundError, AttributeError, TypeError, ValueError, ConfigurationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    try:
        state = anyio.run(partial(resolve, tree, args.path, config=config, load=not args.no_load))
    except NavigationAborted as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    print(f"{state.status_code} {state.status.value}  {state.location.href}")
    if state.redirect_pending is not None:
        print(f"redirect: {state.redirect_pending}")
    if state.blocked:
        print(f"blocked: {state.error!r}" if state.error is not None else "blocked")

    for depth, match in enumerate(state.matches):
        print(f"  {'  ' * depth}{match.pattern or '/'}  [{match.key}]")

    if state.params:
        print("params:")
        for name, value in state.params.items():
            print(f"  {name} = {value!r}")

    for key, data in state.loader_data.items():
        print(f"data[{key}]: {data!r}")
    for key, error in state.loader_errors.items():
        print(f"error[{key}]: {error}", file=sys.stderr)

    if state.status is not Status.OK:
        raise SystemExit(1)
