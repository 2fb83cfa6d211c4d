"""``wayfinder routes`` — list a normalized route tree.

Prints one row per route, indented by depth, with the priority bucket
and the key loader data is stored under.
"""

import argparse
import sys

from wayfinder.cli._resolve import resolve_tree
from wayfinder.errors import ConfigurationError


def run_routes(args: argparse.Namespace) -> None:
    """List the routes of ``args.tree``.

    Columns are PATTERN (indented by depth), PRIORITY, KEY, and FLAGS.
    """
    try:
        tree = resolve_tree(args.tree)
    except (ModuleNotFoundError, AttributeError, TypeError, ConfigurationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    if not len(tree):
        print("No routes defined.")
        return

    rows: list[tuple[str, str, str, str]] = []
    for depth, node in tree.walk():
        pattern = " | ".join(str(p) for p in node.patterns) or "/"
        flags = [
            name
            for name, on in (
                ("index", node.index),
                ("404", node.not_found),
                ("guard", node.guard is not None),
                ("middleware", bool(node.middleware)),
                ("loader", node.loader is not None),
                (f"-> {node.redirect_to}", node.redirect_to is not None),
            )
            if on
        ]
        rows.append(("  " * depth + pattern, node.priority.name.lower(), node.key, ", ".join(flags)))

    max_pattern = max(max(len(r[0]) for r in rows), 7)  # "PATTERN" header
    max_priority = max(max(len(r[1]) for r in rows), 8)  # "PRIORITY" header
    max_key = max(max(len(r[2]) for r in rows), 3)  # "KEY" header

    fmt = f"{{:<{max_pattern}}}  {{:<{max_priority}}}  {{:<{max_key}}}  {{}}"
    print(fmt.format("PATTERN", "PRIORITY", "KEY", "FLAGS").rstrip())
    sep_len = max_pattern + max_priority + max_key + 6 + max((len(r[3]) for r in rows), default=0)
    print("-" * min(sep_len, 80))
    for row in rows:
        print(fmt.format(*row).rstrip())
