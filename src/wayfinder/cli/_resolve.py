"""Route tree import resolution — resolves ``"module:attribute"`` strings.

Shared utility used by ``wayfinder routes`` and ``wayfinder resolve`` to
locate route definitions from a user-supplied import string.
"""

import importlib
from collections.abc import Mapping, Sequence
from typing import Any

from wayfinder.routing.tree import RouteTree, create_route_tree


def resolve_tree(import_string: str) -> RouteTree[Any]:
    """Resolve an import string to a normalized ``RouteTree``.

    Accepts ``"module:attribute"`` format.  When the attribute portion
    is omitted, defaults to ``"routes"`` (e.g. ``"myapp"`` resolves to
    ``myapp.routes``).

    The attribute may be a ``RouteTree``, a list of route definitions,
    or a zero-argument factory returning either.

    Raises:
        ModuleNotFoundError: If the module cannot be imported.
        AttributeError: If the attribute does not exist on the module.
        TypeError: If the resolved object is not a route tree or definitions.
        ConfigurationError: If the definitions do not normalize.
    """
    module_path, _, attr_name = import_string.partition(":")
    if not attr_name:
        attr_name = "routes"

    module = importlib.import_module(module_path)
    obj = getattr(module, attr_name)

    # Support factory functions
    if callable(obj) and not isinstance(obj, RouteTree):
        try:
            obj = obj()
        except Exception as exc:
            msg = f"Factory function {import_string!r} raised an error: {exc}"
            raise TypeError(msg) from exc

    if isinstance(obj, RouteTree):
        return obj
    if isinstance(obj, Sequence) and not isinstance(obj, str | bytes):
        if all(isinstance(item, Mapping) for item in obj):
            return create_route_tree(obj)

    msg = f"{import_string!r} resolved to {type(obj).__name__}, not a route tree or definition list"
    raise TypeError(msg)
