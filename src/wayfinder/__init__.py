"""Wayfinder — route resolution and navigation for nested view trees.

Turns a location into a root-to-leaf chain of matched routes, runs each
route's middleware and guard, loads data concurrently, and publishes
immutable navigation snapshots.

Basic usage::

    from wayfinder import create_navigator

    routes = [
        {"path": "/", "view": "shell", "children": [
            {"path": "users/:id", "view": "user", "loader": load_user},
            {"path": "404", "view": "not-found"},
        ]},
    ]

    async with create_navigator(routes) as navigator:
        navigator.navigate("/users/42")
        state = await navigator.settled()

One-shot resolution (server-side rendering)::

    from wayfinder import resolve

    state = await resolve(routes, "/users/42")
    state.status_code  # 200
"""

__version__ = "0.1.0"
__all__ = [
    "Block",
    "CancellationToken",
    "ConfigurationError",
    "Continue",
    "GuardFailure",
    "LoaderFailure",
    "Location",
    "MalformedPattern",
    "MatchResult",
    "MemoryHistory",
    "MiddlewareFailure",
    "NavigationAborted",
    "NavigationState",
    "Navigator",
    "Next",
    "Outlet",
    "Redirect",
    "RedirectLoop",
    "RouteNode",
    "RouteTree",
    "RouterConfig",
    "Status",
    "StepContext",
    "StepFailure",
    "WayfinderError",
    "compose",
    "create_navigator",
    "create_route_tree",
    "get_attempt",
    "get_navigator",
    "match",
    "resolve",
]

# Public name -> defining module
_LAZY_IMPORTS: dict[str, str] = {
    # Errors
    "ConfigurationError": "wayfinder.errors",
    "GuardFailure": "wayfinder.errors",
    "LoaderFailure": "wayfinder.errors",
    "MalformedPattern": "wayfinder.errors",
    "MiddlewareFailure": "wayfinder.errors",
    "NavigationAborted": "wayfinder.errors",
    "RedirectLoop": "wayfinder.errors",
    "StepFailure": "wayfinder.errors",
    "WayfinderError": "wayfinder.errors",
    # Config and context
    "RouterConfig": "wayfinder.config",
    "get_attempt": "wayfinder.context",
    "get_navigator": "wayfinder.context",
    # Routing
    "MatchResult": "wayfinder.routing.route",
    "RouteNode": "wayfinder.routing.route",
    "RouteTree": "wayfinder.routing.tree",
    "create_route_tree": "wayfinder.routing.tree",
    "match": "wayfinder.routing.matcher",
    # Steps
    "Block": "wayfinder.middleware.protocol",
    "Continue": "wayfinder.middleware.protocol",
    "Next": "wayfinder.middleware.protocol",
    "Redirect": "wayfinder.middleware.protocol",
    "StepContext": "wayfinder.middleware.protocol",
    # Navigation
    "CancellationToken": "wayfinder.navigation.state",
    "Location": "wayfinder.navigation.location",
    "MemoryHistory": "wayfinder.navigation.history",
    "NavigationState": "wayfinder.navigation.state",
    "Navigator": "wayfinder.navigation.navigator",
    "Status": "wayfinder.navigation.state",
    "create_navigator": "wayfinder.navigation.navigator",
    # Rendering and server
    "Outlet": "wayfinder.outlet",
    "compose": "wayfinder.outlet",
    "resolve": "wayfinder.server",
}


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import wayfinder`` fast while providing a clean top-level API.
    """
    module_path = _LAZY_IMPORTS.get(name)
    if module_path is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)

    import importlib

    value = getattr(importlib.import_module(module_path), name)
    globals()[name] = value
    return value
