"""Navigation — history, attempts, loaders, and the navigator state machine.

Only ``Navigator`` writes navigation state.  Everyone else reads the
immutable ``NavigationState`` snapshots it publishes.
"""

from wayfinder.navigation.blocker import Blocker, BlockerState, Transition
from wayfinder.navigation.history import History, HistoryAction, MemoryHistory
from wayfinder.navigation.location import Location, parse_location
from wayfinder.navigation.navigator import Navigator, create_navigator
from wayfinder.navigation.state import (
    CancellationToken,
    NavigationAttempt,
    NavigationState,
    Phase,
    Status,
)

__all__ = [
    "Blocker",
    "BlockerState",
    "CancellationToken",
    "History",
    "HistoryAction",
    "Location",
    "MemoryHistory",
    "NavigationAttempt",
    "NavigationState",
    "Navigator",
    "Phase",
    "Status",
    "Transition",
    "create_navigator",
    "parse_location",
]
