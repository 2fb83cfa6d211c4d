"""Router configuration.

RouterConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class RouterConfig:
    """Router configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = RouterConfig(basename="/app", max_redirects=5)
    """

    # Mounting
    basename: str = ""  # Prefix stripped from observed paths, prepended to navigate targets

    # Matching
    case_sensitive: bool = True

    # Redirects
    max_redirects: int = 10  # Longest redirect chain followed before giving up

    # Fallbacks
    not_found_view: Any = None  # Rendered when no route-level not-found node applies

    def __post_init__(self) -> None:
        if self.basename and not self.basename.startswith("/"):
            object.__setattr__(self, "basename", "/" + self.basename)
        if self.basename.endswith("/"):
            object.__setattr__(self, "basename", self.basename.rstrip("/"))
        if self.max_redirects < 0:
            msg = f"max_redirects must be >= 0, got {self.max_redirects}"
            raise ValueError(msg)

    def strip_basename(self, pathname: str) -> str | None:
        """Return *pathname* relative to ``basename``.

        Returns ``None`` when the path lives outside the mount point.
        """
        if not self.basename:
            return pathname
        if pathname == self.basename:
            return "/"
        if pathname.startswith(self.basename + "/"):
            return pathname[len(self.basename):]
        return None
