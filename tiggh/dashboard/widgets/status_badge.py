"""State badge widget for issues and pull requests."""

from textual.widgets import Static


class StatusBadge(Static):
    """A colored inline badge showing an issue or pull request state.

    Possible states and their badges:
    - "open"    → "OPEN"   (green)
    - "draft"   → "DRAFT"  (grey)
    - "merged"  → "MERGED" (magenta)
    - "closed"  → "CLOSED" (red)
    - anything else → upper-cased as is
    """

    DEFAULT_CSS = """
    StatusBadge {
        width: auto;
        padding: 0 1;
        text-style: bold;
    }
    StatusBadge.badge--open { background: $success; }
    StatusBadge.badge--draft { background: $panel; }
    StatusBadge.badge--merged { background: magenta; }
    StatusBadge.badge--closed { background: $error; }
    """

    def __init__(self, status: str, **kwargs: object) -> None:
        self._status = status
        text, css_class = badge_for(status)
        super().__init__(text, **kwargs)
        self.add_class("status-badge")
        self.add_class(css_class)


def badge_for(status: str) -> tuple[str, str]:
    """Return (badge_text, css_class) for a given state string."""
    status = (status or "").lower()
    if status in ("open", "draft", "merged", "closed"):
        return status.upper(), f"badge--{status}"
    return status.upper() or "?", "badge--other"
