"""Pull Requests tab: open pull requests, newest first."""

from __future__ import annotations

from rich.text import Text
from textual.binding import Binding
from textual.message import Message

from ...models import PullRequest
from ...screen import ScreenMachine
from ..utils import format_age, truncate
from .base import ScreenTab


class PullRequestSelected(Message):
    """Posted when the user opens a pull request."""

    def __init__(self, pull: PullRequest) -> None:
        super().__init__()
        self.pull = pull


class PullDiffRequested(Message):
    """Posted when the user asks for a pull request's diff."""

    def __init__(self, pull: PullRequest) -> None:
        super().__init__()
        self.pull = pull


def pull_state_label(pull: PullRequest) -> tuple[str, str]:
    """Return (label, style) for a pull request."""
    if pull.merged:
        return "merged", "magenta"
    if pull.state == "closed":
        return "closed", "red"
    if pull.draft:
        return "draft", "dim"
    return "open", "green"


class PullsTab(ScreenTab):
    BINDINGS = ScreenTab.BINDINGS + [
        Binding("d", "diff", "Diff", show=True),
    ]

    title = "Pull Requests"
    empty_text = "No open pull requests."

    def create_machine(self) -> ScreenMachine:
        return ScreenMachine(
            lambda: self.client.list_pulls(self.owner, self.repo, state="open"),
            key=lambda pull: pull.number,
            name="pulls",
        )

    def render_row(self, pull: PullRequest, width: int) -> Text:
        label, style = pull_state_label(pull)
        branch = f"{pull.head} → {pull.base}" if pull.head else ""
        meta = f"  @{pull.author.login}  {branch}  {format_age(pull.created_at)}"
        line = Text()
        line.append(f"#{pull.number:<6}", style="cyan")
        line.append(f"{label:<7}", style=style)
        line.append(truncate(pull.title, max(width - 15 - len(meta), 10)))
        line.append(meta, style="dim")
        return line

    def open_item(self, pull: PullRequest) -> None:
        self.post_message(PullRequestSelected(pull))

    def action_diff(self) -> None:
        pull = self.machine.selected
        if pull is not None:
            self.post_message(PullDiffRequested(pull))
