"""Issues tab: open issues of the repository."""

from __future__ import annotations

from rich.text import Text
from textual.message import Message

from ...models import Issue
from ...screen import ScreenMachine
from ..utils import format_age, truncate
from .base import ScreenTab


class IssueSelected(Message):
    """Posted when the user opens an issue."""

    def __init__(self, issue: Issue) -> None:
        super().__init__()
        self.issue = issue


class IssuesTab(ScreenTab):
    """Open issues with number, title, author, labels and age."""

    title = "Issues"
    empty_text = "No open issues."

    def create_machine(self) -> ScreenMachine:
        return ScreenMachine(
            lambda: self.client.list_issues(self.owner, self.repo, state="open"),
            key=lambda issue: issue.number,
            name="issues",
        )

    def render_row(self, issue: Issue, width: int) -> Text:
        line = Text()
        line.append(f"#{issue.number:<6}", style="cyan")
        labels = " ".join(f"[{label.name}]" for label in issue.labels)
        meta = f"  @{issue.author.login}  {format_age(issue.created_at)}"
        if issue.comments:
            meta += f"  💬{issue.comments}"
        title_width = max(width - 8 - len(meta) - len(labels) - 1, 10)
        line.append(truncate(issue.title, title_width))
        if labels:
            line.append(" " + labels, style="magenta")
        line.append(meta, style="dim")
        return line

    def open_item(self, issue: Issue) -> None:
        self.post_message(IssueSelected(issue))
