"""IssueDetailModal: issue metadata, body and comments."""

from __future__ import annotations

from rich.text import Text
from textual import work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Label, Static

from ...exceptions import TigGhError
from ...github import GitHubClient
from ...models import Comment, Issue
from ...tasks import launch
from ..utils import format_timestamp
from .status_badge import StatusBadge


def render_comments(result: list[Comment] | TigGhError | None, date_format: str) -> Text:
    if result is None:
        return Text("Loading comments...", style="italic")
    if isinstance(result, TigGhError):
        return Text(f"Failed to load comments: {result}", style="red")
    if not result:
        return Text("No comments.", style="dim")
    text = Text()
    for i, comment in enumerate(result):
        if i:
            text.append("\n")
        text.append(f"@{comment.author.login}", style="bold cyan")
        text.append(f"  {format_timestamp(comment.created_at, date_format)}\n", style="dim")
        text.append(comment.body.strip() + "\n")
    return text


class IssueDetailModal(ModalScreen):
    """Modal overlay with one issue. Comments load in a background thread.

    Press Escape to close.
    """

    BINDINGS = [Binding("escape,q", "dismiss", "Close", show=True)]

    DEFAULT_CSS = """
    IssueDetailModal {
        align: center middle;
    }
    IssueDetailModal #detail-dialog {
        width: 90%;
        height: 90%;
        border: round $accent;
        padding: 0 1;
        background: $surface;
    }
    IssueDetailModal .detail-section-header {
        text-style: bold;
        margin-top: 1;
    }
    """

    def __init__(
        self,
        client: GitHubClient,
        owner: str,
        repo: str,
        issue: Issue,
        date_format: str = "%Y-%m-%d %H:%M",
        **kwargs: object,
    ) -> None:
        super().__init__(**kwargs)
        self._client = client
        self._owner = owner
        self._repo = repo
        self._issue = issue
        self._date_format = date_format

    def compose(self) -> ComposeResult:
        issue = self._issue
        with Container(id="detail-dialog"):
            yield Label(Text(f"Issue #{issue.number}  (Esc to close)"), classes="modal-title")
            with Horizontal(classes="detail-meta"):
                yield StatusBadge(issue.state)
                yield Label(Text(f" {issue.title}"), classes="detail-meta-title")
            meta = [
                f"Author: @{issue.author.login}",
                f"Opened: {format_timestamp(issue.created_at, self._date_format)}",
            ]
            if issue.assignees:
                meta.append("Assignees: " + ", ".join(f"@{u.login}" for u in issue.assignees))
            if issue.labels:
                meta.append("Labels: " + ", ".join(label.name for label in issue.labels))
            yield Label(Text("  |  ".join(meta)), classes="detail-meta-row")
            with VerticalScroll():
                yield Static(Text(issue.body.strip() or "(no description)"), classes="detail-body")
                yield Label(f"COMMENTS ({issue.comments})", classes="detail-section-header")
                yield Static(render_comments(None, self._date_format), id="comments")

    def on_mount(self) -> None:
        self._load_comments()

    @work(thread=True)
    def _load_comments(self) -> None:
        issue = self._issue
        task = launch(
            lambda: self._client.list_issue_comments(self._owner, self._repo, issue.number),
            lambda comments: comments,
            lambda error: error,
            name=f"issue-comments[{issue.number}]",
        )
        result = task()
        self.app.call_from_thread(self._show_comments, result)

    def _show_comments(self, result: list[Comment] | TigGhError) -> None:
        for widget in self.query("#comments").results(Static):
            widget.update(render_comments(result, self._date_format))
