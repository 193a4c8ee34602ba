"""Commits tab: recent commits on the default branch."""

from __future__ import annotations

from rich.text import Text
from textual.message import Message

from ...models import Commit
from ...screen import ScreenMachine
from ..utils import format_age, truncate
from .base import ScreenTab


class CommitDiffRequested(Message):
    def __init__(self, commit: Commit) -> None:
        super().__init__()
        self.commit = commit


class CommitsTab(ScreenTab):
    title = "Commits"
    empty_text = "No commits."

    def create_machine(self) -> ScreenMachine:
        return ScreenMachine(
            lambda: self.client.list_commits(self.owner, self.repo),
            key=lambda commit: commit.sha,
            name="commits",
        )

    def render_row(self, commit: Commit, width: int) -> Text:
        author = commit.author_login or commit.author_name
        meta = f"  {author}  {format_age(commit.authored_at)}"
        line = Text()
        line.append(f"{commit.short_sha}  ", style="yellow")
        line.append(truncate(commit.summary, max(width - 9 - len(meta), 10)))
        line.append(meta, style="dim")
        return line

    def open_item(self, commit: Commit) -> None:
        self.post_message(CommitDiffRequested(commit))
