"""Review Queue tab.

Open pull requests oldest first. Once the list is shown, each row's reviews
are fetched in turn, top to bottom, and the row's status fills in as they
arrive.
"""

from __future__ import annotations

from datetime import datetime, timezone

from rich.text import Text

from ...review_queue import (
    STATUS_APPROVED,
    STATUS_AWAITING_APPROVAL,
    STATUS_AWAITING_REVIEW,
    STATUS_ERROR,
    ReviewQueueEntry,
    format_duration_short,
    sort_oldest_first,
    waiting_severity,
)
from ...screen import ScreenMachine
from ..utils import truncate
from .base import ScreenTab
from .pulls import PullRequestSelected

_STATUS_STYLES = {
    STATUS_AWAITING_REVIEW: "yellow",
    STATUS_AWAITING_APPROVAL: "dark_orange",
    STATUS_APPROVED: "green",
    STATUS_ERROR: "red",
}

_SEVERITY_STYLES = {
    "error": "bold red",
    "warning": "yellow",
    "info": "cyan",
}


class ReviewQueueTab(ScreenTab):
    title = "Review Queue"
    empty_text = "No pull requests waiting for review."

    def create_machine(self) -> ScreenMachine:
        return ScreenMachine(
            lambda: self.client.list_pulls(
                self.owner, self.repo, state="open", sort="created", direction="asc", per_page=100
            ),
            transform=sort_oldest_first,
            dependent=lambda pull: self.client.list_reviews(self.owner, self.repo, pull.number),
            entry_factory=ReviewQueueEntry,
            key=lambda pull: pull.number,
            name="review-queue",
        )

    def header_text(self) -> str:
        text = super().header_text()
        pipeline = self.machine.pipeline
        if pipeline is not None and not pipeline.complete:
            text += f" loading reviews {pipeline.cursor}/{len(pipeline.entries)} "
        return text

    def render_row(self, entry: ReviewQueueEntry, width: int) -> Text:
        waiting = entry.waiting(datetime.now(timezone.utc))
        status = entry.status_label
        line = Text()
        line.append(f"{format_duration_short(waiting):>7}", style=_SEVERITY_STYLES[waiting_severity(waiting)])
        line.append(" • ")
        line.append(f"{status:<17}", style=_STATUS_STYLES.get(status, "dim"))
        line.append(" • ")
        meta = f"  @{entry.pull.author.login}  {entry.reviews_text}"
        title = f"#{entry.pull.number} {entry.pull.title or '(no title)'}"
        line.append(truncate(title, max(width - 31 - len(meta), 10)))
        line.append(meta, style="dim")
        return line

    def open_item(self, entry: ReviewQueueEntry) -> None:
        self.post_message(PullRequestSelected(entry.pull))
