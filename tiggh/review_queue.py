"""Review queue: open pull requests, oldest first, with their reviews loaded one by one."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, Sequence

from .models import PullRequest, Review, ReviewState
from .pipeline import EntryStatus, PipelineEntry

STATUS_LOADING = "Loading reviews"
STATUS_ERROR = "Reviews error"
STATUS_AWAITING_REVIEW = "Awaiting review"
STATUS_AWAITING_APPROVAL = "Awaiting approval"
STATUS_APPROVED = "Approved"


def first_review_at(reviews: Iterable[Review]) -> datetime | None:
    """Earliest submission time among non-pending reviews."""
    times = [
        r.submitted_at
        for r in reviews
        if r.submitted_at is not None and r.state is not ReviewState.PENDING
    ]
    return min(times) if times else None


def first_approval_at(reviews: Iterable[Review]) -> datetime | None:
    times = [
        r.submitted_at
        for r in reviews
        if r.submitted_at is not None and r.state is ReviewState.APPROVED
    ]
    return min(times) if times else None


def review_counts(reviews: Iterable[Review]) -> dict[ReviewState, int]:
    counts: dict[ReviewState, int] = {}
    for review in reviews:
        counts[review.state] = counts.get(review.state, 0) + 1
    return counts


def review_summary(reviews: Sequence[Review]) -> str:
    """Compact summary like ``✓2 ✗1``; ``No reviews`` when nothing counts."""
    counts = review_counts(reviews)
    parts = []
    for state, symbol in (
        (ReviewState.APPROVED, "✓"),
        (ReviewState.CHANGES_REQUESTED, "✗"),
        (ReviewState.PENDING, "?"),
    ):
        if counts.get(state):
            parts.append(f"{symbol}{counts[state]}")
    return " ".join(parts) if parts else "No reviews"


def format_duration_short(delta: timedelta) -> str:
    """Format a duration like ``2d 3h``, keeping at most two units."""
    if delta <= timedelta(0):
        return "<1m"
    remaining = int(delta.total_seconds())
    parts = []
    days, remaining = divmod(remaining, 86400)
    if days:
        parts.append(f"{days}d")
    hours, remaining = divmod(remaining, 3600)
    if hours:
        parts.append(f"{hours}h")
    minutes, seconds = divmod(remaining, 60)
    if minutes:
        parts.append(f"{minutes}m")
    if not parts:
        parts.append(f"{max(seconds, 1)}s")
    return " ".join(parts[:2])


def waiting_severity(delta: timedelta) -> str:
    """Bucket a waiting time into ``info``, ``warning`` (2 days) or ``error`` (a week)."""
    if delta >= timedelta(days=7):
        return "error"
    if delta >= timedelta(hours=48):
        return "warning"
    return "info"


def sort_oldest_first(pulls: Iterable[PullRequest]) -> list[PullRequest]:
    # stable; PRs without a creation time go last
    return sorted(
        pulls,
        key=lambda pr: (pr.created_at is None, pr.created_at or datetime.min),
    )


class ReviewQueueEntry(PipelineEntry):
    """A pull request in the queue and the reviews fetched for it."""

    item: PullRequest

    def __init__(self, item: PullRequest) -> None:
        super().__init__(item)
        self.reviews: list[Review] = []
        self.first_review_at: datetime | None = None
        self.first_approval_at: datetime | None = None

    @property
    def pull(self) -> PullRequest:
        return self.item

    def _derive(self, detail: Sequence[Review]) -> None:
        self.reviews = list(detail or [])
        self.first_review_at = first_review_at(self.reviews)
        self.first_approval_at = first_approval_at(self.reviews)

    @property
    def status_label(self) -> str:
        if self.status is EntryStatus.PENDING:
            return STATUS_LOADING
        if self.status is EntryStatus.FAILED:
            return STATUS_ERROR
        if self.first_review_at is None:
            return STATUS_AWAITING_REVIEW
        if self.first_approval_at is None:
            return STATUS_AWAITING_APPROVAL
        return STATUS_APPROVED

    @property
    def reviews_text(self) -> str:
        if self.status is EntryStatus.PENDING:
            return "Reviews: loading..."
        if self.status is EntryStatus.FAILED:
            return "Reviews: error"
        if not self.reviews:
            return "Reviews: none"
        return f"Reviews: {review_summary(self.reviews)}"

    def waiting(self, now: datetime) -> timedelta:
        if self.item.created_at is None:
            return timedelta(0)
        return now - self.item.created_at
