"""Tests for tiggh.review_queue."""

from datetime import timedelta

import pytest

from tiggh.exceptions import PipelineEntryError, RemoteFetchError
from tiggh.models import ReviewState
from tiggh.review_queue import (
    STATUS_APPROVED,
    STATUS_AWAITING_APPROVAL,
    STATUS_AWAITING_REVIEW,
    STATUS_ERROR,
    STATUS_LOADING,
    ReviewQueueEntry,
    first_approval_at,
    first_review_at,
    format_duration_short,
    review_summary,
    sort_oldest_first,
    waiting_severity,
)


class TestReviewTimes:
    def test_first_review_ignores_pending(self, make_review, now):
        reviews = [
            make_review(ReviewState.PENDING, hours_ago=10),
            make_review(ReviewState.COMMENTED, hours_ago=4),
            make_review(ReviewState.APPROVED, hours_ago=2),
        ]
        assert first_review_at(reviews) == now - timedelta(hours=4)

    def test_first_review_ignores_missing_time(self, make_review):
        assert first_review_at([make_review(hours_ago=None)]) is None

    def test_first_approval(self, make_review, now):
        reviews = [
            make_review(ReviewState.APPROVED, hours_ago=1),
            make_review(ReviewState.CHANGES_REQUESTED, hours_ago=5),
            make_review(ReviewState.APPROVED, hours_ago=3),
        ]
        assert first_approval_at(reviews) == now - timedelta(hours=3)

    def test_no_approval(self, make_review):
        assert first_approval_at([make_review(ReviewState.COMMENTED)]) is None


class TestReviewSummary:
    def test_counts(self, make_review):
        reviews = [
            make_review(ReviewState.APPROVED),
            make_review(ReviewState.APPROVED),
            make_review(ReviewState.CHANGES_REQUESTED),
            make_review(ReviewState.COMMENTED),
        ]
        assert review_summary(reviews) == "✓2 ✗1"

    def test_pending(self, make_review):
        assert review_summary([make_review(ReviewState.PENDING)]) == "?1"

    def test_only_comments(self, make_review):
        """Comment-only reviews do not count towards the summary."""
        assert review_summary([make_review(ReviewState.COMMENTED)]) == "No reviews"


class TestFormatDurationShort:
    @pytest.mark.parametrize(
        "delta,expected",
        [
            (timedelta(0), "<1m"),
            (timedelta(seconds=-5), "<1m"),
            (timedelta(seconds=42), "42s"),
            (timedelta(minutes=5, seconds=30), "5m"),
            (timedelta(hours=3, minutes=15), "3h 15m"),
            (timedelta(days=2, hours=4, minutes=30), "2d 4h"),
            (timedelta(days=9), "9d"),
            (timedelta(days=1, minutes=7), "1d 7m"),
        ],
    )
    def test_format(self, delta, expected):
        assert format_duration_short(delta) == expected


class TestWaitingSeverity:
    def test_buckets(self):
        assert waiting_severity(timedelta(hours=47)) == "info"
        assert waiting_severity(timedelta(hours=48)) == "warning"
        assert waiting_severity(timedelta(days=6, hours=23)) == "warning"
        assert waiting_severity(timedelta(days=7)) == "error"


class TestSortOldestFirst:
    def test_order(self, make_pull):
        pulls = [
            make_pull(1, created_hours_ago=1),
            make_pull(2, created_hours_ago=50),
            make_pull(3, created_hours_ago=10),
        ]
        assert [pr.number for pr in sort_oldest_first(pulls)] == [2, 3, 1]

    def test_missing_created_at_last(self, make_pull):
        pulls = [make_pull(1, created_at=None), make_pull(2, created_hours_ago=3)]
        assert [pr.number for pr in sort_oldest_first(pulls)] == [2, 1]


class TestReviewQueueEntry:
    """Tests for per-row status as reviews arrive."""

    def test_loading(self, make_pull):
        entry = ReviewQueueEntry(make_pull())
        assert entry.status_label == STATUS_LOADING
        assert entry.reviews_text == "Reviews: loading..."

    def test_error(self, make_pull):
        entry = ReviewQueueEntry(make_pull())
        entry.fail(PipelineEntryError(0, RemoteFetchError("boom")))
        assert entry.status_label == STATUS_ERROR
        assert entry.reviews_text == "Reviews: error"

    def test_awaiting_review(self, make_pull):
        entry = ReviewQueueEntry(make_pull())
        entry.resolve([])
        assert entry.status_label == STATUS_AWAITING_REVIEW
        assert entry.reviews_text == "Reviews: none"

    def test_awaiting_approval(self, make_pull, make_review):
        entry = ReviewQueueEntry(make_pull())
        entry.resolve([make_review(ReviewState.CHANGES_REQUESTED)])
        assert entry.status_label == STATUS_AWAITING_APPROVAL
        assert entry.reviews_text == "Reviews: ✗1"

    def test_approved(self, make_pull, make_review, now):
        entry = ReviewQueueEntry(make_pull())
        entry.resolve([make_review(ReviewState.APPROVED, hours_ago=2)])
        assert entry.status_label == STATUS_APPROVED
        assert entry.first_approval_at == now - timedelta(hours=2)

    def test_waiting(self, make_pull, now):
        entry = ReviewQueueEntry(make_pull(created_hours_ago=30))
        assert entry.waiting(now) == timedelta(hours=30)
        assert entry.pull.number == 1

    def test_waiting_without_created_at(self, make_pull, now):
        entry = ReviewQueueEntry(make_pull(created_at=None))
        assert entry.waiting(now) == timedelta(0)
