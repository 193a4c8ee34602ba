"""Tests for tiggh.metrics lead-time scanning."""

from datetime import datetime, timedelta, timezone

import pytest

from tiggh.config import Config
from tiggh.exceptions import MetricsDisabledError, NoRepositoriesError, NotFoundError, RemoteFetchError
from tiggh.metrics import (
    FetchLeadTimeMetrics,
    LeadTimeSample,
    lead_time_stat,
    parse_repository_slug,
    phase_breakdown,
    resolve_repositories,
    stagnant_metrics,
)
from tiggh.models import ReviewState, StagnantPR
from tiggh.tasks import ProgressSnapshot

NOW = datetime(2024, 5, 20, 12, 0, tzinfo=timezone.utc)


def _merged(make_pull, number, created_hours_ago, merged_hours_ago, base="main"):
    merged_at = NOW - timedelta(hours=merged_hours_ago)
    return make_pull(
        number,
        created_hours_ago=created_hours_ago,
        state="closed",
        base=base,
        merged=True,
        merged_at=merged_at,
        updated_at=merged_at,
    )


class TestParseRepositorySlug:
    def test_valid(self):
        assert parse_repository_slug("acme/api") == ("acme", "api")

    @pytest.mark.parametrize("slug", ["acme", "acme/", "/api", "a/b/c", ""])
    def test_invalid(self, slug):
        with pytest.raises(ValueError):
            parse_repository_slug(slug)


class TestResolveRepositories:
    def test_configured_list_deduplicated(self):
        config = Config()
        config.github.repositories = ["acme/api", " acme/api ", "acme/web"]
        assert resolve_repositories(config) == ["acme/api", "acme/web"]

    def test_falls_back_to_current_repo(self):
        assert resolve_repositories(Config(), "acme", "api") == ["acme/api"]

    def test_falls_back_to_defaults(self):
        config = Config()
        config.github.default_owner = "acme"
        config.github.default_repo = "web"
        assert resolve_repositories(config) == ["acme/web"]

    def test_nothing(self):
        assert resolve_repositories(Config()) == []


class TestAggregation:
    """Tests for the pure aggregation helpers."""

    def test_lead_time_stat(self):
        stat = lead_time_stat([timedelta(hours=h) for h in (1, 2, 9)])
        assert stat.count == 3
        assert stat.average == timedelta(hours=4)
        assert stat.median == timedelta(hours=2)

    def test_lead_time_stat_even_count(self):
        stat = lead_time_stat([timedelta(hours=2), timedelta(hours=4)])
        assert stat.median == timedelta(hours=3)

    def test_lead_time_stat_empty(self):
        assert lead_time_stat([]).count == 0

    def test_phase_breakdown(self):
        created = NOW - timedelta(hours=10)
        sample = LeadTimeSample(
            created_at=created,
            merged_at=created + timedelta(hours=10),
            first_review_at=created + timedelta(hours=2),
            approved_at=created + timedelta(hours=5),
        )
        phases = phase_breakdown([sample])
        assert phases.created_to_first_review == timedelta(hours=2)
        assert phases.first_review_to_approval == timedelta(hours=3)
        assert phases.approval_to_merge == timedelta(hours=5)
        assert phases.total_lead_time == timedelta(hours=10)
        assert phases.sample_count == 1

    def test_phase_breakdown_skips_out_of_order(self):
        """Approval after merge (or missing review times) is not counted."""
        created = NOW - timedelta(hours=10)
        late_approval = LeadTimeSample(
            created_at=created,
            merged_at=created + timedelta(hours=1),
            first_review_at=created + timedelta(hours=2),
            approved_at=created + timedelta(hours=3),
        )
        unreviewed = LeadTimeSample(created_at=created, merged_at=created + timedelta(hours=1))
        assert phase_breakdown([late_approval, unreviewed]).sample_count == 0

    def test_stagnant_metrics(self):
        prs = [
            StagnantPR("acme/api", n, f"PR {n}", timedelta(hours=h))
            for n, h in ((1, 80), (2, 200), (3, 100))
        ]
        result = stagnant_metrics(prs)
        assert result.total_stagnant == 3
        assert [pr.number for pr in result.longest_waiting] == [2, 3, 1]
        assert result.average_age == timedelta(seconds=456000)

    def test_stagnant_metrics_limit(self):
        prs = [StagnantPR("acme/api", n, "t", timedelta(hours=100 + n)) for n in range(15)]
        assert len(stagnant_metrics(prs).longest_waiting) == 10


class TestFetchLeadTimeMetrics:
    """Tests for the repository scan against a mocked client."""

    def _scan(self, mock_client, config):
        return FetchLeadTimeMetrics(mock_client, config, now=lambda: NOW)

    def _healthy(self, mock_client, make_pull, make_review):
        mock_client.get_default_branch.return_value = "main"
        mock_client.iter_pulls.return_value = [
            _merged(make_pull, 1, created_hours_ago=30, merged_hours_ago=10),
            _merged(make_pull, 2, created_hours_ago=20, merged_hours_ago=10, base="release"),
        ]
        mock_client.list_reviews.return_value = [
            make_review(ReviewState.APPROVED, hours_ago=15),
        ]
        mock_client.list_pulls.return_value = [
            make_pull(7, created_hours_ago=100),
            make_pull(8, created_hours_ago=5),
        ]

    def test_disabled(self, mock_client):
        with pytest.raises(MetricsDisabledError):
            self._scan(mock_client, Config())()
        mock_client.get_default_branch.assert_not_called()

    def test_lead_time_disabled(self, mock_client, metrics_config):
        metrics_config.metrics.lead_time_enabled = False
        with pytest.raises(MetricsDisabledError):
            self._scan(mock_client, metrics_config)()

    def test_no_repositories(self, mock_client, metrics_config):
        metrics_config.github.repositories = []
        with pytest.raises(NoRepositoriesError):
            self._scan(mock_client, metrics_config)()

    def test_progress_sequence(self, mock_client, metrics_config, make_pull, make_review):
        self._healthy(mock_client, make_pull, make_review)
        snapshots = []
        self._scan(mock_client, metrics_config)(snapshots.append)
        assert [(s.processed, s.total) for s in snapshots] == [(0, 2), (1, 2), (2, 2), (2, 2)]
        assert snapshots[1] == ProgressSnapshot(1, 2, "acme/api")

    def test_results(self, mock_client, metrics_config, make_pull, make_review):
        self._healthy(mock_client, make_pull, make_review)
        metrics = self._scan(mock_client, metrics_config)()

        # only PR 1 merged into the default branch, in each of the two repositories
        assert metrics.overall.count == 2
        assert metrics.overall.average == timedelta(hours=20)
        assert set(metrics.by_repository) == {"acme/api", "acme/web"}
        assert metrics.phase_breakdown.created_to_first_review == timedelta(hours=15)
        assert metrics.phase_breakdown.approval_to_merge == timedelta(hours=5)
        assert metrics.stagnant_prs.total_stagnant == 2
        assert metrics.errors == []
        assert metrics.generated_at == NOW

    def test_reviews_fetched_for_accepted_samples_only(
        self, mock_client, metrics_config, make_pull, make_review
    ):
        self._healthy(mock_client, make_pull, make_review)
        metrics_config.github.repositories = ["acme/api"]
        self._scan(mock_client, metrics_config)()
        mock_client.list_reviews.assert_called_once_with("acme", "api", 1)

    def test_scan_stops_at_window(self, mock_client, metrics_config, make_pull, make_review):
        """Pull requests last updated before the window end the scan."""
        self._healthy(mock_client, make_pull, make_review)
        old = _merged(make_pull, 3, created_hours_ago=24 * 60, merged_hours_ago=24 * 40)
        recent = _merged(make_pull, 4, created_hours_ago=3, merged_hours_ago=1)
        mock_client.iter_pulls.return_value = [old, recent]
        metrics = self._scan(mock_client, metrics_config)()
        assert metrics.overall.count == 0

    def test_unmerged_skipped(self, mock_client, metrics_config, make_pull, make_review):
        self._healthy(mock_client, make_pull, make_review)
        mock_client.iter_pulls.return_value = [
            make_pull(5, state="closed", updated_at=NOW),
        ]
        metrics = self._scan(mock_client, metrics_config)()
        assert metrics.overall.count == 0

    def test_partial_failure(self, mock_client, metrics_config, make_pull, make_review):
        self._healthy(mock_client, make_pull, make_review)
        mock_client.get_default_branch.side_effect = ["main", NotFoundError("404 Not Found")]
        metrics = self._scan(mock_client, metrics_config)()
        assert list(metrics.by_repository) == ["acme/api"]
        assert metrics.errors == ["acme/web: 404 Not Found"]

    def test_all_repositories_fail(self, mock_client, metrics_config):
        mock_client.get_default_branch.side_effect = RemoteFetchError("503 Service Unavailable")
        with pytest.raises(RemoteFetchError) as exc_info:
            self._scan(mock_client, metrics_config)()
        assert "acme/api" in str(exc_info.value)
        assert "acme/web" in str(exc_info.value)

    def test_invalid_slug_reported(self, mock_client, metrics_config, make_pull, make_review):
        self._healthy(mock_client, make_pull, make_review)
        metrics_config.github.repositories = ["acme/api", "not-a-slug"]
        metrics = self._scan(mock_client, metrics_config)()
        assert len(metrics.errors) == 1
        assert metrics.errors[0].startswith("not-a-slug:")

    def test_review_failure_keeps_sample(self, mock_client, metrics_config, make_pull, make_review):
        self._healthy(mock_client, make_pull, make_review)
        mock_client.list_reviews.side_effect = RemoteFetchError("500")
        metrics = self._scan(mock_client, metrics_config)()
        assert metrics.overall.count == 2
        assert metrics.phase_breakdown.sample_count == 0

    def test_stagnant_failure_only_logged(self, mock_client, metrics_config, make_pull, make_review):
        self._healthy(mock_client, make_pull, make_review)
        mock_client.list_pulls.side_effect = RemoteFetchError("500")
        metrics = self._scan(mock_client, metrics_config)()
        assert metrics.errors == []
        assert metrics.stagnant_prs.total_stagnant == 0
