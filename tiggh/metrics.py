"""Pull request lead-time metrics across one or more repositories.

The scan is a single long-running blocking call. It reports progress after
each repository so the metrics view can show ``k/N`` while it runs (see
``tiggh.tasks.ProgressMultiplexer``).
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from statistics import median
from typing import Callable, Iterable

from .config import Config
from .exceptions import MetricsDisabledError, NoRepositoriesError, RemoteFetchError, TigGhError
from .github import GitHubClient
from .models import (
    LeadTimeMetrics,
    LeadTimeStat,
    ReviewPhaseMetrics,
    StagnantPR,
    StagnantPRMetrics,
)
from .review_queue import first_approval_at, first_review_at
from .tasks import ProgressCallback, ProgressSnapshot

logger = logging.getLogger(__name__)

STAGNANT_THRESHOLD = timedelta(hours=72)
LONGEST_WAITING_LIMIT = 10


def parse_repository_slug(slug: str) -> tuple[str, str]:
    """Split ``owner/repo``. Raises ValueError for anything else."""
    parts = slug.split("/")
    if len(parts) != 2 or not parts[0].strip() or not parts[1].strip():
        raise ValueError(f"invalid repository format: {slug}")
    return parts[0].strip(), parts[1].strip()


def resolve_repositories(config: Config, owner: str = "", repo: str = "") -> list[str]:
    """Repositories to scan: the configured list (deduplicated), else the current one."""
    repos: list[str] = []
    for slug in config.github.repositories:
        slug = slug.strip()
        if slug and slug not in repos:
            repos.append(slug)
    if repos:
        return repos

    owner = owner.strip() or config.github.default_owner.strip()
    repo = repo.strip() or config.github.default_repo.strip()
    if owner and repo:
        return [f"{owner}/{repo}"]
    return []


@dataclass
class LeadTimeSample:
    """One merged pull request."""
    created_at: datetime
    merged_at: datetime
    first_review_at: datetime | None = None
    approved_at: datetime | None = None

    @property
    def duration(self) -> timedelta:
        return self.merged_at - self.created_at


def lead_time_stat(durations: Iterable[timedelta]) -> LeadTimeStat:
    values = sorted(durations)
    if not values:
        return LeadTimeStat()
    return LeadTimeStat(
        average=sum(values, timedelta(0)) / len(values),
        median=median(values),
        count=len(values),
    )


def phase_breakdown(samples: Iterable[LeadTimeSample]) -> ReviewPhaseMetrics:
    """Average time per review phase.

    Only samples with a first review and an approval, in chronological order
    created <= first review <= approval <= merge, are counted.
    """
    to_first = to_approval = to_merge = total = timedelta(0)
    count = 0
    for s in samples:
        if s.first_review_at is None or s.approved_at is None:
            continue
        if not (s.created_at <= s.first_review_at <= s.approved_at <= s.merged_at):
            continue
        to_first += s.first_review_at - s.created_at
        to_approval += s.approved_at - s.first_review_at
        to_merge += s.merged_at - s.approved_at
        total += s.duration
        count += 1

    if count == 0:
        return ReviewPhaseMetrics()
    return ReviewPhaseMetrics(
        created_to_first_review=to_first / count,
        first_review_to_approval=to_approval / count,
        approval_to_merge=to_merge / count,
        total_lead_time=total / count,
        sample_count=count,
    )


def stagnant_metrics(prs: Iterable[StagnantPR], threshold: timedelta = STAGNANT_THRESHOLD) -> StagnantPRMetrics:
    ordered = sorted(prs, key=lambda pr: pr.age, reverse=True)
    if not ordered:
        return StagnantPRMetrics(threshold=threshold)
    return StagnantPRMetrics(
        threshold=threshold,
        total_stagnant=len(ordered),
        average_age=sum((pr.age for pr in ordered), timedelta(0)) / len(ordered),
        longest_waiting=tuple(ordered[:LONGEST_WAITING_LIMIT]),
    )


class FetchLeadTimeMetrics:
    """Blocking metrics scan, called with a progress callback.

    Usage::

        scan = FetchLeadTimeMetrics(client, config, resolve_repositories(config, owner, repo))
        metrics = scan(progress)

    A repository that fails is listed in ``metrics.errors`` and the scan goes
    on. If every repository fails, RemoteFetchError is raised instead.
    """

    def __init__(
        self,
        client: GitHubClient,
        config: Config,
        repositories: list[str] | None = None,
        now: Callable[[], datetime] | None = None,
    ):
        self.client = client
        self.config = config
        self.repositories = repositories if repositories is not None else resolve_repositories(config)
        self._now = now or (lambda: datetime.now(timezone.utc))

    def __call__(self, progress: ProgressCallback | None = None) -> LeadTimeMetrics:
        if not self.config.metrics.enabled:
            raise MetricsDisabledError(
                "Metrics are disabled. Set metrics.enabled: true in config.yaml"
            )
        if not self.config.metrics.lead_time_enabled:
            raise MetricsDisabledError(
                "Lead time metrics are disabled. Set metrics.lead_time_enabled: true in config.yaml"
            )
        if not self.repositories:
            raise NoRepositoriesError(
                "No repositories configured. Add github.repositories to config.yaml"
            )

        now = self._now()
        since = now - timedelta(days=self.config.metrics.calculation_period_days)
        total = len(self.repositories)

        def report(processed: int, current: str = "") -> None:
            if progress is not None:
                progress(ProgressSnapshot(processed=processed, total=total, current=current))

        report(0)
        samples_by_repo: dict[str, list[LeadTimeSample]] = {}
        stagnant: list[StagnantPR] = []
        errors: list[str] = []

        for processed, slug in enumerate(self.repositories, start=1):
            try:
                owner, name = parse_repository_slug(slug)
                samples_by_repo[slug] = self._fetch_samples(owner, name, since)
            except (TigGhError, ValueError) as e:
                logger.warning("Lead time fetch failed for %s: %s", slug, e)
                errors.append(f"{slug}: {e}")
            else:
                stagnant.extend(self._fetch_stagnant(slug, owner, name, now))
            report(processed, slug)

        report(total)

        if not samples_by_repo and errors:
            raise RemoteFetchError("; ".join(errors))

        all_samples = [s for samples in samples_by_repo.values() for s in samples]
        return LeadTimeMetrics(
            overall=lead_time_stat(s.duration for s in all_samples),
            by_repository={
                slug: lead_time_stat(s.duration for s in samples)
                for slug, samples in samples_by_repo.items()
            },
            phase_breakdown=phase_breakdown(all_samples),
            stagnant_prs=stagnant_metrics(stagnant),
            errors=errors,
            generated_at=now,
        )

    def _fetch_samples(self, owner: str, repo: str, since: datetime) -> list[LeadTimeSample]:
        """Merged PRs into the default branch since ``since``, with review times."""
        default_branch = self.client.get_default_branch(owner, repo)
        samples: list[tuple[int, LeadTimeSample]] = []

        for pr in self.client.iter_pulls(owner, repo, state="closed", sort="updated", direction="desc"):
            # sorted by update time: nothing older can have merged inside the window
            if pr.updated_at is not None and pr.updated_at < since:
                break
            if pr.merged_at is None or pr.created_at is None:
                continue
            if pr.base != default_branch or pr.merged_at < since:
                continue
            if pr.merged_at < pr.created_at:
                continue
            samples.append((pr.number, LeadTimeSample(pr.created_at, pr.merged_at)))

        for number, sample in samples:
            try:
                reviews = self.client.list_reviews(owner, repo, number)
            except TigGhError as e:
                logger.warning("Failed to fetch reviews for %s/%s#%s: %s", owner, repo, number, e)
                continue
            sample.first_review_at = first_review_at(reviews)
            sample.approved_at = first_approval_at(reviews)

        return [sample for _, sample in samples]

    def _fetch_stagnant(self, slug: str, owner: str, repo: str, now: datetime) -> list[StagnantPR]:
        try:
            pulls = self.client.list_pulls(
                owner, repo, state="open", sort="created", direction="asc", per_page=100
            )
        except TigGhError as e:
            logger.warning("Failed to fetch open PRs for %s: %s", slug, e)
            return []

        stagnant = []
        for pr in pulls:
            if pr.created_at is None:
                continue
            age = now - pr.created_at
            if age >= STAGNANT_THRESHOLD:
                stagnant.append(StagnantPR(repository=slug, number=pr.number, title=pr.title, age=age))
        return stagnant
