"""Metrics tab: pull request lead times across the configured repositories."""

from __future__ import annotations

from typing import Any

from rich.text import Text
from textual import work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical, VerticalScroll
from textual.widgets import Static

from ...config import Config
from ...exceptions import TigGhError
from ...github import GitHubClient
from ...metrics import FetchLeadTimeMetrics, resolve_repositories
from ...models import LeadTimeMetrics, RateLimit
from ...screen import Loaded, Loading, ScreenMachine
from ...tasks import launch
from ..utils import format_duration, format_timestamp, progress_bar, truncate
from .base import ScreenTab


def render_metrics(metrics: LeadTimeMetrics, date_format: str) -> Text:
    text = Text()
    text.append("Lead time (created → merged)\n", style="bold")
    overall = metrics.overall
    text.append(
        f"  Overall   avg {format_duration(overall.average):>8}   "
        f"median {format_duration(overall.median):>8}   PRs {overall.count}\n"
    )
    for slug in sorted(metrics.by_repository):
        stat = metrics.by_repository[slug]
        text.append(
            f"  {truncate(slug, 30):<30}  avg {format_duration(stat.average):>8}   "
            f"median {format_duration(stat.median):>8}   PRs {stat.count}\n",
            style="dim" if stat.count == 0 else "",
        )

    phases = metrics.phase_breakdown
    text.append("\nReview phases", style="bold")
    text.append(f"  ({phases.sample_count} PRs with review and approval)\n", style="dim")
    text.append(f"  Created → first review   {format_duration(phases.created_to_first_review)}\n")
    text.append(f"  First review → approval  {format_duration(phases.first_review_to_approval)}\n")
    text.append(f"  Approval → merge         {format_duration(phases.approval_to_merge)}\n")

    stagnant = metrics.stagnant_prs
    text.append(
        f"\nStagnant PRs (open > {format_duration(stagnant.threshold)})", style="bold"
    )
    text.append(f"  {stagnant.total_stagnant} total, avg age {format_duration(stagnant.average_age)}\n")
    for pr in stagnant.longest_waiting:
        text.append(f"  {format_duration(pr.age):>7}  ", style="yellow")
        text.append(f"{pr.repository}#{pr.number} {truncate(pr.title, 60)}\n")

    if metrics.errors:
        text.append("\nSome repositories failed:\n", style="bold red")
        for error in metrics.errors:
            text.append(f"  {error}\n", style="red")

    if metrics.generated_at:
        text.append(f"\nGenerated {format_timestamp(metrics.generated_at, date_format)}", style="dim")
    return text


def render_rate_limit(rate: RateLimit | TigGhError | None, date_format: str) -> Text:
    if rate is None:
        return Text("")
    if isinstance(rate, TigGhError):
        return Text(f"Rate limit: {rate}", style="red")
    return Text(
        f"Rate limit: {rate.remaining}/{rate.limit} remaining, "
        f"resets {format_timestamp(rate.reset_at, date_format)}",
        style="dim",
    )


class MetricsTab(ScreenTab):
    """Lead-time report with per-repository progress while it is computed."""

    BINDINGS = ScreenTab.BINDINGS + [
        Binding("l", "rate_limit", "Rate limit", show=True),
    ]

    title = "Metrics"

    def __init__(self, client: GitHubClient, owner: str, repo: str, config: Config, **kwargs: Any) -> None:
        self.config = config
        self._rate_limit: RateLimit | TigGhError | None = None
        super().__init__(client, owner, repo, **kwargs)

    def create_machine(self) -> ScreenMachine:
        scan = FetchLeadTimeMetrics(
            self.client,
            self.config,
            resolve_repositories(self.config, self.owner, self.repo),
        )
        return ScreenMachine(scan, progress=True, name="metrics")

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static(self.title, classes="section-header")
            with VerticalScroll():
                yield Static("", classes="screen-body")
            yield Static("", id="rate-limit")

    def header_text(self) -> str:
        return f" {self.title}  {self.config.metrics.calculation_period_days} days "

    def render_loading(self, state: Loading) -> Text:
        text = Text("Fetching lead time metrics...\n\n", style="italic")
        snapshot = state.progress
        if snapshot is None:
            return text
        text.append(progress_bar(snapshot.fraction))
        text.append(f"  {snapshot}")
        if snapshot.current:
            text.append(f"  {snapshot.current}", style="dim")
        return text

    def render_body(self) -> Text:
        state = self.machine.state
        if isinstance(state, Loaded):
            return render_metrics(state.payload, self.config.ui.date_format)
        return super().render_body()

    def update_view(self) -> None:
        super().update_view()
        for widget in self.query("#rate-limit").results(Static):
            widget.update(render_rate_limit(self._rate_limit, self.config.ui.date_format))

    def action_rate_limit(self) -> None:
        self._fetch_rate_limit()

    @work(thread=True, exclusive=True, group="rate-limit")
    def _fetch_rate_limit(self) -> None:
        task = launch(self.client.get_rate_limit, lambda rate: rate, lambda error: error, name="rate-limit")
        result = task()
        self.app.call_from_thread(self._apply_rate_limit, result)

    def _apply_rate_limit(self, result: RateLimit | TigGhError) -> None:
        self._rate_limit = result
        self.update_view()
