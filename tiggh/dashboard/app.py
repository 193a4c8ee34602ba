"""tig-gh dashboard: Textual TUI app.

Launch with: tig-gh [owner/repo]
"""

from __future__ import annotations

import logging

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Header, TabbedContent, TabPane

from ..config import Config
from ..github import GitHubClient
from .tabs.base import ScreenTab
from .tabs.commits import CommitDiffRequested, CommitsTab
from .tabs.issues import IssueSelected, IssuesTab
from .tabs.metrics import MetricsTab
from .tabs.pulls import PullDiffRequested, PullRequestSelected, PullsTab
from .tabs.queue import ReviewQueueTab
from .widgets.diff_view import DiffModal
from .widgets.issue_detail import IssueDetailModal
from .widgets.pull_detail import PullRequestDetailModal

logger = logging.getLogger(__name__)

TAB_IDS = ("issues", "pulls", "queue", "commits", "metrics")


class TigGhDashboard(App):
    """GitHub repository browser built with Textual.

    Five tabs: Issues, Pull Requests, Review Queue, Commits, Metrics. Each tab
    loads the first time it is shown and keeps its data until refreshed with
    ``r``. Enter opens a detail modal; Escape closes it.
    """

    TITLE = "tig-gh"

    CSS = """
    TabbedContent {
        height: 1fr;
    }
    .modal-title {
        text-style: bold;
        color: $accent;
    }
    .detail-meta-row {
        color: $text-muted;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit", show=True),
        Binding("r", "refresh", "Refresh", show=True),
        Binding("1", "show_tab('issues')", "Issues", show=False),
        Binding("2", "show_tab('pulls')", "PRs", show=False),
        Binding("3", "show_tab('queue')", "Queue", show=False),
        Binding("4", "show_tab('commits')", "Commits", show=False),
        Binding("5", "show_tab('metrics')", "Metrics", show=False),
    ]

    def __init__(
        self,
        config: Config,
        owner: str,
        repo: str,
        initial_view: str = "issues",
        client: GitHubClient | None = None,
        **kwargs: object,
    ) -> None:
        super().__init__(**kwargs)
        self.config = config
        self.owner = owner
        self.repo = repo
        self.initial_view = initial_view if initial_view in TAB_IDS else "issues"
        self.client = client or GitHubClient(
            token=config.github.token,
            api_base_url=config.github.api_base_url,
            timeout=config.github.request_timeout,
            per_page=config.ui.page_size,
        )
        self.sub_title = f"{owner}/{repo}"

    def compose(self) -> ComposeResult:
        args = (self.client, self.owner, self.repo)
        yield Header()
        with TabbedContent(id="tabs", initial=self.initial_view):
            with TabPane("Issues (1)", id="issues"):
                yield IssuesTab(*args, id="issues-tab")
            with TabPane("Pull Requests (2)", id="pulls"):
                yield PullsTab(*args, id="pulls-tab")
            with TabPane("Review Queue (3)", id="queue"):
                yield ReviewQueueTab(*args, id="queue-tab")
            with TabPane("Commits (4)", id="commits"):
                yield CommitsTab(*args, id="commits-tab")
            with TabPane("Metrics (5)", id="metrics"):
                yield MetricsTab(*args, self.config, id="metrics-tab")
        yield Footer()

    def on_mount(self) -> None:
        self._activate(self.initial_view)

    def _tab(self, tab_id: str) -> ScreenTab:
        return self.query_one(f"#{tab_id}-tab", ScreenTab)

    def _activate(self, tab_id: str) -> None:
        tab = self._tab(tab_id)
        tab.activate()
        tab.focus()

    def on_tabbed_content_tab_activated(self, event: TabbedContent.TabActivated) -> None:
        if event.pane is not None and event.pane.id in TAB_IDS:
            self._activate(event.pane.id)

    def action_show_tab(self, tab_id: str) -> None:
        self.query_one(TabbedContent).active = tab_id

    def action_refresh(self) -> None:
        active = self.query_one(TabbedContent).active
        if active in TAB_IDS:
            self._tab(active).refresh_screen()

    # ------------------------------------------------------------------
    # Modals
    # ------------------------------------------------------------------

    def on_issue_selected(self, event: IssueSelected) -> None:
        self.push_screen(
            IssueDetailModal(
                self.client, self.owner, self.repo, event.issue, self.config.ui.date_format
            )
        )

    def on_pull_request_selected(self, event: PullRequestSelected) -> None:
        self.push_screen(
            PullRequestDetailModal(
                self.client, self.owner, self.repo, event.pull, self.config.ui.date_format
            )
        )

    def on_pull_diff_requested(self, event: PullDiffRequested) -> None:
        number = event.pull.number
        self.push_screen(
            DiffModal(
                f"PR #{number}",
                lambda: self.client.get_pull_diff(self.owner, self.repo, number),
            )
        )

    def on_commit_diff_requested(self, event: CommitDiffRequested) -> None:
        sha = event.commit.sha
        self.push_screen(
            DiffModal(
                f"{event.commit.short_sha} {event.commit.summary}",
                lambda: self.client.get_commit_diff(self.owner, self.repo, sha),
            )
        )

    def on_unmount(self) -> None:
        logger.debug("Closing GitHub session")
        self.client.close()
