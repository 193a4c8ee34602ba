"""PullRequestDetailModal: pull request metadata, description and reviews."""

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
from ...models import PullRequest, Review, ReviewState
from ...review_queue import review_summary
from ...tasks import launch
from ..utils import format_timestamp
from .diff_view import DiffModal
from .status_badge import StatusBadge

_REVIEW_STYLES = {
    ReviewState.APPROVED: "green",
    ReviewState.CHANGES_REQUESTED: "red",
    ReviewState.PENDING: "yellow",
}


def pull_badge_state(pull: PullRequest) -> str:
    if pull.merged:
        return "merged"
    if pull.draft and pull.state == "open":
        return "draft"
    return pull.state


def render_reviews(result: list[Review] | TigGhError | None, date_format: str) -> Text:
    if result is None:
        return Text("Loading reviews...", style="italic")
    if isinstance(result, TigGhError):
        return Text(f"Failed to load reviews: {result}", style="red")
    if not result:
        return Text("No reviews yet.", style="dim")
    text = Text(review_summary(result) + "\n\n")
    for review in result:
        text.append(f"@{review.author.login}", style="bold cyan")
        text.append(f"  {review.state.value.replace('_', ' ')}", style=_REVIEW_STYLES.get(review.state, "dim"))
        text.append(f"  {format_timestamp(review.submitted_at, date_format)}\n", style="dim")
        if review.body.strip():
            text.append(review.body.strip() + "\n")
    return text


class PullRequestDetailModal(ModalScreen):
    """Modal overlay with one pull request. Reviews load in a background thread.

    ``d`` opens the diff; Escape closes.
    """

    BINDINGS = [
        Binding("escape,q", "dismiss", "Close", show=True),
        Binding("d", "diff", "Diff", show=True),
    ]

    DEFAULT_CSS = """
    PullRequestDetailModal {
        align: center middle;
    }
    PullRequestDetailModal #detail-dialog {
        width: 90%;
        height: 90%;
        border: round $accent;
        padding: 0 1;
        background: $surface;
    }
    PullRequestDetailModal .detail-section-header {
        text-style: bold;
        margin-top: 1;
    }
    """

    def __init__(
        self,
        client: GitHubClient,
        owner: str,
        repo: str,
        pull: PullRequest,
        date_format: str = "%Y-%m-%d %H:%M",
        **kwargs: object,
    ) -> None:
        super().__init__(**kwargs)
        self._client = client
        self._owner = owner
        self._repo = repo
        self._pull = pull
        self._date_format = date_format

    def compose(self) -> ComposeResult:
        pull = self._pull
        with Container(id="detail-dialog"):
            yield Label(Text(f"Pull Request #{pull.number}  (Esc to close, d for diff)"), classes="modal-title")
            with Horizontal(classes="detail-meta"):
                yield StatusBadge(pull_badge_state(pull))
                yield Label(Text(f" {pull.title}"), classes="detail-meta-title")
            meta = [
                f"Author: @{pull.author.login}",
                f"{pull.head} → {pull.base}",
                f"Opened: {format_timestamp(pull.created_at, self._date_format)}",
            ]
            if pull.requested_reviewers:
                meta.append(
                    "Requested: " + ", ".join(f"@{u.login}" for u in pull.requested_reviewers)
                )
            yield Label(Text("  |  ".join(meta)), classes="detail-meta-row")
            with VerticalScroll():
                yield Static(Text(pull.body.strip() or "(no description)"), classes="detail-body")
                yield Label("REVIEWS", classes="detail-section-header")
                yield Static(render_reviews(None, self._date_format), id="reviews")

    def on_mount(self) -> None:
        self._load_reviews()

    @work(thread=True)
    def _load_reviews(self) -> None:
        number = self._pull.number
        task = launch(
            lambda: self._client.list_reviews(self._owner, self._repo, number),
            lambda reviews: reviews,
            lambda error: error,
            name=f"pull-reviews[{number}]",
        )
        result = task()
        self.app.call_from_thread(self._show_reviews, result)

    def _show_reviews(self, result: list[Review] | TigGhError) -> None:
        for widget in self.query("#reviews").results(Static):
            widget.update(render_reviews(result, self._date_format))

    def action_diff(self) -> None:
        number = self._pull.number
        self.app.push_screen(
            DiffModal(
                f"PR #{number}",
                lambda: self._client.get_pull_diff(self._owner, self._repo, number),
            )
        )
