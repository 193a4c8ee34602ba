"""Domain models for GitHub data shown in the dashboard.

Each model is a plain dataclass with a ``from_api`` constructor that accepts
the JSON object returned by the GitHub REST API.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a GitHub ISO8601 timestamp into an aware UTC datetime."""
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


@dataclass(frozen=True)
class User:
    login: str
    id: int = 0
    name: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any] | None) -> "User":
        data = data or {}
        return cls(
            login=data.get("login") or "",
            id=data.get("id") or 0,
            name=data.get("name") or "",
        )


@dataclass(frozen=True)
class Label:
    name: str
    color: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Label":
        return cls(name=data.get("name") or "", color=data.get("color") or "")


@dataclass(frozen=True)
class Comment:
    id: int
    author: User
    body: str
    created_at: datetime | None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Comment":
        return cls(
            id=data.get("id") or 0,
            author=User.from_api(data.get("user")),
            body=data.get("body") or "",
            created_at=parse_timestamp(data.get("created_at")),
        )


@dataclass(frozen=True)
class Issue:
    number: int
    title: str
    state: str
    author: User
    body: str = ""
    labels: tuple[Label, ...] = ()
    assignees: tuple[User, ...] = ()
    comments: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
    closed_at: datetime | None = None
    html_url: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Issue":
        return cls(
            number=data.get("number") or 0,
            title=data.get("title") or "",
            state=data.get("state") or "",
            author=User.from_api(data.get("user")),
            body=data.get("body") or "",
            labels=tuple(Label.from_api(lbl) for lbl in data.get("labels") or []),
            assignees=tuple(User.from_api(u) for u in data.get("assignees") or []),
            comments=data.get("comments") or 0,
            created_at=parse_timestamp(data.get("created_at")),
            updated_at=parse_timestamp(data.get("updated_at")),
            closed_at=parse_timestamp(data.get("closed_at")),
            html_url=data.get("html_url") or "",
        )


class ReviewState(Enum):
    """Review state as reported by the reviews endpoint."""
    APPROVED = "approved"
    CHANGES_REQUESTED = "changes_requested"
    COMMENTED = "commented"
    DISMISSED = "dismissed"
    PENDING = "pending"

    @classmethod
    def parse(cls, value: str | None) -> "ReviewState":
        try:
            return cls((value or "").lower())
        except ValueError:
            return cls.COMMENTED


@dataclass(frozen=True)
class Review:
    id: int
    author: User
    state: ReviewState
    submitted_at: datetime | None
    body: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Review":
        return cls(
            id=data.get("id") or 0,
            author=User.from_api(data.get("user")),
            state=ReviewState.parse(data.get("state")),
            submitted_at=parse_timestamp(data.get("submitted_at")),
            body=data.get("body") or "",
        )


@dataclass(frozen=True)
class PullRequest:
    number: int
    title: str
    state: str
    author: User
    head: str = ""
    base: str = ""
    body: str = ""
    draft: bool = False
    merged: bool = False
    mergeable_state: str = ""
    labels: tuple[Label, ...] = ()
    requested_reviewers: tuple[User, ...] = ()
    comments: int = 0
    commits: int = 0
    additions: int = 0
    deletions: int = 0
    changed_files: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
    merged_at: datetime | None = None
    closed_at: datetime | None = None
    html_url: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "PullRequest":
        return cls(
            number=data.get("number") or 0,
            title=data.get("title") or "",
            state=data.get("state") or "",
            author=User.from_api(data.get("user")),
            head=(data.get("head") or {}).get("ref") or "",
            base=(data.get("base") or {}).get("ref") or "",
            body=data.get("body") or "",
            draft=bool(data.get("draft")),
            merged=bool(data.get("merged")) or data.get("merged_at") is not None,
            mergeable_state=data.get("mergeable_state") or "",
            labels=tuple(Label.from_api(lbl) for lbl in data.get("labels") or []),
            requested_reviewers=tuple(
                User.from_api(u) for u in data.get("requested_reviewers") or []
            ),
            comments=data.get("comments") or 0,
            commits=data.get("commits") or 0,
            additions=data.get("additions") or 0,
            deletions=data.get("deletions") or 0,
            changed_files=data.get("changed_files") or 0,
            created_at=parse_timestamp(data.get("created_at")),
            updated_at=parse_timestamp(data.get("updated_at")),
            merged_at=parse_timestamp(data.get("merged_at")),
            closed_at=parse_timestamp(data.get("closed_at")),
            html_url=data.get("html_url") or "",
        )


@dataclass(frozen=True)
class Commit:
    sha: str
    message: str
    author_name: str
    author_login: str = ""
    authored_at: datetime | None = None
    html_url: str = ""

    @property
    def short_sha(self) -> str:
        return self.sha[:7]

    @property
    def summary(self) -> str:
        """First line of the commit message."""
        return self.message.split("\n", 1)[0]

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Commit":
        commit = data.get("commit") or {}
        author = commit.get("author") or {}
        return cls(
            sha=data.get("sha") or "",
            message=commit.get("message") or "",
            author_name=author.get("name") or "",
            author_login=(data.get("author") or {}).get("login") or "",
            authored_at=parse_timestamp(author.get("date")),
            html_url=data.get("html_url") or "",
        )


@dataclass(frozen=True)
class RateLimit:
    limit: int
    remaining: int
    reset_at: datetime | None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "RateLimit":
        core = (data.get("resources") or {}).get("core") or data.get("rate") or {}
        reset = core.get("reset")
        return cls(
            limit=core.get("limit") or 0,
            remaining=core.get("remaining") or 0,
            reset_at=datetime.fromtimestamp(reset, tz=timezone.utc) if reset else None,
        )


@dataclass(frozen=True)
class LeadTimeStat:
    """Average/median lead time over a set of merged pull requests."""
    average: timedelta = timedelta(0)
    median: timedelta = timedelta(0)
    count: int = 0


@dataclass(frozen=True)
class ReviewPhaseMetrics:
    """Average time spent in each review phase."""
    created_to_first_review: timedelta = timedelta(0)
    first_review_to_approval: timedelta = timedelta(0)
    approval_to_merge: timedelta = timedelta(0)
    total_lead_time: timedelta = timedelta(0)
    sample_count: int = 0


@dataclass(frozen=True)
class StagnantPR:
    repository: str
    number: int
    title: str
    age: timedelta


@dataclass(frozen=True)
class StagnantPRMetrics:
    threshold: timedelta = timedelta(hours=72)
    total_stagnant: int = 0
    average_age: timedelta = timedelta(0)
    longest_waiting: tuple[StagnantPR, ...] = ()


@dataclass
class LeadTimeMetrics:
    overall: LeadTimeStat = field(default_factory=LeadTimeStat)
    by_repository: dict[str, LeadTimeStat] = field(default_factory=dict)
    phase_breakdown: ReviewPhaseMetrics = field(default_factory=ReviewPhaseMetrics)
    stagnant_prs: StagnantPRMetrics = field(default_factory=StagnantPRMetrics)
    errors: list[str] = field(default_factory=list)
    generated_at: datetime | None = None
