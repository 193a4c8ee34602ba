"""Shared test fixtures for tig-gh tests."""

import shutil
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from tiggh.config import Config
from tiggh.models import PullRequest, Review, ReviewState, User

NOW = datetime(2024, 5, 20, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    tmp = tempfile.mkdtemp()
    yield Path(tmp)
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_pull():
    """Factory for PullRequest models with sensible defaults."""

    def _make(number=1, title=None, created_hours_ago=1, **kwargs):
        kwargs.setdefault("state", "open")
        kwargs.setdefault("author", User(login="octocat"))
        kwargs.setdefault("created_at", NOW - timedelta(hours=created_hours_ago))
        return PullRequest(number=number, title=title or f"PR {number}", **kwargs)

    return _make


@pytest.fixture
def make_review():
    def _make(state=ReviewState.COMMENTED, hours_ago=1, login="reviewer"):
        submitted = NOW - timedelta(hours=hours_ago) if hours_ago is not None else None
        return Review(id=0, author=User(login=login), state=state, submitted_at=submitted)

    return _make


@pytest.fixture
def metrics_config():
    """Config with metrics enabled and two repositories."""
    config = Config()
    config.metrics.enabled = True
    config.metrics.lead_time_enabled = True
    config.github.repositories = ["acme/api", "acme/web"]
    return config


@pytest.fixture
def mock_client():
    """A MagicMock standing in for GitHubClient."""
    return MagicMock(name="GitHubClient")


@pytest.fixture
def drive():
    """Run tasks synchronously, feeding each returned message back into the machine.

    Tasks run in FIFO order. Returns the list of delivered messages.
    """

    def _drive(machine, tasks, limit=100):
        queue = list(tasks)
        delivered = []
        while queue:
            assert len(delivered) < limit, "task loop did not settle"
            msg = queue.pop(0)()
            if msg is None:
                continue
            delivered.append(msg)
            queue.extend(machine.update(msg))
        return delivered

    return _drive
