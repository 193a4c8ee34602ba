"""Detect the GitHub repository of the current working directory."""

import logging
import subprocess
from pathlib import Path
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

SSH_PREFIX = "git@github.com:"


def run_git(args: list[str], cwd: Path | str | None = None, check: bool = True) -> subprocess.CompletedProcess:
    """Run a git command.

    Args:
        args: Git command arguments (without 'git')
        cwd: Working directory for the command
        check: Raise exception on non-zero exit

    Returns:
        CompletedProcess instance
    """
    return subprocess.run(
        ["git"] + args,
        cwd=cwd,
        capture_output=True,
        text=True,
        check=check,
        timeout=10,
    )


def parse_github_url(url: str) -> tuple[str, str]:
    """Return (owner, repo) from a GitHub remote URL.

    Supports ``https://github.com/owner/repo(.git)`` (credentials in the URL
    are ignored) and ``git@github.com:owner/repo(.git)``.

    Raises:
        ValueError: If the URL is not a GitHub repository URL
    """
    url = url.strip()
    if url.endswith(".git"):
        url = url[: -len(".git")]

    if url.startswith(("http://", "https://")):
        parsed = urlparse(url)
        if parsed.hostname != "github.com":
            raise ValueError(f"not a GitHub URL: {url}")
        owner_repo = parsed.path.lstrip("/")
    elif url.startswith(SSH_PREFIX):
        owner_repo = url[len(SSH_PREFIX):]
    else:
        raise ValueError(f"unsupported URL format: {url}")

    parts = owner_repo.split("/")
    if len(parts) != 2:
        raise ValueError(f"invalid GitHub repository format: {owner_repo}")
    owner, repo = parts
    if not owner or not repo:
        raise ValueError("empty owner or repository name")
    return owner, repo


def get_current_repository(cwd: Path | str | None = None) -> tuple[str, str] | None:
    """(owner, repo) of the ``origin`` remote, or None outside a GitHub checkout."""
    try:
        result = run_git(["remote", "get-url", "origin"], cwd=cwd)
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired, FileNotFoundError) as e:
        logger.debug("No git origin remote: %s", e)
        return None
    try:
        return parse_github_url(result.stdout)
    except ValueError as e:
        logger.debug("Origin is not a GitHub repository: %s", e)
        return None


def is_git_repository(cwd: Path | str | None = None) -> bool:
    try:
        return run_git(["rev-parse", "--git-dir"], cwd=cwd, check=False).returncode == 0
    except (subprocess.TimeoutExpired, FileNotFoundError):
        return False
