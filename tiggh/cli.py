"""tig-gh CLI: resolve the repository and launch the dashboard."""

import argparse
import logging
import os
import sys
from pathlib import Path

from . import __version__
from .config import VIEW_NAMES, Config, load_config
from .exceptions import ConfigError
from .git_utils import get_current_repository, is_git_repository

LOG_PATH = Path.home() / ".cache" / "tig-gh" / "dashboard.log"

logger = logging.getLogger(__name__)

TOKEN_HELP = """\
GitHub token is not configured.

Set it with one of:
  export GITHUB_TOKEN=ghp_...
  github.token in ~/.config/tig-gh/config.yaml
"""


def configure_logging(path: Path = LOG_PATH, environ: dict[str, str] | None = None) -> None:
    """Send logs to a file; the terminal belongs to the TUI."""
    env = os.environ if environ is None else environ
    level_name = (env.get("TIG_GH_LOG_LEVEL") or "WARNING").upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.WARNING
    path.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=str(path),
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def parse_repository_arg(value: str) -> tuple[str, str]:
    """argparse type for ``owner/repo``."""
    parts = value.split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise argparse.ArgumentTypeError(f"expected owner/repo, got {value!r}")
    return parts[0], parts[1]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tig-gh",
        description="Browse a GitHub repository's issues, pull requests and commits in the terminal.",
    )
    parser.add_argument(
        "repository",
        nargs="?",
        type=parse_repository_arg,
        help="owner/repo (default: the origin remote of the current git checkout)",
    )
    parser.add_argument("--config", "-c", help="path to config.yaml")
    parser.add_argument("--view", choices=VIEW_NAMES, help="tab to open first")
    parser.add_argument("--version", action="version", version=f"tig-gh {__version__}")
    return parser


def resolve_repository(
    arg: tuple[str, str] | None, config: Config
) -> tuple[str, str] | None:
    """Command line argument, then git origin, then config defaults."""
    if arg:
        return arg
    detected = get_current_repository()
    if detected:
        return detected
    if config.github.default_owner and config.github.default_repo:
        return config.github.default_owner, config.github.default_repo
    return None


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    repository = resolve_repository(args.repository, config)
    if repository is None:
        if is_git_repository():
            reason = "the origin remote is not a GitHub repository"
        else:
            reason = "not inside a git checkout"
        print(f"Error: could not determine the repository ({reason}).\n", file=sys.stderr)
        parser.print_usage(sys.stderr)
        sys.exit(1)

    if not config.github.token:
        print(TOKEN_HELP, file=sys.stderr)
        sys.exit(1)

    configure_logging()
    owner, repo = repository

    # Textual is only needed once we actually launch
    from .dashboard.app import TigGhDashboard

    try:
        app = TigGhDashboard(config, owner, repo, initial_view=args.view or config.ui.default_view)
        app.run()
    except Exception:
        logger.exception("Dashboard crashed")
        raise


if __name__ == "__main__":
    main()
