"""Configuration loading for tig-gh.

Settings come from the first ``config.yaml`` found on the search path, then
environment variables override individual keys. A missing file is not an
error; a file that is not valid YAML is.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

import yaml

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

ViewName = Literal["issues", "pulls", "queue", "commits", "metrics"]

VIEW_NAMES: tuple[str, ...] = ("issues", "pulls", "queue", "commits", "metrics")

DEFAULT_API_BASE_URL = "https://api.github.com/"
DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_PAGE_SIZE = 50
DEFAULT_VIEW: ViewName = "issues"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M"
DEFAULT_CALCULATION_PERIOD_DAYS = 30

CONFIG_FILENAME = "config.yaml"


def config_search_paths() -> list[Path]:
    """Directories searched for config.yaml, highest priority first."""
    home = Path.home()
    return [
        Path.cwd() / ".tig-gh",
        home / ".config" / "tig-gh",
        home / ".tig-gh",
        Path("/etc/tig-gh"),
    ]


@dataclass
class GitHubConfig:
    token: str = ""
    default_owner: str = ""
    default_repo: str = ""
    api_base_url: str = DEFAULT_API_BASE_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    # owner/repo entries scanned by the metrics view
    repositories: list[str] = field(default_factory=list)


@dataclass
class UIConfig:
    default_view: str = DEFAULT_VIEW
    page_size: int = DEFAULT_PAGE_SIZE
    date_format: str = DEFAULT_DATE_FORMAT


@dataclass
class MetricsConfig:
    enabled: bool = False
    lead_time_enabled: bool = False
    calculation_period_days: int = DEFAULT_CALCULATION_PERIOD_DAYS


@dataclass
class Config:
    github: GitHubConfig = field(default_factory=GitHubConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    path: Path | None = None

    def validate(self) -> "Config":
        """Replace empty or non-positive values with defaults."""
        if not self.github.api_base_url:
            self.github.api_base_url = DEFAULT_API_BASE_URL
        if self.github.request_timeout <= 0:
            self.github.request_timeout = DEFAULT_REQUEST_TIMEOUT
        if self.github.repositories is None:
            self.github.repositories = []
        if self.ui.default_view not in VIEW_NAMES:
            if self.ui.default_view:
                logger.warning("Unknown default view %r, using %r", self.ui.default_view, DEFAULT_VIEW)
            self.ui.default_view = DEFAULT_VIEW
        if self.ui.page_size <= 0:
            self.ui.page_size = DEFAULT_PAGE_SIZE
        if not self.ui.date_format:
            self.ui.date_format = DEFAULT_DATE_FORMAT
        if self.metrics.calculation_period_days <= 0:
            self.metrics.calculation_period_days = DEFAULT_CALCULATION_PERIOD_DAYS
        return self


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' must be a mapping, got {type(value).__name__}")
    return value


def _coerce(section: dict[str, Any], key: str, default: Any, kind: type) -> Any:
    if key not in section or section[key] is None:
        return default
    try:
        return kind(section[key])
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid value for '{key}': {section[key]!r}") from exc


def _flag(section: dict[str, Any], key: str, default: bool = False) -> bool:
    value = section.get(key)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ConfigError(f"'{key}' must be true or false, got {value!r}")
    return value


def config_from_dict(data: dict[str, Any]) -> Config:
    """Build a Config from parsed YAML, ignoring unknown keys."""
    github = _section(data, "github")
    ui = _section(data, "ui")
    metrics = _section(data, "metrics")

    repositories = github.get("repositories") or []
    if not isinstance(repositories, list):
        raise ConfigError("'github.repositories' must be a list of owner/repo strings")

    return Config(
        github=GitHubConfig(
            token=_coerce(github, "token", "", str),
            default_owner=_coerce(github, "default_owner", "", str),
            default_repo=_coerce(github, "default_repo", "", str),
            api_base_url=_coerce(github, "api_base_url", DEFAULT_API_BASE_URL, str),
            request_timeout=_coerce(github, "request_timeout", DEFAULT_REQUEST_TIMEOUT, float),
            repositories=[str(r) for r in repositories],
        ),
        ui=UIConfig(
            default_view=_coerce(ui, "default_view", DEFAULT_VIEW, str),
            page_size=_coerce(ui, "page_size", DEFAULT_PAGE_SIZE, int),
            date_format=_coerce(ui, "date_format", DEFAULT_DATE_FORMAT, str),
        ),
        metrics=MetricsConfig(
            enabled=_flag(metrics, "enabled"),
            lead_time_enabled=_flag(metrics, "lead_time_enabled"),
            calculation_period_days=_coerce(
                metrics, "calculation_period_days", DEFAULT_CALCULATION_PERIOD_DAYS, int
            ),
        ),
    )


def find_config_file(explicit: str | Path | None = None) -> Path | None:
    """Return the config file to load, or None when there is none.

    An explicit path must exist; the search path is only consulted without one.
    """
    if explicit:
        path = Path(explicit).expanduser()
        if not path.is_file():
            raise ConfigError(f"config file not found: {path}")
        return path
    for directory in config_search_paths():
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def apply_env_overrides(config: Config, environ: dict[str, str] | None = None) -> Config:
    env = os.environ if environ is None else environ
    if env.get("GITHUB_TOKEN"):
        config.github.token = env["GITHUB_TOKEN"]
    if env.get("GITHUB_API_URL"):
        config.github.api_base_url = env["GITHUB_API_URL"]
    if env.get("TIG_GH_GITHUB_DEFAULT_OWNER"):
        config.github.default_owner = env["TIG_GH_GITHUB_DEFAULT_OWNER"]
    if env.get("TIG_GH_GITHUB_DEFAULT_REPO"):
        config.github.default_repo = env["TIG_GH_GITHUB_DEFAULT_REPO"]
    return config


def load_config(path: str | Path | None = None, environ: dict[str, str] | None = None) -> Config:
    """Load configuration from file and environment.

    Args:
        path: Explicit config file (``--config``); searched for when omitted
        environ: Environment mapping, defaults to ``os.environ``

    Returns:
        Validated Config

    Raises:
        ConfigError: If the file cannot be read or is not valid YAML
    """
    config_path = find_config_file(path)
    if config_path is None:
        config = Config()
    else:
        try:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"failed to parse {config_path}: {exc}") from exc
        except OSError as exc:
            raise ConfigError(f"failed to read {config_path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"{config_path}: top level must be a mapping")
        config = config_from_dict(data)
        config.path = config_path
        logger.debug("Loaded config from %s", config_path)

    apply_env_overrides(config, environ)
    return config.validate()
