"""Configuration loading and validation.

Two kinds of files are read here:

- the settings file (``~/.dependency-watch/config.yaml``), loaded once at
  startup into :class:`DependencyWatchConfig`
- the watch list passed to ``monitor``, re-read on every tick by
  :func:`load_watch_list`
"""

from __future__ import annotations

import os
import re
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from .exceptions import ConfigError, CoordinateError
from .models import WatchTarget, parse_target

DEFAULT_CONFIG_PATH = "~/.dependency-watch/config.yaml"
DEFAULT_REPOSITORY_URL = "https://repo1.maven.org/maven2"


class RepositoryConfig(BaseModel):
    url: str = DEFAULT_REPOSITORY_URL
    timeout_seconds: float = 15.0  # Per-request limit enforced by aiohttp


class NotificationsConfig(BaseModel):
    desktop_enabled: bool = False
    ntfy_topic: str = ""
    ntfy_server_url: str = "https://ntfy.sh"
    webhook_url: str = ""  # Generic JSON POST (IFTTT maker URLs work too)
    slack_webhook_url: str = ""
    discord_webhook_url: str = ""


class DependencyWatchConfig(BaseModel):
    interval_seconds: float = Field(default=60.0, gt=0)
    repository: RepositoryConfig = Field(default_factory=RepositoryConfig)
    notifications: NotificationsConfig = Field(default_factory=NotificationsConfig)
    store_file: str = "~/.dependency-watch/notified.yaml"
    tolerate_config_errors: bool = False
    max_concurrent_checks: int = Field(default=8, ge=1)


def _interpolate_env_vars(text: str) -> str:
    """Replace ${VAR_NAME} with environment variable values."""

    def replacer(match: re.Match) -> str:
        var_name = match.group(1)
        return os.environ.get(var_name, "")

    return re.sub(r"\$\{(\w+)\}", replacer, text)


_ENV_KEYS = (
    "DEPENDENCY_WATCH_INTERVAL",
    "DEPENDENCY_WATCH_REPO",
    "DEPENDENCY_WATCH_DATA",
    "NTFY_TOPIC",
    "WEBHOOK_URL",
    "SLACK_WEBHOOK_URL",
    "DISCORD_WEBHOOK_URL",
)


def _config_from_env() -> DependencyWatchConfig:
    """Build config from environment variables (for containers and CI).

    Falls back to defaults for anything that is not set.
    """
    defaults = DependencyWatchConfig()
    try:
        return DependencyWatchConfig(
            interval_seconds=float(
                os.environ.get("DEPENDENCY_WATCH_INTERVAL", defaults.interval_seconds)
            ),
            repository=RepositoryConfig(
                url=os.environ.get("DEPENDENCY_WATCH_REPO", DEFAULT_REPOSITORY_URL),
            ),
            store_file=os.environ.get("DEPENDENCY_WATCH_DATA", defaults.store_file),
            notifications=NotificationsConfig(
                ntfy_topic=os.environ.get("NTFY_TOPIC", ""),
                webhook_url=os.environ.get("WEBHOOK_URL", ""),
                slack_webhook_url=os.environ.get("SLACK_WEBHOOK_URL", ""),
                discord_webhook_url=os.environ.get("DISCORD_WEBHOOK_URL", ""),
            ),
        )
    except (ValueError, ValidationError) as e:
        raise ConfigError(f"Invalid environment configuration: {e}") from e


def load_config(path: str | Path | None = None) -> DependencyWatchConfig:
    """Load settings from YAML file, env vars, or defaults.

    Priority: config.yaml (with ${ENV} interpolation) > env vars > defaults.
    """
    path = Path(path or DEFAULT_CONFIG_PATH).expanduser()

    if not path.exists():
        if any(os.environ.get(key) for key in _ENV_KEYS):
            return _config_from_env()
        return DependencyWatchConfig()

    raw_text = path.read_text()
    interpolated = _interpolate_env_vars(raw_text)
    try:
        data = yaml.safe_load(interpolated)
    except yaml.YAMLError as e:
        raise ConfigError(f"Cannot parse {path}: {e}") from e
    if data is None:
        return DependencyWatchConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")
    try:
        return DependencyWatchConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings in {path}: {e}") from e


def load_watch_list(path: str | Path) -> set[WatchTarget]:
    """Read the set of watch targets from a watch list file.

    The file is a YAML mapping with a ``coordinates`` list whose entries are
    ``group:artifact`` (every version) or ``group:artifact:version``.
    Any problem with the file raises :class:`ConfigError`; an empty list is
    valid and means nothing is watched.
    """
    path = Path(path).expanduser()
    try:
        raw_text = path.read_text()
    except OSError as e:
        raise ConfigError(f"Cannot read watch list {path}: {e}") from e

    try:
        data = yaml.safe_load(raw_text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Cannot parse watch list {path}: {e}") from e

    if not isinstance(data, dict) or "coordinates" not in data:
        raise ConfigError(f"Watch list {path} must be a mapping with 'coordinates'")

    entries = data["coordinates"]
    if entries is None:  # "coordinates:" with nothing under it
        entries = []
    if not isinstance(entries, list):
        raise ConfigError(f"'coordinates' in {path} must be a list")

    targets: set[WatchTarget] = set()
    for entry in entries:
        if not isinstance(entry, str):
            raise ConfigError(f"Watch list entry {entry!r} in {path} is not a string")
        try:
            targets.add(parse_target(entry))
        except CoordinateError as e:
            raise ConfigError(str(e)) from e
    return targets
