"""Custom exception hierarchy for dependency-watch.

All dependency-watch exceptions inherit from DependencyWatchError, allowing
callers to catch broad or specific errors:

    try:
        targets = load_watch_list("watch.yaml")
    except ConfigError as e:
        print(f"Watch list problem: {e}")
    except DependencyWatchError as e:
        print(f"dependency-watch error: {e}")
"""

from __future__ import annotations


class DependencyWatchError(Exception):
    """Base exception for all dependency-watch errors."""


class RepositoryError(DependencyWatchError):
    """Raised when a repository lookup fails transiently (network, 5xx, timeout)."""


class ConfigError(DependencyWatchError):
    """Raised when settings or a watch list are invalid or missing."""


class CoordinateError(DependencyWatchError, ValueError):
    """Raised when a string cannot be parsed into a coordinate."""
