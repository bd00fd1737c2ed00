"""dependency-watch: get notified when artifact versions are published."""

__version__ = "0.3.0"

from .exceptions import (
    ConfigError,
    CoordinateError,
    DependencyWatchError,
    RepositoryError,
)
from .models import Artifact, CheckResult, Coordinate

__all__ = [
    "__version__",
    "Artifact",
    "CheckResult",
    "Coordinate",
    "DependencyWatchError",
    "RepositoryError",
    "ConfigError",
    "CoordinateError",
]
