"""Console output: the notification every run gets.

Prints the canonical coordinate to stdout, one per line, so ``await`` and
``monitor`` compose with shell pipelines.
"""

from __future__ import annotations

import logging

import click

from ..models import Coordinate

logger = logging.getLogger("dependency-watch")


class ConsoleNotifier:
    """Write ``group:artifact:version`` to stdout."""

    def __init__(self, enabled: bool = True):
        self._enabled = enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    def notify(self, coordinate: Coordinate) -> bool:
        if not self._enabled:
            return False
        click.echo(str(coordinate))
        logger.info(f"Available: {coordinate}")
        return True
