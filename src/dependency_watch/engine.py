"""Watch engine: the two long-running entry points.

- ``await_available``: poll one coordinate until it is published, notify, return
- ``monitor``: poll everything in a watch list forever, re-reading the list
  on every tick so edits apply without a restart

Both run as a single asyncio task and stop on cancellation. The interval is
the gap between the end of one round and the start of the next, so rounds
never overlap. The sleep function is injectable so tests can drive a
virtual clock.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Awaitable, Callable

from .config import load_watch_list
from .exceptions import ConfigError
from .models import CheckResult, Coordinate, WatchTarget
from .notifications.base import Notifier
from .poller import Poller
from .repository import RepositoryClient
from .store import NotificationStore

logger = logging.getLogger("dependency-watch")

SleepFn = Callable[[float], Awaitable[None]]
WatchListLoader = Callable[[Path], set[WatchTarget]]


class WatchEngine:
    """Schedules polling rounds over a fixed set of collaborators.

    The repository, store and notifier are owned by the caller; the engine
    never opens or closes them. Share one store between engines (or between
    concurrent calls on one engine) and each coordinate is still notified at
    most once.
    """

    def __init__(
        self,
        repository: RepositoryClient,
        store: NotificationStore,
        notifier: Notifier,
        interval_seconds: float = 60.0,
        *,
        tolerate_config_errors: bool = False,
        max_concurrent_checks: int = 8,
        watch_list_loader: WatchListLoader = load_watch_list,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        self._interval = interval_seconds
        self._tolerate_config_errors = tolerate_config_errors
        self._load_watch_list = watch_list_loader
        self._sleep = sleep
        self._poller = Poller(
            repository,
            store,
            notifier,
            max_concurrent_checks=max_concurrent_checks,
        )

    async def await_available(self, group: str, artifact: str, version: str) -> Coordinate:
        """Block until ``group:artifact:version`` is published, then notify once."""
        coordinate = Coordinate(group=group, artifact=artifact, version=version)
        return await self.await_coordinate(coordinate)

    async def await_coordinate(self, coordinate: Coordinate) -> Coordinate:
        logger.info(f"Waiting for {coordinate} (checking every {self._interval:g}s)")
        attempts = 0
        while True:
            attempts += 1
            result = await self._poller.evaluate_and_notify(coordinate)
            if result is CheckResult.PRESENT:
                logger.info(f"{coordinate} found after {attempts} check(s)")
                return coordinate
            logger.debug(f"{coordinate}: {result.value} (check {attempts})")
            await self._sleep(self._interval)

    async def monitor(self, path: str | Path, max_ticks: int | None = None) -> None:
        """Poll every target in the watch list at ``path`` until cancelled.

        The first round runs immediately. ``max_ticks`` stops after that many
        rounds (used by ``--once``). A :class:`ConfigError` from the watch list
        ends the run unless the engine tolerates config errors, in which case
        that round is skipped.
        """
        path = Path(path).expanduser()
        logger.info(f"Monitoring {path} (checking every {self._interval:g}s)")
        ticks = 0
        while True:
            await self.tick(path)
            ticks += 1
            if max_ticks is not None and ticks >= max_ticks:
                return
            await self._sleep(self._interval)

    async def tick(self, path: str | Path) -> list[Coordinate]:
        """Run one monitor round. Returns the coordinates notified in it."""
        try:
            targets = self._load_watch_list(Path(path))
        except ConfigError as e:
            if not self._tolerate_config_errors:
                logger.error(f"Watch list error, stopping: {e}")
                raise
            logger.error(f"Watch list error, skipping this round: {e}")
            return []

        if not targets:
            logger.debug("Watch list is empty")
            return []

        logger.debug(f"Checking {len(targets)} target(s)")
        batches = await asyncio.gather(
            *(self._poller.evaluate(target) for target in targets)
        )
        return [coordinate for batch in batches for coordinate in batch]
