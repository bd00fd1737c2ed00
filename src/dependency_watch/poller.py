"""Single-round evaluation of watch targets.

One call here is one look at the repository for one target: check it, and if
it is present and not yet in the store, record it and notify. Nothing in this
module sleeps or loops; scheduling lives in :mod:`dependency_watch.engine`.
"""

from __future__ import annotations

import asyncio
import logging

from .exceptions import RepositoryError
from .models import Artifact, CheckResult, Coordinate, WatchTarget
from .notifications.base import Notifier
from .repository import RepositoryClient
from .store import NotificationStore

logger = logging.getLogger("dependency-watch")


class Poller:
    """Evaluates targets against a repository and notifies at most once each."""

    def __init__(
        self,
        repository: RepositoryClient,
        store: NotificationStore,
        notifier: Notifier,
        max_concurrent_checks: int = 8,
    ) -> None:
        self._repository = repository
        self._store = store
        self._notifier = notifier
        self._lookups = asyncio.Semaphore(max_concurrent_checks)

    async def check_once(self, coordinate: Coordinate) -> CheckResult:
        """Ask the repository once. Lookup failures become TRANSIENT_ERROR."""
        try:
            async with self._lookups:
                present = await self._repository.exists(coordinate)
        except RepositoryError as e:
            logger.warning(f"Lookup failed for {coordinate}, retrying next tick: {e}")
            return CheckResult.TRANSIENT_ERROR
        except Exception as e:
            logger.error(f"Unexpected lookup error for {coordinate}: {e!r}")
            return CheckResult.TRANSIENT_ERROR

        return CheckResult.PRESENT if present else CheckResult.ABSENT

    async def evaluate_and_notify(self, coordinate: Coordinate) -> CheckResult:
        """Check ``coordinate`` and notify if it is newly present."""
        result = await self.check_once(coordinate)
        if result is CheckResult.PRESENT and await self._deliver(coordinate) is None:
            return CheckResult.TRANSIENT_ERROR
        return result

    async def evaluate_artifact(self, artifact: Artifact) -> list[Coordinate]:
        """Notify for every published version of ``artifact`` not yet notified.

        Returns the coordinates notified by this call.
        """
        try:
            async with self._lookups:
                versions = await self._repository.versions(
                    artifact.group, artifact.artifact
                )
        except RepositoryError as e:
            logger.warning(f"Version listing failed for {artifact}, retrying next tick: {e}")
            return []
        except Exception as e:
            logger.error(f"Unexpected listing error for {artifact}: {e!r}")
            return []

        notified: list[Coordinate] = []
        for version in versions:
            try:
                coordinate = artifact.coordinate(version)
            except ValueError:
                logger.warning(f"Skipping unusable version {version!r} of {artifact}")
                continue
            if await self._deliver(coordinate):
                notified.append(coordinate)
        return notified

    async def evaluate(self, target: WatchTarget) -> list[Coordinate]:
        """Evaluate one watch-list entry. Returns the coordinates notified."""
        if isinstance(target, Artifact):
            return await self.evaluate_artifact(target)
        result = await self.check_once(target)
        if result is CheckResult.PRESENT and await self._deliver(target):
            return [target]
        return []

    async def _deliver(self, coordinate: Coordinate) -> bool | None:
        """Claim and notify. None means the store could not record the claim."""
        # Recorded before notify; every later claim for this coordinate fails.
        try:
            claimed = self._store.claim(coordinate)
        except Exception as e:
            logger.error(f"Cannot record {coordinate}, retrying next tick: {e!r}")
            return None
        if not claimed:
            logger.debug(f"{coordinate} already notified")
            return False

        logger.info(f"{coordinate} is available, notifying")
        try:
            await self._notifier.notify(coordinate)
        except Exception as e:
            logger.error(f"Notifier failed for {coordinate}: {e!r}")
        return True
