"""Shared fakes for engine tests: a virtual clock, repository and notifier."""

from __future__ import annotations

import asyncio

import pytest

from dependency_watch.engine import WatchEngine
from dependency_watch.exceptions import RepositoryError
from dependency_watch.models import Coordinate
from dependency_watch.notifications.base import Notifier
from dependency_watch.repository import RepositoryClient
from dependency_watch.store import InMemoryNotificationStore


class FakeClock:
    """Virtual time for the engine's injectable ``sleep``.

    ``advance`` wakes sleepers in deadline order and lets the event loop run
    after each wake-up, so work triggered by one tick finishes before the
    next assertion.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._sleepers: list[tuple[float, int, asyncio.Future]] = []
        self._seq = 0

    async def sleep(self, seconds: float) -> None:
        fut = asyncio.get_running_loop().create_future()
        self._seq += 1
        self._sleepers.append((self.now + seconds, self._seq, fut))
        await fut

    @property
    def pending_sleeps(self) -> int:
        return sum(1 for _, _, fut in self._sleepers if not fut.done())

    async def settle(self) -> None:
        """Let every runnable task run until it blocks."""
        for _ in range(50):
            await asyncio.sleep(0)

    async def advance(self, seconds: float) -> None:
        target = self.now + seconds
        await self.settle()
        while True:
            due = sorted(
                (s for s in self._sleepers if s[0] <= target and not s[2].done()),
                key=lambda s: (s[0], s[1]),
            )
            if not due:
                break
            entry = due[0]
            self._sleepers.remove(entry)
            self.now = entry[0]
            entry[2].set_result(None)
            await self.settle()
        self.now = target
        self._sleepers = [s for s in self._sleepers if not s[2].done()]


class FakeMavenRepository(RepositoryClient):
    """In-memory repository. ``fail()`` makes lookups raise RepositoryError."""

    def __init__(self) -> None:
        self._versions: dict[tuple[str, str], list[str]] = {}
        self._failing: set[str] = set()
        self.lookups: list[str] = []
        self.closed = False

    def add_artifact(self, group: str, artifact: str, version: str) -> None:
        versions = self._versions.setdefault((group, artifact), [])
        if version not in versions:
            versions.append(version)

    def fail(self, key: str) -> None:
        self._failing.add(key)

    def heal(self, key: str) -> None:
        self._failing.discard(key)

    async def exists(self, coordinate: Coordinate) -> bool:
        self.lookups.append(str(coordinate))
        if str(coordinate) in self._failing:
            raise RepositoryError(f"503 for {coordinate}")
        return coordinate.version in self._versions.get(
            (coordinate.group, coordinate.artifact), []
        )

    async def versions(self, group: str, artifact: str) -> list[str]:
        self.lookups.append(f"{group}:{artifact}")
        if f"{group}:{artifact}" in self._failing:
            raise RepositoryError(f"503 for {group}:{artifact}")
        return list(self._versions.get((group, artifact), []))

    async def close(self) -> None:
        self.closed = True


class FlakyNotificationStore(InMemoryNotificationStore):
    """In-memory store whose writes raise OSError for keys in ``failing``."""

    def __init__(self) -> None:
        super().__init__()
        self.failing: set[str] = set()

    def _add(self, key: str) -> None:
        if key in self.failing:
            raise OSError(28, "No space left on device")
        super()._add(key)


class RecordingNotifier(Notifier):
    """Remembers every canonical string it was asked to deliver."""

    def __init__(self, error: Exception | None = None) -> None:
        self.notifications: list[str] = []
        self._error = error

    async def notify(self, coordinate: Coordinate) -> None:
        self.notifications.append(str(coordinate))
        if self._error is not None:
            raise self._error


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repository() -> FakeMavenRepository:
    return FakeMavenRepository()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def store() -> InMemoryNotificationStore:
    return InMemoryNotificationStore()


@pytest.fixture
def engine(repository, store, notifier, clock) -> WatchEngine:
    return WatchEngine(
        repository=repository,
        store=store,
        notifier=notifier,
        interval_seconds=5,
        sleep=clock.sleep,
    )


@pytest.fixture
def write_watch_list(tmp_path):
    """Write a watch list with the given entries and return its path."""
    path = tmp_path / "config.yaml"

    def _write(*entries: str):
        lines = ["coordinates:"] + [f"  - {entry}" for entry in entries]
        path.write_text("\n".join(lines) + "\n")
        return path

    return _write
