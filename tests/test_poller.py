"""Tests for Poller: single-round checks and at-most-once delivery."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from conftest import FlakyNotificationStore, RecordingNotifier
from dependency_watch.models import Artifact, CheckResult, Coordinate
from dependency_watch.poller import Poller
from dependency_watch.store import InMemoryNotificationStore

_COORD = Coordinate(group="com.example", artifact="example", version="1.0")


@pytest.fixture
def poller(repository, store, notifier) -> Poller:
    return Poller(repository, store, notifier)


class TestCheckOnce:
    @pytest.mark.asyncio
    async def test_absent(self, poller):
        assert await poller.check_once(_COORD) is CheckResult.ABSENT

    @pytest.mark.asyncio
    async def test_present(self, poller, repository):
        repository.add_artifact("com.example", "example", "1.0")
        assert await poller.check_once(_COORD) is CheckResult.PRESENT

    @pytest.mark.asyncio
    async def test_repository_error_is_transient(self, poller, repository):
        repository.add_artifact("com.example", "example", "1.0")
        repository.fail(str(_COORD))
        assert await poller.check_once(_COORD) is CheckResult.TRANSIENT_ERROR

    @pytest.mark.asyncio
    async def test_unexpected_error_is_transient(self, store, notifier):
        repository = AsyncMock()
        repository.exists = AsyncMock(side_effect=OSError("connection reset"))
        poller = Poller(repository, store, notifier)
        assert await poller.check_once(_COORD) is CheckResult.TRANSIENT_ERROR

    @pytest.mark.asyncio
    async def test_check_does_not_touch_store(self, poller, repository, store, notifier):
        repository.add_artifact("com.example", "example", "1.0")
        await poller.check_once(_COORD)
        assert store.has(_COORD) is False
        assert notifier.notifications == []


class TestEvaluateAndNotify:
    @pytest.mark.asyncio
    async def test_present_records_and_notifies(self, poller, repository, store, notifier):
        repository.add_artifact("com.example", "example", "1.0")

        result = await poller.evaluate_and_notify(_COORD)

        assert result is CheckResult.PRESENT
        assert store.has(_COORD)
        assert notifier.notifications == ["com.example:example:1.0"]

    @pytest.mark.asyncio
    async def test_second_evaluation_does_not_renotify(self, poller, repository, notifier):
        repository.add_artifact("com.example", "example", "1.0")

        await poller.evaluate_and_notify(_COORD)
        await poller.evaluate_and_notify(_COORD)

        assert notifier.notifications == ["com.example:example:1.0"]

    @pytest.mark.asyncio
    async def test_absent_is_noop(self, poller, store, notifier):
        result = await poller.evaluate_and_notify(_COORD)
        assert result is CheckResult.ABSENT
        assert store.has(_COORD) is False
        assert notifier.notifications == []

    @pytest.mark.asyncio
    async def test_transient_error_is_noop(self, poller, repository, store, notifier):
        repository.add_artifact("com.example", "example", "1.0")
        repository.fail(str(_COORD))

        result = await poller.evaluate_and_notify(_COORD)

        assert result is CheckResult.TRANSIENT_ERROR
        assert store.has(_COORD) is False
        assert notifier.notifications == []

    @pytest.mark.asyncio
    async def test_recorded_before_notify(self, repository, store):
        """The store already holds the coordinate while notify runs."""
        seen_in_store = []

        class ProbeNotifier(RecordingNotifier):
            async def notify(self, coordinate):
                seen_in_store.append(store.has(coordinate))
                await super().notify(coordinate)

        repository.add_artifact("com.example", "example", "1.0")
        poller = Poller(repository, store, ProbeNotifier())
        await poller.evaluate_and_notify(_COORD)

        assert seen_in_store == [True]

    @pytest.mark.asyncio
    async def test_reentrant_check_from_notifier_does_not_duplicate(self, repository, store):
        notifier = RecordingNotifier()
        poller = Poller(repository, store, notifier)

        class ReentrantNotifier(RecordingNotifier):
            async def notify(self, coordinate):
                await super().notify(coordinate)
                await poller.evaluate_and_notify(coordinate)

        reentrant = ReentrantNotifier()
        poller._notifier = reentrant
        repository.add_artifact("com.example", "example", "1.0")

        await poller.evaluate_and_notify(_COORD)

        assert reentrant.notifications == ["com.example:example:1.0"]

    @pytest.mark.asyncio
    async def test_notifier_failure_is_not_retried(self, repository, store):
        notifier = RecordingNotifier(error=RuntimeError("webhook down"))
        poller = Poller(repository, store, notifier)
        repository.add_artifact("com.example", "example", "1.0")

        result = await poller.evaluate_and_notify(_COORD)
        await poller.evaluate_and_notify(_COORD)

        assert result is CheckResult.PRESENT
        assert notifier.notifications == ["com.example:example:1.0"]
        assert store.has(_COORD)

    @pytest.mark.asyncio
    async def test_concurrent_evaluations_notify_once(self, repository, notifier):
        store = InMemoryNotificationStore()
        poller = Poller(repository, store, notifier)
        repository.add_artifact("com.example", "example", "1.0")

        await asyncio.gather(*(poller.evaluate_and_notify(_COORD) for _ in range(10)))

        assert notifier.notifications == ["com.example:example:1.0"]

    @pytest.mark.asyncio
    async def test_store_failure_is_transient(self, repository, notifier):
        store = FlakyNotificationStore()
        store.failing.add(str(_COORD))
        poller = Poller(repository, store, notifier)
        repository.add_artifact("com.example", "example", "1.0")

        result = await poller.evaluate_and_notify(_COORD)

        assert result is CheckResult.TRANSIENT_ERROR
        assert store.has(_COORD) is False
        assert notifier.notifications == []

        store.failing.clear()
        assert await poller.evaluate_and_notify(_COORD) is CheckResult.PRESENT
        assert notifier.notifications == ["com.example:example:1.0"]


class TestEvaluateArtifact:
    @pytest.mark.asyncio
    async def test_every_listed_version_notified(self, poller, repository, notifier):
        repository.add_artifact("com.example", "example", "1.0")
        repository.add_artifact("com.example", "example", "1.1")

        notified = await poller.evaluate_artifact(
            Artifact(group="com.example", artifact="example")
        )

        assert [str(c) for c in notified] == [
            "com.example:example:1.0",
            "com.example:example:1.1",
        ]
        assert notifier.notifications == [
            "com.example:example:1.0",
            "com.example:example:1.1",
        ]

    @pytest.mark.asyncio
    async def test_only_new_versions_notified(self, poller, repository, notifier):
        artifact = Artifact(group="com.example", artifact="example")
        repository.add_artifact("com.example", "example", "1.0")
        await poller.evaluate_artifact(artifact)

        repository.add_artifact("com.example", "example", "2.0")
        notified = await poller.evaluate_artifact(artifact)

        assert [str(c) for c in notified] == ["com.example:example:2.0"]
        assert len(notifier.notifications) == 2

    @pytest.mark.asyncio
    async def test_listing_failure_is_noop(self, poller, repository, notifier):
        repository.add_artifact("com.example", "example", "1.0")
        repository.fail("com.example:example")

        notified = await poller.evaluate_artifact(
            Artifact(group="com.example", artifact="example")
        )

        assert notified == []
        assert notifier.notifications == []

    @pytest.mark.asyncio
    async def test_unusable_version_skipped(self, store, notifier):
        repository = AsyncMock()
        repository.versions = AsyncMock(return_value=["1.0", "bad:version", "2.0"])
        poller = Poller(repository, store, notifier)

        await poller.evaluate_artifact(Artifact(group="com.example", artifact="example"))

        assert notifier.notifications == [
            "com.example:example:1.0",
            "com.example:example:2.0",
        ]


class TestEvaluate:
    @pytest.mark.asyncio
    async def test_dispatches_on_target_type(self, poller, repository, notifier):
        repository.add_artifact("com.example", "a", "1.0")
        repository.add_artifact("com.example", "b", "2.0")

        by_artifact = await poller.evaluate(Artifact(group="com.example", artifact="a"))
        by_coordinate = await poller.evaluate(
            Coordinate(group="com.example", artifact="b", version="2.0")
        )

        assert [str(c) for c in by_artifact] == ["com.example:a:1.0"]
        assert [str(c) for c in by_coordinate] == ["com.example:b:2.0"]

    @pytest.mark.asyncio
    async def test_already_notified_coordinate_returns_empty(self, poller, repository, store):
        repository.add_artifact("com.example", "example", "1.0")
        store.record(_COORD)

        assert await poller.evaluate(_COORD) == []
