"""Ledger of coordinates that have already triggered a notification.

The ledger is what makes notifications at-most-once: the poller only calls a
notifier after :meth:`NotificationStore.claim` returns True, and ``claim`` is
a single locked test-and-set, so concurrent ``await``/``monitor`` tasks (or
threads) sharing one store can never both win for the same coordinate.
"""

from __future__ import annotations

import logging
import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path

import yaml

from .models import Coordinate

logger = logging.getLogger("dependency-watch")


class NotificationStore(ABC):
    """Monotonic set of notified coordinates, keyed by canonical string."""

    def __init__(self) -> None:
        self._lock = threading.Lock()

    @abstractmethod
    def _contains(self, key: str) -> bool: ...

    @abstractmethod
    def _add(self, key: str) -> None: ...

    @abstractmethod
    def _keys(self) -> list[str]: ...

    def has(self, coordinate: Coordinate) -> bool:
        with self._lock:
            return self._contains(str(coordinate))

    def record(self, coordinate: Coordinate) -> None:
        with self._lock:
            key = str(coordinate)
            if not self._contains(key):
                self._add(key)

    def claim(self, coordinate: Coordinate) -> bool:
        """Atomically record ``coordinate`` unless already present.

        Returns True only for the single caller that performed the insert.
        """
        with self._lock:
            key = str(coordinate)
            if self._contains(key):
                return False
            self._add(key)
            return True

    def notified(self) -> list[str]:
        """Canonical strings of every recorded coordinate, sorted."""
        with self._lock:
            return sorted(self._keys())


class InMemoryNotificationStore(NotificationStore):
    """Process-lifetime ledger. Used for ``await`` without ``--data`` and in tests."""

    def __init__(self) -> None:
        super().__init__()
        self._notified: set[str] = set()

    def _contains(self, key: str) -> bool:
        return key in self._notified

    def _add(self, key: str) -> None:
        self._notified.add(key)

    def _keys(self) -> list[str]:
        return list(self._notified)


class YamlNotificationStore(NotificationStore):
    """Ledger persisted to a YAML file so restarts never re-notify.

    The file is read once on construction and replaced after every insert by
    writing a sibling temp file and renaming it over the ledger.
    A missing or unreadable file starts an empty ledger.
    """

    def __init__(self, path: str) -> None:
        super().__init__()
        self._path = Path(path).expanduser()
        self._notified: set[str] = set(self._load())

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> list[str]:
        if not self._path.exists():
            return []
        try:
            data = yaml.safe_load(self._path.read_text())
            if not data or "notified" not in data:
                return []
            return [str(key) for key in data["notified"] or []]
        except Exception as e:
            logger.warning(f"Ignoring unreadable notification store {self._path}: {e}")
            return []

    def _save(self, keys: set[str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        data = {"notified": sorted(keys)}
        tmp = self._path.with_name(self._path.name + ".tmp")
        tmp.write_text(yaml.dump(data, default_flow_style=False, sort_keys=False))
        os.replace(tmp, self._path)

    def _contains(self, key: str) -> bool:
        return key in self._notified

    def _add(self, key: str) -> None:
        # Only in memory once it is on disk.
        self._save(self._notified | {key})
        self._notified.add(key)

    def _keys(self) -> list[str]:
        return list(self._notified)
