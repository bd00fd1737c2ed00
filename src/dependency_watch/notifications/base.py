"""Notifier abstraction: every delivery channel implements this interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..models import Coordinate


class Notifier(ABC):
    """Abstract interface for notification delivery.

    The engine calls :meth:`notify` at most once per coordinate. Whether the
    message actually arrives is the notifier's concern; the engine does not
    retry.
    """

    @abstractmethod
    async def notify(self, coordinate: Coordinate) -> None: ...

    async def close(self) -> None:
        """Release network resources. Override in subclasses that hold any."""
