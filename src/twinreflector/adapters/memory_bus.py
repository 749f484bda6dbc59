"""In-process bus for local wiring and tests."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Mapping

    from twinreflector.domain.correlation import CorrelationTracker
    from twinreflector.domain.model import FeedbackMessage


@dataclass(slots=True)
class MemoryDelivery:
    headers: Mapping[str, str]
    body: bytes
    acked: bool = False

    async def ack(self) -> None:
        self.acked = True


@dataclass(slots=True)
class InMemoryBus:
    """Queue-backed ingress channel; ``close`` ends ``deliveries`` once drained."""

    sent: list[MemoryDelivery] = field(default_factory=list)
    _queue: asyncio.Queue[MemoryDelivery | None] = field(default_factory=asyncio.Queue)

    async def send(self, headers: Mapping[str, str], body: bytes) -> None:
        delivery = MemoryDelivery(headers=dict(headers), body=body)
        self.sent.append(delivery)
        await self._queue.put(delivery)

    def close(self) -> None:
        self._queue.put_nowait(None)

    async def deliveries(self) -> AsyncIterator[MemoryDelivery]:
        while True:
            delivery = await self._queue.get()
            if delivery is None:
                return
            yield delivery


class TrackerFeedbackPublisher:
    """Publish feedback straight into a tracker."""

    def __init__(self, tracker: CorrelationTracker) -> None:
        self._tracker = tracker

    async def publish(self, feedback: FeedbackMessage) -> None:
        self._tracker.record(feedback)
