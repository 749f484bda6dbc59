"""Drive the pipeline from an ingress source with bounded concurrency."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from twinreflector.domain.errors import FeedbackLost

if TYPE_CHECKING:
    from twinreflector.domain.ingress.pipeline import IngressPipeline
    from twinreflector.domain.ports import Delivery, IngressSource

log = getLogger(__name__)

DEFAULT_MAX_IN_FLIGHT = 16


class IngressConsumer:
    """Handle each delivery in its own task, at most ``max_in_flight`` at a time.

    A delivery is acked only after its feedback has been published. ``run``
    returns once the source is exhausted and in-flight work has finished, or
    after ``stop`` was called, in which case in-flight work is cancelled and
    left unacked. A ``FeedbackLost`` from any task stops the consumer the same
    way and is re-raised from ``run``.
    """

    def __init__(
        self,
        source: IngressSource,
        pipeline: IngressPipeline,
        *,
        max_in_flight: int = DEFAULT_MAX_IN_FLIGHT,
    ) -> None:
        if max_in_flight < 1:
            raise ValueError("max_in_flight must be at least 1")
        self._source = source
        self._pipeline = pipeline
        self._slots = asyncio.Semaphore(max_in_flight)
        self._tasks: set[asyncio.Task[None]] = set()
        self._stopping = asyncio.Event()
        self._fatal: FeedbackLost | None = None
        self.handled = 0

    def stop(self) -> None:
        self._stopping.set()

    async def run(self) -> None:
        reader = asyncio.create_task(self._read(), name="ingress-reader")
        stopping = asyncio.create_task(self._stopping.wait(), name="ingress-stop")
        try:
            await asyncio.wait({reader, stopping}, return_when=asyncio.FIRST_COMPLETED)
            if reader.done() and not stopping.done():
                reader.result()
                await self._drain()
        finally:
            reader.cancel()
            stopping.cancel()
            await self._cancel_in_flight()

        if self._fatal is not None:
            raise self._fatal
        log.info("Ingress consumer stopped after %d deliveries", self.handled)

    async def _read(self) -> None:
        async for delivery in self._source.deliveries():
            await self._slots.acquire()
            task = asyncio.create_task(self._process(delivery))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _process(self, delivery: Delivery) -> None:
        try:
            await self._pipeline.handle_delivery(delivery)
        except FeedbackLost as exc:
            if self._fatal is None:
                self._fatal = exc
            self._stopping.set()
            return
        finally:
            self._slots.release()

        try:
            await delivery.ack()
        except Exception:
            log.exception("Failed to ack delivery; it will be redelivered")
        self.handled += 1

    async def _drain(self) -> None:
        while self._tasks and not self._stopping.is_set():
            await asyncio.wait(set(self._tasks), return_when=asyncio.FIRST_COMPLETED)

    async def _cancel_in_flight(self) -> None:
        pending = set(self._tasks)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
