from __future__ import annotations

import asyncio
import threading
from uuid import uuid4

import pytest

from twinreflector.adapters.memory_bus import InMemoryBus
from twinreflector.domain.correlation import CorrelationTracker, ReflectorClient, SentMessage
from twinreflector.domain.errors import CorrelationTimeout
from twinreflector.domain.ingress import read_correlation_id, read_message_type
from twinreflector.domain.model import (
    ErrorCode,
    FeedbackMessage,
    IngressMessage,
    MessageType,
    Status,
)


def test_await_correlation_sees_feedback_recorded_later(tracker: CorrelationTracker) -> None:
    correlation_id = uuid4()

    async def scenario() -> FeedbackMessage:
        waiter = asyncio.create_task(
            tracker.await_correlation(correlation_id, initial_delay=0.0, max_wait=1.0)
        )
        await asyncio.sleep(0.02)
        tracker.record(FeedbackMessage.processed(uuid4()))
        tracker.record(FeedbackMessage.processed(correlation_id))
        return await waiter

    assert asyncio.run(scenario()).correlation_id == correlation_id


def test_matching_does_not_consume_records(tracker: CorrelationTracker) -> None:
    correlation_id = uuid4()
    tracker.record(FeedbackMessage.error(correlation_id, ErrorCode.SPACE_NOT_FOUND))

    async def two_waiters() -> list[FeedbackMessage]:
        return list(
            await asyncio.gather(
                tracker.await_correlation(correlation_id, initial_delay=0.0, max_wait=0.1),
                tracker.await_correlation(
                    correlation_id,
                    status=Status.ERROR,
                    error_code=ErrorCode.SPACE_NOT_FOUND,
                    initial_delay=0.0,
                    max_wait=0.1,
                ),
            )
        )

    first, second = asyncio.run(two_waiters())

    assert first == second
    assert len(tracker) == 1


def test_await_match_times_out(tracker: CorrelationTracker) -> None:
    tracker.record(FeedbackMessage.processed(uuid4()))

    with pytest.raises(CorrelationTimeout):
        asyncio.run(
            tracker.await_correlation(
                uuid4(), initial_delay=0.0, poll_interval=0.005, max_wait=0.03
            )
        )


def test_status_filter_ignores_other_outcomes(tracker: CorrelationTracker) -> None:
    correlation_id = uuid4()
    tracker.record(FeedbackMessage.error(correlation_id, ErrorCode.CONFLICT))

    with pytest.raises(CorrelationTimeout):
        asyncio.run(
            tracker.await_correlation(
                correlation_id, status=Status.PROCESSED, initial_delay=0.0, max_wait=0.03
            )
        )


def test_records_from_threads_are_all_kept(tracker: CorrelationTracker) -> None:
    def record_many() -> None:
        for _ in range(200):
            tracker.record(FeedbackMessage.processed(uuid4()))

    threads = [threading.Thread(target=record_many) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(tracker) == 800
    tracker.clear()
    assert tracker.snapshot() == ()


def test_send_and_await_uses_fresh_correlation_id(tracker: CorrelationTracker) -> None:
    bus = InMemoryBus()

    async def responder() -> None:
        async for delivery in bus.deliveries():
            assert read_message_type(delivery.headers) is MessageType.DEVICE_DELETE
            correlation_id = read_correlation_id(delivery.headers)
            assert correlation_id is not None
            tracker.record(FeedbackMessage.processed(correlation_id))

    async def scenario() -> tuple[SentMessage, SentMessage]:
        task = asyncio.create_task(responder())
        client = ReflectorClient(bus, tracker, initial_delay=0.0, max_wait=1.0)
        message = IngressMessage(hardwareId="dev-1")
        first = await client.send_and_await(message, MessageType.DEVICE_DELETE)
        second = await client.send_and_await(message, MessageType.DEVICE_DELETE)
        bus.close()
        await task
        return first, second

    first, second = asyncio.run(scenario())

    assert first.succeeded and second.succeeded
    assert first.correlation_id != second.correlation_id
    assert b'"hardwareId":"dev-1"' in bus.sent[0].body
