from __future__ import annotations

import asyncio
import logging
from uuid import uuid4

import pytest

from twinreflector.adapters.memory_bus import TrackerFeedbackPublisher
from twinreflector.domain.correlation import CorrelationTracker
from twinreflector.domain.errors import FeedbackLost
from twinreflector.domain.feedback import FeedbackEmitter
from twinreflector.domain.model import ErrorCode, FeedbackMessage, Status


class BrokenPublisher:
    async def publish(self, feedback: FeedbackMessage) -> None:
        raise ConnectionError("bus unreachable")


def test_emit_publishes_one_message(tracker: CorrelationTracker) -> None:
    correlation_id = uuid4()

    feedback = asyncio.run(
        FeedbackEmitter(TrackerFeedbackPublisher(tracker)).emit(
            correlation_id, Status.ERROR, ErrorCode.DEVICE_NOT_FOUND, "no device"
        )
    )

    assert tracker.snapshot() == (feedback,)
    assert feedback.correlation_id == correlation_id
    assert feedback.error_code is ErrorCode.DEVICE_NOT_FOUND


def test_emit_raises_feedback_lost_and_logs_critical(caplog: pytest.LogCaptureFixture) -> None:
    correlation_id = uuid4()

    with caplog.at_level(logging.CRITICAL), pytest.raises(FeedbackLost) as excinfo:
        asyncio.run(FeedbackEmitter(BrokenPublisher()).emit(correlation_id, Status.PROCESSED))

    assert excinfo.value.correlation_id == correlation_id
    assert isinstance(excinfo.value.__cause__, ConnectionError)
    assert any(record.levelno == logging.CRITICAL for record in caplog.records)


def test_feedback_requires_error_code_only_for_errors() -> None:
    with pytest.raises(ValueError):
        FeedbackMessage(correlation_id=uuid4(), status=Status.ERROR)
    with pytest.raises(ValueError):
        FeedbackMessage(
            correlation_id=uuid4(), status=Status.PROCESSED, error_code=ErrorCode.CONFLICT
        )


def test_feedback_serialises_with_wire_names() -> None:
    correlation_id = uuid4()

    payload = FeedbackMessage.error(correlation_id, ErrorCode.CONFLICT).to_json()

    assert f'"correlationId":"{correlation_id}"' in payload
    assert '"errorCode":"CONFLICT"' in payload
    assert "detail" not in payload
