"""Consumer side of the request/feedback protocol.

``CorrelationTracker`` keeps every feedback message it is given, in arrival
order, for the lifetime of the session. Waiters poll the log with their own
predicate; matching never removes a record, so any number of waiters can see
the same feedback and a waiter that starts late still finds it.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING
from uuid import uuid4

from twinreflector.domain.errors import CorrelationTimeout
from twinreflector.domain.model import Status
from twinreflector.domain.polling import PollSettings, poll_until
from twinreflector.domain.ports import HEADER_CORRELATION_ID, HEADER_MESSAGE_TYPE

if TYPE_CHECKING:
    from collections.abc import Callable
    from uuid import UUID

    from twinreflector.domain.model import ErrorCode, FeedbackMessage, IngressMessage, MessageType
    from twinreflector.domain.ports import IngressSender

    type FeedbackPredicate = Callable[[FeedbackMessage], bool]

log = getLogger(__name__)

DEFAULT_MAX_WAIT = 60.0
DEFAULT_INITIAL_DELAY = 0.1
DEFAULT_POLL_INTERVAL = 0.01


class CorrelationTracker:
    """Append-only, thread-safe log of observed feedback messages."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: list[FeedbackMessage] = []

    def record(self, feedback: FeedbackMessage) -> None:
        with self._lock:
            self._records.append(feedback)

    def snapshot(self) -> tuple[FeedbackMessage, ...]:
        with self._lock:
            return tuple(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def find(self, predicate: FeedbackPredicate) -> list[FeedbackMessage]:
        return [feedback for feedback in self.snapshot() if predicate(feedback)]

    def any_match(self, predicate: FeedbackPredicate) -> bool:
        return any(predicate(feedback) for feedback in self.snapshot())

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    async def await_match(
        self,
        predicate: FeedbackPredicate,
        *,
        max_wait: float = DEFAULT_MAX_WAIT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
        description: str = "feedback",
    ) -> FeedbackMessage:
        """Wait until a recorded feedback satisfies ``predicate``.

        The initial delay absorbs publish latency so a waiter does not conclude
        too early; after ``max_wait`` seconds ``CorrelationTimeout`` is raised.
        """

        async def check() -> FeedbackMessage | None:
            return next((fb for fb in self.snapshot() if predicate(fb)), None)

        result = await poll_until(
            check,
            lambda found: found is not None,
            settings=PollSettings(
                initial_delay=initial_delay, interval=poll_interval, max_wait=max_wait
            ),
        )
        if result.value is None:
            raise CorrelationTimeout(result.elapsed, description)
        return result.value

    async def await_correlation(
        self,
        correlation_id: UUID,
        *,
        status: Status | None = None,
        error_code: ErrorCode | None = None,
        max_wait: float = DEFAULT_MAX_WAIT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
    ) -> FeedbackMessage:
        return await self.await_match(
            correlation_matcher(correlation_id, status=status, error_code=error_code),
            max_wait=max_wait,
            poll_interval=poll_interval,
            initial_delay=initial_delay,
            description=f"feedback for {correlation_id}",
        )


def correlation_matcher(
    correlation_id: UUID,
    *,
    status: Status | None = None,
    error_code: ErrorCode | None = None,
) -> FeedbackPredicate:
    def matches(feedback: FeedbackMessage) -> bool:
        if feedback.correlation_id != correlation_id:
            return False
        if status is not None and feedback.status is not status:
            return False
        return error_code is None or feedback.error_code is error_code

    return matches


@dataclass(frozen=True, slots=True)
class SentMessage:
    correlation_id: UUID
    feedback: FeedbackMessage

    @property
    def succeeded(self) -> bool:
        return self.feedback.status is Status.PROCESSED


class ReflectorClient:
    """Send lifecycle messages and wait for their feedback."""

    def __init__(
        self,
        sender: IngressSender,
        tracker: CorrelationTracker,
        *,
        max_wait: float = DEFAULT_MAX_WAIT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
    ) -> None:
        self._sender = sender
        self._tracker = tracker
        self._max_wait = max_wait
        self._poll_interval = poll_interval
        self._initial_delay = initial_delay

    async def send(
        self,
        message: IngressMessage,
        message_type: MessageType,
        *,
        correlation_id: UUID | None = None,
    ) -> UUID:
        active_id = correlation_id or uuid4()
        headers = {
            HEADER_MESSAGE_TYPE: str(message_type),
            HEADER_CORRELATION_ID: str(active_id),
        }
        body = message.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")
        await self._sender.send(headers, body)
        log.debug("Sent %s as %s", message_type, active_id)
        return active_id

    async def send_and_await(
        self,
        message: IngressMessage,
        message_type: MessageType,
        *,
        status: Status | None = Status.PROCESSED,
        error_code: ErrorCode | None = None,
    ) -> SentMessage:
        """Send with a fresh correlation id and wait for the matching feedback.

        Pass ``status=None`` to accept the first feedback for the correlation
        id whatever its outcome.
        """

        correlation_id = await self.send(message, message_type)
        feedback = await self._tracker.await_correlation(
            correlation_id,
            status=status,
            error_code=error_code,
            max_wait=self._max_wait,
            poll_interval=self._poll_interval,
            initial_delay=self._initial_delay,
        )
        return SentMessage(correlation_id=correlation_id, feedback=feedback)
