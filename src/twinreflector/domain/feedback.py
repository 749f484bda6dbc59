"""Publish the single outcome of an inbound message."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from twinreflector.domain.errors import FeedbackLost
from twinreflector.domain.model import FeedbackMessage, Status

if TYPE_CHECKING:
    from uuid import UUID

    from twinreflector.domain.model import ErrorCode
    from twinreflector.domain.ports import FeedbackPublisher

log = getLogger(__name__)


class FeedbackEmitter:
    def __init__(self, publisher: FeedbackPublisher) -> None:
        self._publisher = publisher

    async def emit(
        self,
        correlation_id: UUID,
        status: Status,
        error_code: ErrorCode | None = None,
        detail: str | None = None,
    ) -> FeedbackMessage:
        """Publish one feedback message; a failed publish raises ``FeedbackLost``."""

        feedback = FeedbackMessage(
            correlation_id=correlation_id,
            status=status,
            error_code=error_code,
            detail=detail,
        )
        try:
            await self._publisher.publish(feedback)
        except Exception as exc:
            log.critical("Feedback for %s could not be published: %s", correlation_id, exc)
            raise FeedbackLost(correlation_id, exc) from exc

        if status is Status.ERROR:
            log.info("Feedback %s: ERROR %s (%s)", correlation_id, error_code, detail)
        else:
            log.debug("Feedback %s: %s", correlation_id, status)
        return feedback
