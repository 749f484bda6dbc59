"""Turn one inbound lifecycle message into graph changes and one feedback."""

from __future__ import annotations

from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from twinreflector.domain.errors import GraphError, IngressValidationError, TenantNotFound
from twinreflector.domain.ingress.envelope import (
    parse_message,
    read_correlation_id,
    read_message_type,
)
from twinreflector.domain.ingress.handlers import LifecycleHandlers
from twinreflector.domain.model import ErrorCode, MessageType, Status

if TYPE_CHECKING:
    from collections.abc import Mapping
    from uuid import UUID

    from twinreflector.domain.feedback import FeedbackEmitter
    from twinreflector.domain.ingress.handlers import MessageHandler
    from twinreflector.domain.model import IngressMessage
    from twinreflector.domain.ports import Delivery, TenantResolver, TwinGraph
    from twinreflector.domain.type_registry import TypeRegistry

log = getLogger(__name__)


class PipelineState(StrEnum):
    RECEIVED = "RECEIVED"
    CONTEXT_RESOLVED = "CONTEXT_RESOLVED"
    TYPE_RESOLVED = "TYPE_RESOLVED"
    APPLIED = "APPLIED"
    FAILED = "FAILED"
    FEEDBACK_SENT = "FEEDBACK_SENT"


class _Trace:
    """DEBUG log of one message's state transitions."""

    __slots__ = ("correlation_id", "message_type", "state")

    def __init__(self, correlation_id: UUID, message_type: MessageType | None) -> None:
        self.correlation_id = correlation_id
        self.message_type = message_type
        self.state = PipelineState.RECEIVED
        log.debug("%s %s: %s", correlation_id, message_type, self.state)

    def advance(self, state: PipelineState) -> None:
        log.debug("%s %s: %s -> %s", self.correlation_id, self.message_type, self.state, state)
        self.state = state

    def types_resolved(self) -> None:
        self.advance(PipelineState.TYPE_RESOLVED)


def check_dispatch_table(handlers: Mapping[MessageType, MessageHandler]) -> None:
    missing = [member for member in MessageType if member not in handlers]
    if missing:
        names = ", ".join(missing)
        raise ValueError(f"No handler registered for message type(s): {names}")


class IngressPipeline:
    """Handle lifecycle messages, emitting exactly one feedback for each.

    Every failure while handling a correlated message becomes an ERROR
    feedback with a classified error code; only ``FeedbackLost`` and
    cancellation escape ``handle``.
    """

    def __init__(
        self,
        graph: TwinGraph,
        resolver: TenantResolver,
        emitter: FeedbackEmitter,
        registry: TypeRegistry,
        *,
        handlers: Mapping[MessageType, MessageHandler] | None = None,
    ) -> None:
        table = handlers if handlers is not None else LifecycleHandlers(graph, registry).table()
        check_dispatch_table(table)
        self._handlers = dict(table)
        self._resolver = resolver
        self._emitter = emitter

    async def handle_delivery(self, delivery: Delivery) -> None:
        """Handle a raw delivery; acking is left to the caller."""

        correlation_id = read_correlation_id(delivery.headers)
        if correlation_id is None:
            log.error(
                "Dropping delivery without a usable correlation id (headers: %s)",
                dict(delivery.headers),
            )
            return

        try:
            message_type = read_message_type(delivery.headers)
            message = parse_message(delivery.body)
        except IngressValidationError as exc:
            log.info("Rejected delivery %s: %s", correlation_id, exc.detail)
            await self._emitter.emit(correlation_id, Status.ERROR, exc.code, exc.detail)
            return

        await self.handle(message, correlation_id, message_type)

    async def handle(
        self, message: IngressMessage, correlation_id: UUID, message_type: MessageType
    ) -> None:
        trace = _Trace(correlation_id, message_type)
        error_code: ErrorCode | None = None
        detail: str | None = None

        try:
            context = await self._resolver.resolve(message)
            trace.advance(PipelineState.CONTEXT_RESOLVED)
            handler = self._handlers[message_type]
            await handler(message, context, on_types_resolved=trace.types_resolved)
        except TenantNotFound as exc:
            error_code, detail = ErrorCode.TENANT_NOT_FOUND, str(exc)
        except IngressValidationError as exc:
            error_code, detail = exc.code, exc.detail
        except GraphError as exc:
            error_code, detail = exc.error_code, str(exc)
        except Exception as exc:
            log.exception("Unexpected failure handling %s %s", message_type, correlation_id)
            error_code, detail = ErrorCode.INTERNAL_ERROR, f"{type(exc).__name__}: {exc}"

        if error_code is None:
            trace.advance(PipelineState.APPLIED)
            await self._emitter.emit(correlation_id, Status.PROCESSED)
        else:
            trace.advance(PipelineState.FAILED)
            await self._emitter.emit(correlation_id, Status.ERROR, error_code, detail)
        trace.advance(PipelineState.FEEDBACK_SENT)
