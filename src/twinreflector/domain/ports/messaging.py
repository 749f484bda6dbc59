"""Ports for the inbound and feedback channels."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Mapping

    from twinreflector.domain.model import FeedbackMessage

HEADER_MESSAGE_TYPE = "messageType"
HEADER_CORRELATION_ID = "correlationId"


@runtime_checkable
class Delivery(Protocol):
    """One inbound bus message; delivery is at-least-once until ``ack`` is awaited."""

    @property
    def headers(self) -> Mapping[str, str]: ...

    @property
    def body(self) -> bytes: ...

    async def ack(self) -> None: ...


@runtime_checkable
class IngressSource(Protocol):
    def deliveries(self) -> AsyncIterator[Delivery]: ...


@runtime_checkable
class IngressSender(Protocol):
    async def send(self, headers: Mapping[str, str], body: bytes) -> None: ...


@runtime_checkable
class FeedbackPublisher(Protocol):
    async def publish(self, feedback: FeedbackMessage) -> None: ...
