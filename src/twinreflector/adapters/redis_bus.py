"""Redis Streams transport for the ingress and feedback channels.

Inbound entries carry the message headers as stream fields next to a
``payload`` field. They are read through a consumer group, so an entry that
is never acked is delivered again: first to this consumer on restart (its
pending list is replayed before new entries), otherwise after a claim by
another consumer.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import ResponseError

from twinreflector.domain.model import FeedbackMessage
from twinreflector.domain.ports import HEADER_CORRELATION_ID

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Mapping

    from twinreflector.config.bus import BusConfig
    from twinreflector.domain.correlation import CorrelationTracker

log = getLogger(__name__)

PAYLOAD_FIELD = "payload"


def connect(config: BusConfig) -> Redis:
    return Redis.from_url(config.redis_url, decode_responses=False)


def _text(value: bytes | str) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else value


def _stream_entries(response: Any) -> list[tuple[Any, Mapping[Any, Any] | None]]:
    """Flatten an XREAD/XREADGROUP reply (RESP2 list or RESP3 mapping)."""

    if not response:
        return []
    streams = response.items() if isinstance(response, dict) else response
    entries: list[tuple[Any, Mapping[Any, Any] | None]] = []
    for _stream, stream_entries in streams:
        # RESP3 wraps entries in a one-element list
        if stream_entries and isinstance(stream_entries[0], list):
            stream_entries = stream_entries[0]
        entries.extend((entry_id, fields) for entry_id, fields in stream_entries)
    return entries


@dataclass(frozen=True, slots=True)
class RedisDelivery:
    entry_id: str
    headers: Mapping[str, str]
    body: bytes
    source: RedisIngressSource

    async def ack(self) -> None:
        await self.source.ack(self.entry_id)


class RedisIngressSource:
    def __init__(self, client: Redis, config: BusConfig) -> None:
        self._client = client
        self._stream = config.ingress_stream
        self._group = config.consumer_group
        self._consumer = config.consumer_name
        self._block_ms = config.block_ms
        self._batch_size = config.batch_size

    async def ensure_group(self) -> None:
        try:
            await self._client.xgroup_create(self._stream, self._group, id="0", mkstream=True)
            log.info("Created consumer group %s on %s", self._group, self._stream)
        except ResponseError as exc:
            if "BUSYGROUP" not in str(exc):
                raise

    async def deliveries(self) -> AsyncIterator[RedisDelivery]:
        await self.ensure_group()
        # ids replay this consumer's unacked entries, ">" reads new ones
        cursor = "0"
        while True:
            response = await self._client.xreadgroup(
                self._group,
                self._consumer,
                {self._stream: cursor},
                count=self._batch_size,
                block=self._block_ms,
            )
            entries = _stream_entries(response)
            if cursor != ">" and not entries:
                log.debug("No pending entries left for %s, reading new ones", self._consumer)
                cursor = ">"
                continue
            for entry_id, fields in entries:
                if cursor != ">":
                    cursor = _text(entry_id)
                if fields is None:
                    # pending entry trimmed or deleted from the stream
                    log.warning("Acking vanished entry %s on %s", _text(entry_id), self._stream)
                    await self.ack(_text(entry_id))
                    continue
                yield self._delivery(_text(entry_id), fields)

    async def ack(self, entry_id: str) -> None:
        await self._client.xack(self._stream, self._group, entry_id)

    def _delivery(self, entry_id: str, fields: Mapping[Any, Any]) -> RedisDelivery:
        headers: dict[str, str] = {}
        body = b""
        for key, value in fields.items():
            name = _text(key)
            if name == PAYLOAD_FIELD:
                body = value if isinstance(value, bytes) else str(value).encode("utf-8")
            else:
                headers[name] = _text(value)
        return RedisDelivery(entry_id=entry_id, headers=headers, body=body, source=self)


class RedisIngressSender:
    def __init__(self, client: Redis, config: BusConfig) -> None:
        self._client = client
        self._stream = config.ingress_stream

    async def send(self, headers: Mapping[str, str], body: bytes) -> None:
        fields: dict[str, str | bytes] = {**headers, PAYLOAD_FIELD: body}
        entry_id = await self._client.xadd(self._stream, fields)
        log.debug("Queued %s on %s", _text(entry_id), self._stream)


class RedisFeedbackPublisher:
    def __init__(self, client: Redis, config: BusConfig) -> None:
        self._client = client
        self._stream = config.feedback_stream
        self._max_len = config.feedback_max_len

    async def publish(self, feedback: FeedbackMessage) -> None:
        await self._client.xadd(
            self._stream,
            {
                HEADER_CORRELATION_ID: str(feedback.correlation_id),
                PAYLOAD_FIELD: feedback.to_json(),
            },
            maxlen=self._max_len,
            approximate=True,
        )


class RedisFeedbackListener:
    """Tail the feedback stream into a ``CorrelationTracker``.

    Reading starts after the newest entry present when ``prime`` (or else
    ``run``) is first awaited, so only feedback published from then on is
    recorded.
    """

    def __init__(self, client: Redis, config: BusConfig, tracker: CorrelationTracker) -> None:
        self._client = client
        self._stream = config.feedback_stream
        self._block_ms = config.block_ms
        self._batch_size = config.batch_size
        self._tracker = tracker
        self._stopping = asyncio.Event()
        self._cursor: str | None = None

    def stop(self) -> None:
        self._stopping.set()

    async def prime(self) -> None:
        newest = await self._client.xrevrange(self._stream, count=1)
        self._cursor = _text(newest[0][0]) if newest else "0-0"

    async def run(self) -> None:
        if self._cursor is None:
            await self.prime()
        while not self._stopping.is_set():
            response = await self._client.xread(
                {self._stream: self._cursor}, count=self._batch_size, block=self._block_ms
            )
            for entry_id, fields in _stream_entries(response):
                self._cursor = _text(entry_id)
                self._record(self._cursor, fields)

    def _record(self, entry_id: str, fields: Mapping[Any, Any]) -> None:
        payload = next(
            (value for key, value in fields.items() if _text(key) == PAYLOAD_FIELD), None
        )
        if payload is None:
            log.warning("Feedback entry %s has no payload", entry_id)
            return
        try:
            feedback = FeedbackMessage.model_validate_json(payload)
        except ValidationError as exc:
            log.warning("Skipping unreadable feedback entry %s: %s", entry_id, exc)
            return
        self._tracker.record(feedback)
