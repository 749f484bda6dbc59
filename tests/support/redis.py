from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

from redis.exceptions import ResponseError


def _key(entry_id: bytes) -> tuple[int, int]:
    millis, _, seq = entry_id.decode().partition("-")
    return int(millis), int(seq or 0)


def _encode(value: Any) -> bytes:
    if isinstance(value, bytes):
        return value
    return str(value).encode("utf-8")


@dataclass
class _Group:
    last_delivered: tuple[int, int] = (0, 0)
    pending: dict[str, list[bytes]] = field(default_factory=dict)


class FakeRedis:
    """Just enough of ``redis.asyncio.Redis`` for stream consumers and producers.

    Replies mimic ``decode_responses=False``: ids and fields come back as bytes.
    Blocking reads sleep briefly and return an empty reply.
    """

    def __init__(self) -> None:
        self.streams: dict[str, list[tuple[bytes, dict[bytes, bytes]]]] = {}
        self.groups: dict[tuple[str, str], _Group] = {}
        self.acked: list[bytes] = []
        self.closed = False
        self._seq = 0

    async def xadd(
        self,
        name: str,
        fields: dict[str, Any],
        maxlen: int | None = None,
        approximate: bool = True,  # noqa: ARG002
    ) -> bytes:
        self._seq += 1
        entry_id = f"{self._seq}-0".encode()
        entries = self.streams.setdefault(name, [])
        entries.append((entry_id, {_encode(k): _encode(v) for k, v in fields.items()}))
        if maxlen is not None and len(entries) > maxlen:
            del entries[: len(entries) - maxlen]
        return entry_id

    async def xgroup_create(
        self, name: str, groupname: str, id: str = "$", mkstream: bool = False  # noqa: A002
    ) -> bool:
        if name not in self.streams:
            if not mkstream:
                raise ResponseError("ERR The XGROUP subcommand requires the key to exist")
            self.streams[name] = []
        if (name, groupname) in self.groups:
            raise ResponseError("BUSYGROUP Consumer Group name already exists")
        group = _Group()
        if id == "$" and self.streams[name]:
            group.last_delivered = _key(self.streams[name][-1][0])
        self.groups[(name, groupname)] = group
        return True

    async def xreadgroup(
        self,
        groupname: str,
        consumername: str,
        streams: dict[str, str],
        count: int | None = None,
        block: int | None = None,
        noack: bool = False,  # noqa: ARG002
    ) -> list[Any]:
        ((name, cursor),) = streams.items()
        group = self.groups[(name, groupname)]
        pending = group.pending.setdefault(consumername, [])
        entries = self.streams.get(name, [])

        if cursor == ">":
            fresh = [e for e in entries if _key(e[0]) > group.last_delivered][:count]
            if fresh:
                group.last_delivered = _key(fresh[-1][0])
                pending.extend(entry_id for entry_id, _ in fresh)
            selected = fresh
        else:
            after = _key(_encode(cursor)) if cursor != "0" else (0, 0)
            # entries trimmed from the stream come back with no fields
            stored = dict(entries)
            selected = [
                (entry_id, stored.get(entry_id))
                for entry_id in sorted(pending, key=_key)
                if _key(entry_id) > after
            ][:count]

        if not selected:
            if block is not None and cursor == ">":
                await asyncio.sleep(0.001)
            return []
        return [[name.encode(), selected]]

    async def xack(self, name: str, groupname: str, *ids: str | bytes) -> int:
        group = self.groups[(name, groupname)]
        removed = 0
        for raw in ids:
            entry_id = _encode(raw)
            for pending in group.pending.values():
                if entry_id in pending:
                    pending.remove(entry_id)
                    self.acked.append(entry_id)
                    removed += 1
        return removed

    async def xread(
        self,
        streams: dict[str, str],
        count: int | None = None,
        block: int | None = None,
    ) -> list[Any]:
        ((name, cursor),) = streams.items()
        after = _key(_encode(cursor))
        selected = [e for e in self.streams.get(name, []) if _key(e[0]) > after][:count]
        if not selected:
            if block is not None:
                await asyncio.sleep(0.001)
            return []
        return [[name.encode(), selected]]

    async def xrevrange(
        self, name: str, max: str = "+", min: str = "-", count: int | None = None  # noqa: A002
    ) -> list[Any]:
        entries = list(reversed(self.streams.get(name, [])))
        return entries[:count] if count is not None else entries

    async def aclose(self) -> None:
        self.closed = True
