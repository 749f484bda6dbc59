"""Bounded poll-until-ready loop shared by provisioning and feedback waiting."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PollSettings:
    """Timing of a bounded poll, in seconds."""

    initial_delay: float
    interval: float
    max_wait: float

    def __post_init__(self) -> None:
        if self.initial_delay < 0:
            raise ValueError("initial_delay must be non-negative")
        if self.interval <= 0:
            raise ValueError("interval must be positive")
        if self.max_wait < 0:
            raise ValueError("max_wait must be non-negative")


@dataclass(frozen=True, slots=True)
class PollResult[T]:
    """Outcome of ``poll_until``; a timeout is a value, not an exception."""

    value: T | None
    completed: bool
    attempts: int
    elapsed: float

    @property
    def timed_out(self) -> bool:
        return not self.completed


async def poll_until[T](
    check: Callable[[], Awaitable[T]],
    done: Callable[[T], bool],
    *,
    settings: PollSettings,
) -> PollResult[T]:
    """Call ``check`` until ``done`` accepts its result or ``max_wait`` elapses.

    The first check runs after ``initial_delay``; later ones every ``interval``,
    with the final sleep shortened so the last check lands on the ceiling. The
    call therefore returns within ``max_wait`` plus the duration of one check.
    Exceptions from ``check`` and cancellation propagate unchanged.
    """

    loop = asyncio.get_running_loop()
    started = loop.time()
    deadline = started + settings.max_wait

    delay = min(settings.initial_delay, settings.max_wait)
    if delay > 0:
        await asyncio.sleep(delay)

    attempts = 0
    last: T | None = None
    while True:
        attempts += 1
        last = await check()
        if done(last):
            return PollResult(
                value=last, completed=True, attempts=attempts, elapsed=loop.time() - started
            )

        remaining = deadline - loop.time()
        if remaining <= 0:
            break
        await asyncio.sleep(min(settings.interval, remaining))

    elapsed = loop.time() - started
    log.debug("Poll gave up after %d attempts in %.2fs", attempts, elapsed)
    return PollResult(value=last, completed=False, attempts=attempts, elapsed=elapsed)
