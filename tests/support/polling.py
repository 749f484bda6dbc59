from __future__ import annotations

from twinreflector.domain.polling import PollSettings

FAST_POLL = PollSettings(initial_delay=0.0, interval=0.001, max_wait=0.05)
