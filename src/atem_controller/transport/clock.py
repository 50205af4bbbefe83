"""Monotonic millisecond clock backed by ``time.monotonic``."""

from __future__ import annotations

import time


class MonotonicClock:
    """Default Clock implementation."""

    def now(self) -> int:
        return int(time.monotonic() * 1000)

    def __repr__(self) -> str:
        return "MonotonicClock()"
