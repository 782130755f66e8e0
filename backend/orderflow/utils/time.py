"""Clock helpers.

Window and cooldown arithmetic runs on a monotonic clock, injected as a
zero-argument callable so tests can drive time by hand.
"""

from __future__ import annotations

import time
from collections.abc import Callable

Clock = Callable[[], float]


def monotonic_now() -> float:
    """Seconds on the process monotonic clock."""
    return time.monotonic()


class ManualClock:
    """Clock that only moves when told to. For tests and replays."""

    def __init__(self, start: float = 1000.0) -> None:
        self._now = start

    def __call__(self) -> float:
        return self._now

    def advance(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError(f"Cannot move clock backwards by {seconds}s")
        self._now += seconds
