"""Tests for clock helpers."""

from __future__ import annotations

import pytest

from orderflow.utils.time import ManualClock, monotonic_now


class TestMonotonicNow:
    def test_never_goes_backwards(self) -> None:
        first = monotonic_now()
        assert monotonic_now() >= first


class TestManualClock:
    def test_starts_at_given_time(self) -> None:
        assert ManualClock(5.0)() == 5.0

    def test_default_start(self) -> None:
        assert ManualClock()() == 1000.0

    def test_advance(self) -> None:
        clock = ManualClock(0.0)
        clock.advance(1.5)
        clock.advance(0.5)
        assert clock() == 2.0

    def test_advance_backwards_rejected(self) -> None:
        clock = ManualClock()
        with pytest.raises(ValueError):
            clock.advance(-1.0)
        assert clock() == 1000.0
