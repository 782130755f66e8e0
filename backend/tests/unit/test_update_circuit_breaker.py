"""Tests for UpdateCircuitBreaker -- per-order budgets and emergency halt."""

from __future__ import annotations

from orderflow.config import GuardConfig
from orderflow.reconcile.circuit_breaker import UpdateCircuitBreaker
from orderflow.utils.time import ManualClock


def _make_cb(
    clock: ManualClock,
    max_auto_updates: int = 3,
    max_user_updates: int = 5,
    emergency_threshold: int = 10,
) -> UpdateCircuitBreaker:
    config = GuardConfig(
        max_auto_updates=max_auto_updates,
        max_user_updates=max_user_updates,
        emergency_threshold=emergency_threshold,
        window_seconds=60.0,
        emergency_cooldown_seconds=120.0,
    )
    return UpdateCircuitBreaker(config, clock)


class TestAutomaticBudget:
    """Automatic writes stop at the budget until the window rolls over."""

    def test_blocks_at_budget(self) -> None:
        cb = _make_cb(ManualClock())
        for _ in range(3):
            assert cb.can_update("o1") == (True, "")
            cb.record_update("o1")
        can, reason = cb.can_update("o1")
        assert can is False
        assert "Automatic update limit" in reason

    def test_window_rolls_over(self) -> None:
        clock = ManualClock()
        cb = _make_cb(clock)
        for _ in range(3):
            cb.record_update("o1")
        clock.advance(60.0)
        assert cb.can_update("o1")[0] is False  # exactly 60s is still the same window
        clock.advance(0.5)
        assert cb.can_update("o1") == (True, "")
        state = cb.window_state("o1")
        assert state is not None
        assert state.count == 0
        assert state.window_start == clock()

    def test_orders_are_independent(self) -> None:
        cb = _make_cb(ManualClock())
        for _ in range(3):
            cb.record_update("o1")
        assert cb.can_update("o2") == (True, "")


class TestUserBudget:
    """User-initiated writes have their own, higher budget."""

    def test_separate_from_automatic(self) -> None:
        cb = _make_cb(ManualClock())
        for _ in range(3):
            cb.record_update("o1")
        assert cb.can_update("o1")[0] is False
        assert cb.can_update("o1", user_initiated=True) == (True, "")

    def test_blocks_at_user_budget(self) -> None:
        cb = _make_cb(ManualClock())
        for _ in range(5):
            cb.record_update("o1", user_initiated=True)
        can, reason = cb.can_update("o1", user_initiated=True)
        assert can is False
        assert "User update limit" in reason
        state = cb.window_state("o1")
        assert state is not None
        assert state.user_initiated_count == 5
        assert state.count == 0


class TestEmergencyHalt:
    """Attempts past the threshold halt automatic writes everywhere."""

    def test_trips_on_attempts(self) -> None:
        cb = _make_cb(ManualClock(), emergency_threshold=10)
        for _ in range(9):
            cb.note_attempt("o1")
        assert cb.is_halted is False
        cb.note_attempt("o1")
        assert cb.is_halted is True
        can, reason = cb.can_update("o2")
        assert can is False
        assert "Emergency halt" in reason

    def test_user_writes_pass_during_halt(self) -> None:
        cb = _make_cb(ManualClock(), emergency_threshold=10)
        for _ in range(10):
            cb.note_attempt("o1")
        assert cb.can_update("o2", user_initiated=True) == (True, "")

    def test_halt_expires(self) -> None:
        clock = ManualClock()
        cb = _make_cb(clock, emergency_threshold=10)
        for _ in range(10):
            cb.note_attempt("o1")
        clock.advance(60.0)
        assert cb.halt_remaining == 60.0
        clock.advance(60.0)
        assert cb.is_halted is False
        assert cb.halt_remaining == 0.0

    def test_reset_clears_halt_and_windows(self) -> None:
        cb = _make_cb(ManualClock(), emergency_threshold=10)
        for _ in range(10):
            cb.note_attempt("o1")
        cb.record_update("o1")
        cb.reset()
        assert cb.is_halted is False
        assert cb.window_state("o1") is None

    def test_reset_single_order(self) -> None:
        cb = _make_cb(ManualClock())
        cb.record_update("o1")
        cb.record_update("o2")
        cb.reset("o1")
        assert cb.window_state("o1") is None
        assert cb.window_state("o2") is not None


class TestPrune:
    """Expired windows are dropped; live ones and the halt are kept."""

    def test_drops_expired_windows(self) -> None:
        clock = ManualClock()
        cb = _make_cb(clock)
        cb.record_update("o1")
        clock.advance(30.0)
        cb.record_update("o2")
        clock.advance(31.0)
        cb.prune()
        assert cb.tracked_order_ids == frozenset({"o2"})

    def test_keeps_halt(self) -> None:
        clock = ManualClock()
        cb = _make_cb(clock, emergency_threshold=10)
        for _ in range(10):
            cb.note_attempt("o1")
        clock.advance(61.0)
        cb.prune()
        assert cb.tracked_order_ids == frozenset()
        assert cb.is_halted is True
