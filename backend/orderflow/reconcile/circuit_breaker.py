"""Update circuit breaker -- per-order write budgets and emergency halt.

Tracks how many status writes each order has received in the current
window, with separate budgets for automatic recomputations and
user-initiated changes. An order that keeps asking for writes past the
emergency threshold halts all automatic writes for a cooldown period.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from orderflow.config import GuardConfig
from orderflow.utils.time import Clock, monotonic_now

log = structlog.get_logger()


@dataclass
class _OrderWindow:
    window_start: float
    count: int = 0
    user_initiated_count: int = 0
    attempts: int = 0


@dataclass(frozen=True)
class WindowState:
    """Read-only view of one order's rate window."""

    order_id: str
    window_start: float
    count: int
    user_initiated_count: int
    attempts: int


class UpdateCircuitBreaker:
    """Per-order rate windows plus a global emergency halt.

    Design decisions:
    - Windows are fixed, not sliding: the first call after
      ``window_seconds`` have elapsed starts a fresh window.
    - Automatic and user-initiated writes have separate budgets; the
      user budget is higher because operator clicks are not a loop risk.
    - Attempts are counted whether or not the budget allows the write,
      so a storm that is already being rate limited still trips the halt.
    - The halt blocks automatic writes only and lifts itself when the
      cooldown elapses.

    State is owned by the instance. Check-then-record is not atomic, so a
    multi-threaded host must serialise calls per order id.
    """

    def __init__(
        self,
        config: GuardConfig | None = None,
        clock: Clock = monotonic_now,
    ) -> None:
        self._config = config or GuardConfig()
        self._clock = clock
        self._windows: dict[str, _OrderWindow] = {}
        self._halt_until: float | None = None

    @property
    def is_halted(self) -> bool:
        """Whether automatic writes are currently halted."""
        if self._halt_until is None:
            return False
        if self._clock() >= self._halt_until:
            self._halt_until = None
            log.info("emergency_halt_expired")
            return False
        return True

    @property
    def halt_remaining(self) -> float:
        """Seconds until the halt lifts, 0.0 when not halted."""
        if not self.is_halted or self._halt_until is None:
            return 0.0
        return self._halt_until - self._clock()

    def note_attempt(self, order_id: str) -> None:
        """Count a request for a write, allowed or not.

        Trips the emergency halt when the order's attempts in the window
        reach the emergency threshold.
        """
        window = self._current_window(order_id)
        window.attempts += 1
        if window.attempts >= self._config.emergency_threshold and not self.is_halted:
            self._halt_until = self._clock() + self._config.emergency_cooldown_seconds
            log.warning(
                "emergency_halt_activated",
                order_id=order_id,
                attempts_in_window=window.attempts,
                cooldown_seconds=self._config.emergency_cooldown_seconds,
            )

    def can_update(self, order_id: str, *, user_initiated: bool = False) -> tuple[bool, str]:
        """Returns (True, "") or (False, "reason")."""
        if not user_initiated and self.is_halted:
            return False, f"Emergency halt active for {self.halt_remaining:.1f}s"

        window = self._current_window(order_id)
        if user_initiated:
            if window.user_initiated_count >= self._config.max_user_updates:
                return False, (
                    f"User update limit: {window.user_initiated_count} updates "
                    f"in {self._config.window_seconds:g}s"
                )
        elif window.count >= self._config.max_auto_updates:
            return False, (
                f"Automatic update limit: {window.count} updates "
                f"in {self._config.window_seconds:g}s"
            )
        return True, ""

    def record_update(self, order_id: str, *, user_initiated: bool = False) -> None:
        """Count one write against the order's budget."""
        window = self._current_window(order_id)
        if user_initiated:
            window.user_initiated_count += 1
        else:
            window.count += 1

    @property
    def tracked_order_ids(self) -> frozenset[str]:
        """Orders that currently have a rate window."""
        return frozenset(self._windows)

    def window_state(self, order_id: str) -> WindowState | None:
        window = self._windows.get(order_id)
        if window is None:
            return None
        return WindowState(
            order_id=order_id,
            window_start=window.window_start,
            count=window.count,
            user_initiated_count=window.user_initiated_count,
            attempts=window.attempts,
        )

    def prune(self) -> None:
        """Drop windows that have run out. The halt is left alone."""
        now = self._clock()
        expired = [
            oid
            for oid, window in self._windows.items()
            if now - window.window_start > self._config.window_seconds
        ]
        for order_id in expired:
            del self._windows[order_id]

    def reset(self, order_id: str | None = None) -> None:
        """Forget one order's window, or every window and the halt."""
        if order_id is not None:
            self._windows.pop(order_id, None)
            return
        self._windows.clear()
        self._halt_until = None
        log.info("update_circuit_breaker_reset")

    def _current_window(self, order_id: str) -> _OrderWindow:
        now = self._clock()
        window = self._windows.get(order_id)
        if window is None or now - window.window_start > self._config.window_seconds:
            window = _OrderWindow(window_start=now)
            self._windows[order_id] = window
        return window
