"""Reconciliation guard -- safe, event-driven recomputation of order status.

Every change notification for an order may mean its stored status no
longer matches its items. The guard recomputes the status and pushes a
correction, while making sure its own push (which the store reports back
as another notification) cannot start an update loop:

- pushes are debounced per order; notifications arriving while a push is
  waiting join it, and the push recomputes from the latest items when it
  fires, so a burst costs one write and one unit of budget;
- an order is marked self-updated while its push settles, and the echo
  notification is dropped;
- per-order budgets and a global emergency halt cap how often any order
  can be rewritten automatically.

Drops are normal outcomes, reported as GuardDecision values and logged.
Per-order state is released once it is idle or expired, so a long-running
guard only holds state for orders that changed recently.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import Enum

import structlog

from orderflow.config import GuardConfig
from orderflow.orders.aggregator import aggregate
from orderflow.orders.state_machine import ensure_valid_transition
from orderflow.orders.types import LineItem, OrderStatus
from orderflow.reconcile.circuit_breaker import UpdateCircuitBreaker
from orderflow.store.errors import OrderNotFoundError, OrderStoreError
from orderflow.store.order_store import OrderPusher, OrderSource
from orderflow.utils.logging import bind_order_id
from orderflow.utils.time import Clock, monotonic_now

log = structlog.get_logger()


class GuardDecision(str, Enum):
    """Outcome of one guard call."""

    SCHEDULED = "scheduled"
    COALESCED = "coalesced"
    PUSHED = "pushed"
    PUSH_FAILED = "push_failed"
    IN_SYNC = "in_sync"
    DROPPED_HALTED = "dropped_halted"
    DROPPED_ECHO = "dropped_echo"
    DROPPED_RATE_LIMITED = "dropped_rate_limited"
    DROPPED_UNKNOWN_ORDER = "dropped_unknown_order"


@dataclass
class _LockEntry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class _OrderLocks:
    """One asyncio.Lock per order, dropped when nobody holds or awaits it."""

    def __init__(self) -> None:
        self._entries: dict[str, _LockEntry] = {}

    def order_ids(self) -> frozenset[str]:
        return frozenset(self._entries)

    @asynccontextmanager
    async def hold(self, order_id: str) -> AsyncIterator[None]:
        entry = self._entries.get(order_id)
        if entry is None:
            entry = self._entries[order_id] = _LockEntry()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._entries[order_id]


class ReconciliationGuard:
    """Loop-safe recompute-and-push of order status.

    One instance per process (or per store connection). All state lives on
    the instance; pass a ManualClock for deterministic tests.
    """

    def __init__(
        self,
        source: OrderSource,
        pusher: OrderPusher,
        config: GuardConfig | None = None,
        clock: Clock = monotonic_now,
    ) -> None:
        self._source = source
        self._pusher = pusher
        self._config = config or GuardConfig()
        self._clock = clock
        self._breaker = UpdateCircuitBreaker(self._config, clock)
        self._echo_until: dict[str, float] = {}
        self._pending: dict[str, asyncio.Task[None]] = {}
        self._latest_items: dict[str, tuple[LineItem, ...]] = {}
        self._tasks: set[asyncio.Task[None]] = set()
        self._intake_locks = _OrderLocks()
        self._push_locks = _OrderLocks()
        self._last_prune = clock()

    @property
    def breaker(self) -> UpdateCircuitBreaker:
        return self._breaker

    @property
    def pending_order_ids(self) -> frozenset[str]:
        """Orders with a debounced push that has not started yet."""
        return frozenset(self._pending)

    @property
    def tracked_order_ids(self) -> frozenset[str]:
        """Every order the guard currently holds any state for."""
        return (
            frozenset(self._echo_until)
            | frozenset(self._pending)
            | frozenset(self._latest_items)
            | self._intake_locks.order_ids()
            | self._push_locks.order_ids()
            | self._breaker.tracked_order_ids
        )

    def is_self_updated(self, order_id: str) -> bool:
        until = self._echo_until.get(order_id)
        if until is None:
            return False
        if self._clock() >= until:
            del self._echo_until[order_id]
            return False
        return True

    async def handle_notification(
        self,
        order_id: str,
        items: Sequence[LineItem],
    ) -> GuardDecision:
        """Process one "items changed" notification for an order.

        Notifications for the same order are handled in arrival order.
        """
        self._maybe_prune()
        with bind_order_id(order_id):
            async with self._intake_locks.hold(order_id):
                return await self._handle(order_id, items)

    async def request_status_change(
        self,
        order_id: str,
        new_status: OrderStatus,
    ) -> GuardDecision:
        """Push an operator's explicit status change (e.g. "mark ready").

        Uses the user-initiated budget, skips the debounce and ignores the
        emergency halt. Waits for any notification of the same order that
        is being handled, then supersedes its pending automatic push.

        Raises:
            OrderNotFoundError: If the order does not exist.
            InvalidTransitionError: If the change moves the order backward.
        """
        self._maybe_prune()
        with bind_order_id(order_id):
            async with self._intake_locks.hold(order_id):
                order = await self._source.get_order(order_id)
                if order is None:
                    raise OrderNotFoundError(order_id)
                ensure_valid_transition(order.status, new_status)

                self._breaker.note_attempt(order_id)
                allowed, reason = self._breaker.can_update(order_id, user_initiated=True)
                if not allowed:
                    log.info("guard_dropped", reason="user_rate_limited", detail=reason)
                    return GuardDecision.DROPPED_RATE_LIMITED
                self._breaker.record_update(order_id, user_initiated=True)

                self._cancel_pending(order_id)
                async with self._push_locks.hold(order_id):
                    ok = await self._push(order_id, new_status)
                return GuardDecision.PUSHED if ok else GuardDecision.PUSH_FAILED

    async def drain(self) -> None:
        """Wait for every scheduled push to finish or be cancelled."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def cancel_all(self) -> None:
        """Cancel every push that has not started yet."""
        for order_id in list(self._pending):
            self._cancel_pending(order_id)

    def prune(self) -> None:
        """Forget expired echo marks and rate windows."""
        now = self._clock()
        self._last_prune = now
        expired = [oid for oid, until in self._echo_until.items() if now >= until]
        for order_id in expired:
            del self._echo_until[order_id]
        self._breaker.prune()

    async def _handle(self, order_id: str, items: Sequence[LineItem]) -> GuardDecision:
        if self._breaker.is_halted:
            log.warning(
                "guard_dropped",
                reason="emergency_halt",
                halt_remaining=round(self._breaker.halt_remaining, 3),
            )
            return GuardDecision.DROPPED_HALTED

        if self._consume_echo(order_id):
            log.debug("guard_dropped", reason="self_update_echo")
            return GuardDecision.DROPPED_ECHO

        order = await self._source.get_order(order_id)
        if order is None:
            log.warning("unknown_order_notification")
            return GuardDecision.DROPPED_UNKNOWN_ORDER

        calculated = aggregate(items)
        if calculated is order.status:
            # A queued correction is stale once the order is back in sync
            self._cancel_pending(order_id)
            return GuardDecision.IN_SYNC

        if order_id in self._pending:
            # The waiting push was already charged to the budget
            self._latest_items[order_id] = tuple(items)
            log.debug("status_correction_coalesced", calculated_status=calculated.value)
            return GuardDecision.COALESCED

        self._breaker.note_attempt(order_id)
        allowed, reason = self._breaker.can_update(order_id)
        if not allowed:
            log.info(
                "guard_dropped",
                reason="rate_limited",
                detail=reason,
                stored_status=order.status.value,
                calculated_status=calculated.value,
            )
            return GuardDecision.DROPPED_RATE_LIMITED
        self._breaker.record_update(order_id)

        log.info(
            "status_correction_scheduled",
            stored_status=order.status.value,
            calculated_status=calculated.value,
        )
        self._latest_items[order_id] = tuple(items)
        self._schedule_push(order_id)
        return GuardDecision.SCHEDULED

    def _schedule_push(self, order_id: str) -> None:
        task = asyncio.create_task(
            self._debounced_push(order_id),
            name=f"status-push-{order_id}",
        )
        self._pending[order_id] = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _cancel_pending(self, order_id: str) -> None:
        self._latest_items.pop(order_id, None)
        task = self._pending.pop(order_id, None)
        if task is not None and not task.done():
            task.cancel()
            log.debug("status_push_superseded", order_id=order_id)

    async def _debounced_push(self, order_id: str) -> None:
        if self._config.debounce_seconds > 0:
            await asyncio.sleep(self._config.debounce_seconds)
        async with self._push_locks.hold(order_id):
            # Once out of _pending the push can no longer be superseded
            if self._pending.get(order_id) is not asyncio.current_task():
                return
            del self._pending[order_id]
            items = self._latest_items.pop(order_id)
            await self._recompute_and_push(order_id, items)

    async def _recompute_and_push(self, order_id: str, items: tuple[LineItem, ...]) -> None:
        if self._breaker.is_halted:
            log.warning("status_push_skipped", reason="emergency_halt")
            return
        try:
            order = await self._source.get_order(order_id)
        except OrderStoreError as exc:
            log.warning("status_push_skipped", reason="source_error", error=str(exc))
            return
        if order is None:
            log.warning("status_push_skipped", reason="unknown_order")
            return

        calculated = aggregate(items)
        if calculated is order.status:
            log.debug("status_push_skipped", reason="in_sync")
            return
        await self._push(order_id, calculated)

    async def _push(self, order_id: str, status: OrderStatus) -> bool:
        self._echo_until[order_id] = self._clock() + self._config.echo_delay_for(status)
        try:
            ok = await self._pusher.push_status(order_id, status)
        except OrderStoreError as exc:
            log.warning("status_push_failed", status=status.value, error=str(exc))
            ok = False
        except Exception:
            log.exception("status_push_error", status=status.value)
            ok = False
        else:
            if not ok:
                log.warning("status_push_failed", status=status.value, error="rejected")

        if not ok:
            # Let the next notification try again
            self._echo_until.pop(order_id, None)
            return False
        log.info("status_pushed", status=status.value)
        return True

    def _consume_echo(self, order_id: str) -> bool:
        until = self._echo_until.pop(order_id, None)
        return until is not None and self._clock() < until

    def _maybe_prune(self) -> None:
        if self._clock() - self._last_prune >= self._config.window_seconds:
            self.prune()
