"""Order status aggregator -- derives an order's status from its items.

Pure functions, safe to call on un-normalized collections.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence

from orderflow.orders.line_items import normalize
from orderflow.orders.state_machine import ensure_valid_transition
from orderflow.orders.types import (
    TERMINAL_STATUSES,
    LineItem,
    Order,
    OrderStatus,
    StatusSummary,
)


def aggregate(items: Sequence[LineItem]) -> OrderStatus:
    """Compute the order status implied by its items.

    Rules, first match wins:
    - no items -> PENDING
    - every item cancelled -> CANCELLED
    - some but not all cancelled -> PENDING
    - every item served -> COMPLETED
    - every item ready -> READY
    - any item preparing -> PREPARING
    - any item confirmed -> CONFIRMED
    - otherwise PENDING

    Partial cancellation collapsing to PENDING discards the progress of the
    surviving items. That is the current product behaviour and is kept as is.
    """
    if not items:
        return OrderStatus.PENDING

    counts = Counter(item.status for item in items)
    total = len(items)
    cancelled = counts[OrderStatus.CANCELLED]

    if cancelled == total:
        return OrderStatus.CANCELLED
    if cancelled > 0:
        return OrderStatus.PENDING

    if counts[OrderStatus.SERVED] == total:
        return OrderStatus.COMPLETED
    if counts[OrderStatus.READY] == total:
        return OrderStatus.READY
    if counts[OrderStatus.PREPARING] > 0:
        return OrderStatus.PREPARING
    if counts[OrderStatus.CONFIRMED] > 0:
        return OrderStatus.CONFIRMED
    return OrderStatus.PENDING


def sync(order: Order) -> Order:
    """Return the order with its status recomputed from its items."""
    return order.with_status(aggregate(order.items))


def can_complete_order(items: Sequence[LineItem]) -> bool:
    """An order can be completed once every item has been served."""
    return len(items) > 0 and all(item.status is OrderStatus.SERVED for item in items)


def can_cancel_order(
    order_status: OrderStatus,
    items: Sequence[LineItem] | None = None,
) -> bool:
    """An order can be cancelled unless it is finished or food has gone out."""
    if order_status in TERMINAL_STATUSES:
        return False
    if items and any(item.status is OrderStatus.SERVED for item in items):
        return False
    return True


def item_status_summary(items: Sequence[LineItem]) -> StatusSummary:
    counts = Counter(item.status for item in items)
    return StatusSummary(
        total=len(items),
        pending=counts[OrderStatus.PENDING],
        confirmed=counts[OrderStatus.CONFIRMED],
        preparing=counts[OrderStatus.PREPARING],
        ready=counts[OrderStatus.READY],
        served=counts[OrderStatus.SERVED],
        cancelled=counts[OrderStatus.CANCELLED],
    )


def update_item_statuses(
    order: Order,
    updates: Iterable[tuple[int, OrderStatus]],
    *,
    enforce: bool = True,
) -> Order:
    """Apply several whole-entry status updates, then resync the order.

    Indices refer to the order's items as given. Out-of-range indices are
    skipped. Entries that end up sharing a key are merged once all updates
    have been applied.

    Raises:
        InvalidTransitionError: If enforce is set and an update goes backward.
    """
    updated = list(order.items)
    for index, status in updates:
        if index < 0 or index >= len(updated):
            continue
        if enforce:
            ensure_valid_transition(updated[index].status, status)
        updated[index] = updated[index].with_status(status)
    return sync(order.with_items(normalize(updated)))
