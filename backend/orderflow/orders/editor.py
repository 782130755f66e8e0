"""Order edit session -- staged item edits saved in one write.

Holds a working copy of an order's items while staff adjust quantities,
add or remove dishes and move units between statuses. Nothing reaches the
store until save(), which pushes the items together with the status and
total derived from them, so the saved order is always consistent.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

import structlog

from orderflow.orders import line_items as ops
from orderflow.orders.aggregator import aggregate
from orderflow.orders.types import LineItem, Order, OrderStatus
from orderflow.store.errors import OrderPushError

if TYPE_CHECKING:
    from orderflow.store.order_store import OrderPusher

log = structlog.get_logger()


class OrderEditSession:
    """Working copy of one order's items with an unsaved-changes flag."""

    def __init__(self, order: Order, pusher: OrderPusher) -> None:
        self._pusher = pusher
        self._original = order
        self._items: tuple[LineItem, ...] = ops.normalize(order.items)
        self._dirty = False

    @property
    def order_id(self) -> str:
        return self._original.id

    @property
    def items(self) -> tuple[LineItem, ...]:
        return self._items

    @property
    def has_unsaved_changes(self) -> bool:
        return self._dirty

    @property
    def status(self) -> OrderStatus:
        """Status the order will have once saved."""
        return aggregate(self._items)

    @property
    def total_amount(self) -> Decimal:
        return ops.total_amount(self._items)

    def reset(self, order: Order) -> None:
        """Start over from a fresh snapshot, discarding staged edits."""
        self._original = order
        self._items = ops.normalize(order.items)
        self._dirty = False

    def change_quantity(self, index: int, new_quantity: int) -> None:
        self._apply(ops.change_quantity(self._items, index, new_quantity))

    def add_item(self, item: LineItem) -> None:
        self._apply(ops.add_item(self._items, item))

    def remove_item(self, index: int) -> None:
        self._apply(ops.remove_item(self._items, index))

    def update_status(
        self,
        index: int,
        new_status: OrderStatus,
        quantity: int | None = None,
        *,
        enforce: bool = True,
    ) -> None:
        """Move ``quantity`` units (all of them when None) to ``new_status``."""
        if quantity is None:
            self._apply(ops.update_item_status(self._items, index, new_status, enforce=enforce))
        else:
            self._apply(
                ops.transition_partial_quantity(
                    self._items, index, new_status, quantity, enforce=enforce
                )
            )

    async def save(self) -> Order:
        """Push staged edits and return the saved order.

        A session without changes returns the original order untouched.

        Raises:
            OrderPushError: If the store rejects the write. Staged edits are
                kept so the caller can retry.
        """
        if not self._dirty:
            return self._original

        saved = self._original.with_items(self._items).with_status(self.status)
        ok = await self._pusher.push_items(
            saved.id,
            saved.items,
            saved.status,
            saved.total_amount,
        )
        if not ok:
            raise OrderPushError(f"Store rejected changes to order {saved.id}")

        log.info(
            "order_changes_saved",
            order_id=saved.id,
            status=saved.status.value,
            item_count=len(saved.items),
            total_amount=str(saved.total_amount),
        )
        self._original = saved
        self._dirty = False
        return saved

    def _apply(self, items: tuple[LineItem, ...]) -> None:
        if items != self._items:
            self._items = items
            self._dirty = True
