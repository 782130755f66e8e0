"""InMemoryOrderStore -- dict-backed order store for testing.

Lightweight implementation of OrderSource and OrderPusher for unit testing
the guard and edit session without a database.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from orderflow.orders.types import LineItem, Order, OrderStatus
from orderflow.store.errors import OrderNotFoundError, OrderPushError


@dataclass(frozen=True)
class PushRecord:
    """One write received by the fake store."""

    order_id: str
    status: OrderStatus
    items: tuple[LineItem, ...] | None = None


class InMemoryOrderStore:
    """In-memory OrderSource + OrderPusher.

    Seed orders at construction or with put(), inspect ``pushes`` after
    test execution. Set ``fail_pushes`` to make every write return False,
    or ``raise_on_push`` to make every write raise OrderPushError.
    """

    def __init__(self, orders: Sequence[Order] | None = None) -> None:
        self._orders: dict[str, Order] = {o.id: o for o in orders or ()}
        self.pushes: list[PushRecord] = []
        self.fail_pushes = False
        self.raise_on_push = False

    def put(self, order: Order) -> None:
        self._orders[order.id] = order

    def peek(self, order_id: str) -> Order:
        """Synchronous lookup for test assertions."""
        try:
            return self._orders[order_id]
        except KeyError:
            raise OrderNotFoundError(order_id) from None

    async def get_order(self, order_id: str) -> Order | None:
        return self._orders.get(order_id)

    async def push_status(self, order_id: str, status: OrderStatus) -> bool:
        self._check_push()
        order = self.peek(order_id)
        self.pushes.append(PushRecord(order_id=order_id, status=status))
        if self.fail_pushes:
            return False
        self._orders[order_id] = order.with_status(status)
        return True

    async def push_items(
        self,
        order_id: str,
        items: Sequence[LineItem],
        status: OrderStatus,
        total_amount: Decimal,
    ) -> bool:
        self._check_push()
        order = self.peek(order_id)
        items = tuple(items)
        self.pushes.append(PushRecord(order_id=order_id, status=status, items=items))
        if self.fail_pushes:
            return False
        updated = order.with_items(items).with_status(status)
        if updated.total_amount != total_amount:
            raise OrderPushError(
                f"total_amount {total_amount} does not match items "
                f"({updated.total_amount})"
            )
        self._orders[order_id] = updated
        return True

    def _check_push(self) -> None:
        if self.raise_on_push:
            raise OrderPushError("push rejected by store")
