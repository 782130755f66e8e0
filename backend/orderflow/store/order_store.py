"""Order store protocols -- the engine's view of persistence.

The engine reads order snapshots through OrderSource and writes through
OrderPusher. Real implementations wrap the application's query/mutation
API; InMemoryOrderStore satisfies both for tests and local runs.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from typing import Protocol, runtime_checkable

from orderflow.orders.types import LineItem, Order, OrderStatus


@runtime_checkable
class OrderSource(Protocol):
    """Async read access to current order snapshots."""

    async def get_order(self, order_id: str) -> Order | None:
        """Return the current snapshot, or None if the order does not exist."""
        ...


@runtime_checkable
class OrderPusher(Protocol):
    """Async write access to orders.

    Both methods must be idempotent: pushing the same value twice is harmless.
    They return False (or raise OrderStoreError) when the write is rejected.
    """

    async def push_status(self, order_id: str, status: OrderStatus) -> bool:
        """Persist a new order status."""
        ...

    async def push_items(
        self,
        order_id: str,
        items: Sequence[LineItem],
        status: OrderStatus,
        total_amount: Decimal,
    ) -> bool:
        """Persist a full item list together with its derived status and total."""
        ...
