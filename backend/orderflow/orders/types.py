"""Order domain types shared across the status engine.

Frozen dataclasses for value objects. All monetary values use Decimal.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum


class OrderStatus(str, Enum):
    """Fulfillment status of an order or of a single line item."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    SERVED = "served"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset(
    {
        OrderStatus.COMPLETED,
        OrderStatus.CANCELLED,
    }
)

ItemKey = tuple[str, OrderStatus, str]


@dataclass(frozen=True)
class LineItem:
    """One row of an order: a quantity of one menu entry at one status."""

    menu_item_id: str
    quantity: int
    unit_price: Decimal
    status: OrderStatus = OrderStatus.PENDING
    special_instructions: str = ""

    def __post_init__(self) -> None:
        # None and "" are the same instructions
        if self.special_instructions is None:
            object.__setattr__(self, "special_instructions", "")
        if not isinstance(self.unit_price, Decimal):
            object.__setattr__(self, "unit_price", Decimal(str(self.unit_price)))
        if self.unit_price < Decimal("0"):
            raise ValueError(f"unit_price must be non-negative, got {self.unit_price}")

    @property
    def key(self) -> ItemKey:
        """Identity key used to decide whether two entries must merge."""
        return (self.menu_item_id, self.status, self.special_instructions)

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    def with_quantity(self, quantity: int) -> LineItem:
        return replace(self, quantity=quantity)

    def with_status(self, status: OrderStatus) -> LineItem:
        return replace(self, status=status)


@dataclass(frozen=True)
class Order:
    """Snapshot of one order as seen by the engine.

    ``status`` and ``total_amount`` are derived values. Use ``with_items``
    to keep the total in step with the items, and ``aggregator.sync`` to
    bring the status in line.
    """

    id: str
    status: OrderStatus
    items: tuple[LineItem, ...] = ()
    total_amount: Decimal = field(default=Decimal("0"))

    def with_items(self, items: tuple[LineItem, ...] | list[LineItem]) -> Order:
        items = tuple(items)
        total = sum((item.line_total for item in items), Decimal("0"))
        return replace(self, items=items, total_amount=total)

    def with_status(self, status: OrderStatus) -> Order:
        return replace(self, status=status)


@dataclass(frozen=True)
class StatusSummary:
    """Entry counts per item status, for display."""

    total: int
    pending: int
    confirmed: int
    preparing: int
    ready: int
    served: int
    cancelled: int
