"""Order engine error hierarchy.

All line-item and transition errors inherit from OrderEngineError, so
callers can catch engine failures at one boundary.
"""

from __future__ import annotations

from orderflow.orders.types import OrderStatus


class OrderEngineError(Exception):
    """Base exception for all order engine errors."""


class InvalidQuantityError(OrderEngineError):
    """Quantity is negative, or a partial move is not positive."""

    def __init__(self, quantity: int) -> None:
        self.quantity = quantity
        super().__init__(f"Invalid quantity: {quantity}")


class ItemNotFoundError(OrderEngineError):
    """Index does not address an entry in the item collection."""

    def __init__(self, index: int, size: int) -> None:
        self.index = index
        self.size = size
        super().__init__(f"No line item at index {index} (order has {size} items)")


class InvalidTransitionError(OrderEngineError):
    """Raised when an invalid status transition is attempted."""

    def __init__(self, from_status: OrderStatus, to_status: OrderStatus) -> None:
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Invalid transition: {from_status.value} -> {to_status.value}"
        )
