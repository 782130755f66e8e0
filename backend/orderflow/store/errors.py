"""Order store error hierarchy.

All persistence-boundary exceptions inherit from OrderStoreError, enabling
clean exception handling where the engine calls out to the store.
"""

from __future__ import annotations


class OrderStoreError(Exception):
    """Base exception for all order store errors."""


class OrderNotFoundError(OrderStoreError):
    """No order exists with the given id."""

    def __init__(self, order_id: str) -> None:
        self.order_id = order_id
        super().__init__(f"Order not found: {order_id}")


class OrderPushError(OrderStoreError):
    """The store rejected a write (validation, permission, transport)."""
