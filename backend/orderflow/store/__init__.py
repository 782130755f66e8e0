"""Order store abstraction layer.

Re-exports the store protocols and errors for convenient imports:
    from orderflow.store import OrderSource, OrderPusher, OrderStoreError
"""

from orderflow.store.errors import OrderNotFoundError, OrderPushError, OrderStoreError
from orderflow.store.order_store import OrderPusher, OrderSource

__all__ = [
    "OrderNotFoundError",
    "OrderPushError",
    "OrderPusher",
    "OrderSource",
    "OrderStoreError",
]
