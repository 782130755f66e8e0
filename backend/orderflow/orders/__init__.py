"""Order line-item status engine."""

from orderflow.orders.aggregator import (
    aggregate,
    can_cancel_order,
    can_complete_order,
    item_status_summary,
    sync,
    update_item_statuses,
)
from orderflow.orders.editor import OrderEditSession
from orderflow.orders.errors import (
    InvalidQuantityError,
    InvalidTransitionError,
    ItemNotFoundError,
    OrderEngineError,
)
from orderflow.orders.line_items import (
    add_item,
    change_quantity,
    normalize,
    remove_item,
    total_amount,
    transition_partial_quantity,
    update_item_status,
)
from orderflow.orders.state_machine import (
    STATUS_SEQUENCE,
    ensure_valid_transition,
    is_valid_transition,
    next_status,
    previous_status,
    rank,
)
from orderflow.orders.types import (
    TERMINAL_STATUSES,
    LineItem,
    Order,
    OrderStatus,
    StatusSummary,
)

__all__ = [
    "STATUS_SEQUENCE",
    "TERMINAL_STATUSES",
    "InvalidQuantityError",
    "InvalidTransitionError",
    "ItemNotFoundError",
    "LineItem",
    "Order",
    "OrderEditSession",
    "OrderEngineError",
    "OrderStatus",
    "StatusSummary",
    "add_item",
    "aggregate",
    "can_cancel_order",
    "can_complete_order",
    "change_quantity",
    "ensure_valid_transition",
    "is_valid_transition",
    "item_status_summary",
    "next_status",
    "normalize",
    "previous_status",
    "rank",
    "remove_item",
    "sync",
    "total_amount",
    "transition_partial_quantity",
    "update_item_status",
    "update_item_statuses",
]
