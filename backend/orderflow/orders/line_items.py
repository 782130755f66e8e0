"""Line-item normalizer and transition engine.

Pure functions over an order's item collection. Inputs are never
modified; every operation returns a new normalized tuple. Quantities are
whole units and an entry with quantity <= 0 does not exist.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

import structlog

from orderflow.orders.errors import InvalidQuantityError, ItemNotFoundError
from orderflow.orders.state_machine import ensure_valid_transition
from orderflow.orders.types import ItemKey, LineItem, OrderStatus

log = structlog.get_logger()


def normalize(items: Sequence[LineItem]) -> tuple[LineItem, ...]:
    """Merge entries that share an identity key.

    Keys keep the position of their first occurrence, and the merged entry
    keeps the first occurrence's unit price. Entries with quantity <= 0
    are dropped.
    """
    merged: dict[ItemKey, LineItem] = {}
    for item in items:
        if item.quantity <= 0:
            continue
        existing = merged.get(item.key)
        if existing is None:
            merged[item.key] = item
        else:
            merged[item.key] = existing.with_quantity(existing.quantity + item.quantity)
    return tuple(merged.values())


def total_amount(items: Sequence[LineItem]) -> Decimal:
    """Sum of unit_price * quantity over all entries."""
    return sum((item.line_total for item in items if item.quantity > 0), Decimal("0"))


def change_quantity(
    items: Sequence[LineItem],
    index: int,
    new_quantity: int,
) -> tuple[LineItem, ...]:
    """Set the quantity of one entry.

    Shrinking never reverts status. Growing a pending entry grows it in
    place; growing an entry that has already advanced adds the extra units
    as pending, since they have not been through the kitchen yet.

    Raises:
        InvalidQuantityError: If new_quantity is negative.
        ItemNotFoundError: If index does not address an entry.
    """
    if new_quantity < 0:
        raise InvalidQuantityError(new_quantity)
    current = _item_at(items, index)
    updated = list(items)

    if new_quantity <= current.quantity:
        updated[index] = current.with_quantity(new_quantity)
        return normalize(updated)

    diff = new_quantity - current.quantity
    if current.status is OrderStatus.PENDING:
        updated[index] = current.with_quantity(new_quantity)
        return normalize(updated)

    pending_key = (current.menu_item_id, OrderStatus.PENDING, current.special_instructions)
    target = _find_key(updated, pending_key, exclude=index)
    if target is None:
        updated.append(
            LineItem(
                menu_item_id=current.menu_item_id,
                quantity=diff,
                unit_price=current.unit_price,
                status=OrderStatus.PENDING,
                special_instructions=current.special_instructions,
            )
        )
    else:
        updated[target] = updated[target].with_quantity(updated[target].quantity + diff)

    log.debug(
        "quantity_grown_as_pending",
        menu_item_id=current.menu_item_id,
        from_status=current.status.value,
        added=diff,
    )
    return normalize(updated)


def transition_partial_quantity(
    items: Sequence[LineItem],
    index: int,
    new_status: OrderStatus,
    quantity_to_move: int,
    *,
    enforce: bool = True,
) -> tuple[LineItem, ...]:
    """Move some units of one entry to a new status.

    Moving the whole quantity changes the entry's status and merges it into
    any entry that already has the resulting key. Moving fewer units splits
    the entry: the source shrinks and the moved units join (or create) the
    entry keyed by ``(menu_item_id, new_status, special_instructions)``.

    Args:
        items: Current item collection.
        index: Entry to move units from.
        new_status: Status the moved units end up in.
        quantity_to_move: Units to move; at least 1.
        enforce: Reject backward transitions. Pass False only for
            administrative corrections.

    Raises:
        ItemNotFoundError: If index does not address an entry.
        InvalidQuantityError: If quantity_to_move is not positive.
        InvalidTransitionError: If enforce is set and the move goes backward.
    """
    current = _item_at(items, index)
    if quantity_to_move <= 0:
        raise InvalidQuantityError(quantity_to_move)
    if enforce:
        ensure_valid_transition(current.status, new_status)
    elif current.status is not new_status:
        log.info(
            "unchecked_item_transition",
            menu_item_id=current.menu_item_id,
            from_status=current.status.value,
            to_status=new_status.value,
        )

    new_key = (current.menu_item_id, new_status, current.special_instructions)
    updated = list(items)
    target = _find_key(updated, new_key, exclude=index)

    if quantity_to_move >= current.quantity:
        if target is None:
            updated[index] = current.with_status(new_status)
        else:
            updated[target] = updated[target].with_quantity(
                updated[target].quantity + current.quantity
            )
            del updated[index]
        return normalize(updated)

    updated[index] = current.with_quantity(current.quantity - quantity_to_move)
    if target is None:
        updated.append(current.with_status(new_status).with_quantity(quantity_to_move))
    else:
        updated[target] = updated[target].with_quantity(
            updated[target].quantity + quantity_to_move
        )
    return normalize(updated)


def update_item_status(
    items: Sequence[LineItem],
    index: int,
    new_status: OrderStatus,
    *,
    enforce: bool = True,
) -> tuple[LineItem, ...]:
    """Change the status of a whole entry, merging with a matching entry."""
    current = _item_at(items, index)
    return transition_partial_quantity(
        items, index, new_status, current.quantity, enforce=enforce
    )


def add_item(items: Sequence[LineItem], item: LineItem) -> tuple[LineItem, ...]:
    """Add new units to the order.

    New units always start at PENDING regardless of the status on ``item``,
    and merge into an existing pending entry for the same menu item and
    instructions.

    Raises:
        InvalidQuantityError: If item.quantity is not positive.
    """
    if item.quantity <= 0:
        raise InvalidQuantityError(item.quantity)
    return normalize([*items, item.with_status(OrderStatus.PENDING)])


def remove_item(items: Sequence[LineItem], index: int) -> tuple[LineItem, ...]:
    """Drop one entry entirely.

    Raises:
        ItemNotFoundError: If index does not address an entry.
    """
    _item_at(items, index)
    return normalize([item for i, item in enumerate(items) if i != index])


def _item_at(items: Sequence[LineItem], index: int) -> LineItem:
    # Negative indices are rejected rather than wrapped
    if index < 0 or index >= len(items):
        raise ItemNotFoundError(index, len(items))
    return items[index]


def _find_key(items: Sequence[LineItem], key: ItemKey, *, exclude: int) -> int | None:
    return next(
        (i for i, item in enumerate(items) if i != exclude and item.key == key),
        None,
    )
