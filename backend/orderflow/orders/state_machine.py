"""Status hierarchy -- ordered status vocabulary and transition rules.

No I/O, no order state. The rank of a status is its index in
STATUS_SEQUENCE. CANCELLED sits outside the sequence: it is terminal and
reachable from anywhere.
"""

from __future__ import annotations

from orderflow.orders.errors import InvalidTransitionError
from orderflow.orders.types import OrderStatus

STATUS_SEQUENCE: tuple[OrderStatus, ...] = (
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.SERVED,
    OrderStatus.COMPLETED,
)

_RANKS: dict[OrderStatus, int] = {s: i for i, s in enumerate(STATUS_SEQUENCE)}

# Completion is an explicit operator action, never an automatic "next" step.
_NO_AUTOMATIC_NEXT = frozenset(
    {
        OrderStatus.SERVED,
        OrderStatus.COMPLETED,
        OrderStatus.CANCELLED,
    }
)


def rank(status: OrderStatus) -> int:
    """Progress rank of a status.

    Raises:
        ValueError: If the status is outside the sequence (CANCELLED).
    """
    try:
        return _RANKS[status]
    except KeyError:
        raise ValueError(f"{status.value} has no progress rank") from None


def next_status(status: OrderStatus) -> OrderStatus | None:
    """The status one rank above, or None when there is no automatic next."""
    if status in _NO_AUTOMATIC_NEXT or status not in _RANKS:
        return None
    return STATUS_SEQUENCE[_RANKS[status] + 1]


def previous_status(status: OrderStatus) -> OrderStatus | None:
    """The status one rank below, or None at the bottom or outside the sequence."""
    idx = _RANKS.get(status)
    if idx is None or idx == 0:
        return None
    return STATUS_SEQUENCE[idx - 1]


def is_valid_transition(current: OrderStatus, new: OrderStatus) -> bool:
    """Whether moving from ``current`` to ``new`` is allowed.

    Cancelling is always allowed. Otherwise the move must keep or raise the
    rank; skipping ranks forward is fine (pending -> ready). Nothing leaves
    CANCELLED except another cancel.
    """
    if new is OrderStatus.CANCELLED:
        return True
    if current is OrderStatus.CANCELLED:
        return False
    return _RANKS[new] >= _RANKS[current]


def ensure_valid_transition(current: OrderStatus, new: OrderStatus) -> None:
    """Raise InvalidTransitionError unless the transition is allowed."""
    if not is_valid_transition(current, new):
        raise InvalidTransitionError(current, new)
