"""Tests for the order status aggregator and order-level helpers."""

from __future__ import annotations

from decimal import Decimal

import pytest
from hypothesis import given
from hypothesis import strategies as st

from orderflow.orders.aggregator import (
    aggregate,
    can_cancel_order,
    can_complete_order,
    item_status_summary,
    sync,
    update_item_statuses,
)
from orderflow.orders.errors import InvalidTransitionError
from orderflow.orders.state_machine import STATUS_SEQUENCE, next_status, rank
from orderflow.orders.types import TERMINAL_STATUSES, OrderStatus
from tests.factories import make_item, make_order

P = OrderStatus.PENDING
C = OrderStatus.CONFIRMED
PR = OrderStatus.PREPARING
R = OrderStatus.READY
S = OrderStatus.SERVED
X = OrderStatus.CANCELLED


def _items(*statuses: OrderStatus) -> list:
    return [make_item(f"dish-{i}", 1, s) for i, s in enumerate(statuses)]


class TestAggregate:
    """Tie-break ladder, first match wins."""

    @pytest.mark.parametrize(
        ("statuses", "expected"),
        [
            ((), P),
            ((X,), X),
            ((X, X), X),
            ((X, S), P),
            ((X, R, R), P),
            ((S, S), OrderStatus.COMPLETED),
            ((R, R), R),
            ((S, PR), PR),
            ((R, PR, P), PR),
            ((R, S), P),
            ((C, P), C),
            ((C, R), C),
            ((P, P), P),
            ((S,), OrderStatus.COMPLETED),
        ],
    )
    def test_ladder(self, statuses: tuple[OrderStatus, ...], expected: OrderStatus) -> None:
        assert aggregate(_items(*statuses)) == expected

    def test_all_served_is_completed(self) -> None:
        items = [make_item("pizza", 1, S), make_item("burger", 1, S)]
        assert aggregate(items) == OrderStatus.COMPLETED

    def test_served_and_preparing_is_preparing(self) -> None:
        items = [make_item("pizza", 1, S), make_item("burger", 1, PR)]
        assert aggregate(items) == PR

    def test_counts_entries_not_units(self) -> None:
        items = [make_item("pizza", 5, R), make_item("burger", 1, R)]
        assert aggregate(items) == R

    @given(statuses=st.lists(st.sampled_from(list(STATUS_SEQUENCE[:4])), min_size=1, max_size=6))
    def test_unanimous_advance_does_not_lower_rank(
        self,
        statuses: list[OrderStatus],
    ) -> None:
        target = max(statuses, key=rank)
        before = aggregate(_items(*statuses))
        advanced_to = next_status(target)
        assert advanced_to is not None
        after = aggregate(_items(*([advanced_to] * len(statuses))))
        assert rank(after) >= rank(before)


class TestSync:
    def test_replaces_status_only(self) -> None:
        order = make_order(make_item("pizza", 2, R), status=P)
        synced = sync(order)
        assert synced.status == R
        assert synced.items == order.items
        assert synced.total_amount == order.total_amount
        assert synced.id == order.id

    def test_in_sync_order_unchanged(self) -> None:
        order = make_order(make_item("pizza", 1, PR))
        assert sync(order) == order


class TestCompleteAndCancel:
    def test_can_complete_when_all_served(self) -> None:
        assert can_complete_order(_items(S, S)) is True

    def test_cannot_complete_partial_or_empty(self) -> None:
        assert can_complete_order(_items(S, R)) is False
        assert can_complete_order([]) is False

    @pytest.mark.parametrize("status", sorted(TERMINAL_STATUSES))
    def test_cannot_cancel_finished(self, status: OrderStatus) -> None:
        assert can_cancel_order(status) is False

    def test_cannot_cancel_once_served(self) -> None:
        assert can_cancel_order(PR, _items(PR, S)) is False

    def test_can_cancel_in_progress(self) -> None:
        assert can_cancel_order(PR, _items(PR, R)) is True
        assert can_cancel_order(P) is True


class TestItemStatusSummary:
    def test_counts(self) -> None:
        summary = item_status_summary(_items(P, P, R, S, X))
        assert summary.total == 5
        assert summary.pending == 2
        assert summary.ready == 1
        assert summary.served == 1
        assert summary.cancelled == 1
        assert summary.confirmed == 0
        assert summary.preparing == 0


class TestUpdateItemStatuses:
    """Bulk whole-entry updates followed by a resync."""

    def test_applies_and_syncs(self) -> None:
        order = make_order(make_item("pizza", 1, PR), make_item("burger", 1, PR))
        updated = update_item_statuses(order, [(0, R), (1, R)])
        assert [i.status for i in updated.items] == [R, R]
        assert updated.status == R

    def test_merges_entries_that_collide(self) -> None:
        order = make_order(make_item("pizza", 1, PR), make_item("pizza", 2, R))
        updated = update_item_statuses(order, [(0, R)])
        assert len(updated.items) == 1
        assert updated.items[0].quantity == 3
        assert updated.total_amount == Decimal("37.50")

    def test_out_of_range_skipped(self) -> None:
        order = make_order(make_item("pizza", 1, PR))
        updated = update_item_statuses(order, [(4, R), (-1, R)])
        assert updated == order

    def test_backward_rejected(self) -> None:
        order = make_order(make_item("pizza", 1, S))
        with pytest.raises(InvalidTransitionError):
            update_item_statuses(order, [(0, P)])
