"""Click CLI commands for orderflow.

Developer tooling: load an order JSON file (as the API returns it), run
engine operations on it and print the result.
"""

from __future__ import annotations

import json
from pathlib import Path

import click
from pydantic import ValidationError

from orderflow.config import AppConfig
from orderflow.orders.aggregator import aggregate, item_status_summary, sync
from orderflow.orders.errors import OrderEngineError
from orderflow.orders.line_items import (
    change_quantity,
    normalize,
    transition_partial_quantity,
)
from orderflow.orders.schemas import OrderPayload
from orderflow.orders.types import LineItem, Order, OrderStatus
from orderflow.utils.logging import setup_logging

_STATUS_CHOICE = click.Choice([s.value for s in OrderStatus])


@click.group()
def cli() -> None:
    """Orderflow: order line-item status engine."""
    config = AppConfig()
    setup_logging(level=config.log_level, log_format=config.log_format)


@cli.command()
@click.argument("order_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def inspect(order_file: Path) -> None:
    """Show normalized items, derived status and total for an order."""
    order = _load_order(order_file)
    items = normalize(order.items)
    calculated = aggregate(items)
    summary = item_status_summary(items)

    click.echo(f"Order {order.id}")
    for i, item in enumerate(items):
        note = f"  ({item.special_instructions})" if item.special_instructions else ""
        click.echo(
            f"  [{i}] {item.menu_item_id} x{item.quantity} "
            f"@ {item.unit_price} {item.status.value}{note}"
        )
    click.echo(f"Total:            {order.with_items(items).total_amount}")
    click.echo(f"Stored status:    {order.status.value}")
    click.echo(f"Derived status:   {calculated.value}")
    click.echo(
        f"Entries:          {summary.total} "
        f"(pending={summary.pending}, confirmed={summary.confirmed}, "
        f"preparing={summary.preparing}, ready={summary.ready}, "
        f"served={summary.served}, cancelled={summary.cancelled})"
    )
    if calculated is not order.status:
        click.echo("Status is out of sync with items.")


@cli.command()
@click.argument("order_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--index", required=True, type=int, help="Item index to move units from.")
@click.option("--status", "new_status", required=True, type=_STATUS_CHOICE, help="Target status.")
@click.option("--quantity", required=True, type=int, help="Units to move.")
@click.option("--force", is_flag=True, help="Allow backward (corrective) transitions.")
def transition(
    order_file: Path,
    index: int,
    new_status: str,
    quantity: int,
    force: bool,
) -> None:
    """Move QUANTITY units of one item to a new status and print the order."""
    order = _load_order(order_file)
    try:
        items = transition_partial_quantity(
            order.items,
            index,
            OrderStatus(new_status),
            quantity,
            enforce=not force,
        )
    except OrderEngineError as e:
        raise click.ClickException(str(e)) from e
    _echo_order(order, items)


@cli.command("change-quantity")
@click.argument("order_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--index", required=True, type=int, help="Item index.")
@click.option("--quantity", required=True, type=int, help="New quantity for the item.")
def change_quantity_cmd(order_file: Path, index: int, quantity: int) -> None:
    """Set the quantity of one item and print the order."""
    order = _load_order(order_file)
    try:
        items = change_quantity(order.items, index, quantity)
    except OrderEngineError as e:
        raise click.ClickException(str(e)) from e
    _echo_order(order, items)


def _load_order(path: Path) -> Order:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        return OrderPayload.model_validate(raw).to_domain()
    except json.JSONDecodeError as e:
        raise click.ClickException(f"{path}: invalid JSON ({e})") from e
    except ValidationError as e:
        raise click.ClickException(f"{path}: invalid order\n{e}") from e


def _echo_order(order: Order, items: tuple[LineItem, ...]) -> None:
    updated = sync(order.with_items(items))
    click.echo(json.dumps(OrderPayload.from_domain(updated).dump(), indent=2))
