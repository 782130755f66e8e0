"""Pydantic payload models for orders as the application's API sends them.

Field names follow the API (camelCase, ``price``) and convert to and from
the engine's frozen dataclasses. A populated menu reference
(``{"id": ..., "name": ...}``) is accepted wherever an id is expected.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from orderflow.orders.types import LineItem, Order, OrderStatus


class LineItemPayload(BaseModel):
    """One order item as sent over the API."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    menu_item_id: str = Field(alias="menuItemId")
    quantity: int = Field(ge=1)
    unit_price: Decimal = Field(alias="price", ge=Decimal("0"))
    status: OrderStatus = OrderStatus.PENDING
    special_instructions: str | None = Field(default=None, alias="specialInstructions")

    @field_validator("menu_item_id", mode="before")
    @classmethod
    def unwrap_menu_reference(cls, v: Any) -> Any:
        if isinstance(v, dict):
            if "id" not in v:
                raise ValueError("menuItemId object must carry an 'id'")
            return str(v["id"])
        return v

    def to_domain(self) -> LineItem:
        return LineItem(
            menu_item_id=self.menu_item_id,
            quantity=self.quantity,
            unit_price=self.unit_price,
            status=self.status,
            special_instructions=self.special_instructions or "",
        )

    @classmethod
    def from_domain(cls, item: LineItem) -> LineItemPayload:
        return cls(
            menu_item_id=item.menu_item_id,
            quantity=item.quantity,
            unit_price=item.unit_price,
            status=item.status,
            special_instructions=item.special_instructions or None,
        )


class OrderPayload(BaseModel):
    """An order as sent over the API.

    ``totalAmount`` is accepted for compatibility but always recomputed
    from the items on conversion.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    status: OrderStatus = OrderStatus.PENDING
    items: list[LineItemPayload] = Field(default_factory=list)
    total_amount: Decimal | None = Field(default=None, alias="totalAmount")

    def to_domain(self) -> Order:
        order = Order(id=self.id, status=self.status)
        return order.with_items([item.to_domain() for item in self.items])

    @classmethod
    def from_domain(cls, order: Order) -> OrderPayload:
        return cls(
            id=order.id,
            status=order.status,
            items=[LineItemPayload.from_domain(item) for item in order.items],
            total_amount=order.total_amount,
        )

    def dump(self) -> dict[str, Any]:
        """JSON-ready dict using API field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
