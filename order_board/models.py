"""Domain models for the order board."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from order_board.constant import (
    EVENT_ITEM_PREPARATION_UPDATE,
    EVENT_NEW_ORDER,
    EVENT_ORDER_UPDATE,
    ORDER_STATUSES,
)

_ORDER_FIELDS = {
    "order_id",
    "orderId",
    "id",
    "status",
    "items",
    "created_at",
    "createdAt",
    "order_type",
    "first_name",
    "last_name",
    "total_price",
    "payment_method",
}


def order_key(order_id: object) -> str:
    """Normalize an order id so 42 and "42" address the same order."""
    return str(order_id)


def _first_present(payload: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        value = payload.get(name)
        if value is not None:
            return value
    return None


@dataclass(frozen=True)
class OrderItem:
    """One line of an order. ``index`` is its position within the order."""

    index: int
    name: str
    quantity: int = 1
    ingredients: tuple[str, ...] = ()

    @classmethod
    def from_payload(cls, index: int, payload: Mapping[str, Any]) -> OrderItem:
        ingredients: list[str] = []
        for ingredient in payload.get("ingredients") or []:
            if isinstance(ingredient, Mapping):
                name = _first_present(ingredient, "ingredient_name", "name")
                if name:
                    ingredients.append(str(name))
            elif ingredient:
                ingredients.append(str(ingredient))
        try:
            quantity = int(payload.get("quantity", 1))
        except (TypeError, ValueError):
            quantity = 1
        return cls(
            index=index,
            name=str(_first_present(payload, "item_name", "name") or "Item"),
            quantity=quantity,
            ingredients=tuple(ingredients),
        )


@dataclass
class Order:
    """An order as shown on the board. Metadata fields are display-only."""

    order_id: str | int
    status: str
    items: list[OrderItem] = field(default_factory=list)
    created_at: str | None = None
    order_type: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    total_price: Any = None
    payment_method: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> str:
        return order_key(self.order_id)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Order:
        """Build an order from a REST or push payload.

        Raises ValueError when the id or status is missing.
        """
        if not isinstance(payload, Mapping):
            raise ValueError(f"order payload must be an object, got {type(payload).__name__}")
        order_id = _first_present(payload, "order_id", "orderId", "id")
        status = payload.get("status")
        if order_id is None or not status:
            raise ValueError("order payload requires order_id and status")
        status = str(status).lower()
        if status not in ORDER_STATUSES:
            raise ValueError(f"unknown order status {status!r}")

        items = [
            OrderItem.from_payload(idx, item)
            for idx, item in enumerate(payload.get("items") or [])
            if isinstance(item, Mapping)
        ]
        return cls(
            order_id=order_id,
            status=status,
            items=items,
            created_at=_first_present(payload, "created_at", "createdAt"),
            order_type=payload.get("order_type"),
            first_name=payload.get("first_name"),
            last_name=payload.get("last_name"),
            total_price=payload.get("total_price"),
            payment_method=payload.get("payment_method"),
            extra={k: v for k, v in payload.items() if k not in _ORDER_FIELDS},
        )


@dataclass(frozen=True)
class Pagination:
    """Pagination metadata returned with a page of orders."""

    current_page: int = 1
    total_pages: int = 1
    total_count: int = 0
    has_next_page: bool = False
    has_prev_page: bool = False

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any] | None) -> Pagination:
        if not payload:
            return cls()
        return cls(
            current_page=int(payload.get("currentPage", 1)),
            total_pages=int(payload.get("totalPages", 1)),
            total_count=int(payload.get("totalCount", 0)),
            has_next_page=bool(payload.get("hasNextPage", False)),
            has_prev_page=bool(payload.get("hasPrevPage", False)),
        )


@dataclass(frozen=True)
class OrderPage:
    orders: list[Order]
    pagination: Pagination


@dataclass(frozen=True)
class NewOrderEvent:
    order: Order


@dataclass(frozen=True)
class OrderUpdateEvent:
    order: Order


@dataclass(frozen=True)
class PreparationUpdateEvent:
    order_id: str | int
    item_index: int
    is_prepared: bool


PushEvent = NewOrderEvent | OrderUpdateEvent | PreparationUpdateEvent


def parse_event(event: str, payload: Any) -> PushEvent:
    """Turn a raw channel payload into its tagged event variant.

    Raises ValueError for unknown events or payloads missing required fields.
    """
    if event == EVENT_NEW_ORDER:
        return NewOrderEvent(Order.from_payload(payload))
    if event == EVENT_ORDER_UPDATE:
        return OrderUpdateEvent(Order.from_payload(payload))
    if event == EVENT_ITEM_PREPARATION_UPDATE:
        if not isinstance(payload, Mapping):
            raise ValueError("preparation payload must be an object")
        order_id = _first_present(payload, "order_id", "orderId")
        item_index = _first_present(payload, "itemIndex", "item_index")
        is_prepared = _first_present(payload, "isPrepared", "is_prepared")
        if order_id is None or item_index is None or is_prepared is None:
            raise ValueError("preparation payload requires order_id, itemIndex and isPrepared")
        try:
            index = int(item_index)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"invalid itemIndex {item_index!r}") from exc
        return PreparationUpdateEvent(order_id=order_id, item_index=index, is_prepared=bool(is_prepared))
    raise ValueError(f"unknown event {event!r}")
