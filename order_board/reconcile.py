"""Fold push events into the order store under the active status view."""

from __future__ import annotations

import logging
from typing import Any

from order_board.channel import LiveUpdateChannel
from order_board.constant import EVENT_NEW_ORDER, EVENT_ORDER_UPDATE
from order_board.filters import FilterState
from order_board.models import NewOrderEvent, Order, OrderUpdateEvent, parse_event
from order_board.store import OrderStore

logger = logging.getLogger(__name__)


def matches_view(status: str, view: str) -> bool:
    """A view shows exactly one status; pending and cancelled match neither."""
    return status == view and view in ("processing", "completed")


def apply_new_order(orders: list[Order], order: Order, view: str) -> list[Order]:
    if not matches_view(order.status, view):
        return orders
    if any(existing.key == order.key for existing in orders):
        return orders
    return [*orders, order]


def apply_order_update(orders: list[Order], order: Order, view: str) -> list[Order]:
    """Replace in place, remove, or append depending on the order's new status."""
    show = matches_view(order.status, view)
    for idx, existing in enumerate(orders):
        if existing.key != order.key:
            continue
        if show:
            updated = list(orders)
            updated[idx] = order
            return updated
        return [o for o in orders if o.key != order.key]
    if show:
        return [*orders, order]
    return orders


class OrderReconciler:
    """Subscribes to order events and keeps the store in step with the view.

    Handlers are bound methods kept for the reconciler's lifetime, so ``detach``
    removes exactly what ``attach`` added.
    """

    def __init__(self, store: OrderStore, filters: FilterState, channel: LiveUpdateChannel) -> None:
        self.store = store
        self.filters = filters
        self.channel = channel
        self.attached = False

    def attach(self) -> None:
        if self.attached:
            return
        self.channel.on(EVENT_NEW_ORDER, self.handle_new_order)
        self.channel.on(EVENT_ORDER_UPDATE, self.handle_order_update)
        self.attached = True

    def detach(self) -> None:
        if not self.attached:
            return
        self.channel.off(EVENT_NEW_ORDER, self.handle_new_order)
        self.channel.off(EVENT_ORDER_UPDATE, self.handle_order_update)
        self.attached = False

    def handle_new_order(self, payload: Any) -> None:
        try:
            event = parse_event(EVENT_NEW_ORDER, payload)
        except ValueError as exc:
            logger.warning("ignoring newOrder: %s", exc)
            return
        if not isinstance(event, NewOrderEvent):
            return
        order = event.order
        logger.debug("newOrder id=%s status=%s view=%s", order.key, order.status, self.filters.status_view)
        # The view is read when the updater runs, so a replay after a fetch uses the view of that moment.
        self.store.apply_push(lambda orders: apply_new_order(orders, order, self.filters.status_view))

    def handle_order_update(self, payload: Any) -> None:
        try:
            event = parse_event(EVENT_ORDER_UPDATE, payload)
        except ValueError as exc:
            logger.warning("ignoring orderUpdate: %s", exc)
            return
        if not isinstance(event, OrderUpdateEvent):
            return
        order = event.order
        logger.debug("orderUpdate id=%s status=%s view=%s", order.key, order.status, self.filters.status_view)
        self.store.apply_push(lambda orders: apply_order_update(orders, order, self.filters.status_view))
