"""In-memory order list for the active board view."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from order_board.api import OrderApi, OrderApiError
from order_board.constant import ERROR_MESSAGES
from order_board.models import Order, Pagination, order_key

logger = logging.getLogger(__name__)

OrderUpdater = Callable[[list[Order]], list[Order]]


def dedupe_orders(orders: list[Order]) -> list[Order]:
    """Drop repeated ids, keeping the first occurrence and its position."""
    seen: set[str] = set()
    unique: list[Order] = []
    for order in orders:
        if order.key in seen:
            continue
        seen.add(order.key)
        unique.append(order)
    return unique


class OrderStore:
    """Single source of truth for the orders on screen plus pagination.

    ``fetch`` replaces the whole list. Push-driven changes and local removals
    go through ``apply_push`` so they can be replayed on top of a fetch that was
    already in flight when they arrived. Responses to superseded fetches are
    dropped.
    """

    def __init__(self, api: OrderApi) -> None:
        self.api = api
        self.orders: list[Order] = []
        self.pagination = Pagination()
        self.loading = False
        self.error: str | None = None
        self.last_fetch_time: datetime | None = None
        self._request_seq = 0
        self._inflight = 0
        self._journal: list[tuple[int, OrderUpdater]] = []
        self._listeners: list[Callable[[], None]] = []

    def add_listener(self, listener: Callable[[], None]) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    def find(self, order_id: object) -> Order | None:
        key = order_key(order_id)
        for order in self.orders:
            if order.key == key:
                return order
        return None

    def set_orders(self, updater: OrderUpdater) -> None:
        """Apply ``updater(previous) -> new`` to the list."""
        self.orders = dedupe_orders(updater(list(self.orders)))
        self._notify()

    def apply_push(self, updater: OrderUpdater) -> None:
        """Apply a push-driven change, remembering it while a fetch is pending."""
        self.set_orders(updater)
        if self._inflight:
            self._journal.append((self._request_seq, updater))

    def remove_order(self, order_id: object) -> None:
        """Drop an order locally. Journaled like a push so a pending fetch cannot bring it back."""
        key = order_key(order_id)
        self.apply_push(lambda orders: [order for order in orders if order.key != key])

    def set_error(self, message: str | None) -> None:
        self.error = message
        self._notify()

    async def fetch(self, params: Mapping[str, Any]) -> bool:
        """Load a page and replace the list. Returns False on failure or when superseded."""
        self._request_seq += 1
        seq = self._request_seq
        self._inflight += 1
        self.loading = True
        self._notify()
        logger.debug("fetch seq=%d params=%s", seq, dict(params))
        try:
            page = await self.api.fetch_orders(params)
        except OrderApiError as exc:
            if seq == self._request_seq:
                self.error = str(exc) or ERROR_MESSAGES["fetch_failed"]
            logger.warning("fetch seq=%d failed: %s", seq, exc)
            return False
        else:
            if seq != self._request_seq:
                logger.debug("fetch seq=%d superseded by seq=%d, dropping response", seq, self._request_seq)
                return False
            orders = list(page.orders)
            replayed = 0
            for stamp, updater in self._journal:
                if stamp >= seq:
                    orders = updater(orders)
                    replayed += 1
            self.orders = dedupe_orders(orders)
            self.pagination = page.pagination
            self.error = None
            self.last_fetch_time = datetime.now(timezone.utc)
            logger.debug("fetch seq=%d loaded %d orders, replayed %d push updates", seq, len(page.orders), replayed)
            return True
        finally:
            self._inflight -= 1
            if not self._inflight:
                self._journal.clear()
                self.loading = False
            self._notify()

    async def update_status(self, order_id: str | int, status: str) -> None:
        """Send a status change. Local state is left to the caller."""
        logger.info("update status order=%s status=%s", order_id, status)
        await self.api.update_status(order_id, status)
