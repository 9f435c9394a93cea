"""REST client for the staff order endpoints."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx

from order_board.config import API_BASE_URL, HTTP_TIMEOUT_SECONDS
from order_board.constant import API_ORDER_STATUS, API_ORDERS_ALL, ERROR_MESSAGES, ORDER_STATUSES
from order_board.models import Order, OrderPage, Pagination

logger = logging.getLogger(__name__)


class OrderApiError(RuntimeError):
    """Any failed call to the orders backend.

    Network errors, non-2xx responses and ``success: false`` bodies all end up
    here with a generic message; ``cause`` keeps the underlying detail.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class OrderApi:
    """Thin async wrapper around ``httpx.AsyncClient`` for the order endpoints."""

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch_orders(self, params: Mapping[str, Any]) -> OrderPage:
        """GET one filtered page of orders."""
        body = await self._request("GET", API_ORDERS_ALL, "fetch_failed", params=dict(params))
        raw_orders = body.get("orders") or []
        orders: list[Order] = []
        for raw in raw_orders:
            try:
                orders.append(Order.from_payload(raw))
            except ValueError as exc:
                logger.warning("skipping malformed order in page: %s", exc)
        return OrderPage(orders=orders, pagination=Pagination.from_payload(body.get("pagination")))

    async def update_status(self, order_id: str | int, status: str) -> None:
        """PUT a new status for one order."""
        if status not in ORDER_STATUSES:
            raise OrderApiError(ERROR_MESSAGES["invalid_status"])
        path = API_ORDER_STATUS.format(order_id=order_id)
        await self._request("PUT", path, "update_failed", json={"status": status})

    async def _request(self, method: str, path: str, error_key: str, **kwargs: Any) -> dict[str, Any]:
        message = ERROR_MESSAGES[error_key]
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as exc:
            logger.error("%s %s failed: %s", method, path, exc)
            raise OrderApiError(message, exc) from exc
        except ValueError as exc:
            logger.error("%s %s returned a non-JSON body: %s", method, path, exc)
            raise OrderApiError(message, exc) from exc

        if not isinstance(body, dict):
            logger.error("%s %s returned %s instead of an object", method, path, type(body).__name__)
            raise OrderApiError(message)
        if body.get("success") is False:
            logger.error("%s %s reported failure: %s", method, path, body.get("message"))
            raise OrderApiError(message)
        return body
