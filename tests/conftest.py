import asyncio
import json
from typing import Any, Dict, List, Optional

import pytest

from order_board.api import OrderApiError
from order_board.channel import LiveUpdateChannel
from order_board.models import Order, OrderPage, Pagination


def order_payload(order_id, status="processing", items=("Latte",), **extra) -> Dict[str, Any]:
    payload = {
        "order_id": order_id,
        "status": status,
        "created_at": "2024-05-01T09:30:00Z",
        "order_type": "pickup",
        "items": [{"item_name": name, "quantity": 1, "ingredients": []} for name in items],
    }
    payload.update(extra)
    return payload


async def settle(rounds: int = 10) -> None:
    """Let scheduled callbacks and tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeApi:
    """In-memory stand-in for OrderApi backed by a list of order payloads."""

    def __init__(self, orders: Optional[List[Dict[str, Any]]] = None):
        self.server: List[Dict[str, Any]] = list(orders or [])
        self.fetch_calls: List[Dict[str, Any]] = []
        self.status_calls: List[tuple] = []
        self.fail_fetch = False
        self.fail_updates = False
        self.closed = False
        self._held: List[asyncio.Future] = []

    def hold_next_fetch(self) -> asyncio.Future:
        """The next fetch waits until the returned future gets a list of payloads."""
        future = asyncio.get_running_loop().create_future()
        self._held.append(future)
        return future

    async def fetch_orders(self, params):
        self.fetch_calls.append(dict(params))
        if self._held:
            payloads = await self._held.pop(0)
        else:
            payloads = [o for o in self.server if o["status"] == params.get("status")]
        if self.fail_fetch:
            raise OrderApiError("Failed to load orders")
        orders = [Order.from_payload(p) for p in payloads]
        return OrderPage(orders=orders, pagination=Pagination(total_count=len(orders)))

    async def update_status(self, order_id, status):
        self.status_calls.append((str(order_id), status))
        await asyncio.sleep(0)
        if self.fail_updates:
            raise OrderApiError("Failed to update order status")
        for order in self.server:
            if str(order["order_id"]) == str(order_id):
                order["status"] = status

    async def aclose(self):
        self.closed = True


class FakeSocket:
    """Async-iterable websocket double fed from a queue."""

    def __init__(self):
        self.sent: List[Dict[str, Any]] = []
        self.incoming: asyncio.Queue = asyncio.Queue()
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.closed = True
        return False

    async def send(self, message):
        self.sent.append(json.loads(message))

    async def close(self):
        self.closed = True
        await self.incoming.put(None)

    def push(self, event, data):
        self.incoming.put_nowait(json.dumps({"event": event, "data": data}))

    def push_raw(self, raw):
        self.incoming.put_nowait(raw)

    def __aiter__(self):
        return self

    async def __anext__(self):
        item = await self.incoming.get()
        if item is None:
            raise StopAsyncIteration
        return item


@pytest.fixture
def fake_api():
    return FakeApi()


@pytest.fixture
def channel():
    """A channel that never connects."""
    return LiveUpdateChannel(url="ws://test", room=None, max_reconnect_attempts=0, reconnect_delay=0)


@pytest.fixture
async def connected_channel():
    socket = FakeSocket()
    live = LiveUpdateChannel(url="ws://test", connect_factory=lambda url: socket, reconnect_delay=0)
    assert await live.connect(timeout=1)
    await settle()
    yield live, socket
    await live.disconnect()
