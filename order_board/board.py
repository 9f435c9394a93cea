"""Board controller tying the store, channel, gestures and preparation flags together."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from order_board.api import OrderApi, OrderApiError
from order_board.channel import LiveUpdateChannel
from order_board.constant import ERROR_MESSAGES, ORDER_REMOVAL_DELAY_S
from order_board.drag import DragTracker
from order_board.filters import CustomRange, FilterState
from order_board.models import order_key
from order_board.optimistic import run_optimistic
from order_board.preparation import PreparationTracker
from order_board.reconcile import OrderReconciler
from order_board.store import OrderStore

logger = logging.getLogger(__name__)


class OrderBoard:
    """Everything one order board view owns.

    ``open`` subscribes to the channel and ``close`` unsubscribes; after
    ``close`` late REST completions no longer touch the board.
    """

    def __init__(
        self,
        api: OrderApi,
        channel: LiveUpdateChannel,
        filters: FilterState | None = None,
        removal_delay: float = ORDER_REMOVAL_DELAY_S,
    ) -> None:
        self.channel = channel
        self.filters = filters or FilterState()
        self.store = OrderStore(api)
        self.reconciler = OrderReconciler(self.store, self.filters, channel)
        self.preparation = PreparationTracker(channel, on_change=self._notify)
        self.drag = DragTracker(on_complete=self._on_swipe_complete, on_change=self._notify)
        self.removal_delay = removal_delay
        self.closed = False
        self._removal_timers: dict[str, asyncio.TimerHandle] = {}
        self._tasks: set[asyncio.Task[Any]] = set()
        self._listeners: list[Callable[[], None]] = []
        self.store.add_listener(self._on_store_change)

    def add_listener(self, listener: Callable[[], None]) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        if self.closed:
            return
        for listener in list(self._listeners):
            listener()

    def open(self) -> None:
        self.closed = False
        self.reconciler.attach()
        self.preparation.attach()

    def close(self) -> None:
        self.closed = True
        self.reconciler.detach()
        self.preparation.detach()
        for timer in self._removal_timers.values():
            timer.cancel()
        self._removal_timers.clear()
        self.drag.reset()

    async def drain(self) -> None:
        """Wait for background completions started by swipes."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _spawn(self, coro: Awaitable[Any]) -> asyncio.Task[Any]:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    # Fetching and filters

    async def refresh(self) -> bool:
        if self.closed:
            return False
        return await self.store.fetch(self.filters.query())

    async def set_status_view(self, view: str) -> bool:
        if view == self.filters.status_view:
            return await self.refresh()
        self.filters.set_status_view(view)
        self._clear_pending()
        return await self.refresh()

    async def toggle_status_view(self) -> bool:
        other = "completed" if self.filters.status_view == "processing" else "processing"
        return await self.set_status_view(other)

    async def set_search_term(self, term: str) -> bool:
        self.filters.set_search_term(term)
        return await self.refresh()

    async def cycle_time_filter(self) -> bool:
        self.filters.cycle_time_filter()
        return await self.refresh()

    async def set_custom_range(self, custom_range: CustomRange) -> bool:
        self.filters.set_custom_range(custom_range)
        return await self.refresh()

    async def clear_filters(self) -> bool:
        self.filters.clear()
        return await self.refresh()

    async def change_page(self, delta: int) -> bool:
        target = self.filters.page + delta
        if target < 1 or target > max(1, self.store.pagination.total_pages):
            return False
        self.filters.set_page(target)
        return await self.refresh()

    async def set_page_size(self, page_size: int) -> bool:
        self.filters.set_page_size(page_size)
        return await self.refresh()

    # Status changes

    def _on_swipe_complete(self, key: str) -> None:
        self._spawn(self.complete_order(key))

    async def complete_order(self, order_id: str | int) -> bool:
        """Mark an order completed: hide it now, confirm with the server, undo on failure."""
        key = order_key(order_id)

        def apply() -> None:
            self.drag.mark_done(key)
            self._schedule_removal(key)

        async def commit() -> None:
            await self.store.update_status(order_id, "completed")

        def rollback(exc: OrderApiError) -> None:
            self._cancel_removal(key)
            if self.closed:
                return
            self.drag.unmark_done(key)
            self.store.set_error(ERROR_MESSAGES["update_failed"])

        async def resync() -> None:
            await self.refresh()
            self._restore_error(ERROR_MESSAGES["update_failed"])

        ok = await run_optimistic(apply, commit, rollback, resync)
        if ok:
            logger.info("order %s completed", key)
            self.preparation.forget(key)
        return ok

    async def restore_to_processing(self, order_id: str | int) -> bool:
        """Move a completed order back to processing."""
        key = order_key(order_id)

        def apply() -> None:
            if self.filters.status_view == "completed":
                self.store.remove_order(key)

        async def commit() -> None:
            await self.store.update_status(order_id, "processing")

        def rollback(exc: OrderApiError) -> None:
            if not self.closed:
                self.store.set_error(ERROR_MESSAGES["update_failed"])

        async def resync() -> None:
            if self.filters.status_view == "completed":
                await self.refresh()
                self._restore_error(ERROR_MESSAGES["update_failed"])

        return await run_optimistic(apply, commit, rollback, resync)

    def toggle_item(self, order_id: str | int, item_index: int) -> bool:
        return self.preparation.toggle(order_id, item_index)

    def _restore_error(self, message: str) -> None:
        # A successful resync fetch clears the error the rollback just set.
        if not self.closed and self.store.error is None:
            self.store.set_error(message)

    # Timers and pruning

    def _schedule_removal(self, key: str) -> None:
        self._cancel_removal(key)
        loop = asyncio.get_running_loop()
        self._removal_timers[key] = loop.call_later(self.removal_delay, self._remove_now, key)

    def _cancel_removal(self, key: str) -> None:
        timer = self._removal_timers.pop(key, None)
        if timer is not None:
            timer.cancel()

    def _remove_now(self, key: str) -> None:
        self._removal_timers.pop(key, None)
        if self.closed:
            return
        self.store.remove_order(key)

    def _clear_pending(self) -> None:
        for timer in self._removal_timers.values():
            timer.cancel()
        self._removal_timers.clear()
        self.drag.reset()

    def _on_store_change(self) -> None:
        present = {order.key for order in self.store.orders}
        for key in list(self._removal_timers):
            if key not in present:
                self._cancel_removal(key)
        for key in self.drag.tracked() - present:
            self.drag.forget(key)
        self._notify()
