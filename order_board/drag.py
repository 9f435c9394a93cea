"""Swipe-to-complete gesture tracking, one state machine per order id."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from order_board.constant import DRAG_COMPLETION_RATIO, DRAG_DISTANCE_PX, DRAG_RESET_DELAY_S
from order_board.models import order_key

logger = logging.getLogger(__name__)


class DragPhase(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    COMMITTING = "committing"
    RESETTING = "resetting"


@dataclass
class DragState:
    phase: DragPhase = DragPhase.IDLE
    progress: float = 0.0


def drag_ratio(offset_px: float, distance_px: float = DRAG_DISTANCE_PX) -> float:
    return offset_px / distance_px


def clamp_progress(offset_px: float, distance_px: float = DRAG_DISTANCE_PX) -> float:
    return min(max(drag_ratio(offset_px, distance_px), 0.0), 1.0)


class DragTracker:
    """Turns horizontal drag offsets into a complete / snap-back decision.

    ``idle -> dragging -> committing | resetting -> idle``. Progress always
    returns to 0 a short delay after the gesture ends so the final frame can
    still be drawn. ``done_orders`` holds ids that were swiped to completion
    and are waiting for the server to confirm.
    """

    def __init__(
        self,
        on_complete: Callable[[str], None] | None = None,
        on_change: Callable[[], None] | None = None,
        distance_px: float = DRAG_DISTANCE_PX,
        threshold: float = DRAG_COMPLETION_RATIO,
        reset_delay: float = DRAG_RESET_DELAY_S,
    ) -> None:
        self.on_complete = on_complete
        self.on_change = on_change
        self.distance_px = distance_px
        self.threshold = threshold
        self.reset_delay = reset_delay
        self.done_orders: set[str] = set()
        self.active_order: str | None = None
        self._states: dict[str, DragState] = {}
        self._timers: dict[str, asyncio.TimerHandle] = {}

    def state(self, order_id: object) -> DragState:
        return self._states.get(order_key(order_id), DragState())

    def phase(self, order_id: object) -> DragPhase:
        return self.state(order_id).phase

    def progress(self, order_id: object) -> float:
        return self.state(order_id).progress

    def is_done(self, order_id: object) -> bool:
        return order_key(order_id) in self.done_orders

    def tracked(self) -> set[str]:
        """Ids with any gesture state or a pending completion."""
        return set(self._states) | self.done_orders

    def start(self, order_id: object) -> bool:
        """Begin a gesture. Refused unless the order is idle."""
        key = order_key(order_id)
        current = self._states.get(key)
        if current is not None and current.phase is not DragPhase.IDLE:
            logger.debug("drag start refused for %s in phase %s", key, current.phase.value)
            return False
        self._states[key] = DragState(phase=DragPhase.DRAGGING)
        self.active_order = key
        self._changed()
        return True

    def move(self, order_id: object, offset_px: float) -> float:
        key = order_key(order_id)
        state = self._states.get(key)
        if state is None or state.phase is not DragPhase.DRAGGING:
            return self.progress(key)
        state.progress = clamp_progress(offset_px, self.distance_px)
        self._changed()
        return state.progress

    def end(self, order_id: object, offset_px: float) -> bool:
        """Finish a gesture. Returns True when it crossed the completion threshold."""
        key = order_key(order_id)
        state = self._states.get(key)
        if state is None or state.phase is not DragPhase.DRAGGING:
            return False
        if self.active_order == key:
            self.active_order = None

        ratio = drag_ratio(offset_px, self.distance_px)
        completed = ratio >= self.threshold
        if completed:
            state.phase = DragPhase.COMMITTING
            state.progress = clamp_progress(offset_px, self.distance_px)
            self.done_orders.add(key)
            logger.info("order %s swiped to completion (ratio=%.2f)", key, ratio)
        else:
            state.phase = DragPhase.RESETTING
            logger.debug("order %s snapped back (ratio=%.2f)", key, ratio)
        self._schedule_reset(key)
        self._changed()

        if completed and self.on_complete is not None:
            self.on_complete(key)
        return completed

    def mark_done(self, order_id: object) -> None:
        self.done_orders.add(order_key(order_id))
        self._changed()

    def unmark_done(self, order_id: object) -> None:
        self.done_orders.discard(order_key(order_id))
        self._changed()

    def forget(self, order_id: object) -> None:
        """Drop all gesture state for an order that left the board."""
        key = order_key(order_id)
        timer = self._timers.pop(key, None)
        if timer is not None:
            timer.cancel()
        self._states.pop(key, None)
        self.done_orders.discard(key)
        if self.active_order == key:
            self.active_order = None

    def reset(self) -> None:
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._states.clear()
        self.done_orders.clear()
        self.active_order = None
        self._changed()

    def _schedule_reset(self, key: str) -> None:
        previous = self._timers.pop(key, None)
        if previous is not None:
            previous.cancel()
        loop = asyncio.get_running_loop()
        self._timers[key] = loop.call_later(self.reset_delay, self._finish_reset, key)

    def _finish_reset(self, key: str) -> None:
        self._timers.pop(key, None)
        state = self._states.get(key)
        if state is None:
            return
        state.phase = DragPhase.IDLE
        state.progress = 0.0
        self._changed()

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()
