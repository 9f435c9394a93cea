"""Per-item "prepared" flags shared between staff screens."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from order_board.channel import LiveUpdateChannel
from order_board.constant import EVENT_ITEM_PREPARATION_TOGGLE, EVENT_ITEM_PREPARATION_UPDATE
from order_board.models import OrderItem, PreparationUpdateEvent, order_key, parse_event

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreparedItem:
    item: OrderItem
    original_index: int
    is_prepared: bool


class PreparationTracker:
    """Local map of ``order -> item index -> prepared``.

    Toggles apply locally first and are echoed over the channel when it is
    connected. Updates from other screens overwrite the local flag, last write
    wins.
    """

    def __init__(self, channel: LiveUpdateChannel, on_change: Callable[[], None] | None = None) -> None:
        self.channel = channel
        self.on_change = on_change
        self.attached = False
        self._prepared: dict[str, dict[int, bool]] = {}
        self._expanded: set[str] = set()

    def attach(self) -> None:
        if self.attached:
            return
        self.channel.on(EVENT_ITEM_PREPARATION_UPDATE, self.handle_update)
        self.attached = True

    def detach(self) -> None:
        if not self.attached:
            return
        self.channel.off(EVENT_ITEM_PREPARATION_UPDATE, self.handle_update)
        self.attached = False

    def is_prepared(self, order_id: object, item_index: int) -> bool:
        return self._prepared.get(order_key(order_id), {}).get(item_index, False)

    def prepared_count(self, order_id: object) -> int:
        return sum(1 for flag in self._prepared.get(order_key(order_id), {}).values() if flag)

    def set_prepared(self, order_id: object, item_index: int, is_prepared: bool) -> None:
        self._prepared.setdefault(order_key(order_id), {})[item_index] = is_prepared

    def toggle(self, order_id: str | int, item_index: int) -> bool:
        """Flip the flag locally and broadcast it if the channel is up. Returns the new value."""
        new_value = not self.is_prepared(order_id, item_index)
        self.set_prepared(order_id, item_index, new_value)
        sent = self.channel.emit(
            EVENT_ITEM_PREPARATION_TOGGLE,
            {"order_id": order_id, "itemIndex": item_index, "isPrepared": new_value},
        )
        logger.debug("toggle order=%s item=%d prepared=%s sent=%s", order_id, item_index, new_value, sent)
        self._changed()
        return new_value

    def handle_update(self, payload: Any) -> None:
        try:
            event = parse_event(EVENT_ITEM_PREPARATION_UPDATE, payload)
        except ValueError as exc:
            logger.warning("ignoring itemPreparationUpdate: %s", exc)
            return
        if not isinstance(event, PreparationUpdateEvent):
            return
        self.set_prepared(event.order_id, event.item_index, event.is_prepared)
        self._changed()

    def sorted_items(self, items: Sequence[OrderItem], order_id: object) -> list[PreparedItem]:
        """Unprepared items first, prepared last, original order kept inside each group."""
        flags = self._prepared.get(order_key(order_id), {})
        pending: list[PreparedItem] = []
        done: list[PreparedItem] = []
        for idx, item in enumerate(items):
            entry = PreparedItem(item=item, original_index=idx, is_prepared=flags.get(idx, False))
            (done if entry.is_prepared else pending).append(entry)
        return pending + done

    def toggle_expanded(self, order_id: object) -> bool:
        key = order_key(order_id)
        if key in self._expanded:
            self._expanded.discard(key)
            return False
        self._expanded.add(key)
        return True

    def is_expanded(self, order_id: object) -> bool:
        return order_key(order_id) in self._expanded

    def forget(self, order_id: object) -> None:
        key = order_key(order_id)
        self._prepared.pop(key, None)
        self._expanded.discard(key)

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()
