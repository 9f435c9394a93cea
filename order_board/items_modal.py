"""Item preparation modal screen."""

from __future__ import annotations

from typing import Callable

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import Static

from order_board.board import OrderBoard
from order_board.models import Order
from order_board.preparation import PreparedItem
from order_board.rendering import format_item_line, format_order_header


class ItemsModal(ModalScreen[None]):
    """Centered modal listing every item of one order with its prepared checkbox."""

    BINDINGS = [
        ("escape", "close", "Close"),
        ("q", "close", "Close"),
        ("ctrl+c", "close", "Close"),
        ("j", "move_cursor(1)", "Next"),
        ("k", "move_cursor(-1)", "Previous"),
        ("up", "move_cursor(-1)", "Previous"),
        ("down", "move_cursor(1)", "Next"),
        ("enter", "toggle_current", "Toggle"),
        ("space", "toggle_current", "Toggle"),
    ]

    CSS = """
    ItemsModal {
        align: center middle;
        background: $background 60%;
    }

    #items-dialog {
        width: 72;
        height: auto;
        max-height: 90%;
        border: round $success;
        background: $panel;
        padding: 1 2;
    }

    #items-title {
        text-style: bold;
        color: white;
        border-bottom: solid $success;
    }

    #items-body {
        height: auto;
        max-height: 24;
        overflow-y: auto;
        padding: 1 0;
    }

    #items-help {
        color: #b8c4b8;
    }
    """

    cursor_index = reactive(0)

    def __init__(self, board: OrderBoard, order: Order, on_change: Callable[[], None]) -> None:
        super().__init__()
        self.board = board
        self.order = order
        self.on_change = on_change

    def compose(self) -> ComposeResult:
        with Container(id="items-dialog"):
            yield Static("Items", id="items-title")
            yield Static(id="items-body")
            yield Static("J/K/↑/↓ move, Enter/Space mark prepared, Esc/q/Ctrl+C close", id="items-help")

    def on_mount(self) -> None:
        self.board.add_listener(self._refresh_content)
        self._refresh_content()

    def on_unmount(self) -> None:
        self.board.remove_listener(self._refresh_content)

    def action_close(self) -> None:
        self.dismiss()
        self.on_change()

    def action_move_cursor(self, delta: int) -> None:
        rows = self._rows()
        if not rows:
            return
        self.cursor_index = (self.cursor_index + delta) % len(rows)
        self._refresh_content()

    def action_toggle_current(self) -> None:
        rows = self._rows()
        if not rows:
            return
        entry = rows[self.cursor_index]
        self.board.toggle_item(self.order.order_id, entry.original_index)
        # Keep the cursor on the same item after it moves between groups.
        for idx, row in enumerate(self._rows()):
            if row.original_index == entry.original_index:
                self.cursor_index = idx
                break
        self._refresh_content()

    def _rows(self) -> list[PreparedItem]:
        current = self.board.store.find(self.order.order_id) or self.order
        return self.board.preparation.sorted_items(current.items, current.order_id)

    def _refresh_content(self) -> None:
        body = self.query_one("#items-body", Static)
        rows = self._rows()
        if self.cursor_index >= len(rows):
            self.cursor_index = max(0, len(rows) - 1)

        prepared = sum(1 for entry in rows if entry.is_prepared)
        self.query_one("#items-title", Static).update(f"Items  {prepared}/{len(rows)} prepared")

        content = Text(style="white")
        content.append_text(format_order_header(self.order))
        content.append("\n\n")
        if not rows:
            content.append("(no items)", style="dim")
        for idx, entry in enumerate(rows):
            if idx > 0:
                content.append("\n")
            pointer = "➤ " if idx == self.cursor_index else "  "
            content.append(pointer)
            content.append_text(format_item_line(entry))
        body.update(content)
