"""Main Textual app class."""

from __future__ import annotations

import logging

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.events import Key, MouseDown, MouseMove, MouseUp
from textual.reactive import reactive
from textual.timer import Timer
from textual.widgets import Header, Static

from order_board.api import OrderApi
from order_board.board import OrderBoard
from order_board.channel import LiveUpdateChannel
from order_board.constant import (
    DRAG_CELL_WIDTH_PX,
    DRAG_KEY_STEP_PX,
    EMPTY_STATE_TEXT,
    PAGE_SIZE_CHOICES,
    SEARCH_DEBOUNCE_S,
    TIME_FILTER_LABELS,
)
from order_board.date_range_modal import DateRangeModal
from order_board.filters import CustomRange
from order_board.items_modal import ItemsModal
from order_board.models import Order
from order_board.rendering import badge_style, format_last_update, format_order_card

logger = logging.getLogger(__name__)

# Rough height of one rendered card, used to window the list.
_CARD_ROWS = 5


class OrdersList(Static):
    """Order list that turns a horizontal mouse drag into a swipe on the selected card."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._drag_origin_x: int | None = None

    def on_mouse_down(self, event: MouseDown) -> None:
        board_app = self.app
        if not isinstance(board_app, OrderBoardApp):
            return
        if board_app.begin_swipe():
            self._drag_origin_x = event.screen_x
            self.capture_mouse()
            event.stop()

    def on_mouse_move(self, event: MouseMove) -> None:
        if self._drag_origin_x is None:
            return
        board_app = self.app
        if isinstance(board_app, OrderBoardApp):
            board_app.move_swipe((event.screen_x - self._drag_origin_x) * DRAG_CELL_WIDTH_PX)
        event.stop()

    def on_mouse_up(self, event: MouseUp) -> None:
        if self._drag_origin_x is None:
            return
        offset = (event.screen_x - self._drag_origin_x) * DRAG_CELL_WIDTH_PX
        self._drag_origin_x = None
        self.release_mouse()
        board_app = self.app
        if isinstance(board_app, OrderBoardApp):
            board_app.move_swipe(offset)
            board_app.release_swipe()
        event.stop()


class OrderBoardApp(App):
    """Kitchen display: live orders, swipe to complete, tick off prepared items."""

    TITLE = "Order Board"
    SUB_TITLE = "Processing"

    CSS = """
    Screen {
        layout: vertical;
    }

    #main-layout {
        height: 1fr;
    }

    #orders-pane {
        width: 3fr;
        border: round $primary;
        padding: 1;
    }

    #side-pane {
        width: 2fr;
        border: round $secondary;
        padding: 1;
    }

    #search-bar {
        border: heavy $secondary;
        padding: 0 1;
        margin-bottom: 1;
        height: 3;
    }

    #filter-info {
        height: auto;
        margin-bottom: 1;
    }

    #status-line {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #orders-list {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    .pane-title {
        text-style: bold;
        margin-bottom: 1;
    }
    """

    input_state = reactive("normal")
    search_query = reactive("")
    order_selected_index = reactive(None)

    BINDINGS = [
        ("tab", "toggle_view", "Processing / Completed"),
        ("up", "move_selection(-1)", "Previous order"),
        ("down", "move_selection(1)", "Next order"),
        ("right", "swipe(1)", "Swipe"),
        ("left", "swipe(-1)", "Swipe back"),
        ("space", "release_swipe", "Release"),
        ("enter", "open_items", "Items"),
        ("backspace", "backspace_query", "Delete query char"),
        Binding("ctrl+r", "refresh", "Refresh", priority=True),
        ("ctrl+c", "cancel_active_mode", "Exit search"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, api: OrderApi, channel: LiveUpdateChannel, connect_channel: bool = True) -> None:
        super().__init__()
        self.api = api
        self.channel = channel
        self.connect_channel = connect_channel
        self.board = OrderBoard(api, channel)
        self.system_status = ""
        self._swipe_offset = 0.0
        self._swipe_order: str | None = None
        self.selected_key: str | None = None
        self._search_timer: Timer | None = None

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main-layout"):
            with Vertical(id="orders-pane"):
                yield Static("Orders", id="orders-title", classes="pane-title")
                yield OrdersList("Loading orders...", id="orders-list")
            with Vertical(id="side-pane"):
                yield Static(id="search-bar")
                yield Static(id="filter-info")
                yield Static(id="status-line")

    def on_mount(self) -> None:
        self.board.add_listener(self._refresh_all)
        self.board.open()
        self.channel.on("connected", self._on_channel_status)
        self.channel.on("disconnected", self._on_channel_status)
        if self.connect_channel:
            self.run_worker(self._connect_channel(), group="channel")
        self._refresh_all()
        self._request_refresh()

    async def on_unmount(self) -> None:
        self.board.remove_listener(self._refresh_all)
        self.board.close()
        self.channel.off("connected", self._on_channel_status)
        self.channel.off("disconnected", self._on_channel_status)
        if self.connect_channel:
            await self.channel.disconnect()
        await self.api.aclose()

    async def _connect_channel(self) -> None:
        connected = await self.channel.connect()
        self.system_status = "Live updates on" if connected else "Live updates offline"
        self._refresh_side()

    def _on_channel_status(self, _data: object) -> None:
        self.system_status = "Live updates on" if self.channel.is_connected else "Live updates offline"
        self._refresh_side()

    def _request_refresh(self) -> None:
        self.run_worker(self.board.refresh(), group="fetch")

    def on_key(self, event: Key) -> None:
        if isinstance(self.screen, (ItemsModal, DateRangeModal)):
            return

        if self.input_state == "active":
            if event.key == "escape":
                self.action_cancel_active_mode()
                event.stop()
                return
            if event.key == "enter":
                self._apply_search_now()
                event.stop()
                return
            if event.is_printable and event.character and event.key != "tab":
                self.search_query += event.character
                self._schedule_search()
                self._refresh_side()
                event.stop()
            return

        if not event.is_printable or not event.character or len(event.character) != 1:
            return

        key = event.character
        handlers = {
            "j": lambda: self.action_move_selection(1),
            "k": lambda: self.action_move_selection(-1),
            "l": lambda: self.action_swipe(1),
            "h": lambda: self.action_swipe(-1),
            "i": self.action_open_items,
            "e": self._toggle_expanded_selected,
            "u": self._restore_selected,
            "r": self.action_refresh,
            "f": self._cycle_time_filter,
            "c": self._clear_filters,
            "[": lambda: self._change_page(-1),
            "]": lambda: self._change_page(1),
            "p": self._cycle_page_size,
        }
        if key == "/":
            self.input_state = "active"
            self.search_query = self.board.filters.search_term
            self._refresh_side()
            event.stop()
            return
        handler = handlers.get(key)
        if handler is None:
            return
        handler()
        event.stop()

    # Search

    def action_backspace_query(self) -> None:
        if self.input_state != "active" or not self.search_query:
            return
        self.search_query = self.search_query[:-1]
        self._schedule_search()
        self._refresh_side()

    def action_cancel_active_mode(self) -> None:
        if self.input_state == "normal":
            return
        self.input_state = "normal"
        self._refresh_side()

    def _schedule_search(self) -> None:
        if self._search_timer is not None:
            self._search_timer.stop()
        self._search_timer = self.set_timer(SEARCH_DEBOUNCE_S, self._apply_search)

    def _apply_search_now(self) -> None:
        if self._search_timer is not None:
            self._search_timer.stop()
        self.input_state = "normal"
        self._apply_search()
        self._refresh_side()

    def _apply_search(self) -> None:
        self._search_timer = None
        self.run_worker(self.board.set_search_term(self.search_query), group="fetch")

    # Filters and pages

    def action_toggle_view(self) -> None:
        if self.input_state != "normal":
            return
        self._reset_swipe()
        self._select(None)
        self.run_worker(self.board.toggle_status_view(), group="fetch")

    def action_refresh(self) -> None:
        self._request_refresh()

    def _cycle_time_filter(self) -> None:
        filters = self.board.filters
        filters.cycle_time_filter()
        if filters.time_filter == "custom":
            self.push_screen(DateRangeModal(filters.custom_range), self._on_range_chosen)
            return
        self._request_refresh()

    def _on_range_chosen(self, custom_range: CustomRange | None) -> None:
        if custom_range is None:
            self.board.filters.set_time_filter("all")
            self._request_refresh()
            return
        self.run_worker(self.board.set_custom_range(custom_range), group="fetch")

    def _clear_filters(self) -> None:
        self.search_query = ""
        self.run_worker(self.board.clear_filters(), group="fetch")

    def _change_page(self, delta: int) -> None:
        self._select(None)
        self.run_worker(self.board.change_page(delta), group="fetch")

    def _cycle_page_size(self) -> None:
        current = self.board.filters.page_size
        choices = list(PAGE_SIZE_CHOICES)
        idx = choices.index(current) if current in choices else -1
        self.run_worker(self.board.set_page_size(choices[(idx + 1) % len(choices)]), group="fetch")

    # Selection and items

    def action_move_selection(self, delta: int) -> None:
        orders = self.board.store.orders
        if self.input_state != "normal" or not orders:
            return
        self._reset_swipe()
        self._sync_selection()
        if self.order_selected_index is None:
            self._select(0 if delta > 0 else len(orders) - 1)
        else:
            self._select((self.order_selected_index + delta) % len(orders))
        self._refresh_orders()

    def _select(self, index: int | None) -> None:
        orders = self.board.store.orders
        if index is None or not orders:
            self.order_selected_index = None
            self.selected_key = None
            return
        index = min(max(index, 0), len(orders) - 1)
        self.order_selected_index = index
        self.selected_key = orders[index].key

    def _sync_selection(self) -> None:
        """Keep the cursor on the selected order when pushes shift the list."""
        if self.selected_key is None:
            self.order_selected_index = None
            return
        for idx, order in enumerate(self.board.store.orders):
            if order.key == self.selected_key:
                self.order_selected_index = idx
                return
        # The order left the list; the cursor stays at its old position.
        self._select(self.order_selected_index)

    def _selected_order(self) -> Order | None:
        if self.selected_key is None:
            return None
        return self.board.store.find(self.selected_key)

    def action_open_items(self) -> None:
        if self.input_state != "normal":
            return
        order = self._selected_order()
        if order is None:
            return
        self.push_screen(ItemsModal(self.board, order, on_change=self._refresh_orders))

    def _toggle_expanded_selected(self) -> None:
        order = self._selected_order()
        if order is None:
            return
        self.board.preparation.toggle_expanded(order.order_id)
        self._refresh_orders()

    def _restore_selected(self) -> None:
        order = self._selected_order()
        if order is None or self.board.filters.status_view != "completed":
            return
        self.run_worker(self.board.restore_to_processing(order.order_id), group="status")

    # Swipe gesture

    def begin_swipe(self) -> bool:
        if self.input_state != "normal" or self.board.filters.status_view != "processing":
            return False
        order = self._selected_order()
        if order is None:
            return False
        if self._swipe_order == order.key:
            return True
        if not self.board.drag.start(order.key):
            return False
        self._swipe_order = order.key
        self._swipe_offset = 0.0
        return True

    def move_swipe(self, offset_px: float) -> None:
        if self._swipe_order is None:
            return
        self._swipe_offset = offset_px
        self.board.drag.move(self._swipe_order, offset_px)

    def action_swipe(self, direction: int) -> None:
        if not self.begin_swipe():
            return
        self.move_swipe(max(0.0, self._swipe_offset + direction * DRAG_KEY_STEP_PX))

    def action_release_swipe(self) -> None:
        self.release_swipe()

    def release_swipe(self) -> None:
        if self._swipe_order is None:
            return
        key, offset = self._swipe_order, self._swipe_offset
        self._swipe_order = None
        self._swipe_offset = 0.0
        self.board.drag.end(key, offset)

    def _reset_swipe(self) -> None:
        if self._swipe_order is not None:
            self.release_swipe()

    # Rendering

    def _refresh_all(self) -> None:
        self._refresh_orders()
        self._refresh_side()

    def _visible_cards(self, widget: Static) -> int:
        height = widget.size.height
        if height <= 0:
            return 4
        return max(1, height // _CARD_ROWS)

    def _window_bounds(self, total: int, rows: int, selected: int | None) -> tuple[int, int]:
        if total <= 0:
            return (0, 0)

        rows = max(1, rows)
        if total <= rows:
            return (0, total)

        if selected is None:
            start = 0
        else:
            half = rows // 2
            start = selected - half
            start = max(0, start)
            start = min(start, total - rows)

        return (start, start + rows)

    def _refresh_orders(self) -> None:
        try:
            orders_widget = self.query_one("#orders-list", OrdersList)
            title_widget = self.query_one("#orders-title", Static)
        except NoMatches:
            return

        board = self.board
        store = board.store
        view = board.filters.status_view
        self.sub_title = view.title()
        title = Text()
        title.append(f" {view.title()} Orders ", style=badge_style(view))
        title.append(f"  {store.pagination.total_count} total")
        title_widget.update(title)

        orders = store.orders
        if not orders:
            self._select(None)
            if store.loading:
                orders_widget.update("Loading orders...")
            elif store.error:
                orders_widget.update(Text(f"{store.error}\nPress r to retry.", style="bold #ffb3b3"))
            else:
                heading, detail = EMPTY_STATE_TEXT[view]
                orders_widget.update(Text(f"{heading}\n{detail}", style="dim"))
            return

        self._sync_selection()

        start, end = self._window_bounds(len(orders), self._visible_cards(orders_widget), self.order_selected_index)

        lines = Text()
        if start > 0:
            lines.append("⋮\n", style="dim")

        for idx in range(start, end):
            if idx > start:
                lines.append("\n\n")
            order = orders[idx]
            pointer = "➤ " if idx == self.order_selected_index else "  "
            lines.append(pointer)
            lines.append_text(
                format_order_card(
                    order,
                    board.preparation.sorted_items(order.items, order.order_id),
                    expanded=board.preparation.is_expanded(order.order_id),
                    progress=board.drag.progress(order.order_id),
                    dragging=board.drag.active_order == order.key,
                    done=board.drag.is_done(order.order_id),
                    show_completed=view == "completed",
                )
            )

        if end < len(orders):
            lines.append("\n⋮", style="dim")

        orders_widget.update(lines)

    def _refresh_side(self) -> None:
        try:
            bar = self.query_one("#search-bar", Static)
            info = self.query_one("#filter-info", Static)
            status_line = self.query_one("#status-line", Static)
        except NoMatches:
            return

        filters = self.board.filters
        store = self.board.store
        if self.input_state == "active":
            text = Text()
            text.append("/", style=badge_style("pending"))
            text.append(f" {self.search_query}|")
            bar.update(text)
        elif filters.search_term:
            bar.update(f"Search: {filters.search_term}  (/ to edit)")
        else:
            bar.update("Press / to search. Tab switches view.")

        pagination = store.pagination
        info.update(
            f"Time: {TIME_FILTER_LABELS[filters.time_filter]}\n"
            f"Page {pagination.current_page}/{max(1, pagination.total_pages)} "
            f"· {filters.page_size} per page\n"
            f"Last updated: {format_last_update(store.last_fetch_time)}"
        )

        status = Text()
        if store.error:
            status.append(store.error, style="bold #ffb3b3")
            status.append("\n")
        status.append(self.system_status or "Ready", style="dim")
        status.append(
            "\n\nj/k select · l/h swipe · space release\n"
            "i items · e expand · u restore · r refresh\n"
            "f time filter · c clear · [ ] page · p page size",
            style="dim",
        )
        status_line.update(status)
