"""Editable static configuration for the order board."""

from __future__ import annotations

ORDER_STATUSES: tuple[str, ...] = ("pending", "processing", "completed", "cancelled")

# The two statuses the board can display.
STATUS_VIEWS: tuple[str, ...] = ("processing", "completed")

EVENT_NEW_ORDER = "newOrder"
EVENT_ORDER_UPDATE = "orderUpdate"
EVENT_ITEM_PREPARATION_UPDATE = "itemPreparationUpdate"
EVENT_ITEM_PREPARATION_TOGGLE = "itemPreparationToggle"
EVENT_JOIN_ROOM = "joinRoom"
EVENT_CONNECTED = "connected"
EVENT_DISCONNECTED = "disconnected"

API_ORDERS_ALL = "/orders/staff/all"
API_ORDER_STATUS = "/orders/staff/{order_id}/status"

# Swipe distance in pixels that maps to progress 1.0.
DRAG_DISTANCE_PX = 200
DRAG_COMPLETION_RATIO = 0.8
# Terminal cells are converted to pixels for mouse drags.
DRAG_CELL_WIDTH_PX = 10
# One key press nudges the swipe by this many pixels.
DRAG_KEY_STEP_PX = 40

DRAG_PROGRESS_MESSAGES: tuple[tuple[int, str], ...] = (
    (60, "✓ Release to complete"),
    (30, "→ Keep swiping to complete"),
)
DRAG_PROGRESS_IDLE_MESSAGE = "→ Swipe right to complete"

# Seconds; match the exit animation.
ORDER_REMOVAL_DELAY_S = 0.3
DRAG_RESET_DELAY_S = 0.3
SEARCH_DEBOUNCE_S = 0.3

PAGE_SIZE = 50
PAGE_SIZE_CHOICES: tuple[int, ...] = (10, 25, 50, 100)
INITIAL_PAGE = 1
INITIAL_ITEMS = 3

TIME_FILTERS: tuple[str, ...] = ("all", "today", "yesterday", "week", "month", "custom")
TIME_FILTER_LABELS: dict[str, str] = {
    "all": "All Time",
    "today": "Today",
    "yesterday": "Yesterday",
    "week": "This Week",
    "month": "This Month",
    "custom": "Custom Range",
}
DEFAULT_TIME_FILTER = "all"
OPEN_RANGE_START = (1990, 1, 1)
OPEN_RANGE_END = (2099, 12, 31)

SOCKET_MAX_RECONNECT_ATTEMPTS = 5
SOCKET_RECONNECT_DELAY_S = 1.0
SOCKET_CONNECT_TIMEOUT_S = 10.0

ERROR_MESSAGES: dict[str, str] = {
    "fetch_failed": "Failed to load orders",
    "update_failed": "Failed to update order status",
    "network_error": "Network error. Please check your connection.",
    "invalid_status": "Invalid status. Must be one of: pending, processing, completed, cancelled",
}

EMPTY_STATE_TEXT: dict[str, tuple[str, str]] = {
    "processing": ("No orders to prepare", "All orders are completed or there are no processing orders."),
    "completed": ("No completed orders found", "There are no completed orders in the system."),
}
