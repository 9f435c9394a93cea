"""Runtime configuration defaults for the backend connection and logging."""

from __future__ import annotations

import os

API_BASE_URL = os.environ.get("ORDER_BOARD_API_URL", "http://localhost:8801")
SOCKET_URL = os.environ.get("ORDER_BOARD_SOCKET_URL", "ws://localhost:8801/ws")
HTTP_TIMEOUT_SECONDS = float(os.environ.get("ORDER_BOARD_HTTP_TIMEOUT", "10"))

DEBUG_LOG_PATH = os.environ.get("ORDER_BOARD_LOG_PATH", "/tmp/order-board-debug.log")
LOG_LEVEL = os.environ.get("ORDER_BOARD_LOG_LEVEL", "DEBUG")

# Room the staff boards join once the push channel is up.
STAFF_ROOM = "staff-room"
