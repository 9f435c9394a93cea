"""Entry point for the order-board Textual app."""

from __future__ import annotations

import logging
import time
from pathlib import Path

from order_board.api import OrderApi
from order_board.board_app import OrderBoardApp
from order_board.channel import live_channel
from order_board.config import DEBUG_LOG_PATH, LOG_LEVEL


def configure_logging(path: str = DEBUG_LOG_PATH, level: str = LOG_LEVEL) -> None:
    """Send log records to the debug file; the terminal belongs to the UI."""
    log_file = Path(path)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, encoding="utf-8")
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s", "%Y-%m-%dT%H:%M:%S%z")
    formatter.converter = time.gmtime
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level.upper())
    root.addHandler(handler)
    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def main() -> None:
    """Run the Textual application."""
    configure_logging()
    logging.getLogger(__name__).info("order board starting")
    OrderBoardApp(api=OrderApi(), channel=live_channel).run()


if __name__ == "__main__":
    main()
