"""Rendering helpers for order cards."""

from __future__ import annotations

from datetime import datetime, timezone

from rich.text import Text

from order_board.constant import DRAG_PROGRESS_IDLE_MESSAGE, DRAG_PROGRESS_MESSAGES, INITIAL_ITEMS
from order_board.models import Order
from order_board.preparation import PreparedItem


def badge_style(status: str) -> str:
    """Return a consistent badge style for status tags."""
    if status == "processing":
        return "bold #0b1f0f on #e0b84c"
    if status == "completed":
        return "bold #0b1f0f on #5fbf72"
    if status == "cancelled":
        return "bold #ffffff on #b23a48"
    return "bold #ffffff on #2f6db5"


def parse_utc(value: str | None) -> datetime | None:
    """Parse an ISO timestamp from the backend; naive values are taken as UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_time(value: str | None) -> str:
    parsed = parse_utc(value)
    if parsed is None:
        return ""
    return parsed.astimezone().strftime("%H:%M")


def format_last_update(value: datetime | None) -> str:
    if value is None:
        return "Never"
    return value.astimezone().strftime("%H:%M:%S")


def customer_name(order: Order) -> str | None:
    parts = [part for part in (order.first_name, order.last_name) if part]
    if not parts:
        return None
    return " ".join(parts)


def drag_progress_message(progress_pct: float) -> str:
    for floor, message in DRAG_PROGRESS_MESSAGES:
        if progress_pct > floor:
            return message
    return DRAG_PROGRESS_IDLE_MESSAGE


def progress_bar(progress: float, width: int = 20) -> Text:
    filled = round(max(0.0, min(progress, 1.0)) * width)
    text = Text()
    text.append("█" * filled, style="bold #5fbf72")
    text.append("░" * (width - filled), style="dim")
    return text


def format_order_header(order: Order) -> Text:
    """``#id STATUS type time customer`` on one line."""
    text = Text()
    text.append(f"#{order.order_id} ", style="bold")
    text.append(f" {order.status} ", style=badge_style(order.status))
    if order.order_type:
        text.append(f" {order.order_type}")
    shown_time = format_time(order.created_at)
    if shown_time:
        text.append(f"  {shown_time}", style="dim")
    name = customer_name(order)
    if name:
        text.append(f"  {name}", style="italic")
    return text


def format_item_line(entry: PreparedItem) -> Text:
    item = entry.item
    checked = "[x]" if entry.is_prepared else "[ ]"
    style = "dim strike" if entry.is_prepared else ""
    text = Text()
    text.append(f"{checked} {item.name} x{item.quantity}", style=style)
    if item.ingredients:
        text.append(f" ({', '.join(item.ingredients)})", style="dim")
    return text


def format_order_card(
    order: Order,
    items: list[PreparedItem],
    *,
    expanded: bool,
    progress: float,
    dragging: bool,
    done: bool,
    show_completed: bool,
) -> Text:
    """Render one order card: header, items, and the swipe or restore footer."""
    text = Text()
    text.append_text(format_order_header(order))
    if done:
        text.append("  ✓ done", style="bold #5fbf72")

    shown = items if expanded else items[:INITIAL_ITEMS]
    for entry in shown:
        text.append("\n      ")
        text.append_text(format_item_line(entry))

    hidden = len(items) - INITIAL_ITEMS
    if hidden > 0:
        text.append("\n      ")
        if expanded:
            text.append(f"Hide {hidden} items ↑", style="dim")
        else:
            text.append(f"Show {hidden} more items ↓", style="dim")

    text.append("\n      ")
    if show_completed:
        text.append("↩ Restore to Processing (u)", style="dim")
    elif dragging or progress > 0:
        text.append_text(progress_bar(progress))
        text.append(f" {drag_progress_message(progress * 100)}")
    else:
        text.append(DRAG_PROGRESS_IDLE_MESSAGE, style="dim")
    return text
