import pytest

from order_board.models import Order, OrderItem
from order_board.preparation import PreparedItem
from order_board.rendering import (
    customer_name,
    drag_progress_message,
    format_order_card,
    format_time,
    parse_utc,
)

from conftest import order_payload


@pytest.mark.parametrize(
    "pct, message",
    [
        (0, "→ Swipe right to complete"),
        (30, "→ Swipe right to complete"),
        (31, "→ Keep swiping to complete"),
        (60, "→ Keep swiping to complete"),
        (61, "✓ Release to complete"),
        (100, "✓ Release to complete"),
    ],
)
def test_drag_progress_message(pct, message):
    assert drag_progress_message(pct) == message


def test_parse_utc_handles_z_suffix_and_garbage():
    assert parse_utc("2024-05-01T09:30:00Z").utcoffset().total_seconds() == 0
    assert parse_utc("2024-05-01 09:30:00").tzinfo is not None
    assert parse_utc("yesterday") is None
    assert format_time(None) == ""


def test_customer_name():
    order = Order.from_payload(order_payload(1, first_name="Ada", last_name=None))
    assert customer_name(order) == "Ada"
    assert customer_name(Order.from_payload(order_payload(2))) is None


def _rows(count, prepared=()):
    return [
        PreparedItem(item=OrderItem(index=i, name=f"Item {i}"), original_index=i, is_prepared=i in prepared)
        for i in range(count)
    ]


def test_card_collapses_long_item_lists():
    order = Order.from_payload(order_payload(4))
    card = format_order_card(
        order, _rows(5), expanded=False, progress=0.0, dragging=False, done=False, show_completed=False
    ).plain
    assert "Item 2" in card
    assert "Item 3" not in card
    assert "Show 2 more items" in card
    assert "Swipe right to complete" in card


def test_card_expanded_shows_everything():
    order = Order.from_payload(order_payload(4))
    card = format_order_card(
        order, _rows(5, prepared={0}), expanded=True, progress=0.0, dragging=False, done=False, show_completed=False
    ).plain
    assert "Item 4" in card
    assert "Hide 2 items" in card
    assert "[x] Item 0" in card


def test_card_footer_reflects_swipe_and_view():
    order = Order.from_payload(order_payload(4))
    swiping = format_order_card(
        order, _rows(1), expanded=False, progress=0.7, dragging=True, done=False, show_completed=False
    ).plain
    assert "Release to complete" in swiping

    done = format_order_card(
        order, _rows(1), expanded=False, progress=0.0, dragging=False, done=True, show_completed=False
    ).plain
    assert "✓ done" in done

    completed = format_order_card(
        order, _rows(1), expanded=False, progress=0.0, dragging=False, done=False, show_completed=True
    ).plain
    assert "Restore to Processing" in completed
