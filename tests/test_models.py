import pytest

from order_board.models import (
    NewOrderEvent,
    Order,
    OrderUpdateEvent,
    Pagination,
    PreparationUpdateEvent,
    order_key,
    parse_event,
)

from conftest import order_payload


def test_order_from_payload_reads_items_and_metadata():
    payload = order_payload(
        7,
        items=("Latte", "Scone"),
        first_name="Ada",
        last_name="Lovelace",
        table_number=4,
    )
    payload["items"][0]["ingredients"] = [{"ingredient_name": "Oat milk"}, "Vanilla"]
    payload["items"][0]["quantity"] = 2

    order = Order.from_payload(payload)

    assert order.key == "7"
    assert order.status == "processing"
    assert [item.name for item in order.items] == ["Latte", "Scone"]
    assert [item.index for item in order.items] == [0, 1]
    assert order.items[0].quantity == 2
    assert order.items[0].ingredients == ("Oat milk", "Vanilla")
    assert order.first_name == "Ada"
    assert order.extra == {"table_number": 4}


def test_order_accepts_alternate_id_keys_and_normalizes_status():
    assert Order.from_payload({"orderId": 3, "status": "COMPLETED"}).status == "completed"
    assert Order.from_payload({"id": "x1", "status": "pending"}).key == "x1"


@pytest.mark.parametrize(
    "payload",
    [
        {"status": "processing"},
        {"order_id": 1},
        {"order_id": 1, "status": "brewing"},
        ["not", "a", "dict"],
    ],
)
def test_order_from_payload_rejects_malformed(payload):
    with pytest.raises(ValueError):
        Order.from_payload(payload)


def test_order_key_treats_int_and_str_ids_alike():
    assert order_key(42) == order_key("42")


def test_pagination_defaults_and_camel_case():
    assert Pagination.from_payload(None) == Pagination()
    page = Pagination.from_payload({"currentPage": 2, "totalPages": 5, "totalCount": 240, "hasNextPage": True})
    assert page.current_page == 2
    assert page.total_pages == 5
    assert page.total_count == 240
    assert page.has_next_page is True
    assert page.has_prev_page is False


def test_parse_event_variants():
    assert isinstance(parse_event("newOrder", order_payload(1)), NewOrderEvent)
    assert isinstance(parse_event("orderUpdate", order_payload(1, "completed")), OrderUpdateEvent)

    prep = parse_event("itemPreparationUpdate", {"orderId": 5, "item_index": "2", "isPrepared": True})
    assert prep == PreparationUpdateEvent(order_id=5, item_index=2, is_prepared=True)


@pytest.mark.parametrize(
    "event, payload",
    [
        ("somethingElse", {}),
        ("newOrder", {"status": "processing"}),
        ("itemPreparationUpdate", {"order_id": 1, "isPrepared": True}),
        ("itemPreparationUpdate", {"order_id": 1, "itemIndex": "first", "isPrepared": True}),
        ("itemPreparationUpdate", None),
    ],
)
def test_parse_event_rejects_bad_input(event, payload):
    with pytest.raises(ValueError):
        parse_event(event, payload)
