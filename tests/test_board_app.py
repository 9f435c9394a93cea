import pytest

from order_board.board_app import OrderBoardApp
from order_board.items_modal import ItemsModal

from conftest import FakeApi, order_payload


@pytest.fixture
def board_app(channel):
    api = FakeApi(
        [
            order_payload(1, items=("Latte", "Scone")),
            order_payload(2, items=("Mocha",)),
            order_payload(3, "completed"),
        ]
    )
    app = OrderBoardApp(api=api, channel=channel, connect_channel=False)
    app.board.removal_delay = 0.01
    return app


async def test_app_loads_processing_orders(board_app):
    async with board_app.run_test() as pilot:
        await pilot.pause(0.05)
        assert [o.key for o in board_app.board.store.orders] == ["1", "2"]
        assert board_app.sub_title == "Processing"


async def test_keyboard_swipe_completes_selected_order(board_app):
    async with board_app.run_test() as pilot:
        await pilot.pause(0.05)
        await pilot.press("j")
        assert board_app.order_selected_index == 0

        for _ in range(4):
            await pilot.press("l")
        assert board_app.board.drag.progress("1") == pytest.approx(0.8)

        board_app.action_release_swipe()
        await board_app.board.drain()
        await pilot.pause(0.1)

        assert board_app.api.status_calls == [("1", "completed")]
        assert [o.key for o in board_app.board.store.orders] == ["2"]


async def test_short_swipe_does_not_complete(board_app):
    async with board_app.run_test() as pilot:
        await pilot.pause(0.05)
        await pilot.press("j", "l", "l")
        board_app.action_release_swipe()
        await pilot.pause(0.05)

        assert board_app.api.status_calls == []
        assert [o.key for o in board_app.board.store.orders] == ["1", "2"]


async def test_items_modal_toggles_preparation(board_app):
    async with board_app.run_test() as pilot:
        await pilot.pause(0.05)
        await pilot.press("j", "i")
        assert isinstance(board_app.screen, ItemsModal)

        await pilot.press("space")
        assert board_app.board.preparation.is_prepared(1, 0)

        await pilot.press("escape")
        assert not isinstance(board_app.screen, ItemsModal)


async def test_search_mode_collects_query(board_app):
    async with board_app.run_test() as pilot:
        await pilot.pause(0.05)
        await pilot.press("slash", "m", "o")
        assert board_app.input_state == "active"
        assert board_app.search_query == "mo"

        await pilot.press("enter")
        await pilot.pause(0.05)
        assert board_app.input_state == "normal"
        assert board_app.board.filters.search_term == "mo"
        assert board_app.api.fetch_calls[-1]["searchTerm"] == "mo"


async def test_selection_follows_its_order_when_the_list_shifts(channel):
    api = FakeApi([order_payload(1), order_payload(2), order_payload(3)])
    app = OrderBoardApp(api=api, channel=channel, connect_channel=False)
    app.board.removal_delay = 0.01
    async with app.run_test() as pilot:
        await pilot.pause(0.05)
        await pilot.press("j", "j")
        assert app.selected_key == "2"

        channel.dispatch("orderUpdate", order_payload(1, "cancelled"))
        await pilot.pause()
        assert [o.key for o in app.board.store.orders] == ["2", "3"]
        assert app.order_selected_index == 0

        for _ in range(4):
            await pilot.press("l")
        app.action_release_swipe()
        await app.board.drain()
        await pilot.pause(0.1)

        assert api.status_calls == [("2", "completed")]
        assert [o.key for o in app.board.store.orders] == ["3"]
