import asyncio

from order_board.channel import LiveUpdateChannel

from conftest import FakeSocket, settle


def test_on_registers_a_handler_once(channel):
    calls = []
    handler = calls.append
    channel.on("newOrder", handler)
    channel.on("newOrder", handler)
    assert channel.handler_count("newOrder") == 1

    channel.dispatch("newOrder", {"order_id": 1})
    assert calls == [{"order_id": 1}]


def test_off_removes_only_that_handler(channel):
    first, second = [], []
    channel.on("orderUpdate", first.append)
    channel.on("orderUpdate", second.append)
    channel.off("orderUpdate", first.append)
    channel.off("orderUpdate", first.append)
    channel.off("neverRegistered", first.append)

    channel.dispatch("orderUpdate", "payload")
    assert first == []
    assert second == ["payload"]


def test_failing_handler_does_not_block_others(channel):
    received = []

    def broken(data):
        raise RuntimeError("handler bug")

    channel.on("newOrder", broken)
    channel.on("newOrder", received.append)
    channel.dispatch("newOrder", 1)
    assert received == [1]


async def test_emit_while_disconnected_is_dropped(channel):
    assert not channel.is_connected
    assert channel.emit("itemPreparationToggle", {"order_id": 1}) is False


async def test_connect_times_out_without_server():
    never_opens = asyncio.Event()

    class Hanging:
        async def __aenter__(self):
            await never_opens.wait()

        async def __aexit__(self, *exc_info):
            return False

    live = LiveUpdateChannel(url="ws://test", connect_factory=lambda url: Hanging(), reconnect_delay=0)
    assert await live.connect(timeout=0.01) is False
    assert not live.is_connected
    await live.disconnect()


async def test_connect_joins_staff_room_and_signals_connected():
    socket = FakeSocket()
    live = LiveUpdateChannel(url="ws://test", connect_factory=lambda url: socket, reconnect_delay=0)
    connected = []
    live.on("connected", connected.append)

    assert await live.connect(timeout=1)
    await settle()

    assert live.is_connected
    assert socket.sent[0] == {"event": "joinRoom", "data": {"roomName": "staff-room", "roomType": "staff"}}
    assert connected == [{"url": "ws://test"}]
    await live.disconnect()


async def test_frames_are_dispatched_by_event_name(connected_channel):
    live, socket = connected_channel
    received = []
    live.on("newOrder", received.append)

    socket.push("newOrder", {"order_id": 3, "status": "processing"})
    socket.push_raw("not json")
    socket.push_raw('{"data": "no event"}')
    socket.push("newOrder", {"order_id": 4, "status": "processing"})
    await settle()

    assert [payload["order_id"] for payload in received] == [3, 4]


async def test_emit_sends_json_frame(connected_channel):
    live, socket = connected_channel
    assert live.emit("itemPreparationToggle", {"order_id": 1, "itemIndex": 0, "isPrepared": True})
    await settle()
    assert socket.sent[-1] == {
        "event": "itemPreparationToggle",
        "data": {"order_id": 1, "itemIndex": 0, "isPrepared": True},
    }


async def test_disconnect_signals_and_stops():
    socket = FakeSocket()
    live = LiveUpdateChannel(url="ws://test", connect_factory=lambda url: socket, reconnect_delay=0)
    disconnected = []
    live.on("disconnected", disconnected.append)
    await live.connect(timeout=1)

    await live.disconnect()

    assert not live.is_connected
    assert disconnected == [None]
    assert socket.closed
    assert live.emit("itemPreparationToggle", {}) is False


async def test_server_close_triggers_reconnect():
    sockets = [FakeSocket(), FakeSocket()]
    opened = []

    def factory(url):
        socket = sockets[len(opened)]
        opened.append(socket)
        return socket

    live = LiveUpdateChannel(url="ws://test", connect_factory=factory, reconnect_delay=0)
    await live.connect(timeout=1)
    await settle()

    # Ending the first socket's stream looks like a server-side close.
    sockets[0].incoming.put_nowait(None)
    await settle(20)

    assert len(opened) == 2
    assert live.is_connected
    assert sockets[1].sent[0]["event"] == "joinRoom"
    await live.disconnect()
