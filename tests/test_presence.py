import json

import pytest

from notifications.domain.entities import Connection, ConnectionState
from notifications.infrastructure.channel import WebSocketDeliveryChannel
from notifications.infrastructure.presence import InMemoryPresenceRegistry


class FakeWebSocket:
    def __init__(self, fail_send: bool = False) -> None:
        self.accepted = False
        self.sent = []
        self.fail_send = fail_send

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, data) -> None:
        if self.fail_send:
            raise RuntimeError("connection reset")
        self.sent.append(data)

    def events(self):
        return [frame["event"] for frame in self.sent]


def signal(event: str, data=None) -> str:
    return json.dumps({"event": event, "data": data})


@pytest.fixture
def registry():
    return InMemoryPresenceRegistry()


@pytest.fixture
def channel(registry):
    return WebSocketDeliveryChannel(registry)


class TestInMemoryPresenceRegistry:
    def test_presence_follows_registration(self, registry):
        registry.add(Connection(connection_id="c1"))
        assert not registry.is_present(1)

        registry.register("c1", 1)
        assert registry.is_present(1)
        assert registry.get("c1").state == ConnectionState.REGISTERED

        registry.unregister("c1")
        assert not registry.is_present(1)
        assert registry.get("c1").state == ConnectionState.ANONYMOUS

    def test_reregistering_moves_the_connection(self, registry):
        registry.add(Connection(connection_id="c1"))
        registry.register("c1", 1)
        registry.register("c1", 2)

        assert not registry.is_present(1)
        assert [c.connection_id for c in registry.connections_for(2)] == ["c1"]

    def test_remove_drops_presence(self, registry):
        registry.add(Connection(connection_id="c1"))
        registry.add(Connection(connection_id="c2"))
        registry.register("c1", 1)
        registry.register("c2", 1)

        removed = registry.remove("c1")

        assert removed.state == ConnectionState.CLOSED
        assert registry.is_present(1)
        registry.remove("c2")
        assert not registry.is_present(1)
        assert registry.remove("c2") is None

    def test_register_unknown_connection(self, registry):
        with pytest.raises(KeyError):
            registry.register("missing", 1)

    def test_snapshot(self, registry):
        for connection_id in ("c1", "c2", "c3"):
            registry.add(Connection(connection_id=connection_id))
        registry.register("c1", 1)
        registry.register("c2", 1)

        assert registry.snapshot() == {
            "total_connections": 3,
            "registered_connections": 2,
            "online_users": 1,
            "users": {1: 2},
        }


class TestWebSocketDeliveryChannel:
    async def test_connect_greets_and_tracks(self, channel, registry):
        websocket = FakeWebSocket()

        connection = await channel.connect(websocket, authenticated_user_id=7)

        assert websocket.accepted
        assert connection.state == ConnectionState.OPEN
        assert registry.get(connection.connection_id) is connection
        greeting = websocket.sent[0]
        assert greeting["event"] == "connected"
        assert greeting["data"]["connection_id"] == connection.connection_id
        assert greeting["data"]["user_id"] == 7

    async def test_register_and_unregister(self, channel):
        websocket = FakeWebSocket()
        connection = await channel.connect(websocket)

        await channel.handle_signal(connection, signal("register", {"user_id": 3}))
        assert channel.is_present(3)
        registered = websocket.sent[-1]
        assert registered["event"] == "registered"
        assert registered["data"]["user_id"] == 3
        assert registered["data"]["connections"] == 1

        await channel.handle_signal(connection, signal("unregister", {"user_id": 3}))
        assert not channel.is_present(3)
        assert websocket.events()[-1] == "unregistered"
        assert connection.state == ConnectionState.ANONYMOUS

    async def test_register_as_someone_else_is_refused(self, channel):
        websocket = FakeWebSocket()
        connection = await channel.connect(websocket, authenticated_user_id=5)

        await channel.handle_signal(connection, signal("register", {"user_id": 6}))

        assert websocket.events()[-1] == "error"
        assert not channel.is_present(6)
        assert connection.state == ConnectionState.OPEN

    @pytest.mark.parametrize(
        "raw",
        [
            "not json",
            json.dumps(["register"]),
            json.dumps({"data": {}}),
            signal("register", {"user_id": "abc"}),
            signal("register", {"user_id": True}),
            signal("register", {}),
            signal("register", ["user_id", 1]),
            '{"event": "register", "data": {"user_id": 1e400}}',
            b"\xff\xfe\x00",
            signal("subscribe", {"topic": "all"}),
        ],
    )
    async def test_bad_signals_reply_with_error(self, channel, raw):
        websocket = FakeWebSocket()
        connection = await channel.connect(websocket)

        await channel.handle_signal(connection, raw)

        assert websocket.events() == ["connected", "error"]
        assert channel.registry.snapshot()["registered_connections"] == 0

    async def test_ping_reports_latency(self, channel):
        websocket = FakeWebSocket()
        connection = await channel.connect(websocket)
        sent_at_ms = connection.connected_at.timestamp() * 1000

        await channel.handle_signal(connection, signal("ping", {"timestamp": sent_at_ms}))

        pong = websocket.sent[-1]
        assert pong["event"] == "pong"
        assert pong["data"]["latency_ms"] >= 0

    async def test_ping_with_unusable_timestamp(self, channel):
        websocket = FakeWebSocket()
        connection = await channel.connect(websocket)

        await channel.handle_signal(
            connection, '{"event": "ping", "data": {"timestamp": 1e400}}'
        )

        pong = websocket.sent[-1]
        assert pong["event"] == "pong"
        assert pong["data"]["latency_ms"] is None

    async def test_binary_frames_holding_json_are_handled(self, channel):
        websocket = FakeWebSocket()
        connection = await channel.connect(websocket)

        frame = signal("register", {"user_id": 8}).encode()
        await channel.handle_signal(connection, frame)

        assert websocket.events()[-1] == "registered"
        assert channel.is_present(8)

    async def test_client_gone_during_greeting_leaves_no_trace(
        self, channel, registry
    ):
        websocket = FakeWebSocket(fail_send=True)

        with pytest.raises(RuntimeError):
            await channel.connect(websocket, authenticated_user_id=3)

        assert websocket.accepted
        assert registry.snapshot()["total_connections"] == 0
        assert channel._sockets == {}

    async def test_ping_without_timestamp(self, channel):
        websocket = FakeWebSocket()
        connection = await channel.connect(websocket)

        await channel.handle_signal(connection, signal("ping"))

        assert websocket.sent[-1]["data"]["latency_ms"] is None

    async def test_emit_reaches_every_connection_of_the_user_only(self, channel):
        first_tab, second_tab, other_user = FakeWebSocket(), FakeWebSocket(), FakeWebSocket()
        for websocket, user_id in ((first_tab, 1), (second_tab, 1), (other_user, 2)):
            connection = await channel.connect(websocket)
            await channel.handle_signal(connection, signal("register", {"user_id": user_id}))

        delivered = await channel.emit_to_user(1, "newNotification", {"id": 10})

        assert delivered == 2
        assert first_tab.sent[-1] == {"event": "newNotification", "data": {"id": 10}}
        assert second_tab.sent[-1] == {"event": "newNotification", "data": {"id": 10}}
        assert "newNotification" not in other_user.events()

    async def test_one_failing_connection_does_not_stop_the_others(self, channel):
        healthy = FakeWebSocket()
        broken = FakeWebSocket()
        for websocket in (broken, healthy):
            connection = await channel.connect(websocket)
            await channel.handle_signal(connection, signal("register", {"user_id": 1}))
        broken.fail_send = True

        delivered = await channel.emit_to_user(1, "newNotification", {"id": 11})

        assert delivered == 1
        assert healthy.sent[-1]["data"] == {"id": 11}

    async def test_disconnect_removes_presence(self, channel):
        websocket = FakeWebSocket()
        connection = await channel.connect(websocket)
        await channel.handle_signal(connection, signal("register", {"user_id": 4}))

        channel.disconnect(connection)

        assert not channel.is_present(4)
        assert connection.state == ConnectionState.CLOSED
        assert await channel.emit_to_user(4, "newNotification", {}) == 0
