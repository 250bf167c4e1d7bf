"""
Tests for the HTTP routes and the /graphql WebSocket endpoint.
"""
import random
import time

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from pubsub_relay.config import RelaySettings
from pubsub_relay.main import create_app


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def connect(client: TestClient, **kwargs):
    ws = client.websocket_connect("/graphql", **kwargs)
    return ws


def init(ws):
    ws.send_json({"type": "connection_init"})
    assert ws.receive_json() == {"type": "connection_ack"}


def subscribe(ws, op_id: str, operation: str, **variables):
    ws.send_json({"type": "subscribe", "id": op_id, "payload": {"operation": operation, "variables": variables}})


def wait_for_health(client: TestClient, **expected):
    deadline = time.monotonic() + 2
    while True:
        data = client.get("/health").json()
        if all(data[k] == v for k, v in expected.items()) or time.monotonic() > deadline:
            return data
        time.sleep(0.02)


class TestHttpRoutes:
    """Tests for the plain HTTP surface."""

    @pytest.mark.parametrize("path", ["/", "/graphql", "/anything/else"])
    def test_plain_health_text(self, client, path):
        response = client.get(path)
        assert response.status_code == 200
        assert response.text == "GraphQL WebSocket server is running"

    def test_post_is_answered_too(self, client):
        assert client.post("/").text == "GraphQL WebSocket server is running"

    def test_health(self, client):
        data = client.get("/health").json()
        assert set(data) == {"uptime_sec", "topics", "subscribers", "sessions"}
        assert data["sessions"] == 0

    def test_stats(self, client):
        assert client.get("/stats").json() == {"topics": {}}


class TestProtocol:
    """Tests for connection-level frames."""

    def test_connection_init_and_ping(self, client):
        with connect(client) as ws:
            init(ws)
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}

    def test_subprotocol_negotiation(self, client):
        with connect(client, subprotocols=["graphql-transport-ws"]) as ws:
            assert ws.accepted_subprotocol == "graphql-transport-ws"

    def test_operation_before_init_is_rejected(self, client):
        with connect(client) as ws:
            subscribe(ws, "1", "messageAdded")
            with pytest.raises(WebSocketDisconnect) as exc_info:
                ws.receive_json()
            assert exc_info.value.code == 4401

    def test_invalid_json(self, client):
        with connect(client) as ws:
            init(ws)
            ws.send_text("not json")
            frame = ws.receive_json()
            assert frame["type"] == "error"
            assert frame["payload"][0]["code"] == "BAD_REQUEST"
            # connection stays usable
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}

    def test_unknown_type(self, client):
        with connect(client) as ws:
            init(ws)
            ws.send_json({"type": "shout", "id": "1"})
            frame = ws.receive_json()
            assert frame == {
                "type": "error",
                "id": "1",
                "payload": [{"message": "unknown type: shout", "code": "BAD_REQUEST"}],
            }

    def test_subscribe_requires_id(self, client):
        with connect(client) as ws:
            init(ws)
            ws.send_json({"type": "subscribe", "payload": {"operation": "messageAdded"}})
            assert ws.receive_json()["payload"][0]["code"] == "BAD_REQUEST"


class TestOperations:
    """Tests for queries, mutations and subscriptions."""

    def test_noop_query(self, client):
        with connect(client) as ws:
            init(ws)
            subscribe(ws, "q", "_noop")
            assert ws.receive_json() == {"type": "next", "id": "q", "payload": {"data": {"_noop": True}}}
            assert ws.receive_json() == {"type": "complete", "id": "q"}

    def test_send_message_reaches_own_subscription(self, client):
        with connect(client) as ws:
            init(ws)
            subscribe(ws, "sub", "messageAdded")
            subscribe(ws, "mut", "sendMessage", text="hi")

            frames = [ws.receive_json() for _ in range(3)]
            by_key = {(f["type"], f["id"]): f for f in frames}

            result = by_key[("next", "mut")]["payload"]["data"]["sendMessage"]
            event = by_key[("next", "sub")]["payload"]["data"]["messageAdded"]
            assert ("complete", "mut") in by_key

            assert result == event
            assert result["text"] == "hi"
            assert result["author"] == "user"
            assert result["channel"] == "general"
            assert result["important"] is False
            assert result["tags"] == []
            assert result["id"] == "1"
            assert result["createdAt"].endswith("Z")

    def test_send_message_fans_out_to_other_connections(self, client):
        with connect(client) as listener, connect(client) as sender:
            init(listener)
            init(sender)
            subscribe(listener, "sub", "messageAdded")
            wait_for_health(client, subscribers=1)

            subscribe(sender, "mut", "sendMessage", text="hello there")
            result = sender.receive_json()["payload"]["data"]["sendMessage"]
            assert sender.receive_json() == {"type": "complete", "id": "mut"}

            event = listener.receive_json()
            assert event["id"] == "sub"
            assert event["payload"]["data"]["messageAdded"] == result

    def test_send_message_validation_error(self, client):
        with connect(client) as ws:
            init(ws)
            subscribe(ws, "mut", "sendMessage")
            frame = ws.receive_json()
            assert frame["type"] == "error"
            assert frame["id"] == "mut"
            assert frame["payload"][0]["code"] == "BAD_USER_INPUT"
            # the connection survives
            subscribe(ws, "ok", "sendMessage", text="fine")
            assert ws.receive_json()["payload"]["data"]["sendMessage"]["id"] == "1"

    def test_unknown_operation(self, client):
        with connect(client) as ws:
            init(ws)
            subscribe(ws, "x", "weatherChanged")
            frame = ws.receive_json()
            assert frame["payload"][0]["code"] == "UNKNOWN_OPERATION"

    def test_duplicate_subscription_id(self, client):
        with connect(client) as ws:
            init(ws)
            subscribe(ws, "sub", "messageAdded")
            subscribe(ws, "sub", "settingsUpdated")
            frame = ws.receive_json()
            assert frame["type"] == "error"
            assert frame["payload"][0]["code"] == "DUPLICATE_OPERATION"

    def test_complete_stops_subscription(self, client):
        with connect(client) as ws:
            init(ws)
            subscribe(ws, "sub", "messageAdded")
            ws.send_json({"type": "complete", "id": "sub"})
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}
            assert client.get("/health").json()["subscribers"] == 0

            subscribe(ws, "mut", "sendMessage", text="hi")
            assert ws.receive_json()["id"] == "mut"
            assert ws.receive_json() == {"type": "complete", "id": "mut"}

    def test_disconnect_releases_subscriptions(self, client):
        with connect(client) as ws:
            init(ws)
            subscribe(ws, "a", "messageAdded")
            subscribe(ws, "b", "systemStatusChanged")
            subscribe(ws, "c", "settingsUpdated")
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}
            data = client.get("/health").json()
            assert data["subscribers"] == 3
            assert data["sessions"] == 1

        data = wait_for_health(client, subscribers=0, sessions=0)
        assert data["subscribers"] == 0
        assert data["sessions"] == 0


class TestSampleGenerators:
    """Generators run under the app lifespan."""

    def test_generated_events_are_streamed(self):
        settings = RelaySettings(
            sample_generators_enabled=True,
            message_interval=0.05,
            status_interval=0.05,
            settings_interval=0.05,
        )
        with TestClient(create_app(settings, rng=random.Random(11))) as client:
            with connect(client) as ws:
                init(ws)
                subscribe(ws, "status", "systemStatusChanged")
                frame = ws.receive_json()

        status = frame["payload"]["data"]["systemStatusChanged"]
        assert frame["id"] == "status"
        assert status["online"] is True
        assert 0.1 <= status["load"] <= 1.6
        assert set(status) == {"online", "load", "updatedAt"}
