"""Unit tests for RedisEventBus (publish, delivery to handlers, channel prefix)."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.infrastructure.messaging import RedisEventBus


@pytest.fixture
def client() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def bus(settings, client: AsyncMock) -> RedisEventBus:
    settings.event_channel_prefix = "crm:"
    return RedisEventBus(settings, redis_client=client)


async def test_publish_prefixes_channel_and_encodes_json(
    bus: RedisEventBus, client: AsyncMock
) -> None:
    assert await bus.publish("workflow.created", {"workflow_id": "wf-1"}) is True
    channel, raw = client.publish.await_args.args
    assert channel == "crm:workflow.created"
    assert json.loads(raw) == {"workflow_id": "wf-1"}


async def test_publish_without_connection_returns_false(settings) -> None:
    bus = RedisEventBus(settings)
    await bus.connect()  # redis_enabled is False in tests
    assert bus.is_available() is False
    assert await bus.publish("workflow.created", {}) is False


async def test_publish_redis_error_returns_false(bus: RedisEventBus, client: AsyncMock) -> None:
    client.publish.side_effect = RedisConnectionError("gone")
    assert await bus.publish("workflow.created", {}) is False


async def test_deliver_awaits_handlers_in_order(bus: RedisEventBus) -> None:
    seen: list[tuple[str, dict]] = []

    async def first(payload: dict) -> None:
        seen.append(("first", payload))

    async def second(payload: dict) -> None:
        seen.append(("second", payload))

    bus.subscribe("entity.created", first)
    bus.subscribe("entity.created", second)

    await bus.deliver("entity.created", '{"organization_id": "org-1"}')

    assert seen == [
        ("first", {"organization_id": "org-1"}),
        ("second", {"organization_id": "org-1"}),
    ]


async def test_deliver_continues_after_failing_handler(bus: RedisEventBus, caplog) -> None:
    calls: list[str] = []

    async def broken(payload: dict) -> None:
        raise RuntimeError("boom")

    async def healthy(payload: dict) -> None:
        calls.append("healthy")

    bus.subscribe("entity.updated", broken)
    bus.subscribe("entity.updated", healthy)

    await bus.deliver("entity.updated", b'{"organization_id": "org-1"}')

    assert calls == ["healthy"]
    assert "Event handler failed for entity.updated" in caplog.text


@pytest.mark.parametrize("raw", ["not json", "[1, 2]", '"text"'])
async def test_deliver_drops_malformed_payloads(bus: RedisEventBus, raw: str) -> None:
    handler = AsyncMock()
    bus.subscribe("entity.created", handler)

    await bus.deliver("entity.created", raw)

    handler.assert_not_awaited()


def test_logical_channel_strips_prefix(bus: RedisEventBus) -> None:
    assert bus._logical_channel("crm:entity.created") == "entity.created"
    assert bus._logical_channel("other.channel") == "other.channel"


async def test_start_without_subscriptions_spawns_nothing(
    bus: RedisEventBus, client: AsyncMock
) -> None:
    await bus.start()
    client.pubsub.assert_not_called()
    await bus.stop()


async def test_disconnect_closes_client(bus: RedisEventBus, client: AsyncMock) -> None:
    await bus.disconnect()
    client.aclose.assert_awaited_once()
    assert bus.is_available() is False


class ScriptedPubSub:
    """PubSub stand-in: yields messages, then raises error (if any)."""

    def __init__(self, messages: list[dict] | None = None, error: Exception | None = None):
        self.messages = messages or []
        self.error = error
        self.subscribe = AsyncMock()
        self.unsubscribe = AsyncMock()
        self.aclose = AsyncMock()

    async def listen(self):
        for message in self.messages:
            yield message
        if self.error is not None:
            raise self.error


def _unreachable_pubsub() -> ScriptedPubSub:
    pubsub = ScriptedPubSub()
    pubsub.subscribe.side_effect = RedisConnectionError("refused")
    return pubsub


async def test_listener_resubscribes_after_redis_error(settings, sleeper) -> None:
    client = MagicMock()
    client.pubsub.side_effect = [
        ScriptedPubSub(error=RedisConnectionError("reset by peer")),
        _unreachable_pubsub(),
        ScriptedPubSub(
            [
                {"type": "subscribe", "channel": "entity.created", "data": 1},
                {"type": "message", "channel": "entity.created", "data": '{"organization_id": "org-1"}'},
            ]
        ),
    ]
    lost = MagicMock()
    bus = RedisEventBus(settings, redis_client=client, sleep=sleeper)
    bus.on_listener_lost(lost)
    handler = AsyncMock()
    bus.subscribe("entity.created", handler)

    await bus.start()
    await bus._listener

    handler.assert_awaited_once_with({"organization_id": "org-1"})
    assert sleeper.calls == [1.0, 2.0]
    lost.assert_not_called()


async def test_listener_gives_up_and_reports_loss(settings, sleeper, caplog) -> None:
    settings.event_bus_reconnect_attempts = 2
    settings.event_bus_reconnect_backoff_seconds = 0.5
    client = MagicMock()
    first = ScriptedPubSub(error=RedisConnectionError("reset by peer"))
    retries = [_unreachable_pubsub(), _unreachable_pubsub()]
    client.pubsub.side_effect = [first, *retries]
    lost = MagicMock()
    bus = RedisEventBus(settings, redis_client=client, sleep=sleeper)
    bus.on_listener_lost(lost)
    bus.subscribe("entity.created", AsyncMock())

    await bus.start()
    await bus._listener

    assert sleeper.calls == [0.5, 1.0]
    lost.assert_called_once_with()
    first.aclose.assert_awaited_once()
    assert all(p.aclose.await_count == 1 for p in retries)
    assert "Event bus listener lost after 2 reconnect attempts" in caplog.text
    await bus.stop()
