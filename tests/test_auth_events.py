"""Tests for the auth event bus backends."""
import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import redis

from workspace_hub.auth.events import InMemoryAuthEvents, RedisAuthEvents, get_auth_events
from workspace_hub.schemas.auth import AuthEvent, AuthEventType

EVENT = AuthEvent(type=AuthEventType.SIGNED_IN, session_id="s-1", user_id="u-1", email="user@acme.com")


class TestInMemoryAuthEvents:

    @pytest.mark.asyncio
    async def test_delivers_to_every_listener_in_order(self):
        bus = InMemoryAuthEvents()
        received = []

        async def first(event):
            received.append(("first", event))

        async def second(event):
            received.append(("second", event))

        await bus.subscribe(first)
        await bus.subscribe(second)
        await bus.publish(EVENT)

        assert received == [("first", EVENT), ("second", EVENT)]

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_stop_delivery(self):
        bus = InMemoryAuthEvents()
        broken = AsyncMock(side_effect=RuntimeError("listener bug"))
        healthy = AsyncMock()

        await bus.subscribe(broken)
        await bus.subscribe(healthy)
        await bus.publish(EVENT)

        healthy.assert_awaited_once_with(EVENT)

    @pytest.mark.asyncio
    async def test_unsubscribe_stops_delivery_and_is_idempotent(self):
        bus = InMemoryAuthEvents()
        listener = AsyncMock()

        subscription = await bus.subscribe(listener)
        await subscription.unsubscribe()
        await subscription.unsubscribe()
        await bus.publish(EVENT)

        listener.assert_not_awaited()
        assert bus.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_listener_may_unsubscribe_while_handling(self):
        bus = InMemoryAuthEvents()
        other = AsyncMock()
        subscription = None

        async def once(event):
            await subscription.unsubscribe()

        subscription = await bus.subscribe(once)
        await bus.subscribe(other)
        await bus.publish(EVENT)

        other.assert_awaited_once_with(EVENT)
        assert bus.subscriber_count == 1


class TestRedisAuthEvents:

    @pytest.mark.asyncio
    async def test_publish_serializes_event_to_channel(self):
        client = MagicMock()
        client.publish = AsyncMock()

        with patch("workspace_hub.auth.events.aioredis.from_url", return_value=client):
            bus = RedisAuthEvents("redis://localhost:6379/0", "auth:events")
            await bus.publish(EVENT)

        channel, payload = client.publish.await_args.args
        assert channel == "auth:events"
        assert AuthEvent.model_validate_json(payload) == EVENT

    @pytest.mark.asyncio
    async def test_publish_failure_is_logged_not_raised(self):
        client = MagicMock()
        client.publish = AsyncMock(side_effect=redis.ConnectionError("down"))

        with patch("workspace_hub.auth.events.aioredis.from_url", return_value=client):
            bus = RedisAuthEvents("redis://localhost:6379/0", "auth:events")
            await bus.publish(EVENT)

        client.publish.assert_awaited_once()


class FakePubSub:
    """Replays messages from listen(), then blocks like an idle channel."""

    def __init__(self, messages, error=None):
        self._messages = messages
        self._error = error
        self.subscribe = AsyncMock()
        self.unsubscribe = AsyncMock()
        self.aclose = AsyncMock()
        self.drained = asyncio.Event()

    async def listen(self):
        for message in self._messages:
            yield message
        self.drained.set()
        if self._error is not None:
            raise self._error
        await asyncio.Event().wait()


def event_message(event=EVENT):
    return {"type": "message", "channel": "auth:events", "data": event.model_dump_json()}


def make_redis_bus(pubsub):
    client = MagicMock()
    client.pubsub = MagicMock(return_value=pubsub)
    with patch("workspace_hub.auth.events.aioredis.from_url", return_value=client):
        return RedisAuthEvents("redis://localhost:6379/0", "auth:events")


class TestRedisSubscription:

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_end_delivery(self):
        signed_out = AuthEvent(type=AuthEventType.SIGNED_OUT, session_id="s-1", user_id="u-1")
        pubsub = FakePubSub([
            {"type": "subscribe", "channel": "auth:events", "data": 1},
            {"type": "message", "channel": "auth:events", "data": "not json"},
            event_message(),
            event_message(signed_out),
        ])
        listener = AsyncMock(side_effect=[RuntimeError("listener failed"), None])
        bus = make_redis_bus(pubsub)

        subscription = await bus.subscribe(listener)
        await asyncio.wait_for(pubsub.drained.wait(), timeout=1)
        await subscription.unsubscribe()

        assert [call.args[0] for call in listener.await_args_list] == [EVENT, signed_out]
        pubsub.subscribe.assert_awaited_once_with("auth:events")
        pubsub.unsubscribe.assert_awaited_once_with("auth:events")
        pubsub.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_lost_connection_still_releases_pubsub(self):
        pubsub = FakePubSub([], error=redis.ConnectionError("connection reset"))
        pubsub.unsubscribe.side_effect = redis.ConnectionError("connection reset")
        bus = make_redis_bus(pubsub)

        subscription = await bus.subscribe(AsyncMock())
        await asyncio.wait_for(pubsub.drained.wait(), timeout=1)
        await subscription.unsubscribe()
        await subscription.unsubscribe()

        pubsub.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_subscribe_closes_pubsub(self):
        pubsub = FakePubSub([])
        pubsub.subscribe.side_effect = redis.ConnectionError("refused")
        bus = make_redis_bus(pubsub)

        with pytest.raises(redis.ConnectionError):
            await bus.subscribe(AsyncMock())

        pubsub.aclose.assert_awaited_once()


def test_memory_backend_is_default():
    assert isinstance(get_auth_events(), InMemoryAuthEvents)
    assert get_auth_events() is get_auth_events()
