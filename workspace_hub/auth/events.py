"""
Auth Event Bus

Sign-in and sign-out notifications. The auth endpoints publish; tenant
context providers subscribe for as long as they are open.

Two backends:
- InMemoryAuthEvents: single process (development, tests)
- RedisAuthEvents: Redis pub/sub, for more than one worker

subscribe() returns a Subscription whose unsubscribe() must be awaited
exactly once the subscriber is done; calling it twice is harmless.
"""
from contextlib import suppress
from functools import lru_cache
from typing import Awaitable, Callable, List, Protocol
import asyncio
import logging

import redis
import redis.asyncio as aioredis
from pydantic import ValidationError

from workspace_hub.config import get_settings
from workspace_hub.schemas.auth import AuthEvent

logger = logging.getLogger(__name__)

AuthEventListener = Callable[[AuthEvent], Awaitable[None]]


class Subscription(Protocol):
    async def unsubscribe(self) -> None:
        ...


class AuthEventSource(Protocol):
    async def publish(self, event: AuthEvent) -> None:
        ...

    async def subscribe(self, listener: AuthEventListener) -> Subscription:
        ...


class _InMemorySubscription:
    def __init__(self, bus: "InMemoryAuthEvents", listener: AuthEventListener):
        self._bus = bus
        self._listener = listener
        self._active = True

    async def unsubscribe(self) -> None:
        if self._active:
            self._active = False
            self._bus._remove(self._listener)


class InMemoryAuthEvents:
    """Delivers events to listeners in the current process, in subscription order."""

    def __init__(self):
        self._listeners: List[AuthEventListener] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._listeners)

    async def publish(self, event: AuthEvent) -> None:
        for listener in list(self._listeners):
            try:
                await listener(event)
            except Exception:
                # One failing subscriber must not starve the others
                logger.exception(f"Auth event listener failed for {event.type.value}")

    async def subscribe(self, listener: AuthEventListener) -> Subscription:
        self._listeners.append(listener)
        return _InMemorySubscription(self, listener)

    def _remove(self, listener: AuthEventListener) -> None:
        with suppress(ValueError):
            self._listeners.remove(listener)

    async def close(self) -> None:
        self._listeners.clear()


class _RedisSubscription:
    def __init__(self, pubsub, channel: str, task: asyncio.Task):
        self._pubsub = pubsub
        self._channel = channel
        self._task = task
        self._active = True

    async def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False

        self._task.cancel()
        try:
            with suppress(asyncio.CancelledError):
                await self._task
        finally:
            try:
                await self._pubsub.unsubscribe(self._channel)
            except redis.RedisError as e:
                logger.warning(f"Redis unsubscribe failed: {e}")
            finally:
                await self._pubsub.aclose()


class RedisAuthEvents:
    """
    Auth events over a Redis pub/sub channel.

    Publishing failures are logged, not raised: a sign-in must not fail
    because the notification could not be delivered.
    """

    def __init__(self, url: str, channel: str):
        self._client = aioredis.from_url(url, decode_responses=True, socket_connect_timeout=5)
        self._channel = channel

    async def publish(self, event: AuthEvent) -> None:
        try:
            await self._client.publish(self._channel, event.model_dump_json())
        except redis.RedisError as e:
            logger.error(f"Failed to publish auth event {event.type.value}: {e}")

    async def subscribe(self, listener: AuthEventListener) -> Subscription:
        pubsub = self._client.pubsub()
        try:
            await pubsub.subscribe(self._channel)
        except BaseException:
            await pubsub.aclose()
            raise
        task = asyncio.create_task(self._pump(pubsub, listener))
        return _RedisSubscription(pubsub, self._channel, task)

    async def _pump(self, pubsub, listener: AuthEventListener) -> None:
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                try:
                    event = AuthEvent.model_validate_json(message["data"])
                except ValidationError:
                    logger.warning(f"Ignoring malformed auth event on {self._channel}")
                    continue
                try:
                    await listener(event)
                except Exception:
                    logger.exception(f"Auth event listener failed for {event.type.value}")
        except redis.RedisError as e:
            logger.error(f"Auth event subscription on {self._channel} lost: {e}")

    async def close(self) -> None:
        await self._client.aclose()


@lru_cache()
def get_auth_events():
    """Process-wide auth event bus for the configured backend."""
    settings = get_settings()
    if settings.AUTH_EVENTS_BACKEND == "redis":
        logger.info("Using Redis auth event bus")
        return RedisAuthEvents(settings.REDIS_URL, settings.AUTH_EVENTS_CHANNEL)
    return InMemoryAuthEvents()
