"""Redis Pub/Sub event bus for CRM domain events (implements IEventBus).

Domain events (entity.created, entity.stage_changed, entity.updated) are
JSON objects published by the CRM core. One listener task reads every
subscribed channel and awaits the registered handlers in order; handlers
are expected to return quickly (the trigger dispatcher only looks up
workflows and spawns tasks). Delivery is at-least-once from the engine's
point of view: a duplicated event simply re-evaluates its workflows.
Events published while the listener is resubscribing are not received.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections import defaultdict
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import redis.asyncio as redis
from redis.asyncio.client import PubSub

if TYPE_CHECKING:
    from app.application.interfaces.services import EventHandler, Sleeper
    from app.core.config import Settings

logger = logging.getLogger(__name__)


class RedisEventBus:
    """Publishes and listens to domain events on Redis channels.

    subscribe() only records handlers; start() opens the subscription and
    spawns the listener, stop() cancels it. A listener that loses its
    subscription resubscribes with backoff before giving up. Channel names
    are prefixed with settings.event_channel_prefix on the wire.
    """

    def __init__(
        self,
        settings: Settings,
        redis_client: redis.Redis | None = None,
        *,
        sleep: Sleeper | None = None,
    ) -> None:
        """Initialize. Pass redis_client (and sleep) for DI/testing."""
        self.settings = settings
        self.redis = redis_client
        self._connected = redis_client is not None
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)
        self._listener: asyncio.Task[None] | None = None
        self._sleep = sleep or asyncio.sleep
        self._on_listener_lost: Callable[[], None] | None = None

    async def connect(self) -> None:
        """Establish Redis connection. Call on startup."""
        if self._connected or not self.settings.redis_enabled:
            return
        password = self.settings.redis_password
        client = redis.Redis(
            host=self.settings.redis_host,
            port=self.settings.redis_port,
            db=self.settings.redis_db,
            password=password.get_secret_value() if password else None,
            decode_responses=True,
            socket_connect_timeout=5,
        )
        try:
            await client.ping()
        except (redis.ConnectionError, redis.TimeoutError) as e:
            logger.warning("Redis event bus connection failed: %s", e)
            await client.aclose()
            return
        self.redis = client
        self._connected = True
        logger.info("Redis event bus connected")

    async def disconnect(self) -> None:
        """Stop listening and close the Redis connection."""
        await self.stop()
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            self._connected = False
            logger.info("Redis event bus disconnected")

    def is_available(self) -> bool:
        """Return True if Redis is connected."""
        return self._connected and self.redis is not None

    def _wire_channel(self, channel: str) -> str:
        return f"{self.settings.event_channel_prefix}{channel}"

    def _logical_channel(self, wire_channel: str) -> str:
        prefix = self.settings.event_channel_prefix
        if prefix and wire_channel.startswith(prefix):
            return wire_channel[len(prefix):]
        return wire_channel

    def on_listener_lost(self, callback: Callable[[], None]) -> None:
        """Call callback once the listener gives up resubscribing."""
        self._on_listener_lost = callback

    def subscribe(self, channel: str, handler: EventHandler) -> None:
        """Register handler for channel. Takes effect at the next start()."""
        self._handlers[channel].append(handler)

    async def publish(self, channel: str, payload: dict[str, Any]) -> bool:
        """Publish payload as JSON.

        Returns:
            True if published, False if Redis unavailable or the publish failed.
        """
        if not self.is_available() or self.redis is None:
            logger.debug("Redis not available, skipping publish to %s", channel)
            return False
        try:
            await self.redis.publish(
                self._wire_channel(channel), json.dumps(payload, default=str)
            )
        except redis.RedisError:
            logger.exception("Failed to publish to %s", channel)
            return False
        logger.debug("Published event to %s", channel)
        return True

    async def deliver(self, channel: str, raw: str | bytes) -> None:
        """Decode one message and await every handler of channel.

        A malformed message or a failing handler is logged and skipped so the
        listener keeps running.
        """
        try:
            payload = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.warning("Dropping malformed event on %s", channel)
            return
        if not isinstance(payload, dict):
            logger.warning("Dropping non-object event on %s", channel)
            return
        for handler in list(self._handlers.get(channel, ())):
            try:
                await handler(payload)
            except Exception:
                logger.exception("Event handler failed for %s", channel)

    async def _subscribe(self) -> PubSub:
        pubsub = self.redis.pubsub()
        channels = [self._wire_channel(c) for c in self._handlers]
        try:
            await pubsub.subscribe(*channels)
        except redis.RedisError:
            await pubsub.aclose()
            raise
        logger.info("Subscribed to %s", ", ".join(channels))
        return pubsub

    async def start(self) -> None:
        """Subscribe to every channel with handlers and spawn the listener task."""
        if self._listener is not None and not self._listener.done():
            return
        if not self.is_available() or self.redis is None:
            logger.warning("Redis not available, domain events will not be received")
            return
        if not self._handlers:
            logger.warning("Event bus started without subscriptions")
            return
        pubsub = await self._subscribe()
        self._listener = asyncio.create_task(
            self._run(pubsub), name="event-bus-listener"
        )

    async def _run(self, pubsub: PubSub) -> None:
        """Listen; after a Redis error resubscribe with exponential backoff.

        When event_bus_reconnect_attempts consecutive resubscribes fail the
        listener gives up and calls the on_listener_lost callback.
        """
        attempts = self.settings.event_bus_reconnect_attempts
        backoff = self.settings.event_bus_reconnect_backoff_seconds
        while True:
            try:
                await self._listen(pubsub)
                return
            except redis.RedisError:
                logger.exception("Event bus listener stopped on Redis error")
            for attempt in range(1, attempts + 1):
                delay = backoff * 2 ** (attempt - 1)
                logger.warning(
                    "Resubscribing to domain events in %.1fs (attempt %d/%d)",
                    delay,
                    attempt,
                    attempts,
                )
                await self._sleep(delay)
                try:
                    pubsub = await self._subscribe()
                except redis.RedisError as e:
                    logger.warning("Resubscribe attempt %d failed: %s", attempt, e)
                    continue
                break
            else:
                logger.error(
                    "Event bus listener lost after %d reconnect attempts", attempts
                )
                if self._on_listener_lost is not None:
                    self._on_listener_lost()
                return

    async def _listen(self, pubsub: PubSub) -> None:
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                channel = message.get("channel")
                if isinstance(channel, bytes):
                    channel = channel.decode()
                await self.deliver(self._logical_channel(channel or ""), message["data"])
        except asyncio.CancelledError:
            logger.info("Event bus listener cancelled")
            raise
        finally:
            try:
                await pubsub.unsubscribe()
            except redis.RedisError:
                logger.debug("Unsubscribe failed on a broken connection")
            await pubsub.aclose()

    async def stop(self) -> None:
        """Cancel the listener task (if running) and wait for it to finish."""
        listener, self._listener = self._listener, None
        if listener is None:
            return
        listener.cancel()
        try:
            await listener
        except asyncio.CancelledError:
            pass
