"""Messaging: Redis pub/sub event bus for CRM domain events."""

from app.infrastructure.messaging.redis_pubsub import RedisEventBus

__all__ = [
    "RedisEventBus",
]
