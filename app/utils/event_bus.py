import json
import logging
from typing import Optional, Protocol

import redis.asyncio as redis

logger = logging.getLogger(__name__)


class EventPublisher(Protocol):
    """Handle the room services publish lifecycle events through."""

    async def publish(self, event_type: str, payload: dict) -> None:
        ...


class RedisEventBus:
    """
    Publishes room lifecycle events on a Redis Pub/Sub channel. Downstream
    consumers (websocket broadcasters, other instances) subscribe to the
    channel; this class never listens. Created once per process.
    """

    def __init__(self, redis_url: str, channel: str):
        self.redis_url = redis_url
        self.channel = channel
        self.redis_client: Optional[redis.Redis] = None

    async def init_redis(self):
        """Connects to Redis and checks the connection."""
        try:
            logger.info("Connecting event bus to Redis at %s", self.redis_url)
            self.redis_client = redis.from_url(
                self.redis_url, encoding="utf-8", decode_responses=True
            )
            await self.redis_client.ping()
            logger.info("Event bus connected to Redis.")
        except Exception:
            logger.critical("Failed to connect event bus to Redis", exc_info=True)
            raise

    async def close(self):
        if self.redis_client:
            await self.redis_client.aclose()
        logger.info("Event bus closed.")

    async def publish(self, event_type: str, payload: dict) -> None:
        """Publishes ``{"type": event_type, "data": payload}`` to the events channel."""
        if self.redis_client is None:
            raise RuntimeError("Event bus is not connected to Redis")
        message = json.dumps({"type": event_type, "data": payload}, default=str)
        await self.redis_client.publish(self.channel, message)
