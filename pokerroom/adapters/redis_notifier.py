"""Redis pub/sub adapter for change notifications."""

import asyncio
import logging
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from pokerroom.core.exceptions import TransportError
from pokerroom.ports.change_notifier import ChangeCallback, ChangeNotifier, Unsubscribe

logger = logging.getLogger(__name__)


class RedisChangeNotifier(ChangeNotifier):
    """Redis implementation of change notifier.

    Every room gets its own channel ``room:{code}``; the payload is the
    changed entity tag.
    """

    def __init__(self, redis_url: str):
        self.redis_url = redis_url
        self._client: Optional[redis.Redis] = None

    def _get_client(self) -> redis.Redis:
        """Get or create Redis client."""
        if self._client is None:
            self._client = redis.from_url(self.redis_url, decode_responses=True)
        return self._client

    @staticmethod
    def _make_channel(room_code: str) -> str:
        return f"room:{room_code}"

    async def publish(self, room_code: str, entity: str) -> None:
        client = self._get_client()
        try:
            await client.publish(self._make_channel(room_code), entity)
        except RedisError as e:
            raise TransportError(f"Cannot publish change for room {room_code}: {e}") from e

    async def subscribe(self, room_code: str, on_change: ChangeCallback) -> Unsubscribe:
        client = self._get_client()
        pubsub = client.pubsub()
        channel = self._make_channel(room_code)
        try:
            await pubsub.subscribe(channel)
        except RedisError as e:
            await pubsub.aclose()
            raise TransportError(f"Cannot subscribe to room {room_code}: {e}") from e

        task = asyncio.create_task(self._listen(pubsub, room_code, on_change))

        async def unsubscribe() -> None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            try:
                await pubsub.unsubscribe(channel)
            except RedisError as e:
                logger.warning("Failed to unsubscribe from %s: %s", channel, e)
            await pubsub.aclose()

        return unsubscribe

    async def _listen(self, pubsub, room_code: str, on_change: ChangeCallback) -> None:
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                try:
                    on_change(message.get("data") or "")
                except Exception as e:
                    logger.error("Change subscriber for room %s failed: %s", room_code, e)
        except RedisError as e:
            logger.error("Redis subscription for room %s dropped: %s", room_code, e)

    async def close(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.aclose()
            self._client = None
