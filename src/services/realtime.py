"""Real-time dashboard notifications using Redis pub/sub.

Events only tell subscribers that time cards changed; dashboards react by
refetching, so duplicate or out-of-order events are harmless.
"""

import json
import logging
from collections.abc import AsyncIterator
from datetime import UTC, date, datetime
from enum import StrEnum
from typing import TYPE_CHECKING

import redis
import redis.asyncio as aioredis

from src.config import get_settings

if TYPE_CHECKING:
    from redis.asyncio.client import PubSub

logger = logging.getLogger(__name__)

ALL_TIMECARDS_CHANNEL = "timecards:all"


class TimeCardEventType(StrEnum):
    """Event types for time card changes."""

    TIMECARD_CREATED = "timecard_created"
    TIMECARD_UPDATED = "timecard_updated"
    TIMECARD_DELETED = "timecard_deleted"


def employer_channel(employer_id: int) -> str:
    return f"timecards:employer:{employer_id}"


# Synchronous Redis client for use in API endpoints
_sync_redis: redis.Redis | None = None


def get_sync_redis() -> redis.Redis:
    """Get synchronous Redis client for publishing from API endpoints."""
    global _sync_redis
    if _sync_redis is None:
        _sync_redis = redis.from_url(get_settings().redis_url)
    return _sync_redis


def publish_timecard_event(
    event_type: TimeCardEventType,
    time_card_id: int,
    employee_id: int,
    employer_id: int,
    entry_date: date,
) -> None:
    """Publish a time card change to the employer's channel and the admin channel.

    Called from the time card service after a committed mutation. Failures are
    logged and swallowed; the mutation has already succeeded.
    """
    if not get_settings().realtime_enabled:
        return

    message = json.dumps(
        {
            "type": event_type,
            "timeCardId": time_card_id,
            "employeeId": employee_id,
            "employerId": employer_id,
            "date": entry_date.isoformat(),
            "timestamp": datetime.now(UTC).isoformat(),
        }
    )
    try:
        redis_client = get_sync_redis()
        for channel in (employer_channel(employer_id), ALL_TIMECARDS_CHANNEL):
            redis_client.publish(channel, message)
        logger.debug(f"Published {event_type} for time card {time_card_id}")
    except Exception as e:
        # Don't fail the request if pub/sub fails
        logger.error(f"Failed to publish time card event: {e}")


class RealtimeService:
    """Async Redis pub/sub service for WebSocket connections."""

    def __init__(self) -> None:
        self._redis: aioredis.Redis | None = None
        self._pubsub: PubSub | None = None

    async def _get_redis(self) -> aioredis.Redis:
        if self._redis is None:
            self._redis = aioredis.from_url(get_settings().redis_url)
        return self._redis

    async def subscribe(self, channel: str) -> AsyncIterator[dict]:
        """Subscribe to a Redis channel and yield messages."""
        redis_conn = await self._get_redis()
        self._pubsub = redis_conn.pubsub()
        await self._pubsub.subscribe(channel)

        try:
            async for message in self._pubsub.listen():
                if message["type"] == "message":
                    try:
                        yield json.loads(message["data"])
                    except json.JSONDecodeError:
                        logger.warning(f"Invalid JSON in pub/sub message: {message['data']}")
        finally:
            if self._pubsub:
                await self._pubsub.unsubscribe(channel)

    async def cleanup(self) -> None:
        """Clean up Redis connections."""
        if self._pubsub:
            await self._pubsub.close()
        if self._redis:
            await self._redis.close()
