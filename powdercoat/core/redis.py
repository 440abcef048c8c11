import json
import logging
from typing import Optional
from redis.asyncio import Redis
from powdercoat.core.config import settings

logger = logging.getLogger(__name__)

redis: Optional[Redis] = None

async def init_redis() -> Redis:
    global redis
    try:
        redis = Redis.from_url(settings.REDIS_URL, decode_responses=False)
        await redis.ping()
        logger.info("Connected to Redis")
        return redis
    except Exception as e:
        logger.error(f"Failed to connect to Redis: {e}")
        redis = None
        raise

async def close_redis():
    global redis
    if redis:
        await redis.close()
        redis = None

def redis_connected_now() -> bool:
    return redis is not None

def get_redis() -> Redis:
    if redis is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return redis


async def publish_change(table: str, event: str, row_id: int) -> None:
    """Best-effort row change event for subscribed sessions."""
    if redis is None:
        logger.debug(f"Change feed unavailable, dropping {event} on {table}:{row_id}")
        return
    channel = f"{settings.CHANGE_FEED_PREFIX}:{table}"
    try:
        await redis.publish(channel, json.dumps({"event": event, "id": row_id}))
    except Exception as e:
        logger.warning(f"Change feed publish failed on {channel}: {e}")
