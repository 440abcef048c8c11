from fastapi import HTTPException
from powdercoat.core.redis import get_redis
from powdercoat.core.config import settings
from powdercoat.core.metrics import rate_limit_exceeded

async def check_rate_limit(user_id: int):
    redis = get_redis()
    key = f"rl:{user_id}"
    current = await redis.get(key)
    if current is None:
        await redis.set(key, "1", ex=settings.RATE_LIMIT_WINDOW)
        return
    count = int(current)
    if count >= settings.RATE_LIMIT:
        rate_limit_exceeded.inc()
        raise HTTPException(status_code=429, detail="Rate limit exceeded")
    await redis.incr(key)
