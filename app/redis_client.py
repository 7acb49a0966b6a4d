import logging

import redis

from app.config import settings

logger = logging.getLogger(__name__)

# shared by the rate limiter and the readiness probe
redis_client = redis.Redis.from_url(settings.redis_url, decode_responses=True)

def redis_ping() -> bool:
    try:
        return bool(redis_client.ping())
    except redis.RedisError as e:
        logger.debug("redis ping failed: %s", e)
        return False
