import redis.asyncio as redis
from functools import lru_cache
from src.infra.config.settings import settings
from src.core.logger.logger import logger

@lru_cache()
def get_redis_pool(redis_url: str = None) -> redis.ConnectionPool:
    """Get Redis connection pool for a URL (cached); step stores rely on decoded str responses"""
    return redis.ConnectionPool.from_url(
        redis_url or settings.REDIS_URL,
        decode_responses=True,
        max_connections=settings.REDIS_MAX_CONNECTIONS
    )

async def get_redis(redis_url: str = None) -> redis.Redis:
    """Get a Redis client from the pool, verifying the server answers"""
    pool = get_redis_pool(redis_url)
    redis_client = redis.Redis(connection_pool=pool)
    try:
        await redis_client.ping()
    except redis.RedisError as e:
        logger.error("Failed to connect to Redis", extra={"error": str(e)})
        raise
    logger.info("Connected to Redis successfully")
    return redis_client
