"""
Redis Connection Module

Creates the asynchronous Redis client that backs the lifecycle event stream.
The client is created once at startup and closed on shutdown.

**Security Note**: Use a `rediss://` URL when Redis is reached over an
untrusted network, and never log the URL since it may embed a password.
"""

from redis.asyncio import Redis
from structlog import get_logger

logger = get_logger(__name__)


def create_redis_client(redis_url: str) -> Redis:
    """
    Provides an asynchronous Redis client.

    The connection is opened lazily on the first command.
    """
    redis = Redis.from_url(redis_url, encoding="utf-8", decode_responses=True)
    logger.debug("Redis client created")
    return redis


async def close_redis_client(redis: Redis) -> None:
    await redis.aclose()
    logger.debug("Redis connection closed")
