"""
Redis client singleton for the platform signer sequencing guard.
Only created when mint sequencing is enabled.
"""
import redis
from typing import Optional
import logging
from nowink.core.config import get_settings

logger = logging.getLogger(__name__)

# Global Redis client instance
_redis_client: Optional[redis.Redis] = None


def get_redis_client() -> redis.Redis:
    """
    Get or create the Redis client singleton.

    Returns:
        Redis client instance

    Raises:
        redis.ConnectionError: If unable to connect to Redis
    """
    global _redis_client

    if _redis_client is None:
        settings = get_settings()

        try:
            logger.info(
                f"Initializing Redis connection to {settings.redis_host}:{settings.redis_port}"
            )

            pool = redis.ConnectionPool(
                host=settings.redis_host,
                port=settings.redis_port,
                db=settings.redis_db,
                password=settings.redis_password,
                decode_responses=True,
                max_connections=4,
                socket_connect_timeout=5,
                socket_timeout=5,
            )

            client = redis.Redis(connection_pool=pool)
            client.ping()
            _redis_client = client

            logger.info("Redis connection established successfully")

        except redis.ConnectionError as e:
            logger.error(f"Failed to connect to Redis: {e}")
            raise

    return _redis_client


def close_redis_client() -> None:
    """Close the Redis client connection, if one was opened."""
    global _redis_client

    if _redis_client is not None:
        try:
            _redis_client.close()
            logger.info("Redis connection closed")
        except redis.RedisError as e:
            logger.error(f"Error closing Redis connection: {e}")
        finally:
            _redis_client = None
