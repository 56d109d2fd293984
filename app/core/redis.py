from __future__ import annotations

import logging

import redis

from .config import settings

logger = logging.getLogger(__name__)

_redis_client: redis.Redis | None = None
_redis_available = False
_redis_initialized = False


def _initialize_redis() -> None:
    """Initialize Redis connection if configured."""
    global _redis_client, _redis_available, _redis_initialized

    if _redis_initialized:
        return

    _redis_initialized = True

    redis_url = settings.REDIS_URL

    # Skip Redis if URL is empty or explicitly disabled
    if not redis_url or redis_url.lower() in ("none", "disabled"):
        logger.info("Redis is not configured. Login throttling and refresh token rotation are disabled.")
        _redis_available = False
        return

    try:
        _redis_client = redis.Redis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
            retry_on_timeout=False,
        )
        _redis_client.ping()
        _redis_available = True
        logger.info("Redis connection established successfully")
    except redis.RedisError as e:
        logger.warning("Redis not available: %s. Login throttling and refresh token rotation are disabled.", e)
        _redis_available = False
        _redis_client = None


def get_redis_client() -> redis.Redis | None:
    """Get Redis client if available, otherwise return None."""
    _initialize_redis()
    if not _redis_available:
        return None
    return _redis_client


def is_redis_available() -> bool:
    """Check if Redis is available."""
    _initialize_redis()
    return _redis_available
