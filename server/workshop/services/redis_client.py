"""Redis client for the customer lookup cache.

The cache is optional: when Redis is not configured or unreachable every
helper degrades to a cache miss and the database is used directly.
"""

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional

import redis.asyncio as redis

from workshop.config import settings

logger = logging.getLogger(__name__)

redis_client: Optional[redis.Redis] = None

CUSTOMER_PREFIX = "customer:"

# Upper bound for a single cache round trip, in seconds
REDIS_TIMEOUT = 2.0

_MISS = object()


async def init_redis():
    """Connect to ``REDIS_URL`` and ping it.

    Raises:
        Exception: If the server cannot be reached; the client is left unset
    """
    global redis_client
    client = redis.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True,
        max_connections=20,
        socket_connect_timeout=5,
        socket_keepalive=True,
    )
    try:
        await client.ping()
    except Exception as e:
        logger.error(f"Failed to initialize Redis connection: {e}")
        await client.aclose()
        redis_client = None
        raise Exception(f"Redis connection initialization failed: {e}") from e

    redis_client = client
    logger.info("Redis connection initialized and validated")


async def close_redis():
    """Close Redis connection."""
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None
        logger.info("Redis connection closed")


def _customer_key(phone: str) -> str:
    return f"{CUSTOMER_PREFIX}{phone}"


async def _bounded(action: str, call: Callable[[redis.Redis], Awaitable[Any]]) -> Any:
    """Run one cache call under ``REDIS_TIMEOUT``; ``_MISS`` on any failure."""
    if redis_client is None:
        logger.debug(f"Redis not initialized, skipping {action}")
        return _MISS

    try:
        return await asyncio.wait_for(call(redis_client), timeout=REDIS_TIMEOUT)
    except asyncio.TimeoutError:
        logger.error(f"Timeout during {action}")
    except Exception as e:
        logger.error(f"Error during {action}: {e}")
    return _MISS


# ============================================================================
# Customer cache
# ============================================================================


async def cache_customer(phone: str, customer_data: dict, ttl: Optional[int] = None) -> bool:
    """Store a customer lookup result.

    Args:
        phone: Customer phone number as stored
        customer_data: JSON-serializable lookup result
        ttl: Seconds to keep the entry (default: ``CUSTOMER_CACHE_TTL``)

    Returns:
        True if the entry was written
    """
    ttl = ttl or settings.CUSTOMER_CACHE_TTL
    payload = json.dumps(
        {**customer_data, "cached_at": datetime.now(timezone.utc).isoformat()}, default=str
    )
    result = await _bounded(
        f"caching customer {phone}", lambda r: r.setex(_customer_key(phone), ttl, payload)
    )
    if result is _MISS:
        return False

    logger.info(f"Customer cached: {phone} (TTL: {ttl}s)")
    return True


async def get_cached_customer(phone: str) -> Optional[dict]:
    """Cached lookup result for ``phone``, or None on miss."""
    value = await _bounded(f"reading cached customer {phone}", lambda r: r.get(_customer_key(phone)))
    if value is _MISS or not value:
        logger.info(f"Customer cache miss: {phone}")
        return None

    logger.info(f"Customer cache hit: {phone}")
    return json.loads(value)


async def invalidate_customer_cache(phone: str) -> bool:
    """Drop the cached lookup for ``phone`` after the customer or a vehicle changed."""
    deleted = await _bounded(
        f"invalidating customer cache {phone}", lambda r: r.delete(_customer_key(phone))
    )
    if deleted is _MISS or not deleted:
        return False

    logger.info(f"Customer cache invalidated: {phone}")
    return True


async def check_redis_health() -> bool:
    """Test Redis connectivity."""
    if redis_client is None:
        return False
    return await _bounded("Redis health check", lambda r: r.ping()) is not _MISS
