"""
Redis cache for the storefront catalog.

Only the sellable-games listing is cached, under "catalog:games:list". It is
the landing query and loads every game with its images and rules, while the
catalog itself only changes when it is seeded or edited out of band. The
seed command clears "catalog:*"; the TTL bounds staleness for edits made
any other way.

Availability and reservations are never cached. A stale count would only
invite reservation attempts that are bound to fail, and the reservation
service recounts inside its own transaction regardless.

Redis is advisory. When it is disabled or unreachable every lookup is a
miss and the database answers.
"""

import json
from typing import Any, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from gamerent.core.config import get_settings
from gamerent.core.logging import get_logger
from gamerent.core.metrics import record_cache_operation, redis_connection_errors

logger = get_logger(__name__)
settings = get_settings()

CATALOG_PREFIX = "catalog:"
GAME_LIST_KEY = f"{CATALOG_PREFIX}games:list"

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Shared client, connected lazily. None when caching is off or Redis is down."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None
    if _redis_client is not None:
        return _redis_client

    client = redis.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
        retry_on_timeout=True,
    )
    try:
        await client.ping()
    except (RedisError, OSError) as e:
        redis_connection_errors.inc()
        logger.error("redis_connection_failed", url=settings.REDIS_URL, error=str(e))
        await client.aclose()
        return None

    logger.info("redis_connected", url=settings.REDIS_URL)
    _redis_client = client
    return _redis_client


async def close_redis() -> None:
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


async def _read_json(key: str) -> Optional[Any]:
    client = await get_redis()
    if client is None:
        return None

    try:
        raw = await client.get(key)
    except RedisError as e:
        logger.error("cache_get_error", key=key, error=str(e))
        return None

    record_cache_operation("get", hit=raw is not None)
    if raw is None:
        logger.debug("cache_miss", key=key)
        return None

    try:
        value = json.loads(raw)
    except ValueError:
        logger.warning("cache_payload_corrupt", key=key)
        return None
    logger.debug("cache_hit", key=key)
    return value


async def _write_json(key: str, value: Any, ttl: int) -> None:
    client = await get_redis()
    if client is None:
        return

    try:
        await client.setex(key, ttl, json.dumps(value, default=str))
    except RedisError as e:
        logger.error("cache_set_error", key=key, error=str(e))
        return
    logger.debug("cache_set", key=key, ttl=ttl)


async def get_cached_games() -> Optional[dict]:
    """The cached listing payload, or None on a miss."""
    return await _read_json(GAME_LIST_KEY)


async def set_cached_games(data: dict) -> None:
    await _write_json(GAME_LIST_KEY, data, settings.REDIS_CACHE_TTL)


async def invalidate_catalog_cache() -> int:
    """Drop every catalog key. Returns how many were deleted."""
    client = await get_redis()
    if client is None:
        return 0

    keys = []
    try:
        async for key in client.scan_iter(match=f"{CATALOG_PREFIX}*", count=100):
            keys.append(key)
        if keys:
            await client.delete(*keys)
    except RedisError as e:
        logger.error("cache_invalidation_error", error=str(e))
        return 0

    logger.info("cache_invalidated", keys_deleted=len(keys))
    return len(keys)


async def get_cache_stats() -> dict:
    """Server-side hit/miss counters for /health."""
    client = await get_redis()
    if client is None:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
    except RedisError as e:
        return {"status": "error", "error": str(e)}

    hits = info.get("keyspace_hits", 0)
    misses = info.get("keyspace_misses", 0)
    return {
        "status": "connected",
        "hits": hits,
        "misses": misses,
        "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
    }
