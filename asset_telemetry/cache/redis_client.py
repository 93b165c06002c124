"""
Redis client and per-asset lock.

Provides a helper for creating Redis connections and an async context
manager that serialises live retrievals of the same asset across API
workers. The lock is best-effort with respect to Redis availability: if Redis
cannot be reached the failure is logged and the caller proceeds, relying on
the optimistic version check on Asset saves. A lock that is *held* by
another request is not best-effort: the caller waits up to the configured
time and then gets a ConcurrentUpdateError.

CHANGELOG:
- 2026-10-11: Close the client when the request is cancelled mid-acquire (STORY-111)
- 2026-10-09: Replace device cache invalidation with asset_lock (STORY-108)
- 2026-10-05: Initial creation (STORY-101)
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import redis.asyncio as redis

from asset_telemetry.config import get_settings
from asset_telemetry.errors import ConcurrentUpdateError

logger = logging.getLogger(__name__)


async def get_redis() -> redis.Redis:
    """Create and return an async Redis client from service settings.

    Returns:
        redis.Redis: Async Redis client.
    """
    return redis.from_url(get_settings().redis_url)


def asset_lock_key(tenant_id: str, asset_id: str) -> str:
    """Redis key of the retrieval lock for one asset."""
    return f"asset-lock:{tenant_id}:{asset_id}"


@asynccontextmanager
async def asset_lock(
    tenant_id: str,
    asset_id: str,
    *,
    ttl_s: float,
    wait_s: float,
) -> AsyncIterator[None]:
    """Hold the retrieval lock of an asset for the duration of the block.

    Args:
        tenant_id: Owning tenant of the asset.
        asset_id: The asset to lock.
        ttl_s: Lock expiry, so a crashed holder cannot block forever.
        wait_s: How long to wait for a lock held by someone else.

    Raises:
        ConcurrentUpdateError: If the lock is still held after ``wait_s``.
    """
    key = asset_lock_key(tenant_id, asset_id)
    client: redis.Redis | None = None
    try:
        lock = None
        try:
            client = await get_redis()
            lock = client.lock(key, timeout=ttl_s, blocking_timeout=wait_s)
            acquired = await lock.acquire()
        except Exception:
            logger.warning(
                "Asset lock %s unavailable, continuing without it",
                key,
                exc_info=True,
            )
            lock = None
            acquired = True

        if not acquired:
            raise ConcurrentUpdateError(
                f"Asset ID '{asset_id}' is already being updated, try again later",
                detailed_messages={"lock": key, "waitS": wait_s},
            )
        try:
            yield
        finally:
            if lock is not None:
                try:
                    await lock.release()
                except Exception:
                    logger.warning("Failed to release asset lock %s", key, exc_info=True)
    finally:
        if client is not None:
            await client.aclose()
