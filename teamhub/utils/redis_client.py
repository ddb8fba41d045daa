# -*- coding: utf-8 -*-
"""Location: ./teamhub/utils/redis_client.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Shared Redis client.
One lazily created ``redis.asyncio`` client per process, reused by the
cluster lock store. Returns None when Redis is not the configured backend
or cannot be reached. A failed connection is not cached: the next call
tries again.

Usage:
    from teamhub.utils.redis_client import get_redis_client, close_redis_client

    client = await get_redis_client()
    if client:
        await client.set("key", "value")

    await close_redis_client()
"""

# Standard
import logging
from typing import Any, Optional

# Third-Party
import redis.asyncio as aioredis

logger = logging.getLogger(__name__)

_client: Optional[Any] = None
_initialized: bool = False


async def get_redis_client() -> Optional[Any]:
    """Get or create the shared async Redis client.

    Returns:
        Optional[Redis]: Async Redis client, or None if Redis is disabled/unavailable.

    Examples:
        >>> import asyncio
        >>> from teamhub.config import settings
        >>> original = settings.cache_type
        >>> settings.cache_type = "memory"
        >>> _reset_client()
        >>> asyncio.run(get_redis_client()) is None
        True
        >>> settings.cache_type = original
        >>> _reset_client()
    """
    global _client, _initialized

    if _initialized:
        return _client

    # First-Party
    from teamhub.config import settings

    if settings.cache_type != "redis" or not settings.redis_url:
        logger.info("Redis disabled (cache_type != 'redis' or no redis_url)")
        _initialized = True
        return None

    try:
        _client = aioredis.from_url(
            settings.redis_url,
            decode_responses=settings.redis_decode_responses,
            max_connections=settings.redis_max_connections,
            socket_timeout=settings.redis_socket_timeout,
            socket_connect_timeout=settings.redis_socket_connect_timeout,
            retry_on_timeout=settings.redis_retry_on_timeout,
            health_check_interval=settings.redis_health_check_interval,
            encoding="utf-8",
        )
        await _client.ping()
        logger.info(f"Redis client initialized: pool_size={settings.redis_max_connections}, timeout={settings.redis_socket_timeout}s")
    except Exception as e:
        # Left uninitialized so the next call retries the connection
        logger.warning(f"Failed to connect to Redis: {e}")
        _client = None
        return None

    _initialized = True
    return _client


async def close_redis_client() -> None:
    """Close the shared Redis client and release connections."""
    global _client, _initialized

    if _client:
        try:
            await _client.aclose()
            logger.info("Redis client closed")
        except Exception as e:
            logger.warning(f"Error closing Redis client: {e}")

    _client = None
    _initialized = False


def get_redis_client_sync() -> Optional[Any]:
    """Get the cached Redis client without initializing it.

    Returns:
        Optional[Redis]: The cached Redis client, or None if not initialized.
    """
    return _client


async def is_redis_available() -> bool:
    """Check if Redis is available and connected.

    Returns:
        bool: True if Redis is available and responding to ping.
    """
    client = await get_redis_client()
    if not client:
        return False
    try:
        await client.ping()
        return True
    except Exception:
        return False


def _reset_client() -> None:
    """Reset client state (for testing only)."""
    global _client, _initialized
    _client = None
    _initialized = False
