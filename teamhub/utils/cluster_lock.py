# -*- coding: utf-8 -*-
"""Location: ./teamhub/utils/cluster_lock.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Cluster-wide named locks.

A ``ClusterLock`` is a handle on a named advisory lock. Each handle carries
its own owner token, so only the handle that acquired a lock can see it as
held or release it. Acquisition waits indefinitely, polling the store, and
aborts with ``LockInterruptedError`` when the handle (or every waiter of a
provider) is interrupted.

Two stores are available:

- ``RedisLockStore``: ``SET NX PX`` to acquire, Lua compare-and-delete to
  release, Lua compare-and-pexpire to renew. Visible to every instance that
  shares the Redis server. A keep-alive task renews the lease while held.
- ``LocalLockStore``: the same contract inside a single process, used only
  when Redis is not the configured backend.

When Redis is configured but unreachable, ``get_lock_provider`` raises
``LockUnavailableError`` rather than degrading to a process-local lock,
and retries the connection on the next call.

Examples:
    >>> import asyncio
    >>> provider = ClusterLockProvider(LocalLockStore(), lease_seconds=30, poll_interval=0.01)
    >>> async def demo():
    ...     lock = provider.get_lock("demo")
    ...     await lock.acquire()
    ...     held = await lock.is_held()
    ...     other = await provider.get_lock("demo").is_held()
    ...     released = await lock.release()
    ...     return held, other, released
    >>> asyncio.run(demo())
    (True, False, True)
"""

# Standard
import asyncio
import logging
import threading
from typing import Any, Dict, Optional, Set
import uuid

# First-Party
from teamhub.config import settings
from teamhub.utils.redis_client import get_redis_client

logger = logging.getLogger(__name__)


class LockInterruptedError(Exception):
    """Raised when a lock wait is interrupted before the lock was acquired.

    Examples:
        >>> str(LockInterruptedError("Interrupted while waiting for lock 'x'"))
        "Interrupted while waiting for lock 'x'"
    """


class LockUnavailableError(Exception):
    """Raised when the configured lock backend cannot be reached.

    Examples:
        >>> isinstance(LockUnavailableError("Redis down"), Exception)
        True
    """


class LocalLockStore:
    """Process-local lock store."""

    supports_lease = False

    def __init__(self) -> None:
        self._owners: Dict[str, str] = {}
        self._guard = threading.Lock()

    async def try_acquire(self, name: str, token: str, lease_ms: int) -> bool:
        with self._guard:
            if name in self._owners:
                return False
            self._owners[name] = token
            return True

    async def get_owner(self, name: str) -> Optional[str]:
        with self._guard:
            return self._owners.get(name)

    async def release(self, name: str, token: str) -> bool:
        with self._guard:
            if self._owners.get(name) != token:
                return False
            del self._owners[name]
            return True

    async def renew(self, name: str, token: str, lease_ms: int) -> bool:
        return await self.get_owner(name) == token


class RedisLockStore:
    """Redis lock store shared by every service instance."""

    supports_lease = True

    # Only delete/extend the key if we still own it
    _RELEASE_SCRIPT = """
    if redis.call("get", KEYS[1]) == ARGV[1] then
        return redis.call("del", KEYS[1])
    else
        return 0
    end
    """
    _RENEW_SCRIPT = """
    if redis.call("get", KEYS[1]) == ARGV[1] then
        return redis.call("pexpire", KEYS[1], ARGV[2])
    else
        return 0
    end
    """

    def __init__(self, client: Any) -> None:
        self._client = client

    async def try_acquire(self, name: str, token: str, lease_ms: int) -> bool:
        return bool(await self._client.set(name, token, nx=True, px=lease_ms))

    async def get_owner(self, name: str) -> Optional[str]:
        value = await self._client.get(name)
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def release(self, name: str, token: str) -> bool:
        return bool(await self._client.eval(self._RELEASE_SCRIPT, 1, name, token))

    async def renew(self, name: str, token: str, lease_ms: int) -> bool:
        return bool(await self._client.eval(self._RENEW_SCRIPT, 1, name, token, lease_ms))


class ClusterLock:
    """Handle on a named lock, owned by whoever acquires through it."""

    def __init__(self, name: str, store: Any, lease_seconds: int, poll_interval: float, waiters: Optional[Set["ClusterLock"]] = None):
        """Create a handle. Use :meth:`ClusterLockProvider.get_lock` instead of calling this directly.

        Args:
            name: Lock key.
            store: Backing lock store.
            lease_seconds: Lease applied by stores that expire keys.
            poll_interval: Seconds between acquisition attempts.
            waiters: Provider-owned set of handles currently waiting.
        """
        self.name = name
        self.token = uuid.uuid4().hex
        self._store = store
        self._lease_ms = lease_seconds * 1000
        self._poll_interval = poll_interval
        self._waiters = waiters if waiters is not None else set()
        self._interrupted = threading.Event()
        self._keep_alive_task: Optional[asyncio.Task] = None

    async def acquire(self) -> None:
        """Wait, without timeout, until the lock is acquired.

        Raises:
            LockInterruptedError: If :meth:`interrupt` is called before the lock is acquired.
        """
        self._waiters.add(self)
        try:
            while True:
                if self._interrupted.is_set():
                    self._interrupted.clear()
                    raise LockInterruptedError(f"Interrupted while waiting for lock '{self.name}'")
                if await self._store.try_acquire(self.name, self.token, self._lease_ms):
                    break
                await asyncio.sleep(self._poll_interval)
        finally:
            self._waiters.discard(self)

        logger.debug(f"Acquired lock {self.name} ({self.token[:8]})")
        if self._store.supports_lease:
            self._keep_alive_task = asyncio.create_task(self._keep_alive())

    def interrupt(self) -> None:
        """Abort a pending (or the next) :meth:`acquire` on this handle. Thread-safe."""
        self._interrupted.set()

    async def is_held(self) -> bool:
        """Whether this handle currently owns the lock.

        Returns:
            bool: True if the stored owner token is this handle's token.
        """
        return await self._store.get_owner(self.name) == self.token

    async def release(self) -> bool:
        """Release the lock if this handle owns it.

        Returns:
            bool: True if the lock was released, False if it was not held by this handle.
        """
        self._stop_keep_alive()
        released = await self._store.release(self.name, self.token)
        if released:
            logger.debug(f"Released lock {self.name} ({self.token[:8]})")
        else:
            logger.warning(f"Lock {self.name} was not held by {self.token[:8]}; nothing released")
        return released

    async def _keep_alive(self) -> None:
        interval = max(self._lease_ms / 3000, self._poll_interval)
        while True:
            await asyncio.sleep(interval)
            try:
                if not await self._store.renew(self.name, self.token, self._lease_ms):
                    logger.warning(f"Lost lock {self.name} ({self.token[:8]}) before release")
                    return
            except Exception as e:
                logger.warning(f"Failed to renew lock {self.name}: {e}")

    def _stop_keep_alive(self) -> None:
        if self._keep_alive_task is not None:
            self._keep_alive_task.cancel()
            self._keep_alive_task = None

    async def __aenter__(self) -> "ClusterLock":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if await self.is_held():
            await self.release()


class ClusterLockProvider:
    """Factory for lock handles over one store."""

    def __init__(self, store: Any, lease_seconds: Optional[int] = None, poll_interval: Optional[float] = None):
        self.store = store
        self.lease_seconds = lease_seconds or settings.lock_lease_seconds
        self.poll_interval = poll_interval or settings.lock_poll_interval
        self._waiters: Set[ClusterLock] = set()

    def get_lock(self, name: str) -> ClusterLock:
        """Return a new handle on ``name``.

        Args:
            name: Lock key.

        Returns:
            ClusterLock: A fresh handle with its own owner token.
        """
        return ClusterLock(name, self.store, self.lease_seconds, self.poll_interval, self._waiters)

    def interrupt_waiters(self) -> int:
        """Interrupt every handle currently waiting to acquire.

        Returns:
            int: Number of handles interrupted.
        """
        waiting = list(self._waiters)
        for lock in waiting:
            lock.interrupt()
        if waiting:
            logger.info(f"Interrupted {len(waiting)} lock waiter(s)")
        return len(waiting)


_provider: Optional[ClusterLockProvider] = None


async def get_lock_provider() -> ClusterLockProvider:
    """Get or create the process-wide lock provider.

    Uses Redis when ``cache_type`` is ``redis``, otherwise a process-local store.

    Returns:
        ClusterLockProvider: The shared provider.

    Raises:
        LockUnavailableError: If Redis is configured but cannot be reached. Nothing
            is cached, so a later call connects once Redis is back.
    """
    global _provider

    if _provider is None:
        if settings.cache_type != "redis":
            _provider = ClusterLockProvider(LocalLockStore())
            logger.warning("Redis not configured: cluster locks are process-local and do not span instances")
            return _provider

        client = await get_redis_client()
        if client is None:
            raise LockUnavailableError("Redis is configured for cluster locks but is unreachable")
        _provider = ClusterLockProvider(RedisLockStore(client))
        logger.info("Cluster locks backed by Redis")
    return _provider


def _reset_provider() -> None:
    """Reset provider state (for testing only)."""
    global _provider
    _provider = None
