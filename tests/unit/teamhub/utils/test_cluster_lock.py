# -*- coding: utf-8 -*-
"""Location: ./tests/unit/teamhub/utils/test_cluster_lock.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Tests for cluster lock handles, stores and the shared provider.
"""

# Standard
import asyncio
from unittest.mock import AsyncMock, patch

# Third-Party
import pytest

# First-Party
from teamhub.config import settings
from teamhub.utils import cluster_lock
from teamhub.utils.cluster_lock import ClusterLockProvider, get_lock_provider, LocalLockStore, LockInterruptedError, LockUnavailableError, RedisLockStore


@pytest.fixture
def provider():
    return ClusterLockProvider(LocalLockStore(), lease_seconds=1, poll_interval=0.005)


class TestClusterLock:
    @pytest.mark.asyncio
    async def test_handles_have_distinct_tokens(self, provider):
        assert provider.get_lock("a").token != provider.get_lock("a").token

    @pytest.mark.asyncio
    async def test_only_acquiring_handle_holds(self, provider):
        first, second = provider.get_lock("a"), provider.get_lock("a")

        await first.acquire()

        assert await first.is_held() is True
        assert await second.is_held() is False
        assert await second.release() is False
        assert await first.is_held() is True
        assert await first.release() is True
        assert await first.is_held() is False

    @pytest.mark.asyncio
    async def test_waiter_acquires_after_release(self, provider):
        first, second = provider.get_lock("a"), provider.get_lock("a")
        await first.acquire()

        waiter = asyncio.create_task(second.acquire())
        await asyncio.sleep(0.03)
        assert not waiter.done()

        await first.release()
        await asyncio.wait_for(waiter, timeout=1)
        assert await second.is_held() is True
        await second.release()

    @pytest.mark.asyncio
    async def test_distinct_names_do_not_contend(self, provider):
        a, b = provider.get_lock("a"), provider.get_lock("b")

        await a.acquire()
        await asyncio.wait_for(b.acquire(), timeout=1)

        assert await a.is_held() and await b.is_held()

    @pytest.mark.asyncio
    async def test_interrupt_aborts_wait(self, provider):
        holder, waiter = provider.get_lock("a"), provider.get_lock("a")
        await holder.acquire()

        task = asyncio.create_task(waiter.acquire())
        await asyncio.sleep(0.02)
        waiter.interrupt()

        with pytest.raises(LockInterruptedError):
            await asyncio.wait_for(task, timeout=1)
        assert await waiter.is_held() is False

    @pytest.mark.asyncio
    async def test_interrupt_waiters_counts_only_waiting_handles(self, provider):
        holder = provider.get_lock("a")
        await holder.acquire()
        tasks = [asyncio.create_task(provider.get_lock("a").acquire()) for _ in range(3)]
        await asyncio.sleep(0.02)

        assert provider.interrupt_waiters() == 3

        results = await asyncio.gather(*tasks, return_exceptions=True)
        assert all(isinstance(r, LockInterruptedError) for r in results)
        assert provider.interrupt_waiters() == 0

    @pytest.mark.asyncio
    async def test_context_manager_releases(self, provider):
        async with provider.get_lock("a") as lock:
            assert await lock.is_held()

        assert await provider.store.get_owner("a") is None

    @pytest.mark.asyncio
    async def test_context_manager_releases_on_error(self, provider):
        with pytest.raises(RuntimeError):
            async with provider.get_lock("a"):
                raise RuntimeError("boom")

        assert await provider.store.get_owner("a") is None


class TestRedisLockStore:
    @pytest.mark.asyncio
    async def test_try_acquire_uses_set_nx_px(self):
        client = AsyncMock()
        client.set.return_value = True

        assert await RedisLockStore(client).try_acquire("k", "tok", 30000) is True
        client.set.assert_awaited_once_with("k", "tok", nx=True, px=30000)

    @pytest.mark.asyncio
    async def test_try_acquire_when_taken(self):
        client = AsyncMock()
        client.set.return_value = None

        assert await RedisLockStore(client).try_acquire("k", "tok", 30000) is False

    @pytest.mark.asyncio
    async def test_get_owner_decodes_bytes(self):
        client = AsyncMock()
        client.get.return_value = b"tok"

        assert await RedisLockStore(client).get_owner("k") == "tok"

    @pytest.mark.asyncio
    async def test_release_compares_token(self):
        client = AsyncMock()
        client.eval.return_value = 1
        store = RedisLockStore(client)

        assert await store.release("k", "tok") is True
        script, numkeys, key, token = client.eval.await_args.args
        assert "del" in script
        assert (numkeys, key, token) == (1, "k", "tok")

        client.eval.return_value = 0
        assert await store.release("k", "other") is False

    @pytest.mark.asyncio
    async def test_renew_extends_lease(self):
        client = AsyncMock()
        client.eval.return_value = 1

        assert await RedisLockStore(client).renew("k", "tok", 5000) is True
        assert client.eval.await_args.args[1:] == (1, "k", "tok", 5000)

    @pytest.mark.asyncio
    async def test_keep_alive_runs_while_held(self):
        client = AsyncMock()
        client.set.return_value = True
        client.eval.return_value = 1
        client.get.return_value = None
        lock = ClusterLockProvider(RedisLockStore(client), lease_seconds=1, poll_interval=0.01).get_lock("k")

        await lock.acquire()
        await asyncio.sleep(0.5)
        client.get.return_value = lock.token
        await lock.release()

        renew_calls = [c for c in client.eval.await_args_list if "pexpire" in c.args[0]]
        assert renew_calls
        assert lock._keep_alive_task is None


class TestGetLockProvider:
    @pytest.mark.asyncio
    async def test_local_store_when_redis_not_configured(self, monkeypatch):
        monkeypatch.setattr(settings, "cache_type", "memory")

        provider = await get_lock_provider()

        assert isinstance(provider.store, LocalLockStore)
        assert await get_lock_provider() is provider

    @pytest.mark.asyncio
    async def test_uses_redis_when_available(self, monkeypatch):
        monkeypatch.setattr(settings, "cache_type", "redis")
        with patch("teamhub.utils.cluster_lock.get_redis_client", AsyncMock(return_value=AsyncMock())):
            provider = await get_lock_provider()

        assert isinstance(provider.store, RedisLockStore)

    @pytest.mark.asyncio
    async def test_unreachable_redis_raises_instead_of_local_store(self, monkeypatch):
        monkeypatch.setattr(settings, "cache_type", "redis")
        monkeypatch.setattr(settings, "redis_url", "redis://127.0.0.1:1/0")
        monkeypatch.setattr(settings, "redis_socket_connect_timeout", 0.2)
        monkeypatch.setattr(settings, "redis_socket_timeout", 0.2)

        with pytest.raises(LockUnavailableError):
            await get_lock_provider()

        assert cluster_lock._provider is None

    @pytest.mark.asyncio
    async def test_recovers_once_redis_is_back(self, monkeypatch):
        monkeypatch.setattr(settings, "cache_type", "redis")
        client = AsyncMock()
        get_client = AsyncMock(side_effect=[None, client])
        with patch("teamhub.utils.cluster_lock.get_redis_client", get_client):
            with pytest.raises(LockUnavailableError):
                await get_lock_provider()
            provider = await get_lock_provider()

        assert isinstance(provider.store, RedisLockStore)
        assert get_client.await_count == 2
