"""Unit tests for IdlePoolReaper."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, create_autospec

import pytest

from tenancy.application.observability import TenancyProbe
from tenancy.application.reaper import IdlePoolReaper
from tenancy.infrastructure.pool_cache import PoolCache


@pytest.fixture
def mock_probe():
    return create_autospec(TenancyProbe, instance=True)


@pytest.fixture
def mock_cache():
    cache = create_autospec(PoolCache, instance=True)
    cache.evict_idle = AsyncMock(return_value=[])
    return cache


class TestSweep:
    """Tests for a single sweep."""

    @pytest.mark.asyncio
    async def test_evicts_with_configured_timeout(self, mock_cache, mock_probe):
        mock_cache.evict_idle.return_value = ["user_1", "user_2"]
        reaper = IdlePoolReaper(mock_cache, 300, 60, probe=mock_probe)

        evicted = await reaper.sweep()

        assert evicted == ["user_1", "user_2"]
        mock_cache.evict_idle.assert_awaited_once_with(300)
        mock_probe.idle_pools_reaped.assert_called_once_with(2)

    @pytest.mark.asyncio
    async def test_quiet_when_nothing_idle(self, mock_cache, mock_probe):
        reaper = IdlePoolReaper(mock_cache, 300, 60, probe=mock_probe)

        assert await reaper.sweep() == []
        mock_probe.idle_pools_reaped.assert_not_called()

    @pytest.mark.asyncio
    async def test_closes_idle_handles_in_real_cache(self, mock_probe):
        now = [0.0]
        cache = PoolCache(clock=lambda: now[0])
        handle = MagicMock()
        handle.store_name = "todos_user_" + "a" * 32
        handle.closed = False
        handle.last_used = 0.0
        handle.close = AsyncMock()
        await cache.put("user_1", handle)
        now[0] = 600.0
        reaper = IdlePoolReaper(cache, 300, 60, probe=mock_probe)

        assert await reaper.sweep() == ["user_1"]
        assert "user_1" not in cache
        handle.close.assert_awaited_once()


class TestBackgroundTask:
    """Tests for start/stop of the background loop."""

    @pytest.mark.asyncio
    async def test_start_and_stop(self, mock_cache, mock_probe):
        reaper = IdlePoolReaper(mock_cache, 300, 0.01, probe=mock_probe)

        await reaper.start()
        assert reaper.running
        await asyncio.sleep(0.05)
        await reaper.stop()

        assert not reaper.running
        assert mock_cache.evict_idle.await_count >= 1

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, mock_cache, mock_probe):
        reaper = IdlePoolReaper(mock_cache, 300, 60, probe=mock_probe)

        await reaper.start()
        task = reaper._task
        await reaper.start()

        assert reaper._task is task
        await reaper.stop()

    @pytest.mark.asyncio
    async def test_stop_without_start(self, mock_cache, mock_probe):
        reaper = IdlePoolReaper(mock_cache, 300, 60, probe=mock_probe)
        await reaper.stop()
        assert not reaper.running

    @pytest.mark.asyncio
    async def test_failed_sweep_keeps_running(self, mock_cache, mock_probe):
        mock_cache.evict_idle.side_effect = RuntimeError("close failed")
        reaper = IdlePoolReaper(mock_cache, 300, 0.01, probe=mock_probe)

        await reaper.start()
        await asyncio.sleep(0.05)

        assert reaper.running
        mock_probe.reaper_sweep_failed.assert_called()
        await reaper.stop()
