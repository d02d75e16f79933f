"""Background sweep closing pools that have sat idle too long.

Pools are otherwise only released when a guest session ends, so without
the sweep every tenant that ever made a request keeps its connections.
Evicted tenants are reconciled again on their next request.
"""

from __future__ import annotations

import asyncio

from tenancy.application.observability import DefaultTenancyProbe, TenancyProbe
from tenancy.ports.repositories import IPoolCache


class IdlePoolReaper:
    """Periodically evicts idle handles from the pool cache."""

    def __init__(
        self,
        cache: IPoolCache,
        idle_timeout_seconds: float,
        interval_seconds: float,
        probe: TenancyProbe | None = None,
    ):
        self._cache = cache
        self._idle_timeout = idle_timeout_seconds
        self._interval = interval_seconds
        self._probe = probe or DefaultTenancyProbe()
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def sweep(self) -> list[str]:
        """Run one sweep.

        Returns:
            Tenant keys whose pools were closed
        """
        evicted = await self._cache.evict_idle(self._idle_timeout)
        if evicted:
            self._probe.idle_pools_reaped(len(evicted))
        return evicted

    async def start(self) -> None:
        """Start sweeping in the background. No-op if already running."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="idle-pool-reaper")

    async def stop(self) -> None:
        """Cancel the background sweep and wait for it to finish."""
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.sweep()
            except Exception as e:
                # One failed close must not stop future sweeps
                self._probe.reaper_sweep_failed(e)
