"""Periodic store maintenance, independent of curve estimation."""

from __future__ import annotations

import asyncio
import contextlib
import logging

from chargecurve._constants import DEFAULT_MAINTENANCE_INTERVAL
from chargecurve.exceptions import StoreUnavailableError
from chargecurve.models.sample import SampleKey
from chargecurve.store.samples import SampleStore

_logger = logging.getLogger(__name__)


class OrphanSampleSweeper:
    """Deletes curve samples whose charge session has been removed.

    A sample must be found orphaned on two consecutive sweeps before it is
    deleted, so a sample written just ahead of its session row survives.
    """

    def __init__(self, store: SampleStore, *, interval: float = DEFAULT_MAINTENANCE_INTERVAL) -> None:
        self._store = store
        self._interval = interval
        self._suspects: set[SampleKey] = set()
        self._task: asyncio.Task[None] | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def sweep_once(self) -> int:
        """Run one sweep and return the number of samples deleted."""
        orphans = set(await self._store.find_orphan_samples())
        confirmed = orphans & self._suspects
        self._suspects = orphans - confirmed
        if not confirmed:
            return 0

        deleted = await self._store.delete_samples(sorted(confirmed))
        _logger.info("Deleted %d orphan curve samples", deleted)
        return deleted

    def start(self) -> None:
        """Start sweeping in the background on the running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name="chargecurve-orphan-sweeper")
        _logger.info("Orphan sample sweeper started (every %.0fs)", self._interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        _logger.info("Orphan sample sweeper stopped")

    async def _run(self) -> None:
        while True:
            try:
                await self.sweep_once()
            except StoreUnavailableError as exc:
                _logger.warning("Orphan sweep failed, next attempt in %.0fs: %s", self._interval, exc)
            except Exception:
                _logger.exception("Orphan sample sweeper stopped on an unexpected error")
                raise
            await asyncio.sleep(self._interval)
