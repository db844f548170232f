"""High-level async facade over the charge curve store and estimator."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncEngine

from chargecurve import estimator
from chargecurve.config import CurveConfig
from chargecurve.exceptions import ChargeCurveError, InvalidSampleError
from chargecurve.maintenance import OrphanSampleSweeper
from chargecurve.models.curve import ChargeCurve
from chargecurve.models.sample import UNSET, CurveSample, SampleUpdate, UnsetType
from chargecurve.models.session import ChargeSession
from chargecurve.store.engine import create_store_engine
from chargecurve.store.samples import SampleStore

_logger = logging.getLogger(__name__)


class ChargeCurveEngine:
    """Learns per-level charge durations and serves charge curves.

    Usage::

        async with ChargeCurveEngine(CurveConfig.from_env()) as engine:
            await engine.setup()
            await engine.record_sample("vehicle", "charge-1", level=40, duration=62.0)
            curve = await engine.estimate_curve("vehicle", "home")

    Every call reads or writes the store directly. Curves are never cached,
    so concurrent sessions always see the latest committed samples.
    """

    def __init__(
        self,
        config: CurveConfig | None = None,
        *,
        engine: AsyncEngine | None = None,
    ) -> None:
        self._config = config or CurveConfig()
        self._external_engine = engine is not None
        self._db_engine = engine
        self._store: SampleStore | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> ChargeCurveEngine:
        if self._db_engine is None:
            self._db_engine = create_store_engine(self._config)
        self._store = SampleStore(self._db_engine)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_engine and self._db_engine is not None:
            await self._db_engine.dispose()
            self._db_engine = None
        self._store = None

    @property
    def config(self) -> CurveConfig:
        return self._config

    @property
    def store(self) -> SampleStore:
        if self._store is None:
            raise ChargeCurveError("Engine not initialized. Use 'async with ChargeCurveEngine(...) as engine:'")
        return self._store

    async def setup(self) -> None:
        """Create the store schema if it does not exist yet."""
        await self.store.create_schema()

    def sweeper(self) -> OrphanSampleSweeper:
        """Orphan sample sweeper on this engine's store, running every
        ``config.maintenance_interval`` seconds once started.
        """
        return OrphanSampleSweeper(self.store, interval=self._config.maintenance_interval)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def upsert_sample(self, update: SampleUpdate) -> CurveSample:
        """Insert or overwrite the sample stored under ``update.key``."""
        return await self.store.upsert_sample(update)

    async def record_sample(
        self,
        vehicle_id: str,
        charge_id: str,
        level: int,
        duration: float,
        *,
        outside_deci_temperature: int | None | UnsetType = UNSET,
        energy_used: float | None | UnsetType = UNSET,
        energy_added: float | None | UnsetType = UNSET,
    ) -> CurveSample:
        """Record the time spent charging through one level of an active session.

        Safe to call repeatedly for the same ``(vehicle_id, charge_id, level)``
        as telemetry is refined: each call replaces the previous values.
        Optional fields left as ``UNSET`` keep their stored value; pass
        ``None`` to clear one.

        Raises
        ------
        InvalidSampleError
            ``level`` outside 0-100 or a negative ``duration``. Nothing is written.
        StoreUnavailableError
            The store round trip failed.
        """
        try:
            update = SampleUpdate.build(
                vehicle_id,
                charge_id,
                level,
                duration,
                outside_deci_temperature=outside_deci_temperature,
                energy_used=energy_used,
                energy_added=energy_added,
            )
        except ValidationError as exc:
            raise InvalidSampleError.from_validation(exc) from exc
        return await self.upsert_sample(update)

    async def record_session(self, session: ChargeSession) -> ChargeSession:
        """Store the facts the session tracker reports about a charge."""
        return await self.store.upsert_session(session)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def estimate_curve(self, vehicle_id: str, location_id: str) -> ChargeCurve:
        """Expected seconds per percent for every level 0-100."""
        return await estimator.estimate_curve(
            self.store,
            vehicle_id,
            location_id,
            default_seconds=self._config.default_seconds_per_percent,
        )

    async def best_calibrated_level(self, vehicle_id: str, charge_id: str) -> int | None:
        """Highest level with measured data at the location of *charge_id*.

        ``None`` when the vehicle has no samples at that location. Fallback
        values are never considered.
        """
        level = await self.store.max_calibrated_level(vehicle_id, charge_id)
        _logger.debug("Calibrated up to %s for %s (charge %s)", level, vehicle_id, charge_id)
        return level
