"""SQL-backed sample store.

All statements go through SQLAlchemy Core on an :class:`AsyncEngine`.
Upserts use the database's own ``INSERT ... ON CONFLICT DO UPDATE`` so
concurrent writers to the same sample key are serialized by the database,
not by this process. Nothing here caches, locks or retries.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator, Callable, Iterable
from typing import Any

from sqlalchemy import Table, delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from chargecurve.estimator import median_by_level
from chargecurve.exceptions import CurveConfigError, StoreUnavailableError
from chargecurve.models.curve import LevelDuration
from chargecurve.models.sample import CurveSample, SampleKey, SampleUpdate
from chargecurve.models.session import ChargeSession
from chargecurve.store.schema import SAMPLE_KEY_COLUMNS, charge, charge_curve, metadata

_logger = logging.getLogger(__name__)

_UPSERT_DIALECTS: dict[str, Callable[[Table], Any]] = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

_SESSION_SAMPLES = charge.join(charge_curve, charge.c.charge_id == charge_curve.c.charge_id)


@contextlib.asynccontextmanager
async def _store_errors(operation: str) -> AsyncIterator[None]:
    """Translate driver/SQLAlchemy failures into :class:`StoreUnavailableError`."""
    try:
        yield
    except (SQLAlchemyError, OSError) as exc:
        _logger.warning("Sample store %s failed: %s", operation, exc)
        raise StoreUnavailableError(
            f"Sample store {operation} failed: {exc}",
            operation=operation,
        ) from exc


def _scope(vehicle_id: str, location_id: str) -> tuple[Any, ...]:
    return (charge.c.vehicle_id == vehicle_id, charge.c.location_id == location_id)


def _session_exists() -> Any:
    """EXISTS test for the session a curve sample row belongs to."""
    return (
        select(charge.c.charge_id)
        .where(charge.c.charge_id == charge_curve.c.charge_id)
        .correlate(charge_curve)
        .exists()
    )


class SampleStore:
    """Persistence of sessions and per-level curve samples."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._dialect = engine.dialect.name

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    def _insert(self, table: Table) -> Any:
        try:
            factory = _UPSERT_DIALECTS[self._dialect]
        except KeyError:
            raise CurveConfigError(f"Unsupported database dialect for upserts: {self._dialect}") from None
        return factory(table)

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    async def create_schema(self) -> None:
        """Create missing tables and indexes."""
        async with _store_errors("create_schema"):
            async with self._engine.begin() as conn:
                await conn.run_sync(metadata.create_all)
        _logger.info("Sample store schema ready")

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def upsert_sample(self, update: SampleUpdate) -> CurveSample:
        """Insert a sample, or overwrite the one stored under the same key."""
        insert = self._insert(charge_curve).values(**update.row_values())
        stmt = insert.on_conflict_do_update(
            index_elements=list(SAMPLE_KEY_COLUMNS),
            set_={name: insert.excluded[name] for name in update.changed_fields()},
        ).returning(*charge_curve.c)

        _logger.debug("Upsert sample %s duration=%.1f", update.key, update.duration)
        async with _store_errors("upsert_sample"):
            async with self._engine.begin() as conn:
                row = (await conn.execute(stmt)).one()
        return CurveSample.model_validate(dict(row._mapping))

    async def upsert_session(self, session: ChargeSession) -> ChargeSession:
        """Insert a session, or update the fields it carries on an existing one."""
        insert = self._insert(charge).values(**session.model_dump())
        stmt = insert.on_conflict_do_update(
            index_elements=[charge.c.charge_id],
            set_={name: insert.excluded[name] for name in session.changed_fields()},
        ).returning(*charge.c)

        async with _store_errors("upsert_session"):
            async with self._engine.begin() as conn:
                row = (await conn.execute(stmt)).one()
        return ChargeSession.model_validate(dict(row._mapping))

    async def delete_samples(self, keys: Iterable[SampleKey]) -> int:
        """Delete samples by key, skipping any whose session exists again."""
        deleted = 0
        async with _store_errors("delete_samples"):
            async with self._engine.begin() as conn:
                for key in keys:
                    result = await conn.execute(
                        delete(charge_curve).where(
                            charge_curve.c.vehicle_id == key.vehicle_id,
                            charge_curve.c.level == key.level,
                            charge_curve.c.charge_id == key.charge_id,
                            ~_session_exists(),
                        )
                    )
                    deleted += result.rowcount
        return deleted

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_sample(self, key: SampleKey) -> CurveSample | None:
        stmt = select(charge_curve).where(
            charge_curve.c.vehicle_id == key.vehicle_id,
            charge_curve.c.level == key.level,
            charge_curve.c.charge_id == key.charge_id,
        )
        async with _store_errors("get_sample"):
            async with self._engine.connect() as conn:
                row = (await conn.execute(stmt)).one_or_none()
        if row is None:
            return None
        return CurveSample.model_validate(dict(row._mapping))

    async def level_medians(self, vehicle_id: str, location_id: str) -> list[LevelDuration]:
        """Median duration per measured level, ordered by level."""
        level = charge_curve.c.level
        duration = charge_curve.c.duration

        async with _store_errors("level_medians"):
            async with self._engine.connect() as conn:
                if self._dialect == "postgresql":
                    seconds = func.percentile_cont(0.5).within_group(duration).label("seconds")
                    stmt = (
                        select(level, seconds)
                        .select_from(_SESSION_SAMPLES)
                        .where(*_scope(vehicle_id, location_id))
                        .group_by(level)
                        .order_by(level)
                    )
                    rows = (await conn.execute(stmt)).all()
                    return [LevelDuration(row.level, float(row.seconds)) for row in rows]

                stmt = (
                    select(level, duration)
                    .select_from(_SESSION_SAMPLES)
                    .where(*_scope(vehicle_id, location_id))
                    .order_by(level, duration)
                )
                rows = (await conn.execute(stmt)).all()
        return median_by_level((row.level, row.duration) for row in rows)

    async def average_duration(self, vehicle_id: str, location_id: str) -> float | None:
        """Mean duration over every sample for the vehicle/location, any level."""
        stmt = (
            select(func.avg(charge_curve.c.duration))
            .select_from(_SESSION_SAMPLES)
            .where(*_scope(vehicle_id, location_id))
        )
        async with _store_errors("average_duration"):
            async with self._engine.connect() as conn:
                value = (await conn.execute(stmt)).scalar()
        return None if value is None else float(value)

    async def average_session_rate(self, vehicle_id: str, location_id: str) -> float | None:
        """Mean seconds-per-percent implied by sessions that stopped short of target."""
        rate = 60.0 * charge.c.estimate_minutes / (charge.c.target_level - charge.c.end_level)
        stmt = select(func.avg(rate)).where(
            *_scope(vehicle_id, location_id),
            charge.c.end_level < charge.c.target_level,
        )
        async with _store_errors("average_session_rate"):
            async with self._engine.connect() as conn:
                value = (await conn.execute(stmt)).scalar()
        return None if value is None else float(value)

    async def max_calibrated_level(self, vehicle_id: str, charge_id: str) -> int | None:
        """Highest sampled level for the vehicle at the location of *charge_id*."""
        session_location = select(charge.c.location_id).where(charge.c.charge_id == charge_id).scalar_subquery()
        stmt = (
            select(func.max(charge_curve.c.level))
            .select_from(_SESSION_SAMPLES)
            .where(
                charge.c.vehicle_id == vehicle_id,
                charge.c.location_id == session_location,
            )
        )
        async with _store_errors("max_calibrated_level"):
            async with self._engine.connect() as conn:
                value = (await conn.execute(stmt)).scalar()
        return None if value is None else int(value)

    async def find_orphan_samples(self) -> list[SampleKey]:
        """Keys of samples whose session no longer exists."""
        stmt = select(
            charge_curve.c.vehicle_id,
            charge_curve.c.level,
            charge_curve.c.charge_id,
        ).where(~_session_exists())
        async with _store_errors("find_orphan_samples"):
            async with self._engine.connect() as conn:
                rows = (await conn.execute(stmt)).all()
        return [SampleKey(row.vehicle_id, row.level, row.charge_id) for row in rows]
