"""Charge curve estimation.

Turns historical curve samples into a :class:`ChargeCurve` covering every
level 0-100. Measured levels hold their median duration until the next
measured level (a right-continuous step function). Levels below the first
measurement take the first measured value.

When no level has been measured, a single seed value is used for the whole
curve, taken from the first of these that exists:

1. the average duration over all samples for the vehicle/location
2. the average ``60 * estimate_minutes / (target_level - end_level)`` over
   sessions that stopped short of their target
3. the configured default (20 minutes per percent)
"""

from __future__ import annotations

import itertools
import logging
import statistics
from collections.abc import Awaitable, Callable, Iterable, Iterator, Sequence
from typing import Protocol

from chargecurve._constants import DEFAULT_SECONDS_PER_PERCENT, LEVELS
from chargecurve.models.curve import ChargeCurve, LevelDuration

_logger = logging.getLogger(__name__)


class CurveSource(Protocol):
    """Read side of the sample store as seen by the estimator.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`SampleStore`) concrete.
    """

    async def level_medians(self, vehicle_id: str, location_id: str) -> list[LevelDuration]:
        ...

    async def average_duration(self, vehicle_id: str, location_id: str) -> float | None:
        ...

    async def average_session_rate(self, vehicle_id: str, location_id: str) -> float | None:
        ...


def median_by_level(rows: Iterable[tuple[int, float]]) -> list[LevelDuration]:
    """Continuous median of the durations recorded at each level.

    *rows* must be ordered by level. For an even number of samples the two
    middle values are averaged, matching ``percentile_cont(0.5)``.
    """
    return [
        LevelDuration(level, float(statistics.median(duration for _, duration in group)))
        for level, group in itertools.groupby(rows, key=lambda row: row[0])
    ]


def step_curve(measured: Sequence[LevelDuration], seed: float) -> Iterator[tuple[int, float]]:
    """Yield ``(level, seconds)`` for levels 0-100.

    Walks the measured levels and all levels together; each measured value
    is adopted once its level is reached and held until the next one.
    """
    pending = iter(sorted(measured))
    upcoming = next(pending, None)
    current = seed
    for level in LEVELS:
        while upcoming is not None and upcoming.level <= level:
            current = upcoming.seconds
            upcoming = next(pending, None)
        yield level, current


def build_curve(measured: Sequence[LevelDuration], seed: float) -> ChargeCurve:
    """Build a complete curve from measured medians and a seed value.

    With measurements present the seed is ignored in favour of the lowest
    measured level's value.
    """
    if measured:
        seed = min(measured).seconds
    return ChargeCurve.from_pairs(step_curve(measured, seed))


async def resolve_seed(
    fallbacks: Iterable[Callable[[], Awaitable[float | None]]],
    default: float = DEFAULT_SECONDS_PER_PERCENT,
) -> float:
    """Await *fallbacks* in order and return the first non-null result.

    Later fallbacks are not awaited once one produces a value.
    """
    for tier, fallback in enumerate(fallbacks, start=1):
        value = await fallback()
        if value is not None:
            _logger.debug("Curve seed from fallback tier %d: %.1fs", tier, value)
            return float(value)
    _logger.debug("Curve seed from default: %.1fs", default)
    return default


async def estimate_curve(
    source: CurveSource,
    vehicle_id: str,
    location_id: str,
    *,
    default_seconds: float = DEFAULT_SECONDS_PER_PERCENT,
) -> ChargeCurve:
    """Estimate the charge curve for a vehicle at a location.

    Never fails for lack of data; only store errors propagate.
    """
    measured = await source.level_medians(vehicle_id, location_id)
    if measured:
        _logger.debug(
            "Curve for %s@%s from %d measured levels",
            vehicle_id,
            location_id,
            len(measured),
        )
        return build_curve(measured, default_seconds)

    seed = await resolve_seed(
        (
            lambda: source.average_duration(vehicle_id, location_id),
            lambda: source.average_session_rate(vehicle_id, location_id),
        ),
        default_seconds,
    )
    return build_curve((), seed)
