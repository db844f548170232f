from __future__ import annotations

import pytest

from chargecurve.models import ChargeSession, LevelDuration, SampleKey, SampleUpdate
from chargecurve.store.samples import SampleStore


def _session(charge_id: str, vehicle_id: str = "V", location_id: str = "L", **fields: object) -> ChargeSession:
    return ChargeSession(charge_id=charge_id, vehicle_id=vehicle_id, location_id=location_id, **fields)


def _sample(charge_id: str, level: int, duration: float, vehicle_id: str = "V", **fields: object) -> SampleUpdate:
    return SampleUpdate(vehicle_id=vehicle_id, charge_id=charge_id, level=level, duration=duration, **fields)


@pytest.mark.asyncio
async def test_upsert_same_key_keeps_one_row_with_latest_duration(store: SampleStore) -> None:
    await store.upsert_session(_session("C1"))

    await store.upsert_sample(_sample("C1", 30, 100.0))
    stored = await store.upsert_sample(_sample("C1", 30, 120.0))

    assert stored.duration == 120.0
    assert await store.level_medians("V", "L") == [LevelDuration(30, 120.0)]
    assert (await store.get_sample(SampleKey("V", 30, "C1"))).duration == 120.0  # type: ignore[union-attr]


@pytest.mark.asyncio
async def test_upsert_distinguishes_omitted_from_null(store: SampleStore) -> None:
    await store.upsert_session(_session("C1"))
    key = SampleKey("V", 10, "C1")

    first = await store.upsert_sample(
        _sample("C1", 10, 50.0, outside_deci_temperature=-25, energy_used=410.0, energy_added=380.0)
    )
    assert first.outside_deci_temperature == -25

    # Omitted optional fields keep their stored values.
    kept = await store.upsert_sample(_sample("C1", 10, 52.0))
    assert kept.duration == 52.0
    assert kept.outside_deci_temperature == -25
    assert kept.energy_used == 410.0
    assert kept.energy_added == 380.0

    # Explicit None clears.
    cleared = await store.upsert_sample(_sample("C1", 10, 53.0, energy_used=None))
    assert cleared.energy_used is None
    assert cleared.energy_added == 380.0

    assert await store.get_sample(key) == cleared


@pytest.mark.asyncio
async def test_new_row_stores_null_for_omitted_fields(store: SampleStore) -> None:
    await store.upsert_session(_session("C1"))

    stored = await store.upsert_sample(_sample("C1", 5, 40.0))

    assert stored.outside_deci_temperature is None
    assert stored.energy_used is None
    assert stored.energy_added is None


@pytest.mark.asyncio
async def test_level_medians_across_sessions(store: SampleStore) -> None:
    for charge_id, duration in (("C1", 10.0), ("C2", 20.0), ("C3", 1000.0)):
        await store.upsert_session(_session(charge_id))
        await store.upsert_sample(_sample(charge_id, 20, duration))
    await store.upsert_sample(_sample("C1", 60, 90.0))

    assert await store.level_medians("V", "L") == [LevelDuration(20, 20.0), LevelDuration(60, 90.0)]


@pytest.mark.asyncio
async def test_level_medians_are_scoped_to_vehicle_and_location(store: SampleStore) -> None:
    await store.upsert_session(_session("HOME", location_id="home"))
    await store.upsert_session(_session("WORK", location_id="work"))
    await store.upsert_session(_session("OTHER", vehicle_id="W", location_id="home"))
    await store.upsert_sample(_sample("HOME", 10, 60.0))
    await store.upsert_sample(_sample("WORK", 10, 30.0))
    await store.upsert_sample(_sample("OTHER", 10, 15.0, vehicle_id="W"))

    assert await store.level_medians("V", "home") == [LevelDuration(10, 60.0)]
    assert await store.level_medians("V", "work") == [LevelDuration(10, 30.0)]
    assert await store.level_medians("V", "nowhere") == []


@pytest.mark.asyncio
async def test_average_duration(store: SampleStore) -> None:
    assert await store.average_duration("V", "L") is None

    await store.upsert_session(_session("C1"))
    await store.upsert_sample(_sample("C1", 10, 60.0))
    await store.upsert_sample(_sample("C1", 11, 90.0))

    assert await store.average_duration("V", "L") == pytest.approx(75.0)


@pytest.mark.asyncio
async def test_average_session_rate_only_counts_sessions_short_of_target(store: SampleStore) -> None:
    assert await store.average_session_rate("V", "L") is None

    # 60 * 100 / (80 - 60) = 300 s per percent
    await store.upsert_session(_session("C1", target_level=80, end_level=60, estimate_minutes=100))
    # 60 * 20 / (50 - 40) = 120 s per percent
    await store.upsert_session(_session("C2", target_level=50, end_level=40, estimate_minutes=20))
    # Reached target, ignored.
    await store.upsert_session(_session("C3", target_level=90, end_level=90, estimate_minutes=5))
    # Still charging, ignored.
    await store.upsert_session(_session("C4", target_level=90, estimate_minutes=5))

    assert await store.average_session_rate("V", "L") == pytest.approx(210.0)


@pytest.mark.asyncio
async def test_max_calibrated_level_uses_location_of_the_charge(store: SampleStore) -> None:
    await store.upsert_session(_session("H1", location_id="home"))
    await store.upsert_session(_session("H2", location_id="home"))
    await store.upsert_session(_session("W1", location_id="work"))
    await store.upsert_sample(_sample("H1", 35, 60.0))
    await store.upsert_sample(_sample("W1", 90, 60.0))

    # H2 has no samples itself, but H1 at the same location does.
    assert await store.max_calibrated_level("V", "H2") == 35
    assert await store.max_calibrated_level("V", "W1") == 90
    assert await store.max_calibrated_level("other-vehicle", "H2") is None
    assert await store.max_calibrated_level("V", "unknown-charge") is None


@pytest.mark.asyncio
async def test_upsert_session_keeps_fields_not_reported(store: SampleStore) -> None:
    await store.upsert_session(_session("C1", start_level=20, target_level=80, estimate_minutes=240))

    updated = await store.upsert_session(_session("C1", end_level=78))

    assert updated.start_level == 20
    assert updated.target_level == 80
    assert updated.estimate_minutes == 240
    assert updated.end_level == 78


@pytest.mark.asyncio
async def test_find_and_delete_orphan_samples(store: SampleStore) -> None:
    await store.upsert_session(_session("C1"))
    await store.upsert_sample(_sample("C1", 10, 60.0))
    await store.upsert_sample(_sample("GONE", 10, 60.0))
    await store.upsert_sample(_sample("GONE", 11, 61.0))

    orphans = await store.find_orphan_samples()
    assert sorted(orphans) == [SampleKey("V", 10, "GONE"), SampleKey("V", 11, "GONE")]

    assert await store.delete_samples(orphans) == 2
    assert await store.find_orphan_samples() == []
    assert await store.get_sample(SampleKey("V", 10, "C1")) is not None


@pytest.mark.asyncio
async def test_delete_samples_spares_rows_whose_session_exists(store: SampleStore) -> None:
    await store.upsert_session(_session("C1"))
    await store.upsert_sample(_sample("C1", 10, 60.0))

    assert await store.delete_samples([SampleKey("V", 10, "C1")]) == 0
    assert await store.get_sample(SampleKey("V", 10, "C1")) is not None
