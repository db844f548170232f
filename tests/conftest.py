"""Shared fixtures: a file-backed SQLite store per test."""

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine

from chargecurve.config import CurveConfig
from chargecurve.engine import ChargeCurveEngine
from chargecurve.store.engine import create_store_engine
from chargecurve.store.samples import SampleStore


@pytest.fixture
def config(tmp_path: Path) -> CurveConfig:
    return CurveConfig(database_url=f"sqlite+aiosqlite:///{tmp_path / 'curve.db'}")


@pytest_asyncio.fixture
async def db_engine(config: CurveConfig) -> AsyncIterator[AsyncEngine]:
    engine = create_store_engine(config)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def store(db_engine: AsyncEngine) -> SampleStore:
    sample_store = SampleStore(db_engine)
    await sample_store.create_schema()
    return sample_store


@pytest_asyncio.fixture
async def curve_engine(config: CurveConfig, db_engine: AsyncEngine) -> AsyncIterator[ChargeCurveEngine]:
    async with ChargeCurveEngine(config, engine=db_engine) as engine:
        await engine.setup()
        yield engine

