"""Async engine construction."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from chargecurve.config import CurveConfig

_logger = logging.getLogger(__name__)


def _is_sqlite_memory(database: str | None) -> bool:
    return database in (None, "", ":memory:")


def create_store_engine(config: CurveConfig) -> AsyncEngine:
    """Create the async engine described by *config*."""
    url = config.url
    kwargs: dict[str, Any] = {"echo": config.database_echo}
    if url.get_backend_name() == "sqlite":
        if _is_sqlite_memory(url.database):
            # Every connection must see the same in-memory database.
            kwargs["poolclass"] = StaticPool
            kwargs["connect_args"] = {"check_same_thread": False}
    else:
        kwargs.update(
            pool_size=config.pool_size,
            pool_timeout=30,
            pool_pre_ping=True,
            pool_recycle=1800,
        )

    _logger.info("Opening sample store %s", url.render_as_string(hide_password=True))
    return create_async_engine(url, **kwargs)
