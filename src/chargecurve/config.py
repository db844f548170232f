"""Engine configuration for chargecurve."""

from __future__ import annotations

import dataclasses
import math
import os
from typing import Any

from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError

from chargecurve._constants import (
    DEFAULT_DATABASE_URL,
    DEFAULT_MAINTENANCE_INTERVAL,
    DEFAULT_SECONDS_PER_PERCENT,
)
from chargecurve.exceptions import CurveConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_number(env_key: str, value: str, cast: type[int] | type[float]) -> int | float:
    try:
        return cast(value)
    except ValueError as exc:
        raise CurveConfigError(f"{env_key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class CurveConfig:
    """Engine configuration.

    Parameters
    ----------
    database_url : str
        SQLAlchemy async database URL. PostgreSQL (``postgresql+asyncpg``)
        and SQLite (``sqlite+aiosqlite``) are supported.
    database_echo : bool
        Log every SQL statement through SQLAlchemy's ``echo``.
    pool_size : int
        Connection pool size. Ignored for SQLite.
    default_seconds_per_percent : float
        Curve value used when a vehicle/location has no history of any kind.
        Defaults to 20 minutes.
    maintenance_interval : float
        Seconds between orphan sample sweeps.
    """

    database_url: str = DEFAULT_DATABASE_URL
    database_echo: bool = False
    pool_size: int = 5
    default_seconds_per_percent: float = DEFAULT_SECONDS_PER_PERCENT
    maintenance_interval: float = DEFAULT_MAINTENANCE_INTERVAL

    def __post_init__(self) -> None:
        try:
            make_url(self.database_url)
        except ArgumentError as exc:
            raise CurveConfigError(f"Invalid database_url: {exc}") from exc
        if not math.isfinite(self.default_seconds_per_percent) or self.default_seconds_per_percent <= 0:
            raise CurveConfigError("default_seconds_per_percent must be a positive number")
        if self.maintenance_interval <= 0:
            raise CurveConfigError("maintenance_interval must be positive")
        if self.pool_size < 1:
            raise CurveConfigError("pool_size must be at least 1")

    @property
    def url(self) -> URL:
        """Parsed :attr:`database_url`."""
        return make_url(self.database_url)

    @classmethod
    def from_env(cls, **overrides: Any) -> CurveConfig:
        """Create configuration from environment variables.

        Reads ``CHARGECURVE_DATABASE_URL`` (falling back to ``DATABASE_URL``)
        and the optional ``CHARGECURVE_*`` variables. Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        CurveConfig
            Populated configuration.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        database_url = env.get("CHARGECURVE_DATABASE_URL") or env.get("DATABASE_URL")
        if database_url:
            config_kwargs["database_url"] = database_url

        if "database_echo" not in overrides:
            config_kwargs["database_echo"] = _env_bool(env.get("CHARGECURVE_DATABASE_ECHO"), False)

        _ENV_NUMERIC_MAP: dict[str, tuple[str, type[int] | type[float]]] = {
            "CHARGECURVE_POOL_SIZE": ("pool_size", int),
            "CHARGECURVE_DEFAULT_SECONDS_PER_PERCENT": ("default_seconds_per_percent", float),
            "CHARGECURVE_MAINTENANCE_INTERVAL": ("maintenance_interval", float),
        }
        for env_key, (field_name, cast) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_number(env_key, val, cast)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
