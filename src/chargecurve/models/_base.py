"""Base model and shared field types.

Every chargecurve model inherits from :class:`CurveBaseModel` which is
frozen and rejects unknown keys, so rows read back from the store and
values passed in by callers go through the same validation.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from chargecurve._constants import MAX_LEVEL, MIN_LEVEL


def _non_empty(value: str) -> str:
    if not value:
        raise ValueError("identifier must be non-empty")
    return value


Identifier = Annotated[str, AfterValidator(_non_empty)]
"""Opaque vehicle/location/charge identifier, stored as given; never empty."""

Level = Annotated[int, Field(ge=MIN_LEVEL, le=MAX_LEVEL)]
"""Battery state of charge in whole percent (0-100)."""

Seconds = Annotated[float, Field(ge=0, allow_inf_nan=False)]
"""Non-negative, finite duration in seconds."""


class CurveBaseModel(BaseModel):
    """Base for chargecurve models."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
    )
