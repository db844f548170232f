"""Charge session facts.

Sessions are owned by the external session tracker. The curve engine only
reads them: to scope samples to a location, and to derive a seconds-per-percent
estimate for vehicles that have sessions but no curve samples yet.
"""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import Field

from chargecurve.models._base import CurveBaseModel, Identifier, Level


class ChargeSession(CurveBaseModel):
    """One physical charging event at a location.

    Fields left out when constructing an instance are left untouched when the
    session is written over an existing one, so a tracker can report
    ``end_level`` after the fact without resending the rest.
    """

    MUTABLE_FIELDS: ClassVar[tuple[str, ...]] = (
        "vehicle_id",
        "location_id",
        "start_level",
        "target_level",
        "end_level",
        "estimate_minutes",
    )

    charge_id: Identifier
    vehicle_id: Identifier
    location_id: Identifier
    start_level: Level | None = None
    target_level: Level | None = None
    end_level: Level | None = None
    estimate_minutes: float | None = Field(default=None, ge=0, allow_inf_nan=False)
    """Estimated minutes to reach ``target_level``, as reported when charging began."""

    @property
    def stopped_short(self) -> bool:
        """Whether the session ended below its target level."""
        if self.end_level is None or self.target_level is None:
            return False
        return self.end_level < self.target_level

    def changed_fields(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self.MUTABLE_FIELDS if name in self.model_fields_set}
