"""Curve sample models.

A :class:`CurveSample` is one observation of how long a vehicle spent
advancing one percent from ``level`` during a single charge session.
At most one sample exists per :class:`SampleKey`.
"""

from __future__ import annotations

import enum
from typing import Any, ClassVar, NamedTuple

from chargecurve.models._base import CurveBaseModel, Identifier, Level, Seconds


class SampleKey(NamedTuple):
    """Uniqueness key of a curve sample."""

    vehicle_id: str
    level: int
    charge_id: str


class _Unset(enum.Enum):
    UNSET = "UNSET"

    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset.UNSET
"""Marker for "leave this field unchanged", distinct from ``None`` ("clear it")."""

UnsetType = _Unset


class CurveSample(CurveBaseModel):
    """A persisted curve sample."""

    vehicle_id: Identifier
    charge_id: Identifier
    level: Level
    duration: Seconds
    """Seconds spent advancing one percent from ``level``."""
    outside_deci_temperature: int | None = None
    """Outside temperature in tenths of a degree Celsius."""
    energy_used: float | None = None
    """Energy drawn from the charger, in Wh."""
    energy_added: float | None = None
    """Energy added to the battery, in Wh."""

    @property
    def key(self) -> SampleKey:
        return SampleKey(self.vehicle_id, self.level, self.charge_id)


class SampleUpdate(CurveBaseModel):
    """An upsert request for one curve sample.

    ``duration`` is always written. The optional fields follow pydantic's
    "fields set" semantics:

    * omitted - an existing row keeps its value (a new row stores NULL)
    * ``None`` - the stored value is cleared
    * a value - the stored value is replaced

    Example::

        SampleUpdate(vehicle_id="v", charge_id="c", level=40, duration=61.0)
        SampleUpdate(vehicle_id="v", charge_id="c", level=40, duration=61.0, energy_used=None)
    """

    OPTIONAL_FIELDS: ClassVar[tuple[str, ...]] = (
        "outside_deci_temperature",
        "energy_used",
        "energy_added",
    )

    vehicle_id: Identifier
    charge_id: Identifier
    level: Level
    duration: Seconds
    outside_deci_temperature: int | None = None
    energy_used: float | None = None
    energy_added: float | None = None

    @classmethod
    def build(
        cls,
        vehicle_id: str,
        charge_id: str,
        level: int,
        duration: float,
        *,
        outside_deci_temperature: int | None | UnsetType = UNSET,
        energy_used: float | None | UnsetType = UNSET,
        energy_added: float | None | UnsetType = UNSET,
    ) -> SampleUpdate:
        """Build an update, leaving every ``UNSET`` argument out of the fields set."""
        optional = {
            "outside_deci_temperature": outside_deci_temperature,
            "energy_used": energy_used,
            "energy_added": energy_added,
        }
        values: dict[str, Any] = {
            "vehicle_id": vehicle_id,
            "charge_id": charge_id,
            "level": level,
            "duration": duration,
        }
        values.update({name: value for name, value in optional.items() if value is not UNSET})
        return cls(**values)

    @property
    def key(self) -> SampleKey:
        return SampleKey(self.vehicle_id, self.level, self.charge_id)

    def changed_fields(self) -> dict[str, Any]:
        """Columns an existing row must take from this update."""
        changed: dict[str, Any] = {"duration": self.duration}
        for name in self.OPTIONAL_FIELDS:
            if name in self.model_fields_set:
                changed[name] = getattr(self, name)
        return changed

    def row_values(self) -> dict[str, Any]:
        """Column values for a freshly inserted row."""
        return self.model_dump()
