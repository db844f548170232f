"""Data models for curve samples, charge sessions and charge curves."""

from chargecurve.models._base import CurveBaseModel, Identifier, Level, Seconds
from chargecurve.models.curve import ChargeCurve, LevelDuration
from chargecurve.models.sample import UNSET, CurveSample, SampleKey, SampleUpdate, UnsetType
from chargecurve.models.session import ChargeSession

__all__ = [
    "UNSET",
    "ChargeCurve",
    "ChargeSession",
    "CurveBaseModel",
    "CurveSample",
    "Identifier",
    "Level",
    "LevelDuration",
    "SampleKey",
    "SampleUpdate",
    "Seconds",
    "UnsetType",
]
