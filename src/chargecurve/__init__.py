"""chargecurve - Async charge curve estimation for smart EV charging."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("chargecurve")
except PackageNotFoundError:
    __version__ = "0+local"
from chargecurve.config import CurveConfig
from chargecurve.engine import ChargeCurveEngine
from chargecurve.exceptions import (
    ChargeCurveError,
    CurveConfigError,
    InvalidSampleError,
    StoreUnavailableError,
)
from chargecurve.maintenance import OrphanSampleSweeper
from chargecurve.models import (
    UNSET,
    ChargeCurve,
    ChargeSession,
    CurveSample,
    LevelDuration,
    SampleKey,
    SampleUpdate,
)
from chargecurve.store import SampleStore

__all__ = [
    "__version__",
    "UNSET",
    "ChargeCurve",
    "ChargeCurveEngine",
    "ChargeCurveError",
    "ChargeSession",
    "CurveConfig",
    "CurveConfigError",
    "CurveSample",
    "InvalidSampleError",
    "LevelDuration",
    "OrphanSampleSweeper",
    "SampleKey",
    "SampleStore",
    "SampleUpdate",
    "StoreUnavailableError",
]
