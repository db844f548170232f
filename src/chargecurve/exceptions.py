"""Custom exception hierarchy for chargecurve."""

from __future__ import annotations

from pydantic import ValidationError


class ChargeCurveError(Exception):
    """Base exception for all chargecurve errors."""


class CurveConfigError(ChargeCurveError):
    """Invalid or missing configuration."""


class InvalidSampleError(ChargeCurveError, ValueError):
    """A curve sample failed validation and was not written.

    Raised for a ``level`` outside ``[0, 100]`` or a negative ``duration``.
    Samples are never clamped; the caller must correct and resubmit.
    """

    def __init__(self, message: str, *, field: str = "") -> None:
        self.field = field
        super().__init__(message)

    @classmethod
    def from_validation(cls, exc: ValidationError) -> InvalidSampleError:
        """Build from the first error of a pydantic ``ValidationError``."""
        errors = exc.errors()
        if not errors:
            return cls(str(exc))
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()))
        return cls(f"Invalid sample {field}: {first.get('msg', 'invalid value')}", field=field)


class StoreUnavailableError(ChargeCurveError):
    """The sample store could not be reached or the transaction failed.

    The underlying driver/SQLAlchemy exception is chained as ``__cause__``.
    Nothing inside chargecurve retries; callers own the retry policy.
    """

    def __init__(self, message: str, *, operation: str = "") -> None:
        self.operation = operation
        super().__init__(message)
