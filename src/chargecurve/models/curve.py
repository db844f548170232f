"""Charge curve view."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import NamedTuple

from chargecurve._constants import LEVELS, MAX_LEVEL, MIN_LEVEL


class LevelDuration(NamedTuple):
    """Median seconds-per-percent measured at one level."""

    level: int
    seconds: float


@dataclass(frozen=True, slots=True)
class ChargeCurve(Mapping[int, float]):
    """Expected seconds to advance one percent, for every level 0-100.

    The curve is derived on demand and never persisted. Indexing with a
    level outside 0-100 raises ``KeyError``.
    """

    seconds: tuple[float, ...]

    def __post_init__(self) -> None:
        if len(self.seconds) != len(LEVELS):
            raise ValueError(f"a charge curve needs {len(LEVELS)} entries, got {len(self.seconds)}")

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[int, float]]) -> ChargeCurve:
        """Build from ``(level, seconds)`` pairs covering 0-100 in order."""
        values: list[float] = []
        for expected, (level, seconds) in zip(LEVELS, pairs, strict=True):
            if level != expected:
                raise ValueError(f"expected level {expected}, got {level}")
            values.append(float(seconds))
        return cls(tuple(values))

    def __getitem__(self, level: int) -> float:
        if not isinstance(level, int) or not MIN_LEVEL <= level <= MAX_LEVEL:
            raise KeyError(level)
        return self.seconds[level]

    def __iter__(self) -> Iterator[int]:
        return iter(LEVELS)

    def __len__(self) -> int:
        return len(self.seconds)

    def seconds_between(self, from_level: int, to_level: int) -> float:
        """Predicted seconds to charge from ``from_level`` up to ``to_level``.

        Sums the per-level durations over ``[from_level, to_level)``; zero
        when ``to_level <= from_level``.
        """
        for level in (from_level, to_level):
            if not MIN_LEVEL <= level <= MAX_LEVEL:
                raise ValueError(f"level must be between {MIN_LEVEL} and {MAX_LEVEL}, got {level}")
        if to_level <= from_level:
            return 0.0
        return sum(self.seconds[from_level:to_level])

    def as_dict(self) -> dict[int, float]:
        return dict(zip(LEVELS, self.seconds, strict=True))
