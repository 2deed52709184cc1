# utils/model_time.py
# Model calendar: period index ↔ calendar year and timestep lengths.

from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence

__all__ = ["ModelTime"]


@dataclass(slots=True, frozen=True)
class ModelTime:
    """
    years[p] is the calendar year of period p.  The timestep of period p
    is the distance to the previous period; period 0 reuses the first
    interval (or *first_timestep* when the calendar has a single year).
    """
    years: tuple[int, ...]
    first_timestep: int | None = None

    def __post_init__(self) -> None:
        if not self.years:
            raise ValueError("years must be non-empty")
        if any(b <= a for a, b in zip(self.years, self.years[1:])):
            raise ValueError(f"years must be strictly increasing; got {self.years}")
        if len(self.years) == 1 and self.first_timestep is None:
            raise ValueError("single-year calendars need an explicit first_timestep")

    @classmethod
    def from_years(cls, years: Sequence[int], first_timestep: int | None = None) -> "ModelTime":
        return cls(tuple(int(y) for y in years), first_timestep)

    @property
    def num_periods(self) -> int:
        return len(self.years)

    def timestep(self, period: int) -> int:
        if not (0 <= period < self.num_periods):
            raise IndexError(f"period {period} outside 0..{self.num_periods - 1}")
        if period == 0:
            if self.first_timestep is not None:
                return self.first_timestep
            return self.years[1] - self.years[0]
        return self.years[period] - self.years[period - 1]

    def period_to_year(self, period: int) -> int:
        return self.years[period]

    def year_to_period(self, year: int) -> int:
        try:
            return self.years.index(int(year))
        except ValueError:
            raise KeyError(f"year {year} is not a model period") from None
