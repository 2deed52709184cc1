# utils/gdp.py
"""
Economic driver provider for one region.

Holds GDP and GDP per capita per period and serves them *scaled* to the
base period (period 0 = 1.0), which is what the demand function consumes:

    scaled_gdp(p)            = GDP(p) / GDP(0)
    scaled_gdp_per_capita(p) = GDPpc(p) / GDPpc(0)

so scaled_gdp / scaled_gdp_per_capita is the population ratio POP(p)/POP(0).
Series that are already normalised are passed through untouched
(`GDPDriver.from_scaled`).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Protocol, Sequence

__all__ = ["DriverProvider", "GDPDriver"]


class DriverProvider(Protocol):
    def scaled_gdp(self, period: int) -> float: ...
    def scaled_gdp_per_capita(self, period: int) -> float: ...


@dataclass(slots=True, frozen=True)
class GDPDriver:
    gdp:            tuple[float, ...]
    gdp_per_capita: tuple[float, ...]
    normalise:      bool = True

    def __post_init__(self) -> None:
        if not self.gdp:
            raise ValueError("gdp must cover at least one period")
        if len(self.gdp) != len(self.gdp_per_capita):
            raise ValueError(
                f"gdp has {len(self.gdp)} periods, gdp_per_capita has {len(self.gdp_per_capita)}"
            )
        if self.normalise and (self.gdp[0] <= 0 or self.gdp_per_capita[0] <= 0):
            raise ValueError("base-period gdp and gdp per capita must be positive")

    @classmethod
    def from_series(cls, gdp: Sequence[float], population: Sequence[float]) -> "GDPDriver":
        """Absolute GDP and population; per-capita values are derived."""
        if len(gdp) != len(population):
            raise ValueError(
                f"gdp has {len(gdp)} periods, population has {len(population)}"
            )
        per_capita = tuple(
            float(g) / float(p) if p else math.inf for g, p in zip(gdp, population)
        )
        return cls(tuple(float(v) for v in gdp), per_capita)

    @classmethod
    def from_scaled(
        cls,
        scaled_gdp: Sequence[float],
        scaled_gdp_per_capita: Sequence[float],
    ) -> "GDPDriver":
        return cls(
            tuple(float(v) for v in scaled_gdp),
            tuple(float(v) for v in scaled_gdp_per_capita),
            normalise=False,
        )

    @property
    def num_periods(self) -> int:
        return len(self.gdp)

    def scaled_gdp(self, period: int) -> float:
        if self.normalise:
            return self.gdp[period] / self.gdp[0]
        return self.gdp[period]

    def scaled_gdp_per_capita(self, period: int) -> float:
        if self.normalise:
            return self.gdp_per_capita[period] / self.gdp_per_capita[0]
        return self.gdp_per_capita[period]

    def population_ratio(self, period: int) -> float:
        return self.scaled_gdp(period) / self.scaled_gdp_per_capita(period)
