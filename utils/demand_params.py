# utils/demand_params.py
"""
DemandParams

Per-sector constants of the service-demand function, fixed once the
configuration is loaded:

    • p_elasticity     – own-price elasticity ε_p, one value per period
    • i_elasticity     – income elasticity ε_i, one value per period
    • per_capita_based – GDP-per-capita driver (True) or aggregate GDP (False)
    • trend_rate       – autonomous end-use efficiency trend per period

The dataclass is *frozen* so the elasticities cannot drift mid-run.
"""

from __future__ import annotations
import math
from dataclasses import dataclass, field


@dataclass(slots=True, frozen=True)
class DemandParams:
    p_elasticity:     tuple[float, ...]
    i_elasticity:     tuple[float, ...]
    per_capita_based: bool = False
    trend_rate:       tuple[float, ...] = field(default=())   # empty ⇒ no trend

    def __post_init__(self) -> None:        # lightweight validation
        n = len(self.p_elasticity)
        if n == 0:
            raise ValueError("p_elasticity must cover at least one period")
        if len(self.i_elasticity) != n:
            raise ValueError(
                f"i_elasticity has {len(self.i_elasticity)} periods, p_elasticity has {n}"
            )
        if self.trend_rate and len(self.trend_rate) != n:
            raise ValueError(f"trend_rate has {len(self.trend_rate)} periods, expected {n}")
        for name in ("p_elasticity", "i_elasticity", "trend_rate"):
            if not all(math.isfinite(v) for v in getattr(self, name)):
                raise ValueError(f"{name} contains non-finite values")
        if any(r <= -1.0 for r in self.trend_rate):
            raise ValueError("trend_rate must be > -1 in every period")

    @property
    def num_periods(self) -> int:
        return len(self.p_elasticity)

    def trend(self, period: int) -> float:
        return self.trend_rate[period] if self.trend_rate else 0.0

    @classmethod
    def constant(
        cls,
        num_periods: int,
        *,
        p_elasticity: float = 0.0,
        i_elasticity: float = 1.0,
        per_capita_based: bool = False,
        trend_rate: float = 0.0,
    ) -> "DemandParams":
        """Same elasticities in every period; handy for tests and defaults."""
        return cls(
            p_elasticity=(float(p_elasticity),) * num_periods,
            i_elasticity=(float(i_elasticity),) * num_periods,
            per_capita_based=per_capita_based,
            trend_rate=(float(trend_rate),) * num_periods,
        )
