# utils/sector_links.py
# Collaborators the demand engine talks to, kept deliberately thin:
#
#   • PriceHistory   – the sector's own price per period
#   • SectorOutput   – receives the aggregate demand and fans it out to
#                      subsectors by fixed shares; sums the sector output
#   • FixedInputs    – calibrated subsector outputs; tells whether every
#                      input of a period is fixed and their total
#
# Price formation and technology shares are handled elsewhere; here prices
# are an exogenous path and subsector shares are constants.
# ─────────────────────────────────────────────────────────────────────────────
from __future__ import annotations

import math
from typing import Dict, Mapping, Sequence

import numpy as np

__all__ = ["PriceHistory", "SectorOutput", "FixedInputs", "DEFAULT_SUBSECTOR"]

DEFAULT_SUBSECTOR = "all"


class PriceHistory:
    """Own-price series of one sector; unset periods hold NaN."""

    def __init__(self, num_periods: int, prices: Sequence[float] | None = None) -> None:
        self._prices = np.full(num_periods, np.nan)
        if prices is not None:
            if len(prices) != num_periods:
                raise ValueError(f"expected {num_periods} prices, got {len(prices)}")
            for period, value in enumerate(prices):
                self.set_price(period, value)

    def set_price(self, period: int, value: float) -> None:
        if not math.isfinite(value):
            raise ValueError(f"price for period {period} must be finite; got {value}")
        self._prices[period] = float(value)

    def price(self, period: int) -> float:
        value = float(self._prices[period])
        if math.isnan(value):
            raise LookupError(f"price for period {period} has not been set")
        return value

    def __len__(self) -> int:
        return len(self._prices)


class SectorOutput:
    """
    Output sink: distributes sector demand over subsectors

        out_s(t) = share_s · D(t),   Σ_s share_s = 1

    and records the summed sector output.
    """

    def __init__(self, num_periods: int, shares: Mapping[str, float] | None = None) -> None:
        shares = dict(shares or {DEFAULT_SUBSECTOR: 1.0})
        if any(v < 0 for v in shares.values()):
            raise ValueError("subsector shares must be non-negative")
        total = sum(shares.values())
        if total <= 0:
            raise ValueError("subsector shares must sum to a positive value")
        self.shares: Dict[str, float] = {k: v / total for k, v in shares.items()}
        self._out = {name: np.full(num_periods, np.nan) for name in self.shares}
        self._total = np.full(num_periods, np.nan)

    def distribute_demand(self, value: float, period: int) -> None:
        for name, share in self.shares.items():
            self._out[name][period] = share * value
        self._total[period] = sum(arr[period] for arr in self._out.values())

    def subsector_output(self, name: str, period: int) -> float:
        return float(self._out[name][period])

    def total_output(self, period: int) -> float:
        return float(self._total[period])


class FixedInputs:
    """
    Calibrated outputs per subsector and period (NaN = not calibrated).
    A period counts as fully fixed only if every subsector is calibrated.
    """

    def __init__(self, num_periods: int,
                 calibrated: Mapping[str, Sequence[float]] | None = None) -> None:
        self._cal: Dict[str, np.ndarray] = {}
        for name, values in (calibrated or {}).items():
            arr = np.asarray(values, dtype=float)
            if arr.shape != (num_periods,):
                raise ValueError(
                    f"calibrated output for '{name}' must cover {num_periods} periods"
                )
            self._cal[name] = arr

    def all_inputs_fixed(self, period: int) -> bool:
        if not self._cal:
            return False
        return all(np.isfinite(arr[period]) for arr in self._cal.values())

    def calibrated_output_total(self, period: int) -> float:
        return float(sum(np.nan_to_num(arr[period]) for arr in self._cal.values()))
