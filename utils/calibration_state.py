# utils/calibration_state.py
# Per-sector, per-region calibration state for the service-demand engine.
#
# Holds everything that mutates during a run: the fitted scalers, the
# observed (base) service, segment shares, last price ratios and the three
# per-period output vectors.  Frozen inputs live in DemandParams.
#
# Sentinels follow the model input convention:
#   • base_scaler < 0        → not yet calibrated
#   • base_service[p] < 0    → no calibration override for period p
# --------------------------------------------------------------------------

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

import numpy as np

from utils.exceptions import CalibrationError, ServiceNotComputedError

__all__ = ["CalibrationState", "UNSET", "PRIMARY", "NOT_LICENSED"]

UNSET: float = -1.0
PRIMARY = "primary"
NOT_LICENSED = "not_licensed"


@dataclass(slots=True)
class CalibrationState:
    """Mutable calibration record; exclusively owned by one region-sector pair."""
    num_periods:         int
    # fixed calibration window; empty ⇒ sentinel-driven (base_service[p] >= 0)
    calibration_window:  tuple[int, ...] = ()

    base_scaler:         float = UNSET
    base_scaler_not_lic: float = UNSET
    price_ratio:         float = 1.0
    price_ratio_not_lic: float = 1.0

    base_service:            np.ndarray = field(init=False)
    segment_share:           np.ndarray = field(init=False)
    service_pre_tech_change: np.ndarray = field(init=False)
    service:                 np.ndarray = field(init=False)
    output:                  np.ndarray = field(init=False)
    _written:                np.ndarray = field(init=False, repr=False)

    fitted_in:     int | None = None
    fallback_used: bool = False

    def __post_init__(self) -> None:
        if self.num_periods <= 0:
            raise ValueError("num_periods must be positive")
        n = self.num_periods
        self.base_service            = np.full(n, UNSET)
        self.segment_share           = np.ones(n)
        self.service_pre_tech_change = np.full(n, np.nan)
        self.service                 = np.full(n, np.nan)
        self.output                  = np.full(n, np.nan)
        self._written                = np.zeros(n, dtype=bool)

    # -----------------------------------------------------------------
    def _check_period(self, period: int) -> int:
        if not (0 <= period < self.num_periods):
            raise IndexError(f"period {period} outside 0..{self.num_periods - 1}")
        return period

    def is_calibration_period(self, period: int) -> bool:
        self._check_period(period)
        if self.calibration_window:
            return period in self.calibration_window
        return bool(self.base_service[period] >= 0.0)

    @property
    def is_calibrated(self) -> bool:
        return self.base_scaler >= 0.0

    # observed data ----------------------------------------------------
    def record_observed_service(self, period: int, value: float) -> None:
        """Store observed service; a negative value clears the override."""
        self.base_service[self._check_period(period)] = float(value)

    def observed_service(self, period: int) -> float:
        value = float(self.base_service[self._check_period(period)])
        if value < 0.0:
            raise CalibrationError(f"no observed service recorded for period {period}")
        return value

    def set_segment_share(self, period: int, share: float) -> None:
        if not (0.0 <= share <= 1.0):
            raise ValueError(f"segment share must be in [0,1]; got {share}")
        self.segment_share[self._check_period(period)] = float(share)

    # fitted scalers ---------------------------------------------------
    def get_fitted_scaler(self, segment: str = PRIMARY) -> float:
        """Return the scaler for *segment*; UNSET if never calibrated."""
        if segment == PRIMARY:
            return self.base_scaler
        if segment == NOT_LICENSED:
            return self.base_scaler_not_lic
        raise KeyError(f"unknown segment '{segment}'")

    def set_fitted_scaler(
        self,
        period: int,
        primary: float,
        not_lic: float | None = None,
    ) -> None:
        """
        Write scalers fitted in *period*.  Only a calibration period may
        (re)fit them; projection periods read them frozen.
        """
        if not self.is_calibration_period(period):
            raise CalibrationError(
                f"scaler refit attempted in projection period {period}"
            )
        self.base_scaler = float(primary)
        if not_lic is not None:
            self.base_scaler_not_lic = float(not_lic)
        self.fitted_in = period

    def apply_fallback_scaler(self, segment: str = PRIMARY) -> None:
        """Substitute 1.0 for an uncalibrated scaler."""
        if segment == PRIMARY:
            self.base_scaler = 1.0
        elif segment == NOT_LICENSED:
            self.base_scaler_not_lic = 1.0
        else:
            raise KeyError(f"unknown segment '{segment}'")
        self.fallback_used = True

    # computed outputs -------------------------------------------------
    def write_service(
        self,
        period: int,
        *,
        pre_tech_change: float,
        service: float,
        output: float | None = None,
    ) -> None:
        self._check_period(period)
        self.service_pre_tech_change[period] = pre_tech_change
        self.service[period] = service
        if output is not None:
            self.output[period] = output
        self._written[period] = True

    def is_written(self, period: int) -> bool:
        return bool(self._written[self._check_period(period)])

    def service_at(self, period: int) -> float:
        if not self.is_written(period):
            raise ServiceNotComputedError(f"service for period {period} not computed yet")
        return float(self.service[period])

    def service_pre_tech_change_at(self, period: int) -> float:
        if not self.is_written(period):
            raise ServiceNotComputedError(f"service for period {period} not computed yet")
        return float(self.service_pre_tech_change[period])

    def snapshot(self, period: int) -> Dict[str, Any]:
        """Debug record of the period, used as result-table columns."""
        written = self.is_written(period)
        return {
            "calibration":             self.is_calibration_period(period),
            "base_service":            float(self.base_service[period]),
            "segment_share":           float(self.segment_share[period]),
            "price_ratio":             self.price_ratio,
            "base_scaler":             self.base_scaler,
            "base_scaler_not_lic":     self.base_scaler_not_lic,
            "service_pre_tech_change": float(self.service_pre_tech_change[period]) if written else np.nan,
            "service":                 float(self.service[period]) if written else np.nan,
            "output":                  float(self.output[period]) if written else np.nan,
        }
