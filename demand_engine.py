# demand_engine.py
# Aggregate service-demand engine for demand sectors.
#
# Two strategies share one contract (DemandStrategy) and one state holder
# (CalibrationState):
#
#   • SimpleDemand     – buildings style.  A period is a calibration period
#                        iff observed base service is recorded for it; the
#                        single scaler is fitted there and frozen afterwards.
#   • SegmentedDemand  – transport style.  Periods 0 and 1 always calibrate;
#                        the scaler is split into a primary ("licensed") and
#                        a secondary segment by segment_share, and projected
#                        demand is de-trended by the autonomous efficiency
#                        trend.  Supports reconciliation against fixed
#                        (calibrated) subsector outputs.
#
# Demand function for period t (elasticities ε_p(t), ε_i(t)):
#
#     D(t) = S · (p(t)/p(t-1))^ε_p · I(t)
#     I(t) = gdppc^ε_i · gdp/gdppc     (per capita)   or   gdp^ε_i
#
# The price ratio is fixed at 1.0 in periods 0 and 1.
# --------------------------------------------------------------------------

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import ClassVar, Dict, Mapping, Protocol, Tuple, Type

from microfoundations.demand import (
    apply_trend,
    driver_term,
    fit_scaler,
    price_ratio,
    project_demand,
)
from utils.calibration_state import NOT_LICENSED, PRIMARY, CalibrationState
from utils.demand_params import DemandParams
from utils.diagnostics import CALIBRATION_RESCALE, UNCALIBRATED_SCALER
from utils.exceptions import NonFiniteDriverError
from utils.gdp import DriverProvider
from utils.sector_links import FixedInputs, PriceHistory, SectorOutput
from utils.sim_context import SimContext

__all__ = [
    "DemandStrategy",
    "SimpleDemand",
    "SegmentedDemand",
    "build_strategy",
    "STRATEGY_KINDS",
]


class DemandStrategy(Protocol):
    kind:   ClassVar[str]
    params: DemandParams
    state:  CalibrationState
    ctx:    SimContext

    def compute_demand(self, period: int, gdp_per_capita: float, gdp_aggregate: float,
                       price_curr: float, price_prev: float) -> float: ...

    def aggregate_demand(self, period: int) -> None: ...

    def check_sector_cal_data(self, period: int) -> float | None: ...


# shared helpers -------------------------------------------------------------
def _price_pair(prices: PriceHistory, period: int) -> Tuple[float, float]:
    """(p(t), p(t-1)) when the ratio is used, NaN placeholders otherwise."""
    if period <= 1:
        return math.nan, math.nan
    return prices.price(period), prices.price(period - 1)

def _ensure_calibrated(state: CalibrationState, ctx: SimContext,
                       period: int, segment: str) -> None:
    if state.get_fitted_scaler(segment) >= 0.0:
        return
    ctx.warn(
        UNCALIBRATED_SCALER, period,
        f"{segment} base scaler not calibrated before projection; "
        f"substituting 1.0 (sector {ctx.sector}, region {ctx.region})",
        value=1.0,
    )
    state.apply_fallback_scaler(segment)

def _labelled(exc: NonFiniteDriverError, ctx: SimContext, period: int) -> NonFiniteDriverError:
    return NonFiniteDriverError(
        f"demand for sector '{ctx.sector}' in region '{ctx.region}', "
        f"period {period} ({ctx.year(period)}) aborted: {exc}"
    )


# 1  Simple strategy ----------------------------------------------------------
@dataclass(slots=True)
class SimpleDemand:
    kind: ClassVar[str] = "simple"

    params:  DemandParams
    state:   CalibrationState
    ctx:     SimContext
    drivers: DriverProvider
    prices:  PriceHistory
    sink:    SectorOutput

    @staticmethod
    def new_state(num_periods: int) -> CalibrationState:
        return CalibrationState(num_periods=num_periods)

    def compute_demand(
        self,
        period: int,
        gdp_per_capita: float,
        gdp_aggregate: float,
        price_curr: float,
        price_prev: float,
    ) -> float:
        """
        Service demand for *period*.

        Calibration periods pass the observed service through and refit
        the scaler; every other period projects with the frozen scaler.
        Nothing is written to the state if a driver is unusable.
        """
        st, p = self.state, self.params
        pe = p.p_elasticity[period]
        try:
            ratio  = price_ratio(period, price_curr, price_prev)
            income = driver_term(gdp_per_capita, gdp_aggregate,
                                 p.i_elasticity[period], p.per_capita_based)
            if st.is_calibration_period(period):
                observed = st.observed_service(period)
                scaler   = fit_scaler(observed, ratio, pe, income)
                st.set_fitted_scaler(period, scaler)
                result = observed
            else:
                _ensure_calibrated(st, self.ctx, period, PRIMARY)
                result = project_demand(st.base_scaler, ratio, pe, income)
        except NonFiniteDriverError as exc:
            raise _labelled(exc, self.ctx, period) from exc

        st.price_ratio = ratio
        # no technology-independent trend in this strategy
        st.write_service(period, pre_tech_change=result, service=result, output=result)
        return result

    def aggregate_demand(self, period: int) -> None:
        price_curr, price_prev = _price_pair(self.prices, period)
        value = self.compute_demand(
            period,
            self.drivers.scaled_gdp_per_capita(period),
            self.drivers.scaled_gdp(period),
            price_curr,
            price_prev,
        )
        self.sink.distribute_demand(value, period)

    def check_sector_cal_data(self, period: int) -> float | None:
        return None


# 2  Segmented strategy -------------------------------------------------------
@dataclass(slots=True)
class SegmentedDemand:
    kind: ClassVar[str] = "segmented"
    CALIBRATION_WINDOW: ClassVar[Tuple[int, ...]] = (0, 1)

    params:       DemandParams
    state:        CalibrationState
    ctx:          SimContext
    drivers:      DriverProvider
    prices:       PriceHistory
    sink:         SectorOutput
    fixed_inputs: FixedInputs | None = None

    @classmethod
    def new_state(cls, num_periods: int) -> CalibrationState:
        window = tuple(p for p in cls.CALIBRATION_WINDOW if p < num_periods)
        return CalibrationState(num_periods=num_periods, calibration_window=window)

    def compute_demand(
        self,
        period: int,
        gdp_per_capita: float,
        gdp_aggregate: float,
        price_curr: float,
        price_prev: float,
    ) -> float:
        st, p = self.state, self.params
        pe = p.p_elasticity[period]
        calibrating = st.is_calibration_period(period)
        try:
            income = driver_term(gdp_per_capita, gdp_aggregate,
                                 p.i_elasticity[period], p.per_capita_based)
            if calibrating:
                # base prices are ignored in the two base periods
                ratio = ratio_nl = 1.0
                # a reconciled calibration period keeps its reconciled level
                observed  = (st.service_at(period) if st.is_written(period)
                             else st.observed_service(period))
                share     = float(st.segment_share[period])
                scaler    = fit_scaler(observed * share, ratio, pe, income)
                scaler_nl = fit_scaler(observed * (1.0 - share), ratio_nl, pe, income)
                raw = result = observed
            else:
                ratio    = price_ratio(period, price_curr, price_prev)
                ratio_nl = ratio          # both segments face the same own price
                _ensure_calibrated(st, self.ctx, period, PRIMARY)
                _ensure_calibrated(st, self.ctx, period, NOT_LICENSED)
                raw = (project_demand(st.base_scaler, ratio, pe, income)
                       + project_demand(st.base_scaler_not_lic, ratio_nl, pe, income))
                result = apply_trend(raw, p.trend(period), self.ctx.timestep(period))
        except NonFiniteDriverError as exc:
            raise _labelled(exc, self.ctx, period) from exc

        if calibrating:
            st.set_fitted_scaler(period, scaler, scaler_nl)
        st.price_ratio, st.price_ratio_not_lic = ratio, ratio_nl
        st.write_service(period, pre_tech_change=raw, service=result, output=result)
        return result

    def aggregate_demand(self, period: int) -> None:
        price_curr, price_prev = _price_pair(self.prices, period)
        value = self.compute_demand(
            period,
            self.drivers.scaled_gdp_per_capita(period),
            self.drivers.scaled_gdp(period),
            price_curr,
            price_prev,
        )
        self.sink.distribute_demand(value, period)

    def reconcile_with_fixed_inputs(self, period: int, observed_total: float) -> float | None:
        """
        Replace service demand by the bottom-up calibrated total.

        Returns the scale factor total / service (None when the computed
        service is zero).  Inside a calibration period the scalers are
        rescaled by the same factor so later projections start from the
        reconciled level.
        """
        if not math.isfinite(observed_total) or observed_total < 0.0:
            raise _labelled(
                NonFiniteDriverError(f"calibrated output total is {observed_total}"),
                self.ctx, period,
            )
        st = self.state
        current = st.service_at(period)
        factor = observed_total / current if current else None

        if factor is not None and st.is_calibration_period(period):
            st.set_fitted_scaler(period, st.base_scaler * factor,
                                 st.base_scaler_not_lic * factor)
        st.write_service(
            period,
            pre_tech_change=st.service_pre_tech_change_at(period),
            service=observed_total,
            output=observed_total,
        )
        self.sink.distribute_demand(observed_total, period)
        self.ctx.debug(
            CALIBRATION_RESCALE, period,
            f"Calibrated demand scaled by {factor} in region {self.ctx.region} "
            f"sector {self.ctx.sector}",
            value=factor,
        )
        return factor

    def check_sector_cal_data(self, period: int) -> float | None:
        """Reconcile only when every input of the period is calibrated."""
        if self.fixed_inputs is None or not self.fixed_inputs.all_inputs_fixed(period):
            return None
        return self.reconcile_with_fixed_inputs(
            period, self.fixed_inputs.calibrated_output_total(period)
        )


# 3  Factory ------------------------------------------------------------------
_STRATEGIES: Dict[str, Type[DemandStrategy]] = {
    SimpleDemand.kind:    SimpleDemand,
    SegmentedDemand.kind: SegmentedDemand,
}
STRATEGY_KINDS = frozenset(_STRATEGIES)

def build_strategy(
    kind: str,
    *,
    params: DemandParams,
    ctx: SimContext,
    drivers: DriverProvider,
    prices: PriceHistory,
    sink: SectorOutput | None = None,
    fixed_inputs: FixedInputs | None = None,
    base_service: Mapping[int, float] | None = None,
    segment_share: Mapping[int, float] | None = None,
) -> DemandStrategy:
    """
    Assemble a strategy with a fresh CalibrationState populated from
    period-indexed *base_service* and *segment_share* mappings.
    """
    if kind not in _STRATEGIES:
        raise KeyError(f"unknown demand strategy '{kind}'; expected one of {sorted(_STRATEGIES)}")
    cls = _STRATEGIES[kind]
    n = params.num_periods
    state = cls.new_state(n)
    for period, value in (base_service or {}).items():
        state.record_observed_service(period, value)
    for period, share in (segment_share or {}).items():
        state.set_segment_share(period, share)

    sink = sink if sink is not None else SectorOutput(n)
    if cls is SegmentedDemand:
        return SegmentedDemand(params, state, ctx, drivers, prices, sink, fixed_inputs)
    if fixed_inputs is not None:
        raise ValueError("fixed-input reconciliation is only defined for segmented sectors")
    return SimpleDemand(params, state, ctx, drivers, prices, sink)
