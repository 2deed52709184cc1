# microfoundations/demand.py
# Power-law service-demand response used by both demand strategies.
# Pure helpers: no state, no logging.  demand_engine owns the branching.

from __future__ import annotations
import math

from utils.exceptions import NonFiniteDriverError

__all__ = [
    "price_ratio",
    "driver_term",
    "fit_scaler",
    "project_demand",
    "apply_trend",
]

def _require_positive(value: float, label: str) -> float:
    value = float(value)
    if not math.isfinite(value) or value <= 0.0:
        raise NonFiniteDriverError(f"{label} must be positive and finite; got {value}")
    return value

def _require_finite(value: float, label: str) -> float:
    if not math.isfinite(value):
        raise NonFiniteDriverError(f"{label} became non-finite ({value})")
    return value

# Own-price ratio
def price_ratio(period: int, price_curr: float, price_prev: float) -> float:
    """
    Period-over-period own-price ratio  p(t) / p(t-1).

    Prices are not reliable before period 2, so periods 0 and 1 always
    return 1.0 and the prices are not inspected.
    """
    if period <= 1:
        return 1.0
    curr = _require_positive(price_curr, f"price[{period}]")
    prev = _require_positive(price_prev, f"price[{period - 1}]")
    return curr / prev

# Income / activity driver
def driver_term(
    gdp_per_capita: float,
    gdp_aggregate: float,
    i_elasticity: float,
    per_capita_based: bool,
) -> float:
    """
    Income part of the demand function.

        per capita :  gdppc^ε_i · (gdp / gdppc)
        aggregate  :  gdp^ε_i

    With scaled drivers (base period = 1) the ratio gdp / gdppc is the
    population relative to the base period.
    """
    if per_capita_based:
        gdppc = _require_positive(gdp_per_capita, "scaled GDP per capita")
        gdp = _require_positive(gdp_aggregate, "scaled GDP")
        term = gdppc ** i_elasticity * (gdp / gdppc)
    else:
        gdp = _require_positive(gdp_aggregate, "scaled GDP")
        term = gdp ** i_elasticity
    return _require_finite(term, "driver term")

def fit_scaler(
    target: float,
    ratio: float,
    p_elasticity: float,
    income: float,
) -> float:
    """
    Invert the demand function on an observed service level:

        S = target / ( ratio^ε_p · income )
    """
    scaler = target / ratio ** p_elasticity
    scaler /= income
    return _require_finite(scaler, "fitted scaler")

def project_demand(
    scaler: float,
    ratio: float,
    p_elasticity: float,
    income: float,
) -> float:
    """D = S · ratio^ε_p · income"""
    demand = scaler * ratio ** p_elasticity * income
    return _require_finite(demand, "projected demand")

def apply_trend(demand: float, trend_rate: float, timestep: float) -> float:
    """
    Autonomous end-use efficiency trend over one timestep:

        D / (1 + r)^Δt

    Not cumulative: each period is de-trended from its own raw demand.
    """
    if trend_rate <= -1.0:
        raise ValueError(f"trend_rate must be > -1; got {trend_rate}")
    return _require_finite(demand / (1.0 + trend_rate) ** timestep, "de-trended demand")
