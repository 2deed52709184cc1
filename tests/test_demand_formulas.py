# tests/test_demand_formulas.py
import math

import pytest

from microfoundations.demand import (
    apply_trend,
    driver_term,
    fit_scaler,
    price_ratio,
    project_demand,
)
from utils.exceptions import NonFiniteDriverError


@pytest.mark.parametrize("period", [0, 1])
def test_price_ratio_neutral_in_base_periods(period):
    # prices are not even looked at before period 2
    assert price_ratio(period, math.nan, 0.0) == 1.0


def test_price_ratio_from_period_two():
    assert price_ratio(2, 1.5, 1.2) == pytest.approx(1.25)


@pytest.mark.parametrize("prev", [0.0, -1.0, math.nan, math.inf])
def test_price_ratio_rejects_unusable_previous_price(prev):
    with pytest.raises(NonFiniteDriverError):
        price_ratio(3, 1.0, prev)


def test_driver_term_aggregate():
    assert driver_term(5.0, 121.0, 0.5, per_capita_based=False) == pytest.approx(11.0)


def test_driver_term_per_capita():
    # gdppc^ie * population ratio
    assert driver_term(4.0, 8.0, 0.5, per_capita_based=True) == pytest.approx(2.0 * 2.0)


def test_driver_term_modes_agree_with_unit_income_elasticity():
    gdp, gdppc = 1.7, 1.3
    assert driver_term(gdppc, gdp, 1.0, True) == pytest.approx(driver_term(gdppc, gdp, 1.0, False))


def test_driver_term_aggregate_ignores_gdp_per_capita():
    assert driver_term(math.nan, 4.0, 0.5, per_capita_based=False) == pytest.approx(2.0)


@pytest.mark.parametrize("gdp", [0.0, -2.0, math.nan])
def test_driver_term_rejects_bad_gdp(gdp):
    with pytest.raises(NonFiniteDriverError):
        driver_term(1.0, gdp, 0.8, per_capita_based=False)


def test_fit_then_project_reproduces_target():
    ratio, pe, income = 1.1, -0.4, 2.5
    s = fit_scaler(42.0, ratio, pe, income)
    assert project_demand(s, ratio, pe, income) == pytest.approx(42.0)


def test_apply_trend_single_timestep():
    assert apply_trend(100.0, 0.02, 5) == pytest.approx(100.0 / 1.02 ** 5)
    assert apply_trend(100.0, 0.0, 5) == 100.0


def test_apply_trend_rejects_rate_at_or_below_minus_one():
    with pytest.raises(ValueError):
        apply_trend(100.0, -1.0, 5)
