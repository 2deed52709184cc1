# tests/test_calibration_state.py
import math

import pytest

from utils.calibration_state import NOT_LICENSED, PRIMARY, UNSET, CalibrationState
from utils.demand_params import DemandParams
from utils.exceptions import CalibrationError, ServiceNotComputedError
from utils.model_time import ModelTime


def test_fresh_state_defaults():
    st = CalibrationState(num_periods=3)
    assert st.base_scaler == UNSET and not st.is_calibrated
    assert st.get_fitted_scaler(NOT_LICENSED) == UNSET
    assert list(st.segment_share) == [1.0, 1.0, 1.0]
    assert not any(st.is_calibration_period(p) for p in range(3))


def test_sentinel_driven_calibration_periods():
    st = CalibrationState(num_periods=3)
    st.record_observed_service(1, 50.0)
    assert [st.is_calibration_period(p) for p in range(3)] == [False, True, False]
    assert st.observed_service(1) == 50.0
    # a negative value clears the override again
    st.record_observed_service(1, -1.0)
    assert not st.is_calibration_period(1)


def test_fixed_window_ignores_sentinel():
    st = CalibrationState(num_periods=4, calibration_window=(0, 1))
    st.record_observed_service(3, 10.0)
    assert [st.is_calibration_period(p) for p in range(4)] == [True, True, False, False]


def test_observed_service_missing_raises():
    st = CalibrationState(num_periods=2, calibration_window=(0, 1))
    with pytest.raises(CalibrationError):
        st.observed_service(0)


def test_scaler_write_only_in_calibration_period():
    st = CalibrationState(num_periods=3)
    st.record_observed_service(0, 10.0)
    st.set_fitted_scaler(0, 2.0, 3.0)
    assert st.get_fitted_scaler(PRIMARY) == 2.0
    assert st.get_fitted_scaler(NOT_LICENSED) == 3.0
    assert st.fitted_in == 0
    with pytest.raises(CalibrationError):
        st.set_fitted_scaler(2, 5.0)
    assert st.base_scaler == 2.0


def test_fallback_scaler_per_segment():
    st = CalibrationState(num_periods=2)
    st.apply_fallback_scaler(NOT_LICENSED)
    assert st.base_scaler_not_lic == 1.0 and st.base_scaler == UNSET
    assert st.fallback_used
    with pytest.raises(KeyError):
        st.apply_fallback_scaler("freight")


def test_read_before_write():
    st = CalibrationState(num_periods=2)
    with pytest.raises(ServiceNotComputedError):
        st.service_at(0)
    with pytest.raises(ServiceNotComputedError):
        st.service_pre_tech_change_at(1)
    st.write_service(0, pre_tech_change=12.0, service=10.0)
    assert st.service_at(0) == 10.0
    assert st.service_pre_tech_change_at(0) == 12.0
    assert math.isnan(st.output[0])


def test_period_bounds_and_share_bounds():
    st = CalibrationState(num_periods=2)
    with pytest.raises(IndexError):
        st.record_observed_service(2, 1.0)
    with pytest.raises(ValueError):
        st.set_segment_share(0, 1.2)


def test_snapshot_before_and_after_write():
    st = CalibrationState(num_periods=2)
    st.record_observed_service(0, 10.0)
    st.set_segment_share(0, 0.4)
    snap = st.snapshot(0)
    assert snap["calibration"] is True
    assert snap["base_service"] == 10.0 and snap["segment_share"] == 0.4
    assert math.isnan(snap["service"])
    st.write_service(0, pre_tech_change=10.0, service=10.0, output=10.0)
    assert st.snapshot(0)["output"] == 10.0


def test_demand_params_validation():
    with pytest.raises(ValueError):
        DemandParams(p_elasticity=(0.0, 0.0), i_elasticity=(1.0,))
    with pytest.raises(ValueError):
        DemandParams(p_elasticity=(0.0,), i_elasticity=(math.nan,))
    with pytest.raises(ValueError):
        DemandParams.constant(2, trend_rate=-1.0)
    p = DemandParams(p_elasticity=(0.0, 0.0), i_elasticity=(1.0, 1.0))
    assert p.trend(1) == 0.0 and p.num_periods == 2


def test_model_time_timesteps():
    mt = ModelTime.from_years([1975, 1990, 2005, 2010])
    assert [mt.timestep(p) for p in range(4)] == [15, 15, 15, 5]
    assert mt.year_to_period(2005) == 2
    with pytest.raises(KeyError):
        mt.year_to_period(2000)
    assert ModelTime.from_years([2020], first_timestep=5).timestep(0) == 5
    with pytest.raises(ValueError):
        ModelTime.from_years([2000, 2000])
