# tests/test_region_runner.py
import math
from pathlib import Path

import pandas as pd
import pytest

import curation
import sim_runner
from region_runner import run_all, run_region
from scenarios import load_regions, parse_config
from validator import SCHEMA

_CONFIG = Path(__file__).resolve().parents[1] / "scenarios.yaml"


def _raw(scaled_gdp):
    return {
        "defaults": {"years": [2000, 2005, 2010],
                     "sector": {"p_elasticity": 0.0, "i_elasticity": 1.0}},
        "regions": [{
            "name": "r1",
            "scaled_gdp": scaled_gdp,
            "scaled_gdp_per_capita": [1.0, 1.0, 1.0],
            "sectors": [
                {"name": "bld", "base_service": {2000: 10.0}},
                {"name": "trn", "kind": "segmented",
                 "base_service": {2000: 20.0, 2005: 22.0}},
            ],
        }],
    }


def test_run_region_rows_and_schema():
    (cfg,) = parse_config(_raw([1.0, 1.1, 1.5]))
    results, diags = run_region(cfg)
    assert len(results) == 2 * 3
    SCHEMA.validate(results, lazy=True)
    assert diags.empty

    bld = results[results["sector"] == "bld"].set_index("period")
    assert bld.loc[0, "service"] == 10.0
    assert bld.loc[2, "service"] == pytest.approx(15.0)
    assert bld["calibration"].tolist() == [True, False, False]
    assert math.isnan(bld.loc[2, "scale_factor"])


def test_zero_calibrated_outputs_are_reconciled_not_rejected():
    raw = _raw([1.0, 1.1, 1.5])
    raw["regions"][0]["sectors"][1]["calibrated_outputs"] = {"a": {2000: 0.0}}
    (cfg,) = parse_config(raw)
    results, diags = run_region(cfg)
    curated = curation.curate(results)

    trn = curated[curated["sector"] == "trn"].set_index("period")
    assert trn.loc[0, "scale_factor"] == 0.0
    assert trn.loc[0, "service"] == 0.0
    assert (diags["kind"] == "calibration_rescale").sum() == 1


def test_non_finite_driver_halts_region():
    (cfg,) = parse_config(_raw([1.0, 1.1, 0.0]))
    with pytest.raises(RuntimeError, match="region 'r1' halted"):
        run_region(cfg)


def test_sample_configuration_runs_and_reconciles():
    regions = load_regions(_CONFIG)
    results, diags = run_all(regions, jobs=1)
    curated = curation.curate(results)

    n_rows = sum(len(r.sectors) * r.num_periods for r in regions)
    assert len(curated) == n_rows
    passenger = curated.query("region == 'north' and sector == 'passenger'").set_index("period")
    assert passenger.loc[0, "service"] == pytest.approx(322.0 + 58.0 + 21.0)
    assert passenger.loc[0, "scale_factor"] == pytest.approx(401.0 / 400.0)
    assert passenger.loc[2:, "scale_factor"].isna().all()
    assert (diags["kind"] == "calibration_rescale").sum() == 2
    assert not (diags["level"] == "WARNING").any()


def test_parallel_matches_sequential():
    regions = load_regions(_CONFIG)
    seq, _ = run_all(regions, jobs=1)
    par, _ = run_all(regions, jobs=2)
    pd.testing.assert_frame_equal(seq, par)


def test_run_all_needs_regions():
    with pytest.raises(ValueError):
        run_all([], jobs=1)


def test_sim_runner_cli_writes_outputs(tmp_path: Path):
    out = tmp_path / "demand.parquet"
    diag = tmp_path / "diagnostics.csv"
    sim_runner.main(["--config", str(_CONFIG), "--out", str(out),
                     "--diagnostics", str(diag), "--jobs", "1"])
    df = pd.read_parquet(out)
    assert {"service_index", "service_growth_pct", "service_per_capita"} <= set(df.columns)
    assert len(pd.read_csv(diag)) == 2
