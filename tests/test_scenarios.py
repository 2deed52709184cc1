# tests/test_scenarios.py
import copy
import logging
from pathlib import Path

import pytest
import yaml

from scenarios import load_regions, parse_config
from utils.exceptions import ConfigurationError

_BASE = {
    "defaults": {
        "years": [2000, 2005, 2010],
        "sector": {"p_elasticity": -0.3, "i_elasticity": 0.5},
    },
    "regions": [{
        "name": "r1",
        "gdp": [100.0, 110.0, 120.0],
        "population": [10.0, 10.0, 12.0],
        "sectors": [{"name": "bld", "base_service": {2000: 50.0}}],
    }],
}


def _raw(**sector):
    raw = copy.deepcopy(_BASE)
    raw["regions"][0]["sectors"][0].update(sector)
    return raw


def test_parse_minimal_simple_sector():
    (region,) = parse_config(_raw())
    (sec,) = region.sectors
    assert region.name == "r1" and region.num_periods == 3
    assert sec.kind == "simple"
    assert sec.params.p_elasticity == (-0.3, -0.3, -0.3)
    assert sec.params.trend(2) == 0.0
    assert sec.base_service == {0: 50.0}
    assert sec.prices == (1.0, 1.0, 1.0)
    assert region.drivers.scaled_gdp(1) == pytest.approx(1.1)
    assert region.drivers.population_ratio(2) == pytest.approx(1.2)


def test_sector_values_override_defaults():
    (region,) = parse_config(_raw(i_elasticity=[0.4, 0.5, 0.6], per_capita_based=True,
                                  prices={2000: 1.0, 2005: 1.1, 2010: 1.3}))
    sec = region.sectors[0]
    assert sec.params.i_elasticity == (0.4, 0.5, 0.6)
    assert sec.params.per_capita_based is True
    assert sec.prices == (1.0, 1.1, 1.3)


def test_segmented_sector_with_shares_and_calibrated_outputs():
    (region,) = parse_config(_raw(
        kind="segmented",
        base_service={2000: 50.0, 2005: 55.0},
        segment_share={2000: 0.7},
        calibrated_outputs={"road": {2000: 30.0}, "rail": {2000: 20.0}},
        trend_rate=0.01,
    ))
    sec = region.sectors[0]
    assert sec.segment_share == {0: 0.7}
    assert sec.calibrated_outputs["road"][0] == 30.0
    assert sec.params.trend_rate == (0.01, 0.01, 0.01)


@pytest.mark.parametrize("sector", [
    {"kind": "hybrid"},
    {"kind": "segmented"},                                   # no base service in 2005
    {"kind": "segmented", "base_service": {2000: 1.0, 2005: 1.0},
     "segment_share": {2000: 1.5}},
    {"segment_share": {2000: 0.5}},                          # simple sector
    {"calibrated_outputs": {"a": {2000: 1.0}}},              # simple sector
    {"base_service": {1999: 10.0}},
    {"p_elasticity": [0.1, 0.2]},
    {"prices": [1.0, 0.0, 1.0]},
])
def test_invalid_sector_records(sector):
    with pytest.raises(ConfigurationError):
        parse_config(_raw(**sector))


def test_missing_elasticities():
    raw = _raw()
    raw["defaults"].pop("sector")
    with pytest.raises(ConfigurationError, match="p_elasticity"):
        parse_config(raw)


def test_duplicate_regions_and_missing_drivers():
    raw = _raw()
    raw["regions"].append(copy.deepcopy(raw["regions"][0]))
    with pytest.raises(ConfigurationError, match="duplicate"):
        parse_config(raw)

    raw = _raw()
    del raw["regions"][0]["population"]
    with pytest.raises(ConfigurationError, match="drivers"):
        parse_config(raw)


@pytest.mark.parametrize("flag", ["false", 0, "yes"])
def test_per_capita_flag_must_be_boolean(flag):
    with pytest.raises(ConfigurationError, match="per_capita_based"):
        parse_config(_raw(per_capita_based=flag))


def test_simple_sector_without_base_service_warns(caplog):
    with caplog.at_level(logging.WARNING, logger="scenarios"):
        parse_config(_raw(base_service=None))
    assert "fallback scaler" in caplog.text


def test_load_regions_with_csv_tables(tmp_path: Path):
    (tmp_path / "drivers.csv").write_text(
        "region,year,gdp,population\n"
        "r1,2000,100,10\nr1,2005,120,10\nr1,2010,150,12\n"
        "r2,2000,5,1\nr2,2005,6,1\nr2,2010,7,1\n"
    )
    (tmp_path / "prices.csv").write_text(
        "region,sector,year,price\n"
        "r1,bld,2000,1.0\nr1,bld,2005,1.0\nr1,bld,2010,1.2\n"
    )
    raw = _raw(prices_csv="prices.csv")
    row = raw["regions"][0]
    del row["gdp"], row["population"]
    row["drivers_csv"] = "drivers.csv"
    cfg = tmp_path / "scenarios.yaml"
    cfg.write_text(yaml.safe_dump(raw))

    (region,) = load_regions(cfg)
    assert region.drivers.scaled_gdp(2) == pytest.approx(1.5)
    assert region.drivers.scaled_gdp_per_capita(2) == pytest.approx(1.25)
    assert region.sectors[0].prices == (1.0, 1.0, 1.2)


def test_shipped_configuration_parses():
    regions = load_regions(Path(__file__).resolve().parents[1] / "scenarios.yaml")
    assert {r.name for r in regions} == {"north", "south"}
    kinds = {s.name: s.kind for r in regions for s in r.sectors}
    assert kinds["passenger"] == "segmented" and kinds["residential"] == "simple"
