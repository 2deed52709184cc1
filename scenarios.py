# scenarios.py
from __future__ import annotations
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence

import yaml

import data_portal
from demand_engine import STRATEGY_KINDS
from utils.demand_params import DemandParams
from utils.exceptions import ConfigurationError
from utils.gdp import GDPDriver
from utils.model_time import ModelTime

_LOG = logging.getLogger(__name__)

# data-classes consumed by region_runner
@dataclass(frozen=True, slots=True)
class SectorCfg:
    name:   str
    kind:   str                             # "simple" | "segmented"
    params: DemandParams
    prices: tuple[float, ...]
    # sparse, period-indexed calibration inputs
    base_service:  Dict[int, float] = field(default_factory=dict)
    segment_share: Dict[int, float] = field(default_factory=dict)
    subsector_shares:   Dict[str, float] = field(default_factory=dict)
    calibrated_outputs: Dict[str, tuple[float, ...]] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class RegionCfg:
    name:       str
    model_time: ModelTime
    drivers:    GDPDriver
    sectors:    tuple[SectorCfg, ...]

    @property
    def num_periods(self) -> int:
        return self.model_time.num_periods


# public API
def load_regions(yaml_path: str | Path = "scenarios.yaml") -> List[RegionCfg]:
    """
    Parse the demand configuration and return one fully-typed RegionCfg
    per region.  Relative CSV paths are resolved against the YAML file.
    """
    path = Path(yaml_path)
    raw: Dict[str, Any] = yaml.safe_load(path.read_text())
    return parse_config(raw, base_dir=path.resolve().parent)

def parse_config(raw: Mapping[str, Any], *, base_dir: Path | None = None) -> List[RegionCfg]:
    if not isinstance(raw, Mapping) or "regions" not in raw:
        raise ConfigurationError("configuration needs a top-level 'regions' list")
    defaults = raw.get("defaults", {}) or {}
    base_dir = base_dir or Path.cwd()

    years = defaults.get("years")
    if not years:
        raise ConfigurationError("defaults.years must list the model periods")
    try:
        model_time = ModelTime.from_years(years, defaults.get("first_timestep"))
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc

    regions = [_build_region(row, defaults, model_time, base_dir) for row in raw["regions"]]
    names = [r.name for r in regions]
    if len(set(names)) != len(names):
        raise ConfigurationError(f"duplicate region names in {names}")
    return regions


# ── value helpers ─────────────────────────────────────────────────────
def _period_of(year: Any, mt: ModelTime, label: str) -> int:
    try:
        return mt.year_to_period(int(year))
    except KeyError:
        raise ConfigurationError(f"{label}: year {year} is not one of {mt.years}") from None

def _per_period(value: Any, mt: ModelTime, *, label: str,
                default: float | None = None) -> tuple[float, ...]:
    """
    Expand a config value into one float per period:
      scalar → broadcast;  list → one per period;  {year: v} → by year,
      gaps filled with *default* (an error when no default exists).
    """
    n = mt.num_periods
    if value is None:
        if default is None:
            raise ConfigurationError(f"{label} is required")
        return (float(default),) * n
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (float(value),) * n
    if isinstance(value, Mapping):
        out: List[float | None] = [default] * n
        for year, v in value.items():
            out[_period_of(year, mt, label)] = float(v)
        missing = [mt.years[i] for i, v in enumerate(out) if v is None]
        if missing:
            raise ConfigurationError(f"{label} has no value for years {missing}")
        return tuple(out)                       # type: ignore[arg-type]
    if isinstance(value, Sequence) and not isinstance(value, str):
        if len(value) != n:
            raise ConfigurationError(f"{label} lists {len(value)} values for {n} periods")
        return tuple(float(v) for v in value)
    raise ConfigurationError(f"{label}: unsupported value {value!r}")

def _year_map(value: Any, mt: ModelTime, *, label: str) -> Dict[int, float]:
    """Sparse {year: v} (or full list) → {period: v}."""
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return {_period_of(y, mt, label): float(v) for y, v in value.items()}
    return dict(enumerate(_per_period(value, mt, label=label)))

def _flag(value: Any, label: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigurationError(f"{label} must be true or false; got {value!r}")
    return value

def _subset_kwargs(cls, cfg_dict: Mapping[str, Any]) -> Dict[str, Any]:
    """Return the sub-mapping whose keys match dataclass *cls* fields."""
    allowed = set(cls.__dataclass_fields__)           # type: ignore[attr-defined]
    return {k: v for k, v in cfg_dict.items() if k in allowed}


# ── builders ──────────────────────────────────────────────────────────
def _build_drivers(row: Mapping[str, Any], mt: ModelTime, base_dir: Path) -> GDPDriver:
    label = f"region '{row['name']}'"
    if "drivers_csv" in row:
        df = data_portal.load_drivers(base_dir / row["drivers_csv"], region=row["name"])
        gdp = _per_period(data_portal.year_series(df, "gdp"), mt, label=f"{label} gdp")
        pop = _per_period(data_portal.year_series(df, "population"), mt,
                          label=f"{label} population")
        return GDPDriver.from_series(gdp, pop)
    if "scaled_gdp" in row:
        return GDPDriver.from_scaled(
            _per_period(row["scaled_gdp"], mt, label=f"{label} scaled_gdp"),
            _per_period(row.get("scaled_gdp_per_capita"), mt,
                        label=f"{label} scaled_gdp_per_capita"),
        )
    if "gdp" not in row or "population" not in row:
        raise ConfigurationError(
            f"{label} needs drivers: gdp + population, scaled_gdp + "
            f"scaled_gdp_per_capita, or drivers_csv"
        )
    try:
        return GDPDriver.from_series(
            _per_period(row["gdp"], mt, label=f"{label} gdp"),
            _per_period(row["population"], mt, label=f"{label} population"),
        )
    except ValueError as exc:
        raise ConfigurationError(f"{label}: {exc}") from exc

def _build_prices(row: Mapping[str, Any], region: str, mt: ModelTime,
                  base_dir: Path, label: str) -> tuple[float, ...]:
    if "prices_csv" in row:
        df = data_portal.load_prices(base_dir / row["prices_csv"],
                                     region=region, sector=row["name"])
        prices = _per_period(data_portal.year_series(df, "price"), mt, label=f"{label} prices")
    else:
        # no price path ⇒ constant price, the own-price term stays neutral
        prices = _per_period(row.get("prices"), mt, label=f"{label} prices", default=1.0)
    if any(not math.isfinite(p) or p <= 0 for p in prices):
        raise ConfigurationError(f"{label} prices must be positive and finite")
    return prices

def _build_sector(row: Mapping[str, Any], defaults: Mapping[str, Any],
                  region: str, mt: ModelTime, base_dir: Path) -> SectorCfg:
    if "name" not in row:
        raise ConfigurationError(f"sector without a name in region '{region}'")
    label = f"region '{region}' sector '{row['name']}'"

    # merge parameter dicts
    p = {**defaults.get("sector", {}), **row}
    kind = p.get("kind", "simple")
    if kind not in STRATEGY_KINDS:
        raise ConfigurationError(f"{label}: unknown kind '{kind}'; expected {sorted(STRATEGY_KINDS)}")

    try:
        params = DemandParams(**_subset_kwargs(DemandParams, {
            "p_elasticity": _per_period(p.get("p_elasticity"), mt, label=f"{label} p_elasticity"),
            "i_elasticity": _per_period(p.get("i_elasticity"), mt, label=f"{label} i_elasticity"),
            "per_capita_based": _flag(p.get("per_capita_based", False), f"{label} per_capita_based"),
            "trend_rate": _per_period(p.get("trend_rate"), mt, label=f"{label} trend_rate",
                                      default=0.0),
        }))
    except ValueError as exc:
        if isinstance(exc, ConfigurationError):
            raise
        raise ConfigurationError(f"{label}: {exc}") from exc

    base_service = _year_map(row.get("base_service"), mt, label=f"{label} base_service")
    segment_share = _year_map(row.get("segment_share"), mt, label=f"{label} segment_share")
    if any(not (0.0 <= s <= 1.0) for s in segment_share.values()):
        raise ConfigurationError(f"{label}: segment_share must lie in [0,1]")

    if kind == "segmented":
        missing = [mt.years[q] for q in (0, 1)
                   if q < mt.num_periods and base_service.get(q, -1.0) < 0]
        if missing:
            raise ConfigurationError(f"{label}: segmented sectors need base_service for {missing}")
    elif not any(v >= 0 for v in base_service.values()):
        _LOG.warning("%s has no base_service; projections will use the fallback scaler", label)
    if segment_share and kind != "segmented":
        raise ConfigurationError(f"{label}: segment_share only applies to segmented sectors")

    calibrated = {
        name: _per_period(values, mt, label=f"{label} calibrated_outputs.{name}",
                          default=math.nan)
        for name, values in (row.get("calibrated_outputs") or {}).items()
    }
    if calibrated and kind != "segmented":
        raise ConfigurationError(f"{label}: calibrated_outputs only apply to segmented sectors")

    return SectorCfg(
        name=row["name"],
        kind=kind,
        params=params,
        prices=_build_prices(row, region, mt, base_dir, label),
        base_service=base_service,
        segment_share=segment_share,
        subsector_shares={k: float(v) for k, v in (row.get("subsector_shares") or {}).items()},
        calibrated_outputs=calibrated,
    )

def _build_region(row: Mapping[str, Any], defaults: Mapping[str, Any],
                  mt: ModelTime, base_dir: Path) -> RegionCfg:
    if "name" not in row:
        raise ConfigurationError("every region needs a name")
    sectors = tuple(
        _build_sector(s, defaults, row["name"], mt, base_dir)
        for s in row.get("sectors", ())
    )
    names = [s.name for s in sectors]
    if len(set(names)) != len(names):
        raise ConfigurationError(f"region '{row['name']}' has duplicate sector names {names}")
    return RegionCfg(
        name=row["name"],
        model_time=mt,
        drivers=_build_drivers(row, mt, base_dir),
        sectors=sectors,
    )


"""
1. What the file does

load_regions() opens the YAML configuration, builds the model calendar
from defaults.years and returns one RegionCfg per entry of regions:.

Every sector record is merged over defaults.sector, so elasticities,
per_capita_based and trend_rate can be set once and overridden where a
sector differs.

2. Value forms accepted for period data

scalar          p_elasticity: -0.3            same value every period
list            gdp: [1.0, 1.2, 1.5]          one value per period
year mapping    base_service: {1975: 100.0}   sparse, by calendar year

Sparse mappings are the normal form for calibration data: base_service
and segment_share only need the years that were observed.  Dense inputs
(elasticities, drivers, prices) must cover every period, except trend_rate
(defaults to 0) and prices (default to a constant 1.0).

3. Drivers

Per region, one of
  gdp + population                     absolute levels, normalised to period 0
  scaled_gdp + scaled_gdp_per_capita   already normalised, used as given
  drivers_csv                          region,year,gdp,population table

4. Validation

Anything the engine cannot run with is rejected here with a
ConfigurationError naming the region and sector: unknown kind, mis-sized
arrays, years outside the calendar, segment shares outside [0,1], or a
segmented sector without observed service in its two base periods.
"""
