# curation.py
"""
minimal helpers used by sim_runner.

"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Final

import numpy as np
import pandas as pd

import validator

_LOG = logging.getLogger(__name__)

_EXPECTED_ORDER: Final = [
    "region", "sector", "kind",
    "period", "year",
    "service", "service_pre_tech_change", "output",
    "calibration", "base_scaler", "base_scaler_not_lic",
]

_DERIVED_COLS: Final = [
    "service_growth_pct",
    "service_index",
    "service_per_capita",
]

def tidy_dataframe(df: pd.DataFrame) -> pd.DataFrame:
    """
    * Re-orders columns so parquet is predictable.
    * Down-casts 'period' and 'year' to int64.
    * NO heavy validation – curate() enforces the schema.
    """
    cols = [c for c in _EXPECTED_ORDER if c in df.columns] + \
           [c for c in df.columns if c not in _EXPECTED_ORDER]
    df = df[cols].copy()
    for col in ("period", "year"):
        if col in df.columns:
            df[col] = df[col].astype("int64")
    if "calibration" in df.columns:
        df["calibration"] = df["calibration"].astype(bool)
    return df

def _add_growth(df: pd.DataFrame) -> pd.DataFrame:
    """%-growth of service within each region/sector (first period = 0)."""
    df = df.sort_values(["region", "sector", "period"])
    df["service_growth_pct"] = (
        df.groupby(["region", "sector"])["service"]
          .pct_change(fill_method=None)
          .fillna(0.0)
          .mul(100.0)
          .astype("float64")
    )
    return df

def _add_index(df: pd.DataFrame) -> pd.DataFrame:
    """service relative to the first period of the series (NaN if that is 0)."""
    first = df.groupby(["region", "sector"])["service"].transform("first")
    df["service_index"] = (df["service"] / first.replace(0, np.nan)).astype("float64")
    return df

def _add_per_capita(df: pd.DataFrame) -> pd.DataFrame:
    """
    service per base-period head:  service / (gdp_scaled / gdp_per_capita_scaled)
    The driver ratio is the population relative to the base period.
    """
    if not {"gdp_scaled", "gdp_per_capita_scaled"}.issubset(df.columns):
        df["service_per_capita"] = np.nan
        return df
    pop_ratio = df["gdp_scaled"] / df["gdp_per_capita_scaled"]
    df["service_per_capita"] = (df["service"] / pop_ratio.replace(0, np.nan)).astype("float64")
    return df

def curate(df: pd.DataFrame) -> pd.DataFrame:
    """Tidy, enrich and validate a results frame from region_runner."""
    df = (tidy_dataframe(df)
            .pipe(_add_growth)
            .pipe(_add_index)
            .pipe(_add_per_capita)
            .reset_index(drop=True))
    validator.SCHEMA.validate(df, lazy=True)
    return df

def curate_file(parquet_path: str | Path = "outputs/demand.parquet",
                out_path: str | Path = "outputs/demand_curated.parquet") -> Path:
    """Read a raw results parquet, curate it and write the curated copy."""
    out_path = Path(out_path)
    df = curate(pd.read_parquet(parquet_path))
    out_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_parquet(out_path, index=False, engine="pyarrow")

    # small 10-row preview for humans
    preview_path = out_path.with_suffix(".preview.csv")
    df.head(10).to_csv(preview_path, index=False)
    _LOG.info("curation ▸ wrote %d rows → %s", len(df), out_path)
    return out_path

if __name__ == "__main__":        # CLI:  python -m curation  (optional)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    curate_file()
