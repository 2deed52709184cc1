# data_portal.py
# External-data plug-in for the demand model
# Purpose
# • Provide a *single* access-point for tabular inputs that are too long
#   to inline in the YAML configuration (macro drivers, sector prices).
# • Validate every table with pandera before the loader turns it into
#   per-period vectors.
#
# Expected CSV layouts
#   drivers : region, year, gdp, population
#   prices  : region, sector, year, price
#

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict

import pandas as pd
import pandera.pandas as pa
from pandera.pandas import Check, Column

_LOG = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------
_DRIVER_SCHEMA = pa.DataFrameSchema(
    {
        "region":     Column(str, nullable=False),
        "year":       Column(int, nullable=False),
        "gdp":        Column(float, Check.gt(0), nullable=False),
        "population": Column(float, Check.gt(0), nullable=False),
    },
    strict=True,
    coerce=True,
    unique=["region", "year"],
    name="DriverTable",
)

_PRICE_SCHEMA = pa.DataFrameSchema(
    {
        "region": Column(str, nullable=False),
        "sector": Column(str, nullable=False),
        "year":   Column(int, nullable=False),
        "price":  Column(float, Check.gt(0), nullable=False),
    },
    strict=True,
    coerce=True,
    unique=["region", "sector", "year"],
    name="PriceTable",
)


def _read_validated(path: Path, schema: pa.DataFrameSchema) -> pd.DataFrame:
    if not path.exists():
        raise FileNotFoundError(f"{schema.name} file not found: {path}")
    df = pd.read_csv(path)
    return schema.validate(df, lazy=True)


def load_drivers(csv_path: str | Path, region: str | None = None) -> pd.DataFrame:
    """
    GDP and population per region and year, sorted by year.

    Parameters
    ----------
    csv_path : str | Path
        CSV with columns region, year, gdp, population.
    region : str, optional
        If given, returns only the rows for that region.
    """
    df = _read_validated(Path(csv_path), _DRIVER_SCHEMA)
    if region is not None:
        df = df.loc[df["region"] == region]
    return df.sort_values(["region", "year"]).reset_index(drop=True)


def load_prices(csv_path: str | Path,
                region: str | None = None,
                sector: str | None = None) -> pd.DataFrame:
    """Sector own-price path per region and year."""
    df = _read_validated(Path(csv_path), _PRICE_SCHEMA)
    if region is not None:
        df = df.loc[df["region"] == region]
    if sector is not None:
        df = df.loc[df["sector"] == sector]
    if df.empty:
        _LOG.warning("price table %s has no rows for region=%s sector=%s",
                     csv_path, region, sector)
    return df.sort_values(["region", "sector", "year"]).reset_index(drop=True)


def year_series(df: pd.DataFrame, column: str) -> Dict[int, float]:
    """Collapse a validated table slice into  {year: value}."""
    return {int(y): float(v) for y, v in zip(df["year"], df[column])}


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------
_LOADER_REGISTRY: Dict[str, Callable[..., pd.DataFrame]] = {
    "drivers": load_drivers,
    "prices":  load_prices,
}


def get_external(name: str, **kwargs) -> pd.DataFrame:
    """
    Generic factory so caller code can request any external table
    without importing private helpers.

        df = data_portal.get_external("drivers", csv_path="inputs/drivers.csv")

    Raises `KeyError` if the table is unknown.
    """
    if name not in _LOADER_REGISTRY:
        raise KeyError(f"External dataset '{name}' not registered")
    return _LOADER_REGISTRY[name](**kwargs)  # type: ignore[arg-type]
