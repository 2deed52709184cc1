from __future__ import annotations

import numpy as np
import pandera.pandas as pa
from pandera.pandas import Check, Column

_FINITE = Check(lambda s: np.isfinite(s), element_wise=False, error="must be finite")

# DataFrameSchema

SCHEMA = pa.DataFrameSchema(
    {
        # core identifiers
        "region":  Column(str, nullable=False),
        "sector":  Column(str, nullable=False),
        "kind":    Column(str, Check.isin(["simple", "segmented"])),
        "period":  Column(int, Check.ge(0)),
        "year":    Column(int),

        # drivers & prices
        "gdp_scaled":            Column(float, [Check.gt(0), _FINITE]),
        "gdp_per_capita_scaled": Column(float, [Check.gt(0), _FINITE]),
        "price":                 Column(float, Check.gt(0)),
        "price_ratio":           Column(float, [Check.gt(0), _FINITE]),

        # calibration record
        "calibration":         Column(bool),
        "base_service":        Column(float),                        # −1 ⇒ no override
        "segment_share":       Column(float, Check.in_range(0, 1)),
        "base_scaler":         Column(float, _FINITE),
        "base_scaler_not_lic": Column(float, _FINITE),

        # demand
        "service_pre_tech_change": Column(float, [Check.ge(0), _FINITE]),
        "service":                 Column(float, [Check.ge(0), _FINITE]),
        "output":                  Column(float, [Check.ge(0), _FINITE]),
        "total_output":            Column(float, [Check.ge(0), _FINITE]),
        "scale_factor":            Column(float, Check.ge(0), nullable=True),

        # optional / derived (curation.py)
        "service_growth_pct":  Column(float, nullable=True, required=False),
        "service_index":       Column(float, Check.ge(0), nullable=True, required=False),
        "service_per_capita":  Column(float, Check.ge(0), nullable=True, required=False),
    },
    coerce=True,
    strict=False,              # allow future experimental columns
    unique=["region", "sector", "period"],
    index=pa.Index(int),       # generic RangeIndex; no name constraint
)

"""
1. What the schema does

It is the data contract of the long-format result table produced by
region_runner: one row per region, sector and period.  Pandera checks
presence, dtype and the basic economics of every column.

2. Column-level rules

region / sector identify the series; (region, sector, period) is unique.

gdp_scaled, gdp_per_capita_scaled and price_ratio must be positive and
finite: the power-law demand function is undefined otherwise.

base_scaler may legitimately be -1 (segment never calibrated, e.g. the
secondary scaler of a simple sector) but never NaN or infinite.

service, service_pre_tech_change, output and total_output are
non-negative and finite; a poisoned value here means the engine let a
bad driver through.

scale_factor is only filled in periods where a segmented sector was
reconciled against fully calibrated subsector outputs.

3. How you use it in practice

from validator import SCHEMA
SCHEMA.validate(df, lazy=True)   # raises with every violation at once
"""
