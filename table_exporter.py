# table_exporter.py
"""
helper to produce summary tables from `demand_curated.parquet`.

• CSV written to tables/summary_demand.csv
• LaTeX (booktabs) written to tables/summary_demand.tex
"""
from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import pandas as pd
import tabulate

_LOG = logging.getLogger(__name__)

_CUR   = Path(__file__).parent
_DATA  = _CUR / "outputs" / "demand_curated.parquet"
_TDIR  = _CUR / "tables"

def build_summary(df: pd.DataFrame) -> pd.DataFrame:
    """
    One row per region/sector:
    calibrated scaler, first/last service level and the compound annual
    growth rate between them.
    """
    df = df.sort_values(["region", "sector", "period"])
    g = df.groupby(["region", "sector"])
    out = g.agg(
        kind=("kind", "first"),
        first_year=("year", "first"),
        last_year=("year", "last"),
        service_first=("service", "first"),
        service_last=("service", "last"),
        base_scaler=("base_scaler", "last"),
        calibration_periods=("calibration", "sum"),
    ).reset_index()

    span = (out["last_year"] - out["first_year"]).replace(0, np.nan)
    ratio = out["service_last"] / out["service_first"].replace(0, np.nan)
    out["cagr_pct"] = ((ratio ** (1.0 / span)) - 1.0) * 100.0
    return out.sort_values(["region", "sector"]).reset_index(drop=True)

def export(data: Path = _DATA, out_dir: Path = _TDIR) -> Path:
    out_dir.mkdir(parents=True, exist_ok=True)
    summary = build_summary(pd.read_parquet(data))

    csv_path = out_dir / "summary_demand.csv"
    tex_path = out_dir / "summary_demand.tex"
    summary.to_csv(csv_path, index=False)
    tex_path.write_text(
        tabulate.tabulate(summary, headers="keys", tablefmt="latex_booktabs",
                          floatfmt=".4f", showindex=False)
    )
    _LOG.info("table_exporter ▸ CSV %s, LaTeX %s", csv_path, tex_path)
    print(f"[table_exporter] 📊 CSV  → {csv_path}")
    print(f"[table_exporter] 📄 LaTeX→ {tex_path}")
    return csv_path

if __name__ == "__main__":
    export()
