# visualise.py
"""
Figure generation.

Run `python -m visualise` or `python visualise.py`.
All PNG files go to   figures/
All HTML files go to  figures_html/
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

import pandas as pd
from tqdm import tqdm

from plots.core import interactive_lineplot, lineplot, trend_gap_plot

_LOG = logging.getLogger(__name__)

_ROOT = Path(__file__).resolve().parent

_DATA      = _ROOT / "outputs" / "demand_curated.parquet"
_DIR_PNG   = _ROOT / "figures"
_DIR_HTML  = _ROOT / "figures_html"

_TREND_SPEC = {
    "title": "Segmented sectors: before (dashed) and after the efficiency trend",
    "ylabel": "service demand",
}

_PLOT_SPECS: Dict[str, Dict[str, Any]] = {
    "service": {
        "title": "Service demand (calibrated → projected)",
        "ylabel": "service demand",
    },
    "service_pre_tech_change": {
        "title": "Service demand before autonomous efficiency trend",
        "ylabel": "service demand",
    },
    "service_index": {
        "title": "Service demand index (first period = 1)",
        "ylabel": "index",
    },
    "price_ratio": {
        "title": "Own-price ratio p(t)/p(t-1)",
        "ylabel": "ratio",
    },
}


def render_all(df: pd.DataFrame | None = None) -> int:
    """
    Draw every metric in `_PLOT_SPECS` present in the curated results.
    Returns the number of metrics rendered.
    """
    if df is None:
        if not _DATA.exists():
            raise FileNotFoundError(f"{_DATA} not found – run sim_runner first")
        df = pd.read_parquet(_DATA)

    done = 0
    for metric, spec in tqdm(_PLOT_SPECS.items(), desc="figures"):
        if metric not in df.columns or df[metric].notna().sum() == 0:
            _LOG.warning("metric %s missing or all-NaN – skipped", metric)
            continue
        lineplot(df, metric, spec, _DIR_PNG / f"{metric}.png")
        interactive_lineplot(df, metric, spec, _DIR_HTML / f"{metric}.html")
        done += 1

    trend_gap_plot(df, _TREND_SPEC, _DIR_PNG / "trend_gap.png")
    return done


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    render_all()
