# plots/core.py
from __future__ import annotations

import logging
import textwrap
from pathlib import Path
from typing import Any, Dict

import matplotlib

matplotlib.use("Agg")                     # file output only
import matplotlib.pyplot as plt
import pandas as pd
import plotly.express as px

_PNG_DPI = 300
_DEFAULT_PALETTE = "Set2"        # colour-blind safe, same as the Plotly figures
_LOG = logging.getLogger(__name__)
_SERIES = ["region", "sector"]


def _series_label(sub: pd.DataFrame, width: int = 25) -> str:
    txt = " | ".join(map(str, sub.iloc[0][_SERIES]))
    return "\n".join(textwrap.wrap(txt, width))

def _finish_png(fig, ax, spec: Dict[str, Any], outfile: Path) -> None:
    ax.set_title(spec["title"])
    ax.set_xlabel("Year")
    ax.set_ylabel(spec["ylabel"])
    if spec.get("log_y"):
        ax.set_yscale("log")
    ax.legend(loc="best", fontsize="small", ncol=2)
    fig.tight_layout()

    outfile.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(outfile, dpi=_PNG_DPI)
    plt.close(fig)
    _LOG.info("PNG written → %s", outfile.as_posix())


def lineplot(
    df: pd.DataFrame,
    metric: str,
    spec: Dict[str, Any],
    outfile: Path,
) -> None:
    """
    Static trajectory of *metric*, one line per region/sector.

    Calibration periods are drawn as filled markers so the hand-over from
    observed to projected demand is visible on every series.

    Parameters
    ----------
    df : pd.DataFrame
        Curated results (already schema-validated).
    metric : str
        Column to plot on the y-axis.
    spec : dict
        Keys: title, ylabel, optional log_y.
    outfile : Path
        Destination PNG path.
    """
    fig, ax = plt.subplots(figsize=(7, 4))
    ax.set_prop_cycle(color=plt.get_cmap(_DEFAULT_PALETTE).colors)

    for _, sub in df.sort_values("year").groupby(_SERIES):
        line, = ax.plot(sub["year"], sub[metric], label=_series_label(sub))
        cal = sub[sub["calibration"].astype(bool)]
        ax.scatter(cal["year"], cal[metric], color=line.get_color(), zorder=3, s=18)

    _finish_png(fig, ax, spec, outfile)


def trend_gap_plot(df: pd.DataFrame, spec: Dict[str, Any], outfile: Path) -> bool:
    """
    Segmented sectors only: service before (dashed) and after (solid) the
    autonomous efficiency trend.  Returns False when there is nothing to draw.
    """
    seg = df[df["kind"] == "segmented"]
    if seg.empty:
        _LOG.info("no segmented sectors – %s skipped", outfile.name)
        return False

    fig, ax = plt.subplots(figsize=(7, 4))
    colours = iter(plt.get_cmap(_DEFAULT_PALETTE).colors)
    for _, sub in seg.sort_values("year").groupby(_SERIES):
        c = next(colours, "grey")
        ax.plot(sub["year"], sub["service_pre_tech_change"], linestyle="--", color=c)
        ax.plot(sub["year"], sub["service"], color=c, label=_series_label(sub))

    _finish_png(fig, ax, spec, outfile)
    return True


def interactive_lineplot(
    df: pd.DataFrame,
    metric: str,
    spec: Dict[str, Any],
    outfile: Path,
) -> None:
    """HTML version of lineplot(), one facet per region."""
    fig = px.line(
        df.sort_values(["region", "sector", "year"]),
        x="year",
        y=metric,
        color="sector",
        facet_col="region",
        symbol="calibration",
        markers=True,
        title=spec["title"],
        labels={"year": "Year", metric: spec["ylabel"]},
        log_y=spec.get("log_y", False),
        color_discrete_sequence=px.colors.qualitative.Set2,
    )

    outfile.parent.mkdir(parents=True, exist_ok=True)
    fig.write_html(str(outfile), include_plotlyjs="cdn")
    _LOG.info("HTML written → %s", outfile.as_posix())


"""
1. What the module does

Two output formats for the same curated frame:

lineplot()              PNG via matplotlib, one line per region | sector,
                        calibration periods marked with dots.
interactive_lineplot()  HTML via plotly, faceted by region, coloured by
                        sector, marker symbol distinguishing calibration
                        from projection periods.
trend_gap_plot()        PNG of the segmented sectors only, dashed line =
                        demand before the autonomous efficiency trend.

2. How to use it

visualise.render_all() loops over its metric table and calls these
helpers; call them directly for one-off figures:

from plots.core import lineplot
lineplot(df, "service", {"title": "Service", "ylabel": "units"},
         Path("figures/service.png"))

The spec dictionary needs title and ylabel; log_y: True switches to a
log axis.  Both palettes are Set2 so colours match across formats.
"""
