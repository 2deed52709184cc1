# region_runner.py
# Period loop for the demand engine
#
# Key responsibilities
# 1.  Build one demand strategy per configured sector of a region, each
#     with its own CalibrationState, price history and output sink, so no
#     two regions ever share mutable state.
# 2.  Advance periods strictly in order: period t needs p(t-1) and the
#     scaler fitted in the last calibration period.  Within a period every
#     sector runs aggregate_demand() and then its calibration-consistency
#     check.
# 3.  Collect one long-format row per (sector, period) plus the region's
#     diagnostic events.  A non-finite driver halts the region and is
#     re-raised as a RuntimeError naming it.
#
# Regions are independent inside a period, so run_all() may dispatch them
# to separate worker processes.
# --------------------------------------------------------------------------

from __future__ import annotations

import logging
import math
from typing import Dict, List, Sequence, Tuple

import pandas as pd
from joblib import Parallel, delayed
from tqdm import tqdm

from demand_engine import DemandStrategy, build_strategy
from scenarios import RegionCfg
from utils.diagnostics import DiagnosticLog
from utils.exceptions import NonFiniteDriverError
from utils.sector_links import FixedInputs, PriceHistory, SectorOutput
from utils.sim_context import SimContext

__all__ = ["build_sectors", "run_region", "run_all"]

_LOG = logging.getLogger(__name__)


def build_sectors(cfg: RegionCfg, diagnostics: DiagnosticLog) -> List[DemandStrategy]:
    """Fresh strategies (and state) for every sector of *cfg*."""
    n = cfg.num_periods
    strategies: List[DemandStrategy] = []
    for sec in cfg.sectors:
        ctx = SimContext(cfg.model_time, cfg.name, sec.name, diagnostics)
        strategies.append(
            build_strategy(
                sec.kind,
                params=sec.params,
                ctx=ctx,
                drivers=cfg.drivers,
                prices=PriceHistory(n, sec.prices),
                sink=SectorOutput(n, sec.subsector_shares or None),
                fixed_inputs=(FixedInputs(n, sec.calibrated_outputs)
                              if sec.calibrated_outputs else None),
                base_service=sec.base_service,
                segment_share=sec.segment_share,
            )
        )
    return strategies


def _row(cfg: RegionCfg, strat: DemandStrategy, period: int,
         scale_factor: float | None) -> Dict[str, object]:
    prices = strat.prices                                   # type: ignore[attr-defined]
    sink = strat.sink                                       # type: ignore[attr-defined]
    return {
        "region":   cfg.name,
        "sector":   strat.ctx.sector,
        "kind":     strat.kind,
        "period":   period,
        "year":     cfg.model_time.period_to_year(period),
        "gdp_scaled":            cfg.drivers.scaled_gdp(period),
        "gdp_per_capita_scaled": cfg.drivers.scaled_gdp_per_capita(period),
        "price":    prices.price(period),
        **strat.state.snapshot(period),
        "total_output": sink.total_output(period),
        "scale_factor": math.nan if scale_factor is None else scale_factor,
    }


def run_region(cfg: RegionCfg,
               *,
               diagnostics: DiagnosticLog | None = None) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Simulate every sector of one region over the full calendar.

    Returns
    -------
    (results, diagnostics) : tuple[pandas.DataFrame, pandas.DataFrame]
        Long-format results (region, sector, period, …) and the region's
        diagnostic events.

    Raises
    ------
    RuntimeError
        If any sector meets a non-finite or non-positive driver; the
        region's remaining periods are not evaluated.
    """
    diagnostics = diagnostics if diagnostics is not None else DiagnosticLog()
    strategies = build_sectors(cfg, diagnostics)
    rows: List[Dict[str, object]] = []

    for t in range(cfg.num_periods):
        for strat in strategies:
            try:
                strat.aggregate_demand(t)
                factor = strat.check_sector_cal_data(t)
            except NonFiniteDriverError as exc:
                _LOG.error("region %s halted at period %d: %s", cfg.name, t, exc)
                raise RuntimeError(f"region '{cfg.name}' halted: {exc}") from exc
            rows.append(_row(cfg, strat, t, factor))

        _LOG.debug("region=%s  period=%d  sectors=%d done", cfg.name, t, len(strategies))

    _LOG.info("region %s ▸ %d sectors × %d periods, %d diagnostics",
              cfg.name, len(strategies), cfg.num_periods, len(diagnostics))
    return pd.DataFrame(rows), diagnostics.to_frame()


def _run_single_region(cfg: RegionCfg) -> Tuple[pd.DataFrame, pd.DataFrame]:
    return run_region(cfg, diagnostics=DiagnosticLog())


def run_all(
    regions: Sequence[RegionCfg],
    *,
    jobs: int = -1,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Convenience wrapper used by sim_runner.py.

    Dispatches every region to run_region() and concatenates the outputs.
    ``jobs=1`` stays in-process; otherwise regions go to loky workers.
    """
    if not regions:
        raise ValueError("no regions to run")
    if jobs == 1:
        parts = [_run_single_region(r) for r in tqdm(regions, desc="regions")]
    else:
        parts = Parallel(n_jobs=jobs, backend="loky")(
            delayed(_run_single_region)(r) for r in tqdm(regions, desc="regions")
        )
    results = pd.concat([res for res, _ in parts], ignore_index=True)
    diags = pd.concat([d for _, d in parts], ignore_index=True)
    return results, diags
