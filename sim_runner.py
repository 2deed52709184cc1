# sim_runner.py
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List

import curation
from region_runner import run_all
from scenarios import RegionCfg, load_regions
from utils.exceptions import ConfigurationError

# CLI                                                                         #
def main(argv: List[str] | None = None) -> None:
    p = argparse.ArgumentParser(description="Calibrate and project sector service demand.")
    p.add_argument("--config", default="scenarios.yaml",
                   help="Path to YAML with region / sector definitions")
    p.add_argument("--out", default="outputs/demand.parquet",
                   help="Destination Parquet file")
    p.add_argument("--diagnostics", default=None,
                   help="Optional CSV for warning/debug diagnostic events")
    p.add_argument("--jobs", type=int, default=-1,
                   help="Parallel workers (-1 = all cores, 1 = sequential)")
    p.add_argument("--log-level", default="INFO",
                   choices=["DEBUG", "INFO", "WARNING", "ERROR"])

    args = p.parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(message)s")

    regions: List[RegionCfg] = load_regions(args.config)
    regions.sort(key=lambda r: r.name)               # deterministic job order
    if not regions:
        print("[sim_runner] nothing to run; configuration lists no regions.")
        return

    results, diags = run_all(regions, jobs=args.jobs)
    results = curation.curate(results)

    Path(args.out).parent.mkdir(parents=True, exist_ok=True)
    results.to_parquet(args.out, index=False, engine="pyarrow")
    print(f"[sim_runner] ✅ wrote {len(results):,} rows -> {args.out}")

    if args.diagnostics:
        Path(args.diagnostics).parent.mkdir(parents=True, exist_ok=True)
        diags.to_csv(args.diagnostics, index=False)
        print(f"[sim_runner] 📄 {len(diags):,} diagnostics -> {args.diagnostics}")
    n_warn = int((diags["level"] == "WARNING").sum()) if len(diags) else 0
    if n_warn:
        logging.warning("%d calibration warnings; see diagnostics for details", n_warn)

if __name__ == "__main__":                # entry-point
    try:
        main()
    except (RuntimeError, ConfigurationError) as err:
        print(f"ERROR: {err}", file=sys.stderr)
        sys.exit(1)

"""
1. What the script does, step by step

Parse CLI arguments

--config – YAML with the calendar, regions and sectors (default scenarios.yaml).
--out – Parquet file for the long-format results (default outputs/demand.parquet).
--diagnostics – optional CSV of warning / debug events (uncalibrated
scalers, calibration rescaling).
--jobs – worker processes; -1 uses all cores, 1 keeps everything in-process.

2. Load configuration
scenarios.load_regions() returns one RegionCfg per region; malformed input
stops here with a ConfigurationError.

3. Run
region_runner.run_all() evaluates each region's sectors period by period.
Regions are independent, so they may run in parallel.  A non-finite or
non-positive driver aborts that region with a RuntimeError naming region,
sector and period.

4. Curate and write
curation.curate() adds growth / index / per-capita columns and validates
the frame against validator.SCHEMA before it is written.

5. Exit codes
0 on success; 1 with the message on stderr for configuration errors and
fatal driver errors.

6. How to run it

python -m sim_runner --config scenarios.yaml --jobs 1 \
                     --out outputs/demand.parquet \
                     --diagnostics outputs/diagnostics.csv
"""
