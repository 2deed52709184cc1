# replicate.py
"""
Rebuild every artefact from the YAML configuration.

Run:   python replicate.py --config scenarios.yaml --jobs 4
       python replicate.py --skip-figures        # tables only
"""
from __future__ import annotations

import argparse
import importlib
import sys
from typing import Any, Dict, List, Tuple

_RAW     = "outputs/demand.parquet"
_CURATED = "outputs/demand_curated.parquet"
_DIAG    = "outputs/diagnostics.csv"


def _stages(args: argparse.Namespace) -> List[Tuple[str, str, Dict[str, Any]]]:
    stages = [
        ("sim_runner", "main", {"argv": ["--config", args.config,
                                         "--out", _RAW,
                                         "--diagnostics", _DIAG,
                                         "--jobs", str(args.jobs),
                                         "--log-level", args.log_level]}),
        ("curation", "curate_file", {"parquet_path": _RAW, "out_path": _CURATED}),
        ("visualise", "render_all", {}),
        ("table_exporter", "export", {}),
    ]
    if args.skip_figures:
        stages = [s for s in stages if s[0] != "visualise"]
    return stages


def main(argv: List[str] | None = None) -> None:
    p = argparse.ArgumentParser(description="Simulate, curate, plot and tabulate in one go")
    p.add_argument("--config", default="scenarios.yaml",
                   help="YAML with region / sector definitions")
    p.add_argument("--jobs", type=int, default=-1,
                   help="Parallel workers for sim_runner (-1 = all)")
    p.add_argument("--log-level", default="INFO",
                   choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    p.add_argument("--skip-figures", action="store_true",
                   help="Do not render PNG / HTML figures")
    args = p.parse_args(argv)

    for module_name, fn_name, kwargs in _stages(args):
        fn = getattr(importlib.import_module(module_name), fn_name)
        print(f"[replicate] ➔ {module_name}.{fn_name}()")
        fn(**kwargs)
    print("\n[replicate] done – see outputs/, figures/, figures_html/ and tables/\n")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:      # pylint: disable=broad-except
        print(f"[replicate] ❌ {exc}", file=sys.stderr)
        sys.exit(1)
