# tests/test_plots.py
from pathlib import Path

import pytest

import curation
import table_exporter
import visualise
from region_runner import run_all
from scenarios import load_regions

_CONFIG = Path(__file__).resolve().parents[1] / "scenarios.yaml"


@pytest.fixture(scope="module")
def curated():
    results, _ = run_all(load_regions(_CONFIG), jobs=1)
    return curation.curate(results)


def test_figure_outputs(tmp_path: Path, monkeypatch, curated):
    """
    Smoke-test: run visualise.render_all() on the sample run and assert
    PNG & HTML files are created and non-empty.
    """
    # redirect output dirs to tmp_path
    monkeypatch.setattr(visualise, "_DIR_PNG", tmp_path / "png")
    monkeypatch.setattr(visualise, "_DIR_HTML", tmp_path / "html")

    assert visualise.render_all(curated) == len(visualise._PLOT_SPECS)

    png_files = list((tmp_path / "png").glob("*.png"))
    html_files = list((tmp_path / "html").glob("*.html"))
    assert png_files and html_files, "No figures generated"
    assert (tmp_path / "png" / "trend_gap.png").exists()

    # check first file is not empty
    assert png_files[0].stat().st_size > 0
    assert b"<html" in html_files[0].read_bytes()[:100].lower()


def test_render_all_from_parquet(tmp_path: Path, monkeypatch, curated):
    data = tmp_path / "demand_curated.parquet"
    curated.to_parquet(data, index=False)
    monkeypatch.setattr(visualise, "_DATA", data)
    monkeypatch.setattr(visualise, "_DIR_PNG", tmp_path / "png")
    monkeypatch.setattr(visualise, "_DIR_HTML", tmp_path / "html")
    assert visualise.render_all() > 0


def test_summary_table(tmp_path: Path, curated):
    data = tmp_path / "demand_curated.parquet"
    curated.to_parquet(data, index=False)
    csv_path = table_exporter.export(data=data, out_dir=tmp_path / "tables")

    assert csv_path.exists()
    assert "toprule" in (tmp_path / "tables" / "summary_demand.tex").read_text()

    summary = table_exporter.build_summary(curated)
    assert len(summary) == curated.groupby(["region", "sector"]).ngroups
    row = summary.set_index(["region", "sector"]).loc[("north", "passenger")]
    assert row["kind"] == "segmented"
    assert row["calibration_periods"] == 2
