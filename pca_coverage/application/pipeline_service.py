"""PCA coverage pipeline entrypoints."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from time import perf_counter
from typing import Any, Dict, List

import polars as pl

from pca_coverage.application.cleaning_service import clean_coverage_table
from pca_coverage.application.reporting.charts import ChartSpec, summary_chart_spec, trend_chart_spec
from pca_coverage.application.reporting.metrics import fmt_pct
from pca_coverage.application.reporting.views import build_trend_view, summarize_by_region
from pca_coverage.config import PipelineConfig
from pca_coverage.domain.models import RegionSummary
from pca_coverage.infrastructure.excel_repository import (
    load_clean_table,
    load_raw_table,
    save_clean_table,
    save_tables_workbook,
)
from pca_coverage.infrastructure.report_exporter import save_chart_png, save_charts_pdf, save_run_summary

logger = logging.getLogger(__name__)


class _StageTimer:
    def __init__(self) -> None:
        self.start = perf_counter()
        self._stage_start = self.start
        self.timings: list[tuple[str, float]] = []

    def mark(self, stage_name: str) -> None:
        now = perf_counter()
        self.timings.append((stage_name, now - self._stage_start))
        self._stage_start = now

    def elapsed(self) -> float:
        return perf_counter() - self.start


@dataclass
class PipelineResult:
    clean: pl.DataFrame
    summary: pl.DataFrame
    trend: pl.DataFrame
    outputs: Dict[str, Path] = field(default_factory=dict)
    pdf_pages: int = 0
    stage_timings: List[tuple[str, float]] = field(default_factory=list)
    meta: Dict[str, Any] = field(default_factory=dict)

    def region_summaries(self) -> list[RegionSummary]:
        return [RegionSummary.from_row(row) for row in self.summary.iter_rows(named=True)]


def _chart_specs(summary: pl.DataFrame, trend: pl.DataFrame, target: float) -> list[ChartSpec]:
    return [summary_chart_spec(summary, target=target), trend_chart_spec(trend, target=target)]


def _export_charts(config: PipelineConfig, specs: list[ChartSpec], outputs: Dict[str, Path]) -> int:
    summary_spec, trend_spec = specs
    outputs["summary_png"] = save_chart_png(
        summary_spec, config.summary_png_path, size_inches=config.png_size, dpi=config.png_dpi
    )
    outputs["trend_png"] = save_chart_png(
        trend_spec, config.trend_png_path, size_inches=config.png_size, dpi=config.png_dpi
    )
    pages = save_charts_pdf(specs, config.pdf_path, size_inches=config.pdf_size)
    outputs["pdf"] = config.pdf_path
    return pages


def _aggregate_and_export(
    config: PipelineConfig,
    clean: pl.DataFrame,
    timer: _StageTimer,
    outputs: Dict[str, Path],
    meta: Dict[str, Any],
) -> PipelineResult:
    summary = summarize_by_region(clean)
    trend = build_trend_view(clean, unknown_campaigns=config.unknown_campaigns)
    timer.mark("aggregate")

    specs = _chart_specs(summary, trend, target=config.target)
    pages = _export_charts(config, specs, outputs)
    timer.mark("export_charts")

    saved, error_message = save_tables_workbook(config.tables_path, {"summary": summary, "trend": trend})
    if saved:
        outputs["tables"] = config.tables_path
    else:
        logger.warning("Workbook save skipped (file may be open/locked): %s", error_message)
    timer.mark("export_tables")

    result = PipelineResult(
        clean=clean,
        summary=summary,
        trend=trend,
        outputs=outputs,
        pdf_pages=pages,
        stage_timings=timer.timings,
        meta=meta,
    )
    run_summary = {
        "meta": meta,
        "observations": int(clean.height),
        "regions": [region.as_dict() for region in result.region_summaries()],
        "target": config.target,
        "stage_timings": {name: round(seconds, 4) for name, seconds in timer.timings},
        "outputs": {key: str(path) for key, path in outputs.items()},
    }
    save_run_summary(config.run_summary_path, run_summary)
    outputs["run_summary"] = config.run_summary_path
    return result


def _print_report(result: PipelineResult, target: float, total_elapsed: float) -> None:
    regions = result.region_summaries()
    below = [region.region for region in regions if not region.meets_target(target)]
    print(
        "Summary prepared: "
        f"regions={len(regions)}, "
        f"observations={result.clean.height}, "
        f"below_target={len(below)}"
    )
    for region in regions:
        print(f"  {region.region}: {fmt_pct(region.pct)} ({region.numerator}/{region.denominator})")
    stage_text = ", ".join([f"{name}={seconds:.3f}s" for name, seconds in result.stage_timings])
    print(f"Stage Timing: {stage_text}")
    print(f"Total Elapsed: {total_elapsed:.3f}s")
    print(f"PDF pages: {result.pdf_pages}")
    for key, path in result.outputs.items():
        print(f"Saved {key}: {path}")


def run_pipeline(config: PipelineConfig) -> PipelineResult:
    """Import, clean, aggregate, chart and export one coverage spreadsheet."""
    timer = _StageTimer()
    outputs: Dict[str, Path] = {}

    raw_df, source_meta = load_raw_table(config.input_path, preferred_sheet=config.preferred_sheet)
    timer.mark("load_raw_table")

    cleaning = clean_coverage_table(
        raw_df,
        header_row=config.header_row,
        parse_error_threshold=config.parse_error_threshold,
    )
    timer.mark("clean_coverage_table")
    logger.info(
        "Reshaped %d regions x %d campaigns into %d observations",
        cleaning.wide.height,
        cleaning.campaign_count,
        cleaning.long.height,
    )

    save_clean_table(config.clean_path, cleaning.clean, source_meta)
    outputs["clean_table"] = config.clean_path
    timer.mark("save_clean_table")

    meta = dict(source_meta)
    meta["campaigns"] = cleaning.campaign_count
    result = _aggregate_and_export(config, cleaning.clean, timer, outputs, meta)
    _print_report(result, config.target, timer.elapsed())
    return result


def run_charts_from_clean(config: PipelineConfig) -> PipelineResult:
    """Aggregate, chart and export from the serialized clean table of a previous run."""
    timer = _StageTimer()
    clean, clean_meta = load_clean_table(config.clean_path)
    timer.mark("load_clean_table")

    meta = {"clean_table": str(config.clean_path), **clean_meta}
    result = _aggregate_and_export(config, clean, timer, {}, meta)
    _print_report(result, config.target, timer.elapsed())
    return result
