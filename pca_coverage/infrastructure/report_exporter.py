"""Infrastructure adapter for chart and summary export targets."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Sequence

import matplotlib.pyplot as plt
from matplotlib.backends.backend_pdf import PdfPages

from pca_coverage.application.reporting.charts import ChartSpec
from pca_coverage.domain.errors import OutputWriteError
from pca_coverage.infrastructure.chart_renderer import render_chart


def _ensure_parent(path: Path) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise OutputWriteError(f"Cannot create output directory {path.parent}: {exc}") from exc


def save_chart_png(
    spec: ChartSpec,
    path: Path,
    size_inches: tuple[float, float] = (6.0, 6.0),
    dpi: int = 300,
) -> Path:
    """Fixed-size raster export; no tight bounding box so pixel dimensions stay stable."""
    _ensure_parent(path)
    fig = render_chart(spec, size_inches=size_inches)
    try:
        fig.savefig(path, dpi=dpi, format="png")
    except OSError as exc:
        raise OutputWriteError(f"Cannot write chart to {path}: {exc}") from exc
    finally:
        plt.close(fig)
    return path


def save_charts_pdf(
    specs: Sequence[ChartSpec],
    path: Path,
    size_inches: tuple[float, float] = (8.0, 5.0),
) -> int:
    """Write one page per spec, in order, and return the page count."""
    _ensure_parent(path)
    try:
        with PdfPages(path) as pdf:
            for spec in specs:
                fig = render_chart(spec, size_inches=size_inches)
                try:
                    pdf.savefig(fig)
                finally:
                    plt.close(fig)
            page_count = pdf.get_pagecount()
    except OSError as exc:
        raise OutputWriteError(f"Cannot write charts to {path}: {exc}") from exc
    return page_count


def save_run_summary(path: Path, summary: dict[str, Any]) -> None:
    _ensure_parent(path)
    try:
        path.write_text(json.dumps(summary, indent=2, ensure_ascii=False, default=str), encoding="utf-8")
    except OSError as exc:
        raise OutputWriteError(f"Cannot write run summary to {path}: {exc}") from exc
