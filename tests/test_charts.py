from __future__ import annotations

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import polars as pl
import pytest

from pca_coverage.application.cleaning_service import clean_coverage_table
from pca_coverage.application.reporting.charts import ChartSpec, Layer, summary_chart_spec, trend_chart_spec
from pca_coverage.application.reporting.metrics import fmt_pct_label
from pca_coverage.application.reporting.views import build_trend_view, summarize_by_region
from pca_coverage.infrastructure.chart_renderer import render_chart


@pytest.fixture
def views(raw_table: pl.DataFrame) -> tuple[pl.DataFrame, pl.DataFrame]:
    clean = clean_coverage_table(raw_table).clean
    return summarize_by_region(clean), build_trend_view(clean)


@pytest.mark.parametrize(
    ("value", "expected"),
    [(0.85, "85%"), (0.875, "87.5%"), (0.91234, "91.23%"), (1.0, "100%"), (None, "")],
)
def test_fmt_pct_label_matches_rounded_percent(value, expected):
    assert fmt_pct_label(value) == expected


def test_summary_chart_spec_layers_and_labels(views):
    summary, _ = views
    spec = summary_chart_spec(summary)
    assert spec.layer_kinds() == ["bar", "hline", "text"]
    assert spec.layers[1].option("yintercept") == 0.95
    assert spec.y_limits == (0.0, 1.05)
    assert spec.labels.x == "Region"
    assert spec.labels.y is None
    assert spec.labels.subtitle.endswith("Red line shows 95% coverage target.")
    assert spec.labels.caption == "Data Source: APMIS"
    assert spec.data.get_column("label").to_list()[0] == fmt_pct_label(summary.get_column("pct")[0])


def test_trend_chart_spec_facets_by_region(views):
    _, trend = views
    spec = trend_chart_spec(trend)
    assert spec.layer_kinds() == ["line", "point", "hline"]
    assert spec.facet == "Region"
    assert spec.group == "Region"
    assert spec.x_label_rotation == 90.0
    assert spec.labels.y == "PCA Coverage (%)"


def test_layer_rejects_unknown_kind():
    with pytest.raises(ValueError, match="area"):
        Layer("area")


def test_chart_spec_rejects_missing_columns():
    with pytest.raises(ValueError, match="pct"):
        ChartSpec(name="bad", data=pl.DataFrame({"Region": ["Awdal"]}), x="Region", y="pct", layers=())


def test_render_summary_chart_single_panel(views):
    summary, _ = views
    spec = summary_chart_spec(summary)
    fig = render_chart(spec, size_inches=(6, 6))
    try:
        visible = [ax for ax in fig.axes if ax.get_visible()]
        assert len(visible) == 1
        ax = visible[0]
        assert ax.get_ylim() == pytest.approx((0.0, 1.05))
        assert len(ax.patches) == summary.height
        assert [text.get_text() for text in ax.texts] == spec.data.get_column("label").to_list()
        assert tuple(fig.get_size_inches()) == (6, 6)
    finally:
        plt.close(fig)


def test_render_trend_chart_one_panel_per_region(views):
    _, trend = views
    fig = render_chart(trend_chart_spec(trend), size_inches=(8, 5))
    try:
        fig.canvas.draw()
        visible = [ax for ax in fig.axes if ax.get_visible()]
        regions = trend.get_column("Region").unique(maintain_order=True).to_list()
        assert [ax.get_title() for ax in visible] == regions
        # Bottom-row panel; shared-x panels above it hide their tick labels.
        ticks = [label.get_text() for label in visible[-1].get_xticklabels()]
        assert ticks == ["Nov SIA 2024", "Dec SIA 2024", "Jan SIA 2025"]
        assert all(ax.get_ylim() == pytest.approx((0.0, 1.05)) for ax in visible)
    finally:
        plt.close(fig)


def test_render_chart_rejects_empty_view(views):
    summary, _ = views
    with pytest.raises(ValueError, match="no rows"):
        render_chart(summary_chart_spec(summary.clear()))
