"""Reporting views, chart specifications and formatting helpers."""

from .charts import ChartLabels, ChartSpec, Layer, summary_chart_spec, trend_chart_spec
from .views import build_trend_view, summarize_by_region

__all__ = [
    "ChartLabels",
    "ChartSpec",
    "Layer",
    "summary_chart_spec",
    "trend_chart_spec",
    "summarize_by_region",
    "build_trend_view",
]
