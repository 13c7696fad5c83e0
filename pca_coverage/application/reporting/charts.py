"""Declarative chart specifications for the summary and trend views."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

import polars as pl

from pca_coverage.application.reporting.metrics import fmt_pct_label
from pca_coverage.ingestion import CAMPAIGN_COLUMN, REGION_COLUMN

LAYER_KINDS: tuple[str, ...] = ("bar", "hline", "text", "line", "point")
Y_LIMITS: tuple[float, float] = (0.0, 1.05)
DATA_SOURCE_CAPTION = "Data Source: APMIS"
CAMPAIGN_PERIOD = "Campaigns from November 2024 through May 2025."
LABEL_COLUMN = "label"


@dataclass(frozen=True)
class Layer:
    kind: str
    options: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.kind not in LAYER_KINDS:
            raise ValueError(f"Unknown layer kind {self.kind!r}; expected one of {list(LAYER_KINDS)}")

    def option(self, key: str, default: Any = None) -> Any:
        return self.options.get(key, default)


@dataclass(frozen=True)
class ChartLabels:
    title: str = ""
    subtitle: str = ""
    caption: str = ""
    x: str | None = None
    y: str | None = None


@dataclass(frozen=True, eq=False)
class ChartSpec:
    """Data, mapping, layers and styling for one chart; rendered by ``render_chart``."""

    name: str
    data: pl.DataFrame
    x: str
    y: str
    layers: tuple[Layer, ...]
    labels: ChartLabels = ChartLabels()
    group: str | None = None
    facet: str | None = None
    x_order: str | None = None
    y_limits: tuple[float, float] = Y_LIMITS
    y_percent: bool = True
    x_label_rotation: float = 0.0

    def __post_init__(self) -> None:
        needed = {self.x, self.y}
        for column in (self.group, self.facet, self.x_order):
            if column is not None:
                needed.add(column)
        missing = sorted(needed.difference(self.data.columns))
        if missing:
            raise ValueError(f"Chart {self.name!r} data is missing columns: {missing}")

    def layer_kinds(self) -> list[str]:
        return [layer.kind for layer in self.layers]


def target_line(target: float) -> Layer:
    return Layer("hline", {"yintercept": target, "color": "red", "linewidth": 1.0})


def summary_chart_spec(summary: pl.DataFrame, target: float = 0.95) -> ChartSpec:
    data = summary.with_columns(
        pl.col("pct").map_elements(fmt_pct_label, return_dtype=pl.Utf8).alias(LABEL_COLUMN)
    )
    return ChartSpec(
        name="summary",
        data=data,
        x=REGION_COLUMN,
        y="pct",
        layers=(
            Layer("bar", {"fill": "steelblue", "edgecolor": "black"}),
            target_line(target),
            Layer("text", {"label": LABEL_COLUMN, "offset": 0.01}),
        ),
        labels=ChartLabels(
            title="Average PCA Coverage in Recent Campaigns, by Region",
            subtitle=f"{CAMPAIGN_PERIOD}\nRed line shows {fmt_pct_label(target)} coverage target.",
            caption=DATA_SOURCE_CAPTION,
            x="Region",
            y=None,
        ),
    )


def trend_chart_spec(trend: pl.DataFrame, target: float = 0.95) -> ChartSpec:
    return ChartSpec(
        name="trend",
        data=trend,
        x=CAMPAIGN_COLUMN,
        y="pct",
        group=REGION_COLUMN,
        facet=REGION_COLUMN,
        x_order="campaign_order",
        layers=(
            Layer("line", {"linewidth": 1.0, "color": "black"}),
            Layer("point", {"size": 2.0, "color": "black"}),
            target_line(target),
        ),
        labels=ChartLabels(
            title="Trend in PCA Coverage in Recent Campaigns, by Region",
            subtitle=CAMPAIGN_PERIOD,
            caption=DATA_SOURCE_CAPTION,
            x="Campaign",
            y="PCA Coverage (%)",
        ),
        x_label_rotation=90.0,
    )
