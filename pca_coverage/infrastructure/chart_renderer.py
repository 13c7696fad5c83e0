"""Render ``ChartSpec`` objects to matplotlib figures."""

from __future__ import annotations

import math
from typing import Any

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.axes import Axes
from matplotlib.figure import Figure
from matplotlib.ticker import PercentFormatter
import polars as pl

from pca_coverage.application.reporting.charts import ChartSpec, Layer

TITLE_HEIGHT_IN = 0.40
SUBTITLE_LINE_IN = 0.22
CAPTION_HEIGHT_IN = 0.30
GRID_COLOR = "#EBEBEB"
STRIP_COLOR = "#D9D9D9"


def _x_categories(spec: ChartSpec) -> list[Any]:
    if spec.x_order is None:
        return spec.data.get_column(spec.x).drop_nulls().unique(maintain_order=True).to_list()
    ordered = (
        spec.data.filter(pl.col(spec.x).is_not_null())
        .select([spec.x, spec.x_order])
        .unique(subset=[spec.x], maintain_order=True)
        .sort(spec.x_order, nulls_last=True, maintain_order=True)
    )
    return ordered.get_column(spec.x).to_list()


def _panels(spec: ChartSpec) -> list[tuple[Any, pl.DataFrame]]:
    if spec.facet is None:
        return [(None, spec.data)]
    values = spec.data.get_column(spec.facet).drop_nulls().unique(maintain_order=True).to_list()
    return [(value, spec.data.filter(pl.col(spec.facet) == value)) for value in values]


def _wrap_dims(count: int) -> tuple[int, int]:
    ncols = math.ceil(math.sqrt(count))
    nrows = math.ceil(count / ncols)
    return nrows, ncols


def _plot_frame(frame: pl.DataFrame, spec: ChartSpec, positions: dict[Any, int]) -> pl.DataFrame:
    return (
        frame.filter(pl.col(spec.y).is_not_null() & pl.col(spec.x).is_in(list(positions)))
        .with_columns(
            pl.col(spec.x).replace_strict(positions, return_dtype=pl.Int64).alias("__x"),
            pl.col(spec.y).cast(pl.Float64).alias("__y"),
        )
        .sort("__x", maintain_order=True)
    )


def _draw_layer(ax: Axes, layer: Layer, frame: pl.DataFrame, spec: ChartSpec) -> None:
    xs = frame.get_column("__x").to_list()
    ys = frame.get_column("__y").to_list()

    if layer.kind == "bar":
        ax.bar(
            xs,
            ys,
            width=layer.option("width", 0.9),
            color=layer.option("fill", "grey"),
            edgecolor=layer.option("edgecolor", "black"),
            zorder=2,
        )
    elif layer.kind == "hline":
        ax.axhline(
            layer.option("yintercept", 0.0),
            color=layer.option("color", "red"),
            linewidth=layer.option("linewidth", 1.0),
            zorder=3,
        )
    elif layer.kind == "text":
        labels = frame.get_column(layer.option("label", "label")).to_list()
        offset = layer.option("offset", 0.01)
        for x, y, text in zip(xs, ys, labels):
            if text is None:
                continue
            ax.text(x, y + offset, str(text), ha="center", va="bottom", fontsize=layer.option("fontsize", 8), zorder=4)
    elif layer.kind == "line":
        groups = [frame] if spec.group is None else frame.partition_by(spec.group, maintain_order=True)
        for sub in groups:
            ax.plot(
                sub.get_column("__x").to_list(),
                sub.get_column("__y").to_list(),
                color=layer.option("color", "black"),
                linewidth=layer.option("linewidth", 1.0),
                zorder=2,
            )
    elif layer.kind == "point":
        size = layer.option("size", 2.0)
        ax.scatter(xs, ys, s=(size * 2.5) ** 2, color=layer.option("color", "black"), zorder=3)


def _style_axes(ax: Axes, spec: ChartSpec, categories: list[Any]) -> None:
    ax.set_facecolor("white")
    ax.grid(True, color=GRID_COLOR, linewidth=0.8)
    ax.set_axisbelow(True)
    for spine in ax.spines.values():
        spine.set_color("#333333")
    ax.set_xticks(range(len(categories)))
    rotation = spec.x_label_rotation
    ax.set_xticklabels(
        [str(category) for category in categories],
        rotation=rotation,
        ha="center",
        va="top",
        fontsize=8,
    )
    ax.set_xlim(-0.6, len(categories) - 0.4)
    ax.set_ylim(*spec.y_limits)
    if spec.y_percent:
        ax.yaxis.set_major_formatter(PercentFormatter(xmax=1.0, decimals=0))


def _add_titles(fig: Figure, spec: ChartSpec, size_inches: tuple[float, float]) -> None:
    _, height = size_inches
    labels = spec.labels
    subtitle_lines = labels.subtitle.count("\n") + 1 if labels.subtitle else 0
    top_in = TITLE_HEIGHT_IN + SUBTITLE_LINE_IN * subtitle_lines
    bottom_in = CAPTION_HEIGHT_IN if labels.caption else 0.1

    fig.text(0.02, 1 - 0.12 / height, labels.title, ha="left", va="top", fontsize=11, fontweight="bold")
    if labels.subtitle:
        fig.text(0.02, 1 - TITLE_HEIGHT_IN / height, labels.subtitle, ha="left", va="top", fontsize=8.5)
    if labels.caption:
        fig.text(0.98, 0.08 / height, labels.caption, ha="right", va="bottom", fontsize=7.5)

    fig.get_layout_engine().set(rect=(0.0, bottom_in / height, 1.0, 1 - top_in / height))


def render_chart(spec: ChartSpec, size_inches: tuple[float, float] = (6.0, 6.0)) -> Figure:
    """Build a figure for ``spec``; one sub-panel per facet value with shared scales."""
    if spec.data.is_empty():
        raise ValueError(f"Chart {spec.name!r} has no rows to plot")

    categories = _x_categories(spec)
    positions = {category: idx for idx, category in enumerate(categories)}
    panels = _panels(spec)
    nrows, ncols = _wrap_dims(len(panels))

    fig = plt.figure(figsize=size_inches, layout="constrained")
    axes = fig.subplots(nrows, ncols, sharex=True, sharey=True, squeeze=False)
    flat_axes = [ax for row in axes for ax in row]

    for idx, (panel_value, frame) in enumerate(panels):
        ax = flat_axes[idx]
        plot_df = _plot_frame(frame, spec, positions)
        for layer in spec.layers:
            _draw_layer(ax, layer, plot_df, spec)
        _style_axes(ax, spec, categories)
        if panel_value is not None:
            ax.set_title(str(panel_value), fontsize=8.5, backgroundcolor=STRIP_COLOR)
        # Panels sitting above an empty slot keep their own x tick labels.
        if idx + ncols >= len(panels):
            ax.xaxis.set_tick_params(labelbottom=True)

    for ax in flat_axes[len(panels):]:
        ax.set_visible(False)

    if spec.facet is None:
        ax = flat_axes[0]
        if spec.labels.x:
            ax.set_xlabel(spec.labels.x)
        if spec.labels.y:
            ax.set_ylabel(spec.labels.y)
    else:
        if spec.labels.x:
            fig.supxlabel(spec.labels.x, fontsize=9.5)
        if spec.labels.y:
            fig.supylabel(spec.labels.y, fontsize=9.5)

    _add_titles(fig, spec, size_inches)
    return fig
