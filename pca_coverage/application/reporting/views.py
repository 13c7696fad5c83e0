"""Summary and trend views derived from the clean coverage table."""

from __future__ import annotations

import polars as pl

from pca_coverage.application.reporting.metrics import safe_ratio_expr
from pca_coverage.domain.models import campaign_order_map
from pca_coverage.ingestion import CAMPAIGN_COLUMN, REGION_COLUMN

SUMMARY_COLUMNS: list[str] = [REGION_COLUMN, "numerator", "denominator", "pct"]
TREND_COLUMNS: list[str] = [REGION_COLUMN, CAMPAIGN_COLUMN, "campaign_order", "pct", "numerator", "denominator"]


def _require_columns(df: pl.DataFrame, columns: list[str]) -> None:
    missing = sorted(set(columns).difference(df.columns))
    if missing:
        raise ValueError(f"Missing required columns: {missing}")


def _sum_aggregations() -> list[pl.Expr]:
    return [
        pl.col("numerator").fill_null(0).sum().cast(pl.Int64).alias("numerator"),
        pl.col("denominator").fill_null(0).sum().cast(pl.Int64).alias("denominator"),
    ]


def summarize_by_region(clean: pl.DataFrame) -> pl.DataFrame:
    """Sum counts per region (first-seen order) and recompute ``pct`` as a fraction."""
    _require_columns(clean, [REGION_COLUMN, "numerator", "denominator"])
    return (
        clean.group_by(REGION_COLUMN, maintain_order=True)
        .agg(_sum_aggregations())
        .with_columns(safe_ratio_expr(pl.col("numerator"), pl.col("denominator")).alias("pct"))
        .select(SUMMARY_COLUMNS)
    )


def build_trend_view(clean: pl.DataFrame, unknown_campaigns: str = "append") -> pl.DataFrame:
    """Per-row ``pct = numerator/denominator`` with campaigns ranked in the fixed category order."""
    _require_columns(clean, [REGION_COLUMN, CAMPAIGN_COLUMN, "numerator", "denominator"])
    campaigns = clean.get_column(CAMPAIGN_COLUMN).cast(pl.Utf8).drop_nulls().unique(maintain_order=True).to_list()
    order = campaign_order_map(campaigns, unknown=unknown_campaigns)
    regions = clean.get_column(REGION_COLUMN).cast(pl.Utf8).drop_nulls().unique(maintain_order=True).to_list()
    region_rank = {region: idx for idx, region in enumerate(regions)}

    return (
        clean.with_columns(
            pl.col(CAMPAIGN_COLUMN).replace_strict(order, default=None, return_dtype=pl.Int64).alias("campaign_order"),
            safe_ratio_expr(pl.col("numerator"), pl.col("denominator")).alias("pct"),
            pl.col(REGION_COLUMN).replace_strict(region_rank, default=None, return_dtype=pl.Int64).alias("__region_rank"),
        )
        .sort(["__region_rank", "campaign_order"], maintain_order=True, nulls_last=True)
        .select(TREND_COLUMNS)
    )
