"""Shared numeric/formatting utilities for reporting."""

from __future__ import annotations

import polars as pl


def safe_ratio_expr(num: pl.Expr, den: pl.Expr) -> pl.Expr:
    safe_den = pl.when(den > 0).then(den).otherwise(None)
    return num.cast(pl.Float64) / safe_den.cast(pl.Float64)


def fmt_pct_label(value: float | None, digits: int = 2) -> str:
    """Bar label text: ``0.875 -> "87.5%"``, ``0.85 -> "85%"``, trailing zeros dropped."""
    if value is None or value != value:
        return ""
    rounded = round(value * 100, digits)
    return f"{rounded:.{digits}f}".rstrip("0").rstrip(".") + "%"


def fmt_pct(value: float | None, digits: int = 1) -> str:
    if value is None or value != value:
        return "N/A"
    return f"{value * 100:.{digits}f}%"
