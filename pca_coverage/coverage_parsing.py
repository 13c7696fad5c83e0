"""Split composite ``<pct>%(<numerator>/<denominator>)`` coverage strings."""

from __future__ import annotations

import logging

import polars as pl

from pca_coverage.domain.errors import CoverageParseError, ParseFailure
from pca_coverage.domain.models import TOTAL_REGION
from pca_coverage.ingestion import CAMPAIGN_COLUMN, COVERAGE_COLUMN, REGION_COLUMN

logger = logging.getLogger(__name__)

CLEAN_COLUMNS: list[str] = [REGION_COLUMN, CAMPAIGN_COLUMN, "pct", "numerator", "denominator"]
CLEAN_SCHEMA: dict[str, pl.DataType] = {
    REGION_COLUMN: pl.Utf8(),
    CAMPAIGN_COLUMN: pl.Utf8(),
    "pct": pl.Float64(),
    "numerator": pl.Int64(),
    "denominator": pl.Int64(),
}

# Digits with optional thousands separators; only the percentage may carry a fraction.
_COVERAGE_PATTERN = r"^(\d[\d,]*(?:\.\d+)?)\s*%\s*\(\s*(\d[\d,]*)\s*/\s*(\d[\d,]*)\s*\)$"
_PART_GROUPS: dict[str, int] = {"pct": 1, "numerator": 2, "denominator": 3}
_PART_DTYPES: dict[str, pl.DataType] = {"pct": pl.Float64(), "numerator": pl.Int64(), "denominator": pl.Int64()}
_PARSE_ERROR = "__parse_error"
_OBSERVATION = "__observation"


def _coverage_text_expr() -> pl.Expr:
    return pl.col(COVERAGE_COLUMN).cast(pl.Utf8, strict=False).str.strip_chars()


def _missing_expr() -> pl.Expr:
    return _coverage_text_expr().fill_null("") == ""


def _part_expr(name: str) -> pl.Expr:
    # Counts go straight from text to Int64 so overflow becomes null instead of a lossy float.
    return (
        _coverage_text_expr()
        .str.extract(_COVERAGE_PATTERN, group_index=_PART_GROUPS[name])
        .str.replace_all(",", "")
        .cast(_PART_DTYPES[name], strict=False)
        .alias(name)
    )


def _parse_error_expr() -> pl.Expr:
    unparsed = pl.any_horizontal([pl.col(name).is_null() for name in _PART_GROUPS])
    non_finite = ~pl.col("pct").is_finite().fill_null(False)
    return (~_missing_expr() & (unparsed | non_finite)).alias(_PARSE_ERROR)


def _collect_failures(parsed: pl.DataFrame) -> list[ParseFailure]:
    offenders = parsed.with_row_index(_OBSERVATION, offset=1).filter(pl.col(_PARSE_ERROR))
    return [
        ParseFailure(
            observation=int(row[_OBSERVATION]),
            region=row[REGION_COLUMN],
            campaign=row[CAMPAIGN_COLUMN],
            value=row[COVERAGE_COLUMN],
        )
        for row in offenders.iter_rows(named=True)
    ]


def split_coverage(long_df: pl.DataFrame, parse_error_threshold: float = 0.0) -> pl.DataFrame:
    """Parse ``PCA_Coverage`` into ``pct``/``numerator``/``denominator`` and drop the Total row.

    Any unparseable non-empty value raises ``CoverageParseError`` unless the share of
    failing rows is within ``parse_error_threshold``, in which case those values become null.
    Empty cells are missing observations and always become null.
    """
    missing = sorted({COVERAGE_COLUMN, REGION_COLUMN, CAMPAIGN_COLUMN}.difference(long_df.columns))
    if missing:
        raise ValueError(f"Missing required columns: {missing}")
    if long_df.is_empty():
        return pl.DataFrame(schema=CLEAN_SCHEMA)

    parsed = long_df.with_columns([_part_expr(name) for name in _PART_GROUPS]).with_columns(_parse_error_expr())

    failures = _collect_failures(parsed)
    if failures:
        row_count = int(parsed.height)
        failure_ratio = len(failures) / row_count
        if parse_error_threshold <= 0 or failure_ratio > parse_error_threshold:
            raise CoverageParseError(failures, total_rows=row_count)
        logger.warning(
            "Nulling %d unparseable coverage values (%.2f%% <= threshold %.2f%%); first: %s",
            len(failures),
            failure_ratio * 100,
            parse_error_threshold * 100,
            failures[0].describe(),
        )

    cleaned = parsed.with_columns(
        pl.when(pl.col(_PARSE_ERROR)).then(None).otherwise(pl.col("pct")).alias("pct"),
        *[
            pl.when(pl.col(_PARSE_ERROR)).then(None).otherwise(pl.col(name)).alias(name)
            for name in ("numerator", "denominator")
        ],
    )

    before_rows = int(cleaned.height)
    kept = cleaned.filter(pl.col(REGION_COLUMN) != pl.lit(TOTAL_REGION)).select(CLEAN_COLUMNS)
    logger.debug("Dropped %d aggregate/unlabeled rows", before_rows - int(kept.height))
    return kept
