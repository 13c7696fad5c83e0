"""Application service turning the raw spreadsheet table into the clean long table."""

from __future__ import annotations

from dataclasses import dataclass

import polars as pl

from pca_coverage.coverage_parsing import split_coverage
from pca_coverage.ingestion import promote_header_row, unpivot_campaigns


@dataclass(frozen=True)
class CleaningResult:
    wide: pl.DataFrame
    long: pl.DataFrame
    clean: pl.DataFrame

    @property
    def campaign_count(self) -> int:
        return max(self.wide.width - 1, 0)


def clean_coverage_table(
    raw: pl.DataFrame,
    header_row: int = 1,
    parse_error_threshold: float = 0.0,
) -> CleaningResult:
    wide = promote_header_row(raw, header_row=header_row)
    long_df = unpivot_campaigns(wide)
    clean = split_coverage(long_df, parse_error_threshold=parse_error_threshold)
    return CleaningResult(wide=wide, long=long_df, clean=clean)
