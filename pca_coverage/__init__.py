"""PCA coverage cleaning and charting package."""

from .application import PipelineResult, clean_coverage_table, run_charts_from_clean, run_pipeline
from .config import PipelineConfig
from .coverage_parsing import split_coverage
from .domain import CoverageParseError, HeaderFormatError, PipelineError, SourceFileError
from .ingestion import promote_header_row, read_raw_excel, unpivot_campaigns

__all__ = [
    "PipelineConfig",
    "PipelineResult",
    "run_pipeline",
    "run_charts_from_clean",
    "clean_coverage_table",
    "read_raw_excel",
    "promote_header_row",
    "unpivot_campaigns",
    "split_coverage",
    "PipelineError",
    "SourceFileError",
    "HeaderFormatError",
    "CoverageParseError",
]
