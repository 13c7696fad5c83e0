"""Application layer package."""

from .cleaning_service import CleaningResult, clean_coverage_table
from .pipeline_service import PipelineResult, run_charts_from_clean, run_pipeline

__all__ = ["CleaningResult", "clean_coverage_table", "PipelineResult", "run_pipeline", "run_charts_from_clean"]
