"""Run configuration for the coverage pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from pca_coverage.domain.models import UNKNOWN_CAMPAIGN_POLICIES

DEFAULT_INPUT_NAME = "Indicator_Trend_Summary_PCA___Finger_Mark_Coverage_(0_59m).xlsx"
DEFAULT_PREFERRED_SHEET = "Sheet1"
DEFAULT_HEADER_ROW = 1
COVERAGE_TARGET = 0.95

SUMMARY_PNG_NAME = "Average_PCA_Coverage_by_Region.png"
TREND_PNG_NAME = "Trend_in_PCA_Coverage_by_Region.png"
PLOTS_PDF_NAME = "PCA_Coverage_Plots.pdf"
TABLES_XLSX_NAME = "pca_coverage_tables.xlsx"
CLEAN_TABLE_NAME = "pca_data_clean.parquet"
RUN_SUMMARY_NAME = "run_summary.json"


@dataclass(frozen=True)
class PipelineConfig:
    input_path: Path
    output_dir: Path
    preferred_sheet: str = DEFAULT_PREFERRED_SHEET
    header_row: int = DEFAULT_HEADER_ROW
    parse_error_threshold: float = 0.0
    unknown_campaigns: str = "append"
    target: float = COVERAGE_TARGET
    png_size: tuple[float, float] = (6.0, 6.0)
    png_dpi: int = 300
    pdf_size: tuple[float, float] = (8.0, 5.0)
    clean_table_path: Path | None = field(default=None)

    def __post_init__(self) -> None:
        object.__setattr__(self, "input_path", Path(self.input_path))
        object.__setattr__(self, "output_dir", Path(self.output_dir))
        if self.clean_table_path is not None:
            object.__setattr__(self, "clean_table_path", Path(self.clean_table_path))
        if self.header_row < 0:
            raise ValueError(f"header_row must be >= 0, got {self.header_row}")
        if self.parse_error_threshold < 0 or self.parse_error_threshold > 1:
            raise ValueError(f"parse_error_threshold must be in [0, 1], got {self.parse_error_threshold}")
        if self.unknown_campaigns not in UNKNOWN_CAMPAIGN_POLICIES:
            raise ValueError(
                f"unknown_campaigns must be one of {list(UNKNOWN_CAMPAIGN_POLICIES)}, got {self.unknown_campaigns!r}"
            )
        if self.png_dpi <= 0:
            raise ValueError(f"png_dpi must be positive, got {self.png_dpi}")

    @classmethod
    def for_project(cls, project_root: str | Path, **overrides: object) -> "PipelineConfig":
        root = Path(project_root)
        return cls(
            input_path=root / "data" / "raw" / DEFAULT_INPUT_NAME,
            output_dir=root / "output",
            **overrides,  # type: ignore[arg-type]
        )

    @property
    def summary_png_path(self) -> Path:
        return self.output_dir / SUMMARY_PNG_NAME

    @property
    def trend_png_path(self) -> Path:
        return self.output_dir / TREND_PNG_NAME

    @property
    def pdf_path(self) -> Path:
        return self.output_dir / PLOTS_PDF_NAME

    @property
    def tables_path(self) -> Path:
        return self.output_dir / TABLES_XLSX_NAME

    @property
    def clean_path(self) -> Path:
        if self.clean_table_path is not None:
            return self.clean_table_path
        return self.output_dir / CLEAN_TABLE_NAME

    @property
    def run_summary_path(self) -> Path:
        return self.output_dir / RUN_SUMMARY_NAME
