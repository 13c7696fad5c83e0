"""Infrastructure layer package."""

from .excel_repository import load_clean_table, load_raw_table, save_clean_table, save_tables_workbook
from .report_exporter import save_chart_png, save_charts_pdf, save_run_summary

__all__ = [
    "load_raw_table",
    "load_clean_table",
    "save_clean_table",
    "save_tables_workbook",
    "save_chart_png",
    "save_charts_pdf",
    "save_run_summary",
]
