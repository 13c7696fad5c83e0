"""Excel ingestion/output helpers with Polars-first and openpyxl fallback."""

from __future__ import annotations

import csv
import logging
import math
from pathlib import Path
from typing import Any, Dict, Sequence

import polars as pl

from pca_coverage.domain.errors import HeaderFormatError, SourceFileError

logger = logging.getLogger(__name__)

REGION_COLUMN = "Region"
CAMPAIGN_COLUMN = "Campaign"
COVERAGE_COLUMN = "PCA_Coverage"
LONG_COLUMNS: list[str] = [REGION_COLUMN, CAMPAIGN_COLUMN, COVERAGE_COLUMN]
_ROW_INDEX = "__source_row"


def _import_openpyxl() -> tuple[Any, Any]:
    try:
        from openpyxl import Workbook, load_workbook
    except Exception as exc:  # pragma: no cover
        raise RuntimeError("openpyxl is required for Excel fallback I/O.") from exc
    return Workbook, load_workbook


def _is_blank(value: Any) -> bool:
    return value is None or str(value).strip() == ""


def _positional_columns(width: int) -> list[str]:
    return [f"column_{idx + 1}" for idx in range(width)]


def _normalize_headers(raw_headers: Sequence[Any]) -> list[str]:
    headers: list[str] = []
    seen: dict[str, int] = {}
    for idx, value in enumerate(raw_headers):
        base = f"column_{idx + 1}" if _is_blank(value) else str(value).strip()
        seen[base] = seen.get(base, 0) + 1
        headers.append(base)

    duplicates = sorted(name for name, count in seen.items() if count > 1)
    if duplicates:
        raise HeaderFormatError(f"Duplicate column labels in header row: {duplicates}")
    return headers


def _select_sheet_name(path: Path, preferred_sheet: str) -> str:
    _, load_workbook = _import_openpyxl()
    workbook = load_workbook(path, read_only=True, data_only=True)
    sheet_names = list(workbook.sheetnames)
    workbook.close()
    if not sheet_names:
        raise SourceFileError(f"No sheets found in {path}")
    if preferred_sheet in sheet_names:
        return preferred_sheet
    return sheet_names[0]


def _read_excel_polars(path: Path, **kwargs: Any) -> Any:
    """Read every cell as text so composite coverage strings survive untouched."""
    return pl.read_excel(path, has_header=False, infer_schema_length=0, **kwargs)  # type: ignore[arg-type]


def _frame_from_polars_result(frame: Any, preferred_sheet: str) -> pl.DataFrame:
    if isinstance(frame, dict):
        if preferred_sheet in frame:
            return frame[preferred_sheet]
        first_key = next(iter(frame.keys()), None)
        if first_key is None:
            return pl.DataFrame()
        return frame[first_key]
    return frame


def _read_with_polars(path: Path, preferred_sheet: str) -> pl.DataFrame:
    if not hasattr(pl, "read_excel"):
        raise RuntimeError("polars.read_excel is not available in this environment.")

    try:
        frame = _read_excel_polars(path, sheet_name=preferred_sheet)
    except Exception:
        # Preferred sheet missing: polars reads the first sheet when no name is given.
        frame = _read_excel_polars(path)
    return _frame_from_polars_result(frame, preferred_sheet)


def _read_with_openpyxl(path: Path, target_sheet: str) -> pl.DataFrame:
    _, load_workbook = _import_openpyxl()
    workbook = load_workbook(path, read_only=True, data_only=True)
    worksheet = workbook[target_sheet]

    rows: list[list[Any]] = []
    width = 0
    for values in worksheet.iter_rows(values_only=True):
        if values is None or all(_is_blank(value) for value in values):
            continue
        rows.append(list(values))
        width = max(width, len(values))
    workbook.close()

    columns = _positional_columns(width)
    if not rows:
        return pl.DataFrame({name: [] for name in columns}, schema={name: pl.Utf8 for name in columns})

    records = [
        {name: (None if idx >= len(row) or row[idx] is None else str(row[idx])) for idx, name in enumerate(columns)}
        for row in rows
    ]
    return pl.DataFrame(records, schema={name: pl.Utf8 for name in columns})


def _as_text_frame(frame: pl.DataFrame) -> pl.DataFrame:
    renamed = frame.rename(dict(zip(frame.columns, _positional_columns(frame.width))))
    text = renamed.with_columns(pl.all().cast(pl.Utf8, strict=False))
    if text.width == 0:
        return text
    blank_row = pl.all_horizontal(
        [pl.col(name).str.strip_chars().fill_null("") == "" for name in text.columns]
    )
    return text.filter(~blank_row)


def _csv_width(path: Path) -> int:
    with path.open(newline="", encoding="utf-8-sig") as handle:
        return max((len(row) for row in csv.reader(handle)), default=0)


def _read_csv(path: Path) -> pl.DataFrame:
    # Title rows are often a single field; size the schema to the widest line so short rows pad with nulls.
    width = _csv_width(path)
    if width == 0:
        return pl.DataFrame()
    schema = {name: pl.Utf8 for name in _positional_columns(width)}
    return pl.read_csv(path, has_header=False, schema=schema)


def read_raw_excel(path: str | Path, preferred_sheet: str = "Sheet1") -> pl.DataFrame:
    """Read a spreadsheet into a raw all-text table with positional column names."""
    source_path = Path(path)
    if not source_path.exists():
        raise SourceFileError(f"Input file not found: {source_path}")

    if source_path.suffix.lower() == ".csv":
        try:
            raw_df = _read_csv(source_path)
        except Exception as exc:
            raise SourceFileError(f"Cannot read {source_path}: {exc}") from exc
        return _as_text_frame(raw_df)

    try:
        raw_df = _read_with_polars(source_path, preferred_sheet)
    except Exception as polars_exc:
        logger.info("polars could not read %s (%s); falling back to openpyxl", source_path, polars_exc)
        try:
            target_sheet = _select_sheet_name(source_path, preferred_sheet)
            raw_df = _read_with_openpyxl(source_path, target_sheet)
        except SourceFileError:
            raise
        except Exception as exc:
            raise SourceFileError(f"Cannot read {source_path}: {exc}") from exc

    return _as_text_frame(raw_df)


def promote_header_row(raw: pl.DataFrame, header_row: int = 1) -> pl.DataFrame:
    """Use ``raw`` row ``header_row`` as column labels and drop it with every row above."""
    if header_row < 0 or header_row >= raw.height:
        raise HeaderFormatError(f"Header row {header_row} is outside a table with {raw.height} rows")

    labels = raw.row(header_row)
    headers = _normalize_headers(labels)
    body = raw.slice(header_row + 1).rename(dict(zip(raw.columns, headers)))

    unnamed = [name for name, label in zip(headers, labels) if _is_blank(label)]
    empty_unnamed = [
        name
        for name in unnamed
        if body.is_empty()
        or body.select((pl.col(name).cast(pl.Utf8).str.strip_chars().fill_null("") == "").all()).item()
    ]
    if empty_unnamed:
        logger.debug("Dropping empty unlabeled columns: %s", empty_unnamed)
    return body.drop(empty_unnamed)


def unpivot_campaigns(wide: pl.DataFrame, id_column: str = REGION_COLUMN) -> pl.DataFrame:
    """Reshape one-column-per-campaign into one row per (region, campaign)."""
    if id_column not in wide.columns:
        raise HeaderFormatError(f"Missing required column {id_column!r}; found {wide.columns}")

    campaigns = [name for name in wide.columns if name != id_column]
    if not campaigns:
        raise HeaderFormatError("No campaign columns found next to the region column")

    long_df = (
        wide.with_row_index(_ROW_INDEX)
        .with_columns(
            pl.col(id_column).cast(pl.Utf8, strict=False).str.strip_chars().alias(REGION_COLUMN),
            *[pl.col(name).cast(pl.Utf8, strict=False) for name in campaigns],
        )
        .unpivot(
            on=campaigns,
            index=[_ROW_INDEX, REGION_COLUMN],
            variable_name=CAMPAIGN_COLUMN,
            value_name=COVERAGE_COLUMN,
        )
    )
    # unpivot emits campaign-major blocks; a stable sort restores row-major order.
    return long_df.sort(_ROW_INDEX, maintain_order=True).select(LONG_COLUMNS)


def _excel_cell_value(value: Any) -> Any:
    # openpyxl writes NaN/inf as invalid XML numbers.
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def _write_with_polars(path: Path, sheets: Dict[str, pl.DataFrame]) -> bool:
    if not sheets:
        return False

    try:
        import xlsxwriter
    except ImportError:
        return False

    try:
        with xlsxwriter.Workbook(str(path)) as workbook:
            for sheet_name, frame in sheets.items():
                frame.write_excel(workbook=workbook, worksheet=str(sheet_name)[:31], autofit=True)
        return True
    except PermissionError:
        raise
    except Exception as exc:
        logger.info("polars could not write %s (%s); falling back to openpyxl", path, exc)
        return False


def _write_with_openpyxl(path: Path, sheets: Dict[str, pl.DataFrame]) -> None:
    Workbook, _ = _import_openpyxl()
    workbook = Workbook()
    default_sheet = workbook.active
    workbook.remove(default_sheet)

    for sheet_name, frame in sheets.items():
        worksheet = workbook.create_sheet(title=str(sheet_name)[:31])
        worksheet.append(frame.columns)
        for row in frame.iter_rows(named=False):
            worksheet.append([_excel_cell_value(value) for value in row])

    path.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(path)


def write_output_excel(path: str | Path, sheets: Dict[str, pl.DataFrame]) -> None:
    """Write output Excel with Polars-first and openpyxl fallback."""
    excel_path = Path(path)
    excel_path.parent.mkdir(parents=True, exist_ok=True)

    if _write_with_polars(excel_path, sheets):
        return
    _write_with_openpyxl(excel_path, sheets)
