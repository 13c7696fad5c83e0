"""Infrastructure adapter for spreadsheet input and serialized clean tables."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import polars as pl

from pca_coverage.coverage_parsing import CLEAN_COLUMNS
from pca_coverage.domain.errors import OutputWriteError, SourceFileError
from pca_coverage.ingestion import read_raw_excel, write_output_excel

logger = logging.getLogger(__name__)

CLEAN_SCHEMA_VERSION = 1


def _meta_path(frame_path: Path) -> Path:
    return frame_path.with_suffix(".meta.json")


def _source_key(path: Path) -> dict[str, Any]:
    stat = path.stat()
    return {
        "input_path": str(path.resolve()),
        "input_mtime_ns": stat.st_mtime_ns,
        "input_size": stat.st_size,
    }


def load_raw_table(path: Path, preferred_sheet: str) -> tuple[pl.DataFrame, dict[str, Any]]:
    raw_df = read_raw_excel(path, preferred_sheet=preferred_sheet)
    meta = _source_key(path)
    meta["raw_rows"] = int(raw_df.height)
    meta["raw_columns"] = int(raw_df.width)
    return raw_df, meta


def save_clean_table(path: Path, frame: pl.DataFrame, source_meta: dict[str, Any]) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        frame.select(CLEAN_COLUMNS).write_parquet(path, compression="zstd")
        payload = {
            "clean_schema_version": CLEAN_SCHEMA_VERSION,
            "rows": int(frame.height),
            "source": source_meta,
        }
        _meta_path(path).write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
    except OSError as exc:
        raise OutputWriteError(f"Cannot write clean table to {path}: {exc}") from exc


def _load_meta(meta_path: Path) -> dict[str, Any]:
    if not meta_path.exists():
        return {}
    try:
        meta_obj = json.loads(meta_path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        logger.warning("Ignoring unreadable clean-table metadata %s", meta_path)
        return {}
    return meta_obj if isinstance(meta_obj, dict) else {}


def load_clean_table(path: Path) -> tuple[pl.DataFrame, dict[str, Any]]:
    if not path.exists():
        raise SourceFileError(f"Clean table not found: {path} (run the full pipeline first)")
    try:
        frame = pl.read_parquet(path)
    except Exception as exc:
        raise SourceFileError(f"Cannot read clean table {path}: {exc}") from exc

    missing = sorted(set(CLEAN_COLUMNS).difference(frame.columns))
    if missing:
        raise SourceFileError(f"Clean table {path} is missing columns: {missing}")

    meta = _load_meta(_meta_path(path))
    version = meta.get("clean_schema_version")
    if version is not None and version != CLEAN_SCHEMA_VERSION:
        logger.warning("Clean table %s has schema version %s, expected %s", path, version, CLEAN_SCHEMA_VERSION)
    return frame.select(CLEAN_COLUMNS), meta


def save_tables_workbook(path: Path, sheets: dict[str, pl.DataFrame]) -> tuple[bool, str]:
    try:
        write_output_excel(path, sheets)
    except PermissionError as exc:
        return False, str(exc)
    except OSError as exc:
        raise OutputWriteError(f"Cannot write tables workbook to {path}: {exc}") from exc
    return True, ""
