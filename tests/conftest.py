from __future__ import annotations

from pathlib import Path
from typing import Sequence

import polars as pl
import pytest

openpyxl = pytest.importorskip("openpyxl")

TITLE = "Indicator Trend Summary: PCA - Finger Mark Coverage (0-59m)"
CAMPAIGNS = ["Nov SIA 2024", "Dec SIA 2024", "Jan SIA 2025"]
ROWS = [
    ["Awdal", "90.00%(90/100)", "80.00%(80/100)", "95.50%(1,910/2,000)"],
    ["Bari", "87.50%(139,551/159,487)", "92.00%(92/100)", "100.00%(50/50)"],
    ["Banadir", "70.00%(70/100)", "75.00%(75/100)", "97.00%(97/100)"],
    ["Total", "88.00%(139,711/159,687)", "82.33%(247/300)", "96.00%(2,057/2,150)"],
]


def write_workbook(path: Path, header: Sequence[object], rows: Sequence[Sequence[object]], title: str = TITLE) -> Path:
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Sheet1"
    ws.append([title])
    ws.append(list(header))
    for row in rows:
        ws.append(list(row))
    wb.save(path)
    return path


@pytest.fixture
def coverage_workbook(tmp_path: Path) -> Path:
    return write_workbook(tmp_path / "coverage.xlsx", ["Region", *CAMPAIGNS], ROWS)


@pytest.fixture
def raw_table() -> pl.DataFrame:
    records = [[TITLE, None, None, None], ["Region", *CAMPAIGNS], *ROWS]
    columns = [f"column_{idx + 1}" for idx in range(4)]
    return pl.DataFrame(
        [dict(zip(columns, row)) for row in records],
        schema={name: pl.Utf8 for name in columns},
    )


@pytest.fixture
def two_by_two_long() -> pl.DataFrame:
    return pl.DataFrame(
        {
            "Region": ["North", "North", "South", "South"],
            "Campaign": ["Nov SIA 2024", "Dec SIA 2024", "Nov SIA 2024", "Dec SIA 2024"],
            "PCA_Coverage": ["90.00%(90/100)", "80.00%(80/100)", "80.00%(80/100)", "90.00%(90/100)"],
        }
    )
