from __future__ import annotations

from pathlib import Path

import polars as pl
import pytest

from pca_coverage.domain.errors import HeaderFormatError, SourceFileError
from pca_coverage.ingestion import (
    _excel_cell_value,
    LONG_COLUMNS,
    promote_header_row,
    read_raw_excel,
    unpivot_campaigns,
    write_output_excel,
)

from conftest import CAMPAIGNS, ROWS, TITLE, write_workbook


def test_read_raw_excel_missing_file_raises_source_file_error(tmp_path: Path):
    with pytest.raises(SourceFileError) as excinfo:
        read_raw_excel(tmp_path / "missing.xlsx")
    assert isinstance(excinfo.value, FileNotFoundError)


def test_read_raw_excel_keeps_title_and_header_rows_as_text(coverage_workbook: Path):
    raw = read_raw_excel(coverage_workbook)
    assert raw.columns == ["column_1", "column_2", "column_3", "column_4"]
    assert raw.height == 2 + len(ROWS)
    assert raw.row(0)[0] == TITLE
    assert list(raw.row(1)) == ["Region", *CAMPAIGNS]
    assert raw.row(2)[1] == "90.00%(90/100)"
    assert all(dtype == pl.Utf8 for dtype in raw.dtypes)


def test_read_raw_excel_falls_back_to_first_sheet(tmp_path: Path):
    path = write_workbook(tmp_path / "other.xlsx", ["Region", "Nov SIA 2024"], [["Awdal", "90.00%(90/100)"]])
    raw = read_raw_excel(path, preferred_sheet="does-not-exist")
    assert raw.height == 3


def test_read_raw_excel_reads_csv(tmp_path: Path):
    path = tmp_path / "coverage.csv"
    path.write_text(
        'title,,\nRegion,Nov SIA 2024,Dec SIA 2024\nAwdal,"90.00%(1,090/1,100)",80.00%(80/100)\n',
        encoding="utf-8",
    )
    raw = read_raw_excel(path)
    assert raw.height == 3
    assert raw.row(2) == ("Awdal", "90.00%(1,090/1,100)", "80.00%(80/100)")


def test_read_raw_excel_csv_single_field_title(tmp_path: Path):
    path = tmp_path / "coverage.csv"
    path.write_text("Title only\nRegion,Nov SIA 2024\nAwdal,90.00%(90/100)\n", encoding="utf-8")
    raw = read_raw_excel(path)
    assert raw.columns == ["column_1", "column_2"]
    assert raw.row(0) == ("Title only", None)
    assert promote_header_row(raw).columns == ["Region", "Nov SIA 2024"]


def test_promote_header_row_drops_title_and_header(raw_table: pl.DataFrame):
    wide = promote_header_row(raw_table, header_row=1)
    assert wide.columns == ["Region", *CAMPAIGNS]
    assert wide.height == raw_table.height - 2
    assert wide.get_column("Region").to_list() == [row[0] for row in ROWS]


def test_promote_header_row_rejects_duplicate_labels():
    raw = pl.DataFrame(
        {
            "column_1": ["title", "Region", "Awdal"],
            "column_2": [None, "Nov SIA 2024", "90.00%(90/100)"],
            "column_3": [None, "Nov SIA 2024", "80.00%(80/100)"],
        }
    )
    with pytest.raises(HeaderFormatError, match="Nov SIA 2024"):
        promote_header_row(raw)


def test_promote_header_row_out_of_range():
    raw = pl.DataFrame({"column_1": ["title"]})
    with pytest.raises(HeaderFormatError):
        promote_header_row(raw, header_row=1)


def test_promote_header_row_drops_blank_unlabeled_columns():
    raw = pl.DataFrame(
        {
            "column_1": ["title", "Region", "Awdal"],
            "column_2": [None, "Nov SIA 2024", "90.00%(90/100)"],
            "column_3": [None, None, "  "],
        }
    )
    wide = promote_header_row(raw)
    assert wide.columns == ["Region", "Nov SIA 2024"]


def test_promote_header_row_names_unlabeled_columns_with_data():
    raw = pl.DataFrame(
        {
            "column_1": ["title", "Region", "Awdal"],
            "column_2": [None, None, "90.00%(90/100)"],
        }
    )
    wide = promote_header_row(raw)
    assert wide.columns == ["Region", "column_2"]


def test_unpivot_campaigns_is_row_major_cross_product(raw_table: pl.DataFrame):
    wide = promote_header_row(raw_table)
    long_df = unpivot_campaigns(wide)

    assert long_df.columns == LONG_COLUMNS
    assert long_df.height == wide.height * len(CAMPAIGNS)
    assert long_df.get_column("Region").to_list()[:3] == ["Awdal"] * 3
    assert long_df.get_column("Campaign").to_list()[:3] == CAMPAIGNS

    pairs = list(zip(long_df.get_column("Region").to_list(), long_df.get_column("Campaign").to_list()))
    assert len(pairs) == len(set(pairs))
    expected = {(row[0], campaign) for row in ROWS for campaign in CAMPAIGNS}
    assert set(pairs) == expected

    bari = long_df.filter((pl.col("Region") == "Bari") & (pl.col("Campaign") == "Jan SIA 2025"))
    assert bari.get_column("PCA_Coverage").to_list() == ["100.00%(50/50)"]


def test_unpivot_campaigns_requires_region_column():
    wide = pl.DataFrame({"Area": ["Awdal"], "Nov SIA 2024": ["90.00%(90/100)"]})
    with pytest.raises(HeaderFormatError, match="Region"):
        unpivot_campaigns(wide)


def test_unpivot_campaigns_requires_campaign_columns():
    with pytest.raises(HeaderFormatError):
        unpivot_campaigns(pl.DataFrame({"Region": ["Awdal"]}))


def test_write_output_excel_writes_every_sheet(tmp_path: Path):
    openpyxl = pytest.importorskip("openpyxl")
    path = tmp_path / "out" / "tables.xlsx"
    write_output_excel(
        path,
        {
            "summary": pl.DataFrame({"Region": ["Awdal"], "pct": [0.85]}),
            "trend": pl.DataFrame({"Region": ["Awdal"], "Campaign": ["Nov SIA 2024"]}),
        },
    )
    workbook = openpyxl.load_workbook(path, read_only=True)
    assert workbook.sheetnames == ["summary", "trend"]
    workbook.close()


@pytest.mark.parametrize(
    ("value", "expected"),
    [(float("nan"), None), (float("inf"), None), (0.85, 0.85), (170, 170), ("Awdal", "Awdal"), (None, None)],
)
def test_excel_cell_value_blanks_non_finite_floats(value, expected):
    assert _excel_cell_value(value) == expected
