import pandas as pd
from openpyxl import load_workbook

from capital_checker.area_tables import build_area_workbook
from capital_checker.export import (
    ISSUE_COLUMNS,
    RECORD_COLUMNS,
    _sheet_name,
    write_area_workbook,
    write_issues_xlsx,
    write_records_csv,
    write_records_xlsx,
)
from capital_checker.models import InvestorRecord, ParseResult
from capital_checker.validate import validate_records

from conftest import balance_page, make_record


def _records():
    return [
        make_record(),
        make_record(investor_id="B", ending_balance=1.0),
        InvestorRecord(file_name="f", page=2, investor_id="C"),
    ]


def test_records_xlsx_marks_error_rows(tmp_path):
    recs = _records()
    path = write_records_xlsx(recs, tmp_path / "r.xlsx", issues=validate_records(recs))

    df = pd.read_excel(path, sheet_name="Records")
    assert list(df.columns) == RECORD_COLUMNS
    assert df["investorId"].tolist() == ["A", "B", "C"]

    ws = load_workbook(path)["Records"]
    assert ws["A3"].fill.fgColor.rgb == "FFF4CCCC"
    assert ws["J3"].fill.fgColor.rgb == "FFF4CCCC"
    # warnings only and clean rows stay plain
    assert ws["A2"].fill.fill_type is None
    assert ws["A4"].fill.fill_type is None


def test_records_csv(tmp_path):
    path = write_records_csv(_records(), tmp_path / "r.csv")
    df = pd.read_csv(path)
    assert list(df.columns) == RECORD_COLUMNS
    assert df["ending"].tolist()[:2] == [113.0, 1.0]
    assert pd.isna(df["ending"].iloc[2])


def test_issues_xlsx(tmp_path):
    recs = _records()
    path = write_issues_xlsx(validate_records(recs), tmp_path / "i.xlsx")
    df = pd.read_excel(path, sheet_name="Issues")
    assert list(df.columns) == ISSUE_COLUMNS
    assert df["code"].tolist()[0] == "ending_mismatch"
    assert (df["code"] == "missing_field").sum() == 6


def test_empty_exports(tmp_path):
    write_records_xlsx([], tmp_path / "r.xlsx", issues=[])
    write_issues_xlsx([], tmp_path / "i.xlsx")
    assert pd.read_excel(tmp_path / "r.xlsx").empty
    assert list(pd.read_excel(tmp_path / "i.xlsx").columns) == ISSUE_COLUMNS


def test_sheet_names():
    used = {"merged_tables"}
    assert _sheet_name("x/y:z?.pdf", used) == "x_y_z_.pdf"
    assert _sheet_name("a" * 40, used) == "a" * 28
    assert _sheet_name("a" * 40, used) == "a" * 26 + "~2"
    assert _sheet_name("a" * 40, used) == "a" * 26 + "~3"
    assert _sheet_name("merged_tables", used) == "merged_tables~2"


def test_area_workbook(tmp_path):
    results = [
        ParseResult(file_name="12345678901_x.pdf", pages=[[]], items=[balance_page()]),
        ParseResult(file_name="other.pdf", pages=[[]]),
    ]
    path = write_area_workbook(build_area_workbook(results), tmp_path / "a.xlsx")

    wb = load_workbook(path)
    assert wb.sheetnames == [
        "12345678901_x.pdf", "other.pdf",
        "merged_tables", "checks_summary", "checks_investors", "contribution_check",
    ]
    assert [c.value for c in wb["12345678901_x.pdf"][1]] == ["Row", "Col1", "Col2"]
    assert wb["checks_summary"]["A1"].font.bold

    merged = pd.read_excel(path, sheet_name="merged_tables")
    assert list(merged.columns) == ["file", "label", "col1", "col2"]
    assert len(merged) == 4

    summary = pd.read_excel(path, sheet_name="checks_summary")
    assert summary["diff"].tolist() == [0.0, 0.0]


def test_writers_log_the_written_path(tmp_path, caplog):
    caplog.set_level("INFO", logger="capital_checker.export")
    path = write_records_csv(_records(), tmp_path / "r.csv")
    assert f"Wrote: {path}" in [r.getMessage() for r in caplog.records]
    assert caplog.records[-1].levelname == "INFO"
