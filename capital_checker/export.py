# capital_checker/export.py
from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional, Set
import logging
import re

import pandas as pd
from openpyxl import load_workbook
from openpyxl.styles import Font, PatternFill

from capital_checker.area_tables import AreaWorkbook
from capital_checker.models import InvestorRecord, Issue, record_key
from capital_checker.validate import problematic_keys

logger = logging.getLogger(__name__)

RECORD_COLUMNS = ["fileName", "page", "investorId", "beginning", "contributions",
                  "withdrawals", "pnl", "fees", "ending", "edited"]
ISSUE_COLUMNS = ["type", "code", "message", "fileName", "page", "investorId"]
ERROR_FILL = PatternFill(start_color="FFF4CCCC", end_color="FFF4CCCC", fill_type="solid")
INVALID_SHEET_CHARS = re.compile(r"[\[\]:*?/\\]")


def records_frame(records: Iterable[InvestorRecord]) -> pd.DataFrame:
    rows = [{
        "fileName": r.file_name,
        "page": r.page,
        "investorId": r.investor_id,
        "beginning": r.beginning_balance,
        "contributions": r.contributions,
        "withdrawals": r.withdrawals,
        "pnl": r.pnl,
        "fees": r.fees,
        "ending": r.ending_balance,
        "edited": r.edited,
    } for r in records]
    return pd.DataFrame(rows, columns=RECORD_COLUMNS)


def issues_frame(issues: Iterable[Issue]) -> pd.DataFrame:
    rows = [{
        "type": i.type,
        "code": i.code,
        "message": i.message,
        "fileName": i.file_name,
        "page": "" if i.page is None else i.page,
        "investorId": i.investor_id or "",
    } for i in issues]
    return pd.DataFrame(rows, columns=ISSUE_COLUMNS)


def write_records_csv(records: Iterable[InvestorRecord], path: Path) -> Path:
    path = Path(path)
    records_frame(records).to_csv(path, index=False, encoding="utf-8")
    logger.info("Wrote: %s", path)
    return path


def write_records_xlsx(records: List[InvestorRecord], path: Path,
                       issues: Optional[Iterable[Issue]] = None) -> Path:
    """Records sheet; rows of records with an error issue are filled red."""
    path = Path(path)
    records_frame(records).to_excel(path, index=False, sheet_name="Records", engine="openpyxl")

    if issues is not None:
        bad = problematic_keys(issues)
        if bad:
            wb = load_workbook(path)
            ws = wb["Records"]
            for row_idx, r in enumerate(records, start=2):  # row 1 = header
                if record_key(r) in bad:
                    for cell in ws[row_idx]:
                        cell.fill = ERROR_FILL
            wb.save(path)
    logger.info("Wrote: %s", path)
    return path


def write_issues_xlsx(issues: Iterable[Issue], path: Path) -> Path:
    path = Path(path)
    issues_frame(issues).to_excel(path, index=False, sheet_name="Issues", engine="openpyxl")
    logger.info("Wrote: %s", path)
    return path


def _sheet_name(file_name: str, used: Set[str]) -> str:
    base = INVALID_SHEET_CHARS.sub("_", file_name or "unknown")[:28] or "unknown"
    name, n = base, 1
    while name.lower() in used:
        n += 1
        name = f"{base[:28 - len(str(n)) - 1]}~{n}"
    used.add(name.lower())
    return name


def merged_frame(workbook: AreaWorkbook) -> pd.DataFrame:
    frames = [t.assign(file=f)[["file", "label", "col1", "col2"]] for f, t in workbook.merged_tables if not t.empty]
    if not frames:
        return pd.DataFrame(columns=["file", "label", "col1", "col2"])
    return pd.concat(frames, ignore_index=True)


def write_area_workbook(workbook: AreaWorkbook, path: Path) -> Path:
    """One sheet per file, then merged_tables and the three check sheets."""
    path = Path(path)
    used = {"merged_tables", "checks_summary", "checks_investors", "contribution_check"}
    with pd.ExcelWriter(path, engine="openpyxl") as xw:
        for file_name, table in workbook.merged_tables:
            table.rename(columns={"label": "Row", "col1": "Col1", "col2": "Col2"}).to_excel(
                xw, sheet_name=_sheet_name(file_name, used), index=False
            )
        merged_frame(workbook).to_excel(xw, sheet_name="merged_tables", index=False)
        workbook.checks_summary.to_excel(xw, sheet_name="checks_summary", index=False)
        workbook.checks_investors.to_excel(xw, sheet_name="checks_investors", index=False)
        workbook.contribution_check.to_excel(xw, sheet_name="contribution_check", index=False)

    # bold headers on the check sheets
    wb = load_workbook(path)
    for name in ("checks_summary", "checks_investors", "contribution_check"):
        for cell in wb[name][1]:
            cell.font = Font(bold=True)
    wb.save(path)
    logger.info("Wrote: %s", path)
    return path
