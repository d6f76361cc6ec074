# capital_checker/area_tables.py
from __future__ import annotations

from dataclasses import dataclass, field
import logging
import math
import re
from typing import Dict, List, Sequence, Tuple

import pandas as pd

from capital_checker.models import ParseResult, TextItem
from capital_checker.normalize import convert_financial_value, normalize_whitespace
from capital_checker.rules import (
    AREAS,
    BALANCE_FIRST_ROW,
    BALANCE_LAST_ROW,
    CONTRIBUTION_LABELS,
    FILE_ID_LEN,
    LINE_Y_TOLERANCE,
    TABLE_NUMBER_RE,
)

logger = logging.getLogger(__name__)

TABLE_COLUMNS = ["label", "col1", "col2"]
SUMMARY_COLUMNS = ["file", "lines", "ytd", "itd", "diff"]
INVESTOR_COLUMNS = ["fileId", "docId", "match", "investorName"]
CONTRIBUTION_COLUMNS = [
    "file", "commitment", "contribution", "called",
    "contributionMinusCalled", "uncalled", "finalCheck",
]


@dataclass
class AreaWorkbook:
    merged_tables: List[Tuple[str, pd.DataFrame]] = field(default_factory=list)
    checks_summary: pd.DataFrame = field(default_factory=lambda: pd.DataFrame(columns=SUMMARY_COLUMNS))
    checks_investors: pd.DataFrame = field(default_factory=lambda: pd.DataFrame(columns=INVESTOR_COLUMNS))
    contribution_check: pd.DataFrame = field(default_factory=lambda: pd.DataFrame(columns=CONTRIBUTION_COLUMNS))


def items_in_area(items: Sequence[TextItem], area: Dict[str, float]) -> List[TextItem]:
    return [
        it for it in items
        if area["left"] <= it.x <= area["right"] and area["bottom"] <= it.y <= area["top"]
    ]


def cluster_rows(items: Sequence[TextItem], tolerance: float = LINE_Y_TOLERANCE) -> List[List[TextItem]]:
    """Reading-order rows: sorted top-to-bottom, left-to-right, then bucketed by y."""
    ordered = sorted(items, key=lambda it: (-it.y, it.x))
    anchors: List[float] = []
    rows: List[List[TextItem]] = []
    for it in ordered:
        for i, y in enumerate(anchors):
            if abs(y - it.y) <= tolerance:
                rows[i].append(it)
                break
        else:
            anchors.append(it.y)
            rows.append([it])
    return [sorted(r, key=lambda it: it.x) for r in rows]


def _row_text(row: Sequence[TextItem]) -> str:
    return normalize_whitespace(" ".join(it.text for it in row))


def split_row(text: str) -> Tuple[str, str, str]:
    """Label plus the last two numeric tokens of a row."""
    matches = list(TABLE_NUMBER_RE.finditer(text))[-2:]
    if not matches:
        return text, "", ""
    label = text[:matches[0].start()].strip()
    col1 = matches[0].group(0)
    col2 = matches[1].group(0) if len(matches) > 1 else ""
    return label, col1, col2


def build_table_from_items(items: Sequence[TextItem]) -> pd.DataFrame:
    rows = [split_row(_row_text(r)) for r in cluster_rows(items)]
    return pd.DataFrame(rows, columns=TABLE_COLUMNS)


def convert_table(df: pd.DataFrame) -> pd.DataFrame:
    out = df.copy()
    for col in ("col1", "col2"):
        out[col] = out[col].map(convert_financial_value).astype(float)
    return out


def filter_by_row_names(df: pd.DataFrame, first_row: str, last_row: str) -> pd.DataFrame:
    labels = df["label"].astype(str).tolist()
    try:
        first_idx = labels.index(first_row)
        last_idx = labels.index(last_row)
    except ValueError:
        return df.iloc[0:0].reset_index(drop=True)
    if last_idx < first_idx:
        return df.iloc[0:0].reset_index(drop=True)
    return df.iloc[first_idx:last_idx + 1].reset_index(drop=True)


def _nz(v) -> float:
    try:
        v = float(v)
    except (TypeError, ValueError):
        return 0.0
    return v if math.isfinite(v) else 0.0


def summary_check(file_name: str, sliced: pd.DataFrame) -> dict:
    """
    Sum every row above the terminal 'end of period' row and compare it with
    that row; diff > 0 means the reported balance exceeds the movements.
    """
    interior = sliced.iloc[:-1]
    ytd = float(interior["col1"].map(_nz).sum()) if len(interior) else 0.0
    itd = float(interior["col2"].map(_nz).sum()) if len(interior) else 0.0
    if len(sliced):
        last = sliced.iloc[-1]
        end1, end2 = _nz(last["col1"]), _nz(last["col2"])
    else:
        end1 = end2 = 0.0
    return {
        "file": file_name,
        "lines": max(len(sliced) - 1, 0),
        "ytd": ytd,
        "itd": itd,
        "diff": end1 + end2 - ytd - itd,
    }


def file_id_from_name(file_name: str) -> str:
    return re.sub(r"\.pdf$", "", file_name or "unknown.pdf", flags=re.I)[:FILE_ID_LEN]


def investor_check(file_name: str, items: Sequence[TextItem]) -> dict:
    # first line: "Investor name: ...", second line: "Investor ID: ..."
    values = []
    for row in cluster_rows(items):
        parts = _row_text(row).split(":", 1)
        values.append(parts[1].strip() if len(parts) > 1 else "")
    name = values[0] if values else ""
    doc_id = values[1] if len(values) > 1 else ""
    file_id = file_id_from_name(file_name)
    return {"fileId": file_id, "docId": doc_id, "match": file_id == doc_id, "investorName": name}


def find_value(table: pd.DataFrame, label: str) -> float:
    hit = table[table["label"].astype(str).str.lower().str.contains(label.lower(), regex=False)]
    if hit.empty:
        return math.nan
    return convert_financial_value(hit.iloc[0]["col2"])


def contribution_check(file_name: str, table: pd.DataFrame) -> dict:
    vals = {k: find_value(table, label) for k, label in CONTRIBUTION_LABELS.items()}
    return {
        "file": file_name,
        "commitment": vals["commitment"],
        "contribution": vals["contribution"],
        "called": vals["called"],
        "contributionMinusCalled": vals["contribution"] - vals["called"],
        "uncalled": vals["uncalled"],
        "finalCheck": vals["commitment"] - vals["called"] - vals["uncalled"],
    }


def build_area_workbook(results: Sequence[ParseResult]) -> AreaWorkbook:
    merged: List[Tuple[str, pd.DataFrame]] = []
    summary, investors, contributions = [], [], []

    for res in results:
        page_items = res.items[0] if res.items else []
        balance_items = items_in_area(page_items, AREAS["balance"])
        investor_items = items_in_area(page_items, AREAS["investor"])

        table = convert_table(build_table_from_items(balance_items))
        sliced = filter_by_row_names(table, BALANCE_FIRST_ROW, BALANCE_LAST_ROW)
        if sliced.empty:
            logger.warning("%s: balance table boundaries not found (%d row(s) in area)",
                           res.file_name, len(table))

        merged.append((res.file_name, sliced))
        summary.append(summary_check(res.file_name, sliced))
        investors.append(investor_check(res.file_name, investor_items))
        contributions.append(contribution_check(res.file_name, table))

    return AreaWorkbook(
        merged_tables=merged,
        checks_summary=pd.DataFrame(summary, columns=SUMMARY_COLUMNS),
        checks_investors=pd.DataFrame(investors, columns=INVESTOR_COLUMNS),
        contribution_check=pd.DataFrame(contributions, columns=CONTRIBUTION_COLUMNS),
    )
