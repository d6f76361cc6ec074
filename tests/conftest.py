import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from capital_checker.models import InvestorRecord, ParseResult, TextItem


WORKED_EXAMPLE = [
    "Investor ID: ABC123",
    "Beginning Balance 1,000.50",
    "Contributions 100",
    "Withdrawals (50)",
    "P&L 25.5",
    "Fees 10",
    "Ending Balance 1,066.00",
]


@pytest.fixture
def worked_example() -> ParseResult:
    return ParseResult(file_name="t.pdf", pages=[list(WORKED_EXAMPLE)])


def make_record(**kw) -> InvestorRecord:
    base = dict(
        file_name="f", page=1, investor_id="A",
        beginning_balance=100.0, contributions=20.0, withdrawals=10.0,
        pnl=5.0, fees=2.0, ending_balance=113.0,
    )
    base.update(kw)
    return InvestorRecord(**base)


def row_items(y: float, label: str, *numbers: str, label_x: float = 90.0) -> list:
    items = [TextItem(x=label_x, y=y, text=label)]
    for i, n in enumerate(numbers):
        items.append(TextItem(x=400.0 + 100.0 * i, y=y, text=n))
    return items


def balance_page(end_col1: str = "1,400", end_col2: str = "2,400") -> list:
    """Page-one items of a small FXP statement (PDF origin coordinates)."""
    items = []
    items += row_items(740, "Investor name:", label_x=110)
    items.append(TextItem(x=220, y=740, text="Jane Doe"))
    items += row_items(720, "Investor ID: 12345678901", label_x=110)
    items += row_items(580, "Balance, beginning of period", "1,000", "2,000")
    items += row_items(560, "Contribution", "500", "600")
    items += row_items(540, "Net income", "(100)", "(200)")
    items += row_items(520, "Balance, end of period", end_col1, end_col2)
    items += row_items(480, "Total capital commitment", "10,000", "10,000")
    items += row_items(460, "Capital called", "3,000", "3,000")
    items += row_items(440, "Uncalled capital commitment", "7,000", "7,000")
    # outside both areas
    items.append(TextItem(x=20, y=580, text="999"))
    items.append(TextItem(x=90, y=100, text="Footer 1 2"))
    return items


def pdf_bytes(*pages) -> bytes:
    """A letter-size PDF with one text line every 20pt from the top, per page."""
    fitz = pytest.importorskip("fitz")
    doc = fitz.open()
    for lines in pages:
        page = doc.new_page(width=612, height=792)
        for i, text in enumerate(lines):
            page.insert_text((72, 72 + 20 * i), text)
    data = doc.tobytes()
    doc.close()
    return data
