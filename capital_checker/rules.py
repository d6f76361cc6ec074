# capital_checker/rules.py
from __future__ import annotations

from enum import Enum
import re


class Field(str, Enum):
    INVESTOR_ID = "investorId"
    BEGINNING_BALANCE = "beginningBalance"
    ENDING_BALANCE = "endingBalance"
    CONTRIBUTIONS = "contributions"
    WITHDRAWALS = "withdrawals"
    PNL = "pnl"
    FEES = "fees"


# declaration order is the match precedence (first field whose alias hits wins)
FIELD_ALIASES: dict[Field, tuple[str, ...]] = {
    Field.INVESTOR_ID: ("investor id", "investor:", "id:", "investor"),
    Field.BEGINNING_BALANCE: ("beginning balance", "begin bal", "opening balance", "balance, beginning"),
    Field.ENDING_BALANCE: ("ending balance", "end bal", "closing balance"),
    Field.CONTRIBUTIONS: ("contributions", "contribution"),
    Field.WITHDRAWALS: ("withdrawals", "distributions", "withdrawal", "distribution"),
    Field.PNL: ("p&l", "pnl", "profit and loss", "net gain/loss", "net change"),
    Field.FEES: ("fees", "management fees", "fee"),
}

# record attribute for every financial field
FIELD_ATTRS: dict[Field, str] = {
    Field.BEGINNING_BALANCE: "beginning_balance",
    Field.CONTRIBUTIONS: "contributions",
    Field.WITHDRAWALS: "withdrawals",
    Field.PNL: "pnl",
    Field.FEES: "fees",
    Field.ENDING_BALANCE: "ending_balance",
}

# order used by the completeness check and the exports
FINANCIAL_FIELDS = (
    Field.BEGINNING_BALANCE,
    Field.CONTRIBUTIONS,
    Field.WITHDRAWALS,
    Field.PNL,
    Field.FEES,
    Field.ENDING_BALANCE,
)

NUMBER_REGEXPS = (
    re.compile(r"\((?:\d{1,3}(?:[.,]\d{3})*|\d+)(?:[.,]\d+)?\)"),  # (1,234.56)
    re.compile(r"(?:\d{1,3}(?:[.,]\d{3})*|\d+)(?:[.,]\d+)?"),       # 1,234.56 / 1.234,56 / 1234
)
CURRENCY_STRIP_RE = re.compile(r"[$€£%\s]")
STRICT_NEGATIVE_RE = re.compile(r"\((\d{1,3}(?:,\d{3})*)\)")
STRICT_POSITIVE_RE = re.compile(r"[\d,]+")
# a token needs a digit, so a bare "-" cell never becomes a column and
# convert_financial_value("-") -> 0.0 does not apply to area tables
TABLE_NUMBER_RE = re.compile(r"\(?\d[\d,]*\)?")

EPSILON = 1e-6
LINE_Y_TOLERANCE = 2.0
NUMBER_LOOKAHEAD = 3
MIN_INVESTOR_ID_LEN = 2

# FXP statement areas in PDF points, y measured from the bottom of the page
AREAS = {
    "balance": {"left": 80, "top": 590, "right": 580, "bottom": 300},
    "investor": {"left": 100, "top": 750, "right": 500, "bottom": 650},
}
BALANCE_FIRST_ROW = "Balance, beginning of period"
BALANCE_LAST_ROW = "Balance, end of period"
CONTRIBUTION_LABELS = {
    "commitment": "Total capital commitment",
    "contribution": "Contribution",
    "called": "Capital called",
    "uncalled": "Uncalled capital commitment",
}
FILE_ID_LEN = 11

EXTRACTION_TIMEOUT_S = 30.0
MAX_WORKERS = 4
