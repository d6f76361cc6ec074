# capital_checker/normalize.py
from __future__ import annotations

import math
import re

from capital_checker.rules import (
    CURRENCY_STRIP_RE,
    STRICT_NEGATIVE_RE,
    STRICT_POSITIVE_RE,
)


def normalize_whitespace(value: str) -> str:
    return re.sub(r"\s+", " ", value).strip()


def normalize_key(value: str) -> str:
    return normalize_whitespace(value).lower()


def _to_float(s: str) -> float | None:
    # float() also takes "nan", "inf" and "1_000"; none of those are amounts
    if not s or "_" in s:
        return None
    try:
        val = float(s)
    except ValueError:
        return None
    return val if math.isfinite(val) else None


def parse_locale_number(raw: str) -> float | None:
    """
    Parse a locale-formatted amount such as '1,234.56', '1.234,56',
    '(50)' or '€ 12,5'.

    When both ',' and '.' are present the later one is the decimal point.
    A lone ',' is a decimal comma, a lone '.' is left alone.
    Returns None when the text is not a number.
    """
    s = CURRENCY_STRIP_RE.sub("", raw)
    neg = len(s) >= 2 and s.startswith("(") and s.endswith(")")
    core = s[1:-1] if neg else s

    comma = core.rfind(",")
    dot = core.rfind(".")
    if comma != -1 and dot != -1:
        if dot > comma:
            core = core.replace(",", "")
        else:
            core = core.replace(".", "").replace(",", ".")
    elif comma != -1:
        core = core.replace(",", ".")

    val = _to_float(core)
    if val is None:
        return None
    return -val if neg else val


def convert_financial_value(value) -> float:
    """Strict converter for the fixed balance-table layout; NaN when unparseable."""
    if value is None:
        return math.nan
    if isinstance(value, (int, float)):
        return float(value)
    s = str(value).strip()
    if s == "-":
        return 0.0
    m = STRICT_NEGATIVE_RE.fullmatch(s)
    if m:
        return -float(m.group(1).replace(",", ""))
    if STRICT_POSITIVE_RE.fullmatch(s):
        val = _to_float(s.replace(",", ""))
        return math.nan if val is None else val
    val = _to_float(s)
    return math.nan if val is None else val
