# capital_checker/parse.py
from __future__ import annotations

from enum import Enum
import logging
import re
from typing import List, Optional, Sequence

from capital_checker.models import InvestorRecord, ParseResult
from capital_checker.normalize import normalize_key, parse_locale_number
from capital_checker.rules import (
    FIELD_ALIASES,
    FIELD_ATTRS,
    MIN_INVESTOR_ID_LEN,
    NUMBER_LOOKAHEAD,
    NUMBER_REGEXPS,
    Field,
)

logger = logging.getLogger(__name__)


def match_field(line: str) -> Optional[Field]:
    """First field, in alias-table order, with an alias contained in the line."""
    key = normalize_key(line)
    for fld, aliases in FIELD_ALIASES.items():
        if any(a in key for a in aliases):
            return fld
    return None


def extract_investor_id(lines: Sequence[str], index: int) -> Optional[str]:
    """
    Investor id from an id-label line: the token after the last colon/space
    on the same line, else the first token of the next line.
    """
    cand = re.split(r"[:\s]+", lines[index].strip())[-1]
    if len(cand) >= MIN_INVESTOR_ID_LEN:
        return cand
    if index + 1 < len(lines):
        nxt = lines[index + 1].strip()
        if nxt:
            return nxt.split()[0]
    return None


def find_first_number(lines: Sequence[str], start: int, window: int = NUMBER_LOOKAHEAD) -> Optional[float]:
    for line in lines[start:start + window]:
        for rx in NUMBER_REGEXPS:
            m = rx.search(line)
            if m:
                val = parse_locale_number(m.group(0))
                if val is not None:
                    return val
    return None


class BuilderState(Enum):
    NO_RECORD = "no-current-record"
    BUILDING = "building-record"


class RecordBuilder:
    """
    Turns the lines of one document into InvestorRecords.

    Every investor-id line opens (and emits) a new record; financial label
    lines that follow write into it until the next id line or the end of
    the page. Financial lines seen before any id line on a page are dropped.
    """

    def __init__(self, file_name: str):
        self.file_name = file_name
        self.records: List[InvestorRecord] = []
        self.state = BuilderState.NO_RECORD
        self.page = 0
        self._current: Optional[InvestorRecord] = None

    def start_page(self, page: int) -> None:
        self.page = page
        self.state = BuilderState.NO_RECORD
        self._current = None

    def feed(self, lines: Sequence[str], index: int) -> None:
        line = lines[index]
        fld = match_field(line)
        if fld is None:
            return

        if fld is Field.INVESTOR_ID:
            inv = extract_investor_id(lines, index) or f"unknown-{self.page}-{index}"
            self._current = InvestorRecord(file_name=self.file_name, page=self.page, investor_id=inv)
            self.records.append(self._current)
            self.state = BuilderState.BUILDING
            return

        if self.state is not BuilderState.BUILDING:
            return

        val = find_first_number(lines, index)
        if val is not None:
            setattr(self._current, FIELD_ATTRS[fld], val)
        else:
            logger.debug("%s p%d: no amount near %r", self.file_name, self.page, line)

    def feed_page(self, page: int, lines: Sequence[str]) -> None:
        self.start_page(page)
        for i in range(len(lines)):
            self.feed(lines, i)


def parse_pages_to_records(result: ParseResult) -> List[InvestorRecord]:
    builder = RecordBuilder(result.file_name)
    for page_idx, lines in enumerate(result.pages, start=1):
        builder.feed_page(page_idx, lines)
    logger.info("%s: %d investor record(s) from %d page(s)",
                result.file_name, len(builder.records), len(result.pages))
    return builder.records
