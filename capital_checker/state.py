# capital_checker/state.py
from __future__ import annotations

from dataclasses import dataclass, field
import logging
import math
from typing import List, Optional, Set

from capital_checker.models import (
    DocumentFailure,
    InvestorRecord,
    Issue,
    ParseResult,
    record_key,
)
from capital_checker.rules import FIELD_ATTRS
from capital_checker.validate import problematic_keys, validate_records

logger = logging.getLogger(__name__)

EDITABLE = {"investor_id", *FIELD_ATTRS.values()}


@dataclass
class AppState:
    """Everything one upload session shows: records, their issues and the raw results."""
    records: List[InvestorRecord] = field(default_factory=list)
    issues: List[Issue] = field(default_factory=list)
    results: List[ParseResult] = field(default_factory=list)
    failures: List[DocumentFailure] = field(default_factory=list)

    def set_data(self, records: List[InvestorRecord], issues: List[Issue]) -> None:
        self.records = list(records)
        self.issues = list(issues)

    def find(self, key: str) -> Optional[InvestorRecord]:
        return next((r for r in self.records if record_key(r) == key), None)

    def find_all(self, key: str) -> List[InvestorRecord]:
        # same-page duplicates share one key
        return [r for r in self.records if record_key(r) == key]

    def update_record(self, key: str, **updates) -> List[InvestorRecord]:
        """
        Apply a user edit to every record identified by `key` and rebuild the
        issue list. Amounts may be cleared with None. Nothing is written when
        any of the values is rejected.
        """
        targets = self.find_all(key)
        if not targets:
            raise KeyError(key)
        unknown = set(updates) - EDITABLE
        if unknown:
            raise KeyError(f"not editable: {', '.join(sorted(unknown))}")

        clean = {}
        for name, value in updates.items():
            if name == "investor_id":
                value = str(value).strip()
                if not value:
                    raise ValueError("investor_id must not be empty")
            elif value is not None:
                value = float(value)
                if not math.isfinite(value):
                    raise ValueError(f"{name} must be a finite number")
            clean[name] = value

        for rec in targets:
            for name, value in clean.items():
                setattr(rec, name, value)
            rec.edited = True

        self.issues = validate_records(self.records)
        logger.debug("edited %d record(s) %s -> %s (%d issue(s))",
                     len(targets), key, record_key(targets[0]), len(self.issues))
        return targets

    def problematic_keys(self) -> Set[str]:
        return problematic_keys(self.issues)

    def problematic_records(self) -> List[InvestorRecord]:
        bad = self.problematic_keys()
        return [r for r in self.records if record_key(r) in bad]

    def reset(self) -> None:
        self.records = []
        self.issues = []
        self.results = []
        self.failures = []
