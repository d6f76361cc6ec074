# capital_checker/validate.py
from __future__ import annotations

from typing import Dict, Iterable, List, Set

from capital_checker.models import InvestorRecord, Issue
from capital_checker.rules import EPSILON, FIELD_ATTRS, FINANCIAL_FIELDS


def expected_ending(r: InvestorRecord) -> float:
    """
    beginning + contributions - withdrawals + pnl - fees, absent fields as 0.

    Withdrawals are an outflow whatever sign the statement printed them with
    ('Withdrawals (50)' is stored as -50), so their magnitude is subtracted.
    """
    b = r.beginning_balance or 0.0
    c = r.contributions or 0.0
    w = abs(r.withdrawals or 0.0)
    p = r.pnl or 0.0
    f = r.fees or 0.0
    return b + c - w + p - f


def validate_records(records: Iterable[InvestorRecord]) -> List[Issue]:
    issues: List[Issue] = []
    seen_per_file: Dict[str, Set[str]] = {}

    for r in records:
        seen = seen_per_file.setdefault(r.file_name, set())
        if r.investor_id in seen:
            issues.append(Issue(
                type="error",
                code="duplicate_investor",
                message=f"Duplicate investor ID {r.investor_id}",
                file_name=r.file_name, page=r.page, investor_id=r.investor_id,
            ))
        else:
            seen.add(r.investor_id)

        lhs = expected_ending(r)
        ending = r.ending_balance or 0.0
        if abs(lhs - ending) > EPSILON:
            issues.append(Issue(
                type="error",
                code="ending_mismatch",
                message=f"Balance formula mismatch: expected {lhs:.2f} got {ending:.2f}",
                file_name=r.file_name, page=r.page, investor_id=r.investor_id,
            ))

        for fld in FINANCIAL_FIELDS:
            if getattr(r, FIELD_ATTRS[fld]) is None:
                issues.append(Issue(
                    type="warning",
                    code="missing_field",
                    message=f"Missing field: {fld.value}",
                    file_name=r.file_name, page=r.page, investor_id=r.investor_id,
                ))

    return issues


def problematic_keys(issues: Iterable[Issue]) -> Set[str]:
    """record_key of every record that carries at least one error."""
    return {
        f"{i.file_name}:{i.page}:{i.investor_id}"
        for i in issues
        if i.type == "error" and i.investor_id
    }
