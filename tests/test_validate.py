from capital_checker.models import InvestorRecord
from capital_checker.parse import parse_pages_to_records
from capital_checker.validate import expected_ending, problematic_keys, validate_records

from conftest import make_record


def _codes(issues):
    return [i.code for i in issues]


def test_balanced_record_has_no_issues():
    assert validate_records([make_record()]) == []


def test_mismatch_is_reported_once_with_two_decimals():
    issues = validate_records([make_record(ending_balance=100.0)])
    assert _codes(issues) == ["ending_mismatch"]
    i = issues[0]
    assert i.type == "error"
    assert i.message == "Balance formula mismatch: expected 113.00 got 100.00"
    assert (i.file_name, i.page, i.investor_id) == ("f", 1, "A")


def test_tolerance():
    assert validate_records([make_record(ending_balance=113.0 + 1e-7)]) == []
    assert _codes(validate_records([make_record(ending_balance=113.0 + 1e-5)])) == ["ending_mismatch"]
    assert _codes(validate_records([make_record(ending_balance=113.0 - 1e-5)])) == ["ending_mismatch"]


def test_withdrawals_are_an_outflow_whatever_their_sign():
    pos = make_record(withdrawals=10.0)
    neg = make_record(withdrawals=-10.0)
    assert expected_ending(pos) == expected_ending(neg) == 113.0
    assert validate_records([neg]) == []


def test_worked_example_reconciles(worked_example):
    recs = parse_pages_to_records(worked_example)
    assert "ending_mismatch" not in _codes(validate_records(recs))


def test_missing_fields_are_warnings_not_zeroes():
    rec = InvestorRecord(file_name="f", page=2, investor_id="B")
    issues = validate_records([rec])
    assert _codes(issues) == ["missing_field"] * 6
    assert all(i.type == "warning" for i in issues)
    assert [i.message for i in issues] == [
        "Missing field: beginningBalance",
        "Missing field: contributions",
        "Missing field: withdrawals",
        "Missing field: pnl",
        "Missing field: fees",
        "Missing field: endingBalance",
    ]


def test_absent_fields_count_as_zero_for_the_identity():
    rec = make_record(contributions=None, ending_balance=93.0)
    assert _codes(validate_records([rec])) == ["missing_field"]


def test_duplicates_are_per_file_and_keep_both_records():
    recs = [
        make_record(page=1),
        make_record(page=3),
        make_record(file_name="g", page=1),
    ]
    issues = validate_records(recs)
    dups = [i for i in issues if i.code == "duplicate_investor"]
    assert len(dups) == 1
    assert (dups[0].file_name, dups[0].page, dups[0].message) == ("f", 3, "Duplicate investor ID A")
    assert len(recs) == 3


def test_validation_is_deterministic():
    recs = [make_record(), make_record(ending_balance=1.0), InvestorRecord("g", 1, "Z")]
    assert validate_records(recs) == validate_records(recs)


def test_problematic_keys_only_errors():
    recs = [make_record(ending_balance=1.0), InvestorRecord("f", 2, "W")]
    assert problematic_keys(validate_records(recs)) == {"f:1:A"}
