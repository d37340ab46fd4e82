import pytest

from app.core.config import settings
from app.core.exceptions import BackfillLimitError, BackfillValidationError
from app.services.leave_backfill import (
    allowed_leave_types,
    backfill_template_csv,
    parse_backfill_csv,
    prepare_backfill_submission,
    validate_backfill_row,
    validate_backfill_rows,
)

ALLOWED = {"PAID", "SICK", "UNPAID"}


def _row(**overrides):
    row = {"email": "a@b.com", "type": "PAID", "startDate": "2025-01-01", "endDate": "2025-01-02"}
    row.update(overrides)
    return row


def test_allowed_types_follow_caps():
    assert allowed_leave_types({"paid": 12, "casual": 0, "sick": 6}) == {"PAID", "SICK", "UNPAID"}
    assert allowed_leave_types({}) == {"UNPAID"}

def test_invalid_email_rejected_then_accepted():
    assert validate_backfill_row(_row(email="not-an-email"), ALLOWED) == "Invalid email"
    assert validate_backfill_row(_row(), ALLOWED) is None

@pytest.mark.parametrize("overrides, message", [
    ({"email": ""}, "Invalid email"),
    ({"email": "a@b"}, "Invalid email"),
    ({"type": "CASUAL"}, "Invalid type"),
    ({"type": None}, "Invalid type"),
    ({"startDate": "2025-1-01"}, "Invalid start date"),
    ({"startDate": "2025-02-30"}, "Invalid start date"),
    ({"endDate": ""}, "Invalid end date"),
    ({"startDate": "2025-01-03"}, "Start date must be before end date"),
    ({"fallbackType": "CASUAL"}, "Invalid fallback type"),
])
def test_validation_messages(overrides, message):
    assert validate_backfill_row(_row(**overrides), ALLOWED) == message

def test_first_failure_wins():
    row = _row(email="bad", type="CASUAL", startDate="x")
    assert validate_backfill_row(row, ALLOWED) == "Invalid email"

def test_same_day_and_lowercase_type_are_valid():
    assert validate_backfill_row(_row(type="sick", endDate="2025-01-01", fallbackType="unpaid"), ALLOWED) is None

def test_unpaid_always_allowed():
    assert validate_backfill_row(_row(type="UNPAID"), allowed_leave_types({})) is None

def test_backend_shaped_row():
    """Rows as the backend sends them: camelCase keys, PAID allowed."""
    row = {"email": "not-an-email", "type": "PAID", "startDate": "2025-01-01", "endDate": "2025-01-02"}
    assert validate_backfill_row(row, {"PAID"}) == "Invalid email"
    row["email"] = "a@b.com"
    assert validate_backfill_row(row, {"PAID"}) is None
    row["startDate"] = "2025-01-05"
    assert validate_backfill_row(row, {"PAID"}) == "Start date must be before end date"

def test_snake_case_row_keys_still_accepted():
    row = {"email": "a@b.com", "type": "PAID", "start_date": "2025-01-03", "end_date": "2025-01-02"}
    assert validate_backfill_row(row, ALLOWED) == "Start date must be before end date"

def test_report_rows_use_camel_case_keys():
    report = validate_backfill_rows([_row(type="paid", fallbackType="sick")], ALLOWED)
    assert report.rows[0].row == {
        "email": "a@b.com",
        "type": "PAID",
        "startDate": "2025-01-01",
        "endDate": "2025-01-02",
        "fallbackType": "SICK",
        "reason": "",
    }


def test_batch_report_counts():
    report = validate_backfill_rows([_row(), _row(email="nope"), _row(type="UNPAID")], ALLOWED)
    assert report.valid_count == 2
    assert report.invalid_count == 1
    assert report.rows[1].error == "Invalid email"
    assert report.allowed_types == ["PAID", "SICK", "UNPAID"]

def test_batch_limit(monkeypatch):
    monkeypatch.setattr(settings.leave, "backfill_max_rows", 2)
    with pytest.raises(BackfillLimitError):
        validate_backfill_rows([_row(), _row(), _row()], ALLOWED)


def test_prepare_rejects_empty_batch():
    with pytest.raises(BackfillValidationError) as exc:
        prepare_backfill_submission([], ALLOWED)
    assert exc.value.message == "Nothing to submit."

def test_prepare_rejects_invalid_rows():
    with pytest.raises(BackfillValidationError) as exc:
        prepare_backfill_submission([_row(), _row(endDate="2024-12-31")], ALLOWED)
    assert exc.value.message == "Fix 1 row(s) with errors before submitting."

def test_prepare_builds_backend_payload():
    payload = prepare_backfill_submission([_row(type="paid", reason=" Flu ")], ALLOWED, approve=False)
    assert payload.model_dump() == {
        "entries": [{
            "email": "a@b.com",
            "type": "PAID",
            "startDate": "2025-01-01",
            "endDate": "2025-01-02",
            "fallbackType": "",
            "reason": "Flu",
        }],
        "approve": False,
    }


def test_parse_csv_with_header():
    text = (
        "email,type,startDate,endDate,fallbackType,reason\n"
        "jane@example.com,PAID,2025-02-10,2025-02-12,SICK,Flu\n"
        "\n"
        "bad,row\n"
        "bob@example.com,,2025-03-01,2025-03-02\r\n"
    )
    rows = parse_backfill_csv(text)
    assert len(rows) == 2
    assert rows[0] == {
        "email": "jane@example.com",
        "type": "PAID",
        "startDate": "2025-02-10",
        "endDate": "2025-02-12",
        "fallbackType": "SICK",
        "reason": "Flu",
    }
    assert rows[1]["type"] == "PAID"
    assert rows[1]["fallbackType"] == ""

def test_parse_csv_without_header_and_quoted_reason():
    rows = parse_backfill_csv('c@d.com, SICK, 2025-01-01, 2025-01-01, , "Fever, cold"')
    assert rows[0]["type"] == "SICK"
    assert rows[0]["reason"] == "Fever, cold"

def test_parse_csv_quoted_reason_spanning_lines():
    text = (
        "email,type,startDate,endDate,fallbackType,reason\n"
        'c@d.com,SICK,2025-01-01,2025-01-02,,"Fever\nand cold"\n'
        "e@f.com,PAID,2025-02-01,2025-02-01\n"
    )
    rows = parse_backfill_csv(text)
    assert len(rows) == 2
    assert rows[0]["reason"] == "Fever\nand cold"
    assert rows[1]["email"] == "e@f.com"

def test_parse_empty_csv():
    assert parse_backfill_csv("\n  \n") == []

def test_template_parses_back_into_valid_rows():
    template = backfill_template_csv()
    assert template.splitlines()[0] == "email,type,startDate,endDate,fallbackType,reason"
    rows = parse_backfill_csv(template)
    assert validate_backfill_row(rows[0], ALLOWED) is None
