"""
Leave Backfill Service

Validation and CSV handling for bulk imports of historical leave records.

Architecture:
- Router -> Service (this module) -> external POST /leaves/backfill
- Rows use the backend's camelCase keys: email, type, startDate, endDate,
  fallbackType, reason
- Rows are validated on every edit and once more at submit time
- Validation returns messages, never raises; only the submit-time check raises
"""
import csv
import io
import logging
import re
from datetime import datetime
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional

from app.core.config import settings
from app.core.exceptions import BackfillLimitError, BackfillValidationError
from app.core.numeric import non_negative_field
from app.models.leave import CAPPED_LEAVE_TYPES, LeaveType
from app.schemas.leave import BackfillReport, BackfillRowResult, BackfillSubmission

logger = logging.getLogger(__name__)

CSV_COLUMNS = ["email", "type", "startDate", "endDate", "fallbackType", "reason"]

# snake_case spellings still accepted from Python callers
_SNAKE_KEYS = {
    "startDate": "start_date",
    "endDate": "end_date",
    "fallbackType": "fallback_type",
}

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_ISO_DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_HEADER_RE = re.compile(r"^\s*email\s*,\s*type", re.IGNORECASE)

TEMPLATE_ROWS = [
    {
        "email": "jane@example.com",
        "type": "PAID",
        "startDate": "2025-02-10",
        "endDate": "2025-02-12",
        "fallbackType": "SICK",
        "reason": "Flu",
    }
]


def allowed_leave_types(caps: Any) -> FrozenSet[str]:
    """Leave types enabled by the policy: capped types with a positive cap, plus UNPAID."""
    allowed = {t.value for t in CAPPED_LEAVE_TYPES if non_negative_field(caps, t.key) > 0}
    allowed.add(LeaveType.UNPAID.value)
    return frozenset(allowed)


def _text(row: Mapping[str, Any], key: str) -> str:
    value = row.get(key)
    if value is None and key in _SNAKE_KEYS:
        value = row.get(_SNAKE_KEYS[key])
    if value is None:
        return ""
    return str(value).strip()


def _parse_day(value: str) -> Optional[datetime]:
    if not _ISO_DAY_RE.match(value):
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return None


def validate_backfill_row(row: Mapping[str, Any], allowed_types: Iterable[str]) -> Optional[str]:
    """
    Check one backfill row; the first failing rule wins.

    Returns a human-readable message, or None when the row is valid.
    """
    allowed = {str(t).upper() for t in allowed_types}

    if not _EMAIL_RE.match(_text(row, "email")):
        return "Invalid email"

    if _text(row, "type").upper() not in allowed:
        return "Invalid type"

    start = _parse_day(_text(row, "startDate"))
    if start is None:
        return "Invalid start date"
    end = _parse_day(_text(row, "endDate"))
    if end is None:
        return "Invalid end date"

    if start > end:
        return "Start date must be before end date"

    fallback = _text(row, "fallbackType").upper()
    if fallback and fallback not in allowed:
        return "Invalid fallback type"

    return None


def normalize_row(row: Mapping[str, Any]) -> Dict[str, str]:
    """Trimmed copy with upper-cased type codes, in the shape the backend accepts."""
    return {
        "email": _text(row, "email"),
        "type": _text(row, "type").upper(),
        "startDate": _text(row, "startDate"),
        "endDate": _text(row, "endDate"),
        "fallbackType": _text(row, "fallbackType").upper(),
        "reason": _text(row, "reason"),
    }


def _check_limit(rows: List[Mapping[str, Any]]) -> None:
    max_rows = settings.leave.backfill_max_rows
    if len(rows) > max_rows:
        raise BackfillLimitError(len(rows), max_rows)


def validate_backfill_rows(rows: Iterable[Mapping[str, Any]], allowed_types: Iterable[str]) -> BackfillReport:
    rows = list(rows)
    _check_limit(rows)
    allowed = frozenset(str(t).upper() for t in allowed_types)

    results = []
    for index, row in enumerate(rows):
        results.append(
            BackfillRowResult(
                index=index,
                row=normalize_row(row),
                error=validate_backfill_row(row, allowed),
            )
        )
    invalid_count = sum(1 for r in results if r.error)

    logger.info(
        "Validated backfill rows",
        extra={"rows": len(results), "invalid": invalid_count},
    )
    return BackfillReport(
        rows=results,
        valid_count=len(results) - invalid_count,
        invalid_count=invalid_count,
        allowed_types=sorted(allowed),
    )


def prepare_backfill_submission(
    rows: Iterable[Mapping[str, Any]],
    allowed_types: Iterable[str],
    approve: bool = True,
) -> BackfillSubmission:
    """
    Final check before rows are sent to the backend.

    Returns the request body for POST /leaves/backfill.
    """
    report = validate_backfill_rows(rows, allowed_types)
    if report.invalid_count:
        raise BackfillValidationError(
            f"Fix {report.invalid_count} row(s) with errors before submitting.",
            details={"rows": [r.model_dump(by_alias=True) for r in report.rows if r.error]},
        )
    if not report.rows:
        raise BackfillValidationError("Nothing to submit.")

    return BackfillSubmission(entries=[dict(result.row) for result in report.rows], approve=approve)


def parse_backfill_csv(text: str) -> List[Dict[str, str]]:
    """
    Parse an uploaded backfill CSV.

    The header line is optional. Blank lines and rows with fewer than four
    columns are skipped; an empty type defaults to PAID. Quoted fields may
    span lines.
    """
    records = [
        [c.strip() for c in cols]
        for cols in csv.reader(io.StringIO(text), skipinitialspace=True)
    ]
    records = [cols for cols in records if any(cols)]
    if not records:
        return []
    if _HEADER_RE.match(",".join(records[0])):
        records = records[1:]

    rows = []
    for cols in records:
        if len(cols) < 4:
            continue
        cols += [""] * (len(CSV_COLUMNS) - len(cols))
        row = dict(zip(CSV_COLUMNS, cols))
        row["type"] = row["type"] or LeaveType.PAID.value
        rows.append(row)
    return rows


def render_backfill_csv(rows: Iterable[Mapping[str, Any]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for row in rows:
        writer.writerow([_text(row, name) for name in CSV_COLUMNS])
    return buffer.getvalue()


def backfill_template_csv() -> str:
    return render_backfill_csv(TEMPLATE_ROWS)
