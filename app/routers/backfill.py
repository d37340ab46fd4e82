from fastapi import APIRouter
from fastapi.responses import PlainTextResponse
import logging

from app.core.config import settings
from app.core.exceptions import BackfillValidationError
from app.core.schemas import ApiResponse
from app.schemas.leave import (
    BackfillCsvRequest,
    BackfillReport,
    BackfillSubmission,
    BackfillValidateRequest,
)
from app.services import leave_backfill

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/leaves/backfill", tags=["leave-backfill"])


@router.post("/validate", response_model=ApiResponse[BackfillReport])
def validate_rows(request: BackfillValidateRequest):
    """Per-row validation of manually entered backfill rows."""
    allowed = leave_backfill.allowed_leave_types(request.type_caps)
    rows = [entry.model_dump(by_alias=True) for entry in request.entries]
    return ApiResponse.ok(leave_backfill.validate_backfill_rows(rows, allowed))


@router.post("/csv", response_model=ApiResponse[BackfillReport])
def import_csv(request: BackfillCsvRequest):
    """Parse an uploaded CSV and validate every row it yields."""
    rows = leave_backfill.parse_backfill_csv(request.csv)
    if not rows:
        raise BackfillValidationError("No valid rows found in CSV")
    allowed = leave_backfill.allowed_leave_types(request.type_caps)
    report = leave_backfill.validate_backfill_rows(rows, allowed)
    return ApiResponse.ok(report, metadata={"imported": len(rows)})


@router.get("/template", response_class=PlainTextResponse)
def download_template():
    return PlainTextResponse(
        leave_backfill.backfill_template_csv(),
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{settings.leave.backfill_template_name}"'
        },
    )


@router.post("/prepare", response_model=ApiResponse[BackfillSubmission])
def prepare_submission(request: BackfillValidateRequest):
    """Submit-time re-check; returns the body to send to the backend's POST /leaves/backfill."""
    allowed = leave_backfill.allowed_leave_types(request.type_caps)
    rows = [entry.model_dump(by_alias=True) for entry in request.entries]
    submission = leave_backfill.prepare_backfill_submission(rows, allowed, approve=request.approve)
    return ApiResponse.ok(submission)
