from typing import Any, Dict, Optional

class AppException(Exception):
    def __init__(
        self, 
        message: str, 
        status_code: int = 400, 
        error_code: str = "BUSINESS_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)

class BackfillValidationError(AppException):
    """Raised at submit time when backfill rows are empty or still invalid."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=422,
            error_code="BACKFILL_INVALID",
            details=details
        )

class BackfillLimitError(AppException):
    def __init__(self, row_count: int, max_rows: int):
        super().__init__(
            message=f"Backfill batch of {row_count} rows exceeds the limit of {max_rows}.",
            status_code=413,
            error_code="BACKFILL_TOO_LARGE",
            details={"rows": row_count, "max_rows": max_rows}
        )

class LeaveAllocationError(AppException):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=409,
            error_code="INSUFFICIENT_LEAVE",
            details=details
        )
