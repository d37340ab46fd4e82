from fastapi import APIRouter
import logging

from app.core.schemas import ApiResponse
from app.schemas.leave import (
    AccrualRequest,
    AccrualResult,
    AllocationRequest,
    BalancePreview,
    BalancePreviewRequest,
    ChargeableDaysRequest,
    ChargeableDaysResult,
    LeaveAllocation,
    ProratedAnnualRequest,
    ProratedAnnualResult,
)
from app.core.dates import format_year_month, policy_start_from_applicable
from app.services import leave_accrual, leave_days

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/leave", tags=["leave"])


@router.post("/prorated", response_model=ApiResponse[ProratedAnnualResult])
def prorated_annual(request: ProratedAnnualRequest):
    """Prorated annual entitlement for an employee joining at `joiningDate`."""
    policy_start = policy_start_from_applicable(request.policy.applicable_from)
    rate = leave_accrual.effective_rate_per_month(request.policy, request.employment_status)
    prorated = leave_accrual.prorated_annual_for(
        request.policy, request.joining_date, request.employment_status
    )
    return ApiResponse.ok(ProratedAnnualResult(
        prorated_annual=prorated,
        policy_start=format_year_month(policy_start) if policy_start else None,
        rate_per_month=rate,
    ))


@router.post("/balances/preview", response_model=ApiResponse[BalancePreview])
def preview_balances(request: BalancePreviewRequest):
    """Display caps, per-type balances and total available for one employee."""
    return ApiResponse.ok(leave_accrual.preview_balances(request.policy, request.employee))


@router.post("/accrual/preview", response_model=ApiResponse[AccrualResult])
def preview_accrual(request: AccrualRequest):
    result = leave_accrual.accrue_total(
        request.total_leave_available,
        request.leave_usage,
        request.last_accrued_year_month,
        request.as_of,
        request.policy,
        request.employment_status,
    )
    return ApiResponse.ok(result)


@router.post("/chargeable-days", response_model=ApiResponse[ChargeableDaysResult])
def chargeable_days(request: ChargeableDaysRequest):
    days = leave_days.count_chargeable_days(
        request.start_date,
        request.end_date,
        request.bank_holidays,
        [(o.day, o.type) for o in request.overrides],
    )
    return ApiResponse.ok(ChargeableDaysResult(days=days))


@router.post("/allocate", response_model=ApiResponse[LeaveAllocation])
def allocate(request: AllocationRequest):
    # LeaveAllocationError propagates to the AppException handler (409)
    allocation = leave_days.allocate_leave_days(
        request.days,
        request.type,
        request.fallback_type,
        request.type_caps,
        request.leave_usage,
        request.pool_available,
    )
    return ApiResponse.ok(allocation)
