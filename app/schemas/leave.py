from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.models.leave import AccrualStrategy, DayOverrideType, EmploymentStatus, LeaveType


class CamelModel(BaseModel):
    """Accepts the backend's camelCase JSON as well as snake_case field names."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FrozenCamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# --- Policy / employee inputs ---

class TypeCaps(CamelModel):
    paid: float = Field(default=0, ge=0)
    casual: float = Field(default=0, ge=0)
    sick: float = Field(default=0, ge=0)


class LeaveBalances(CamelModel):
    paid: float = 0
    casual: float = 0
    sick: float = 0
    unpaid: float = 0


class LeavePolicyIn(CamelModel):
    total_annual: float = Field(default=0, ge=0)
    rate_per_month: float = Field(default=0, ge=0)
    probation_rate_per_month: float = Field(default=0, ge=0)
    accrual_strategy: AccrualStrategy = AccrualStrategy.ACCRUAL
    applicable_from: Optional[str] = None  # "YYYY-MM"
    type_caps: TypeCaps = Field(default_factory=TypeCaps)


class EmployeeLeaveIn(CamelModel):
    # Kept as a string: unparsable dates degrade to "no proration data"
    joining_date: Optional[str] = None
    employment_status: EmploymentStatus = EmploymentStatus.PERMANENT
    leave_balances: LeaveBalances = Field(default_factory=LeaveBalances)
    total_leave_available: float = 0


class ProratedAnnualRequest(CamelModel):
    joining_date: Optional[str] = None
    employment_status: EmploymentStatus = EmploymentStatus.PERMANENT
    policy: LeavePolicyIn


class BalancePreviewRequest(CamelModel):
    policy: LeavePolicyIn
    employee: EmployeeLeaveIn


class AccrualRequest(CamelModel):
    policy: LeavePolicyIn
    employment_status: EmploymentStatus = EmploymentStatus.PERMANENT
    total_leave_available: float = 0
    leave_usage: LeaveBalances = Field(default_factory=LeaveBalances)
    last_accrued_year_month: Optional[str] = None
    as_of: Optional[date] = None


class DayOverrideIn(CamelModel):
    day: date = Field(alias="date")
    type: DayOverrideType


class ChargeableDaysRequest(CamelModel):
    start_date: date
    end_date: date
    bank_holidays: List[date] = Field(default_factory=list)
    overrides: List[DayOverrideIn] = Field(default_factory=list)


class AllocationRequest(CamelModel):
    days: float = Field(ge=0)
    type: LeaveType
    fallback_type: Optional[LeaveType] = None
    type_caps: TypeCaps = Field(default_factory=TypeCaps)
    leave_usage: LeaveBalances = Field(default_factory=LeaveBalances)
    pool_available: float = 0


# --- Backfill ---

class BackfillRowIn(CamelModel):
    """Loose on purpose: field problems are reported per row, not as a 422."""
    email: Optional[str] = None
    type: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    fallback_type: Optional[str] = None
    reason: Optional[str] = None


class BackfillValidateRequest(CamelModel):
    entries: List[BackfillRowIn]
    type_caps: TypeCaps = Field(default_factory=TypeCaps)
    approve: bool = True


class BackfillCsvRequest(CamelModel):
    csv: str
    type_caps: TypeCaps = Field(default_factory=TypeCaps)


# --- Results ---

class ProratedAnnualResult(FrozenCamelModel):
    prorated_annual: Optional[float]
    policy_start: Optional[str]
    rate_per_month: Optional[float]


class DisplayBalances(FrozenCamelModel):
    display_caps: Dict[str, float]
    display_balances: Dict[str, float]
    display_total_available: float
    # Unclamped server aggregate, kept for the overuse warning
    raw_total_available: float
    overused: bool


class BalancePreview(FrozenCamelModel):
    prorated_annual: Optional[float]
    policy_start: Optional[str]
    rate_per_month: Optional[float]
    used_by_type: Dict[str, float]
    balances: DisplayBalances


class AccrualResult(FrozenCamelModel):
    total_leave_available: float
    added: float
    last_accrued_year_month: Optional[str]


class LeaveAllocation(FrozenCamelModel):
    paid: float = 0
    casual: float = 0
    sick: float = 0
    unpaid: float = 0
    pool_deduction: float = 0


class ChargeableDaysResult(FrozenCamelModel):
    days: int


class BackfillRowResult(FrozenCamelModel):
    index: int
    row: Dict[str, Any]
    error: Optional[str] = None


class BackfillReport(FrozenCamelModel):
    rows: List[BackfillRowResult]
    valid_count: int
    invalid_count: int
    allowed_types: List[str]


class BackfillSubmission(FrozenCamelModel):
    """Request body for the backend's POST /leaves/backfill."""
    entries: List[Dict[str, str]]
    approve: bool
