"""
Leave Accrual Calculator

Read-time derivation of an employee's leave entitlement and balances from the
company leave policy. Nothing here persists or mutates state: the HR backend
owns the stored balances, this module only computes what to display.

Every function degrades to a safe fallback instead of raising, because the
results feed balance tiles rather than a money-moving transaction:
- missing/unparsable joining date  -> full annual entitlement
- missing or non-positive rate      -> full annual entitlement (flat grant)
- non-positive annual total         -> None (nothing to prorate)
"""

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from app.core.dates import (
    add_months,
    format_year_month,
    month_start,
    months_between,
    parse_date,
    parse_year_month,
    policy_start_from_applicable,
)
from app.core.numeric import field_value, non_negative_field, round2, to_number
from app.models.leave import CAPPED_LEAVE_TYPES, AccrualStrategy, EmploymentStatus
from app.schemas.leave import (
    AccrualResult,
    BalancePreview,
    DisplayBalances,
    EmployeeLeaveIn,
    LeavePolicyIn,
)

logger = logging.getLogger(__name__)

CAP_KEYS = tuple(t.key for t in CAPPED_LEAVE_TYPES)

# Length of one policy cycle starting at applicableFrom
POLICY_YEAR_MONTHS = 12


def compute_prorated_annual(
    joining_date: Any,
    policy_start: Any,
    total_annual: Any,
    rate_per_month: Any,
) -> Optional[float]:
    """
    Prorated annual entitlement for an employee's first policy year.

    Joiners in or before the policy start month get the full total. Joiners
    inside the 12-month cycle get `rate x months remaining` (join month and
    cycle end month both counted), capped at the total. Joiners after the
    cycle end get 0.

    Returns None when total_annual is not a positive finite number.
    """
    total = to_number(total_annual)
    if total is None or total <= 0:
        return None

    joined = parse_date(joining_date)
    if joined is None:
        return total

    rate = to_number(rate_per_month)
    if rate is None or rate <= 0:
        return total

    start = parse_date(policy_start)
    if start is None:
        logger.debug("No policy start month configured, granting full annual entitlement")
        return total

    join_month = month_start(joined)
    start_month = month_start(start)
    if join_month <= start_month:
        return total

    try:
        cycle_end = add_months(start_month, POLICY_YEAR_MONTHS - 1)
    except ValueError:
        logger.debug("Policy cycle ends beyond the calendar range, granting full annual entitlement")
        return total
    if join_month > cycle_end:
        return 0.0

    months = months_between(join_month, cycle_end) + 1
    return round2(max(0.0, min(total, rate * months)))


def used_by_type(caps: Any, leave_balances: Any) -> Dict[str, float]:
    """Days consumed per capped type: raw cap minus the backend's remaining balance."""
    return {
        key: max(0.0, non_negative_field(caps, key) - to_number(field_value(leave_balances, key), 0.0))
        for key in CAP_KEYS
    }


def compute_display_balances(
    caps: Any,
    used: Any,
    prorated_annual: Optional[float],
    unpaid: Any = 0,
    total_leave_available: Any = 0,
) -> DisplayBalances:
    """
    Scale the configured type caps to the prorated entitlement and derive the
    remaining balance per type and in total.

    Per-type balances and the display total never go negative. The raw server
    total is carried through unclamped so callers can warn about overuse.
    """
    raw_caps = {key: non_negative_field(caps, key) for key in CAP_KEYS}
    used_days = {key: non_negative_field(used, key) for key in CAP_KEYS}
    prorated = to_number(prorated_annual)

    cap_sum = sum(raw_caps.values())
    cap_scale = 1.0
    if prorated is not None and cap_sum > 0:
        cap_scale = max(0.0, min(1.0, prorated / cap_sum))

    display_caps = {key: round2(raw_caps[key] * cap_scale) for key in CAP_KEYS}
    display_balances = {
        key: round2(max(0.0, display_caps[key] - used_days[key])) for key in CAP_KEYS
    }
    # Usage counter, not a capped balance
    display_balances["unpaid"] = to_number(unpaid, 0.0)

    raw_total = to_number(total_leave_available, 0.0)
    if prorated is not None:
        display_total = round2(max(0.0, prorated - sum(used_days.values())))
    else:
        display_total = raw_total

    return DisplayBalances(
        display_caps=display_caps,
        display_balances=display_balances,
        display_total_available=display_total,
        raw_total_available=raw_total,
        overused=raw_total < 0,
    )


def derive_type_balances(caps: Any, used: Any) -> Dict[str, float]:
    """Unscaled remaining days per type, as the backend stores them on the employee."""
    balances = {
        key: max(0.0, non_negative_field(caps, key) - to_number(field_value(used, key), 0.0))
        for key in CAP_KEYS
    }
    balances["unpaid"] = to_number(field_value(used, "unpaid"), 0.0)
    return balances


def effective_rate_per_month(
    policy: LeavePolicyIn,
    employment_status: EmploymentStatus = EmploymentStatus.PERMANENT,
) -> Optional[float]:
    """
    Monthly rate that applies to an employee.

    LUMP_SUM policies have no meaningful per-month rate. Probation employees
    accrue at the probation rate when one is configured.
    """
    if policy.accrual_strategy == AccrualStrategy.LUMP_SUM:
        return None
    if employment_status == EmploymentStatus.PROBATION:
        probation_rate = to_number(policy.probation_rate_per_month, 0.0)
        if probation_rate > 0:
            return probation_rate
    return to_number(policy.rate_per_month, 0.0)


def prorated_annual_for(
    policy: LeavePolicyIn,
    joining_date: Any,
    employment_status: EmploymentStatus = EmploymentStatus.PERMANENT,
) -> Optional[float]:
    return compute_prorated_annual(
        joining_date,
        policy_start_from_applicable(policy.applicable_from),
        policy.total_annual,
        effective_rate_per_month(policy, employment_status),
    )


def preview_balances(policy: LeavePolicyIn, employee: EmployeeLeaveIn) -> BalancePreview:
    """Everything an employee balance card shows, derived in one pass."""
    policy_start = policy_start_from_applicable(policy.applicable_from)
    rate = effective_rate_per_month(policy, employee.employment_status)
    prorated = prorated_annual_for(policy, employee.joining_date, employee.employment_status)
    used = used_by_type(policy.type_caps, employee.leave_balances)
    balances = compute_display_balances(
        policy.type_caps,
        used,
        prorated,
        unpaid=employee.leave_balances.unpaid,
        total_leave_available=employee.total_leave_available,
    )
    if balances.overused:
        logger.info(
            "Employee leave overused",
            extra={"raw_total_available": balances.raw_total_available},
        )
    return BalancePreview(
        prorated_annual=prorated,
        policy_start=format_year_month(policy_start) if policy_start else None,
        rate_per_month=rate,
        used_by_type=used,
        balances=balances,
    )


def accrue_total(
    total_available: Any,
    used: Any,
    last_accrued: Any,
    as_of: Optional[date],
    policy: LeavePolicyIn,
    employment_status: EmploymentStatus = EmploymentStatus.PERMANENT,
) -> AccrualResult:
    """
    Monthly accrual step for the shared leave pool.

    Grants `rate x months elapsed` since the last accrued month, never pushing
    used + available beyond the annual total. LUMP_SUM grants the whole
    remaining headroom at once. The input values are left untouched.
    """
    current = to_number(total_available, 0.0)
    as_of_month = month_start(as_of or datetime.now(timezone.utc).date())
    last_month = parse_year_month(last_accrued) or parse_date(last_accrued)

    unchanged = AccrualResult(
        total_leave_available=current,
        added=0.0,
        last_accrued_year_month=format_year_month(month_start(last_month)) if last_month else None,
    )

    annual = to_number(policy.total_annual, 0.0)
    if annual <= 0:
        return unchanged

    lump_sum = policy.accrual_strategy == AccrualStrategy.LUMP_SUM
    rate = effective_rate_per_month(policy, employment_status)
    if not lump_sum and (rate is None or rate <= 0):
        return unchanged

    # First accrual counts from the month before as_of, i.e. one month
    if last_month is None:
        try:
            last_month = add_months(as_of_month, -1)
        except ValueError:
            return unchanged
    delta = months_between(month_start(last_month), as_of_month)
    if delta <= 0:
        return unchanged

    used_total = sum(non_negative_field(used, key) for key in CAP_KEYS)
    cap_left = max(0.0, annual - used_total - current)
    if lump_sum:
        added = cap_left
    else:
        added = max(0.0, min(rate * delta, cap_left))
    added = round2(added)

    logger.debug(
        "Accrued leave",
        extra={"months": delta, "added": added, "strategy": policy.accrual_strategy.value},
    )
    return AccrualResult(
        total_leave_available=round2(current + added),
        added=added,
        last_accrued_year_month=format_year_month(as_of_month),
    )
