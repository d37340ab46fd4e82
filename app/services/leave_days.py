"""
Leave day counting and pool allocation.

Counts the working days a leave actually charges and splits them across the
requested type, a fallback type and unpaid leave, the same way the HR backend
applies approved and backfilled leaves.
"""
import logging
from datetime import date, timedelta
from typing import Any, Dict, Iterable, Optional, Set, Tuple

from app.core.exceptions import LeaveAllocationError
from app.core.numeric import non_negative_field, round2, to_number
from app.models.leave import CAPPED_LEAVE_TYPES, DayOverrideType, LeaveType
from app.schemas.leave import LeaveAllocation

logger = logging.getLogger(__name__)

# Saturday, Sunday
WEEKEND_DAYS = frozenset({5, 6})


def holiday_set(
    start: date,
    end: date,
    bank_holidays: Iterable[date] = (),
    overrides: Iterable[Tuple[date, DayOverrideType]] = (),
) -> Set[date]:
    """Bank holidays within [start, end] after applying per-day overrides."""
    holidays = {d for d in bank_holidays if start <= d <= end}
    for day, override in overrides:
        if not start <= day <= end:
            continue
        if override == DayOverrideType.WORKING:
            holidays.discard(day)
        elif override == DayOverrideType.HOLIDAY:
            holidays.add(day)
    return holidays


def count_chargeable_days(
    start: date,
    end: date,
    bank_holidays: Iterable[date] = (),
    overrides: Iterable[Tuple[date, DayOverrideType]] = (),
) -> int:
    """Weekdays between start and end (inclusive) that are not holidays."""
    if start > end:
        return 0
    holidays = holiday_set(start, end, bank_holidays, overrides)
    days = 0
    current = start
    while current <= end:
        if current.weekday() not in WEEKEND_DAYS and current not in holidays:
            days += 1
        current += timedelta(days=1)
    return days


def _remaining_for(caps: Any, used: Any, leave_type: LeaveType) -> float:
    return max(0.0, non_negative_field(caps, leave_type.key) - non_negative_field(used, leave_type.key))


def allocate_leave_days(
    days: float,
    leave_type: LeaveType,
    fallback_type: Optional[LeaveType],
    caps: Any,
    used: Any,
    pool_available: Any,
) -> LeaveAllocation:
    """
    Split `days` across the requested type, the fallback type and unpaid leave.

    The requested type is limited by both its remaining cap and the shared pool.
    Whatever does not fit needs a fallback type; a capped fallback takes what its
    own cap and the leftover pool allow and the rest spills into unpaid.

    Raises LeaveAllocationError when days are left over and no fallback is set.
    """
    days = max(0.0, to_number(days, 0.0))
    allocations: Dict[str, float] = {"paid": 0.0, "casual": 0.0, "sick": 0.0, "unpaid": 0.0}

    if leave_type == LeaveType.UNPAID:
        allocations["unpaid"] = days
    else:
        pool = max(0.0, to_number(pool_available, 0.0))
        primary = max(0.0, min(days, _remaining_for(caps, used, leave_type), pool))
        allocations[leave_type.key] = primary
        remaining = max(0.0, days - primary)

        if remaining > 0:
            if fallback_type is None:
                raise LeaveAllocationError(
                    f"Insufficient {leave_type.key} leave. Missing fallbackType",
                    details={"requested": days, "allocated": primary},
                )
            if fallback_type == LeaveType.UNPAID:
                allocations["unpaid"] += remaining
            elif fallback_type in CAPPED_LEAVE_TYPES:
                pool_left = max(0.0, pool - primary)
                fallback_used = {key: non_negative_field(used, key) for key in allocations}
                # Counts the primary share when the fallback is the same type
                fallback_used[leave_type.key] += primary
                from_fallback = max(
                    0.0,
                    min(remaining, _remaining_for(caps, fallback_used, fallback_type), pool_left),
                )
                allocations[fallback_type.key] += from_fallback
                allocations["unpaid"] += remaining - from_fallback

    pool_deduction = sum(allocations[t.key] for t in CAPPED_LEAVE_TYPES)
    logger.debug(
        "Allocated leave days",
        extra={"type": leave_type.value, "days": days, "pool_deduction": pool_deduction},
    )
    return LeaveAllocation(
        paid=round2(allocations["paid"]),
        casual=round2(allocations["casual"]),
        sick=round2(allocations["sick"]),
        unpaid=round2(allocations["unpaid"]),
        pool_deduction=round2(pool_deduction),
    )
