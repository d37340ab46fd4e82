import pytest
from datetime import date

from app.core.exceptions import LeaveAllocationError
from app.models.leave import DayOverrideType, LeaveType
from app.services.leave_days import allocate_leave_days, count_chargeable_days

CAPS = {"paid": 3, "casual": 0, "sick": 6}
MONDAY = date(2025, 2, 10)
SUNDAY = date(2025, 2, 16)


def test_weekends_are_not_charged():
    assert count_chargeable_days(MONDAY, SUNDAY) == 5

def test_bank_holiday_is_not_charged():
    assert count_chargeable_days(MONDAY, SUNDAY, [date(2025, 2, 12)]) == 4

def test_working_override_cancels_bank_holiday():
    overrides = [(date(2025, 2, 12), DayOverrideType.WORKING)]
    assert count_chargeable_days(MONDAY, SUNDAY, [date(2025, 2, 12)], overrides) == 5

def test_holiday_override_adds_day_off():
    overrides = [(date(2025, 2, 13), DayOverrideType.HOLIDAY)]
    assert count_chargeable_days(MONDAY, SUNDAY, [date(2025, 2, 12)], overrides) == 3

def test_holidays_outside_range_are_ignored():
    assert count_chargeable_days(MONDAY, SUNDAY, [date(2025, 3, 3)]) == 5

def test_reversed_range_charges_nothing():
    assert count_chargeable_days(SUNDAY, MONDAY) == 0


def test_unpaid_leave_skips_pool():
    allocation = allocate_leave_days(2, LeaveType.UNPAID, None, CAPS, {}, 10)
    assert allocation.unpaid == 2
    assert allocation.pool_deduction == 0

def test_allocation_within_cap():
    allocation = allocate_leave_days(2, LeaveType.PAID, None, CAPS, {}, 10)
    assert allocation.paid == 2
    assert allocation.pool_deduction == 2

def test_shortage_without_fallback_raises():
    with pytest.raises(LeaveAllocationError) as exc:
        allocate_leave_days(5, LeaveType.PAID, None, CAPS, {}, 10)
    assert "Missing fallbackType" in exc.value.message
    assert exc.value.status_code == 409

def test_fallback_type_takes_the_rest():
    allocation = allocate_leave_days(5, LeaveType.PAID, LeaveType.SICK, CAPS, {}, 10)
    assert (allocation.paid, allocation.sick, allocation.unpaid) == (3, 2, 0)
    assert allocation.pool_deduction == 5

def test_fallback_limited_by_pool_spills_to_unpaid():
    allocation = allocate_leave_days(5, LeaveType.PAID, LeaveType.SICK, CAPS, {}, 4)
    assert (allocation.paid, allocation.sick, allocation.unpaid) == (3, 1, 1)
    assert allocation.pool_deduction == 4

def test_unpaid_fallback():
    allocation = allocate_leave_days(5, LeaveType.PAID, LeaveType.UNPAID, CAPS, {"paid": 1}, 10)
    assert (allocation.paid, allocation.unpaid) == (2, 3)

def test_same_type_fallback_does_not_double_count():
    allocation = allocate_leave_days(5, LeaveType.PAID, LeaveType.PAID, CAPS, {}, 10)
    assert (allocation.paid, allocation.unpaid) == (3, 2)
