# Models package
# Leave domain enums; records live in the external HR backend
from .leave import (
    LeaveType,
    CAPPED_LEAVE_TYPES,
    AccrualStrategy,
    EmploymentStatus,
    DayOverrideType,
)

__all__ = [
    "LeaveType",
    "CAPPED_LEAVE_TYPES",
    "AccrualStrategy",
    "EmploymentStatus",
    "DayOverrideType",
]
