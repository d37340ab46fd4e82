import enum

class LeaveType(str, enum.Enum):
    PAID = "PAID"
    CASUAL = "CASUAL"
    SICK = "SICK"
    UNPAID = "UNPAID"

    @property
    def key(self) -> str:
        """Lower-case key used in typeCaps / leaveBalances payloads."""
        return self.value.lower()

# Types drawn from the annual pool; UNPAID only tracks usage
CAPPED_LEAVE_TYPES = (LeaveType.PAID, LeaveType.CASUAL, LeaveType.SICK)

class AccrualStrategy(str, enum.Enum):
    ACCRUAL = "ACCRUAL"
    LUMP_SUM = "LUMP_SUM"

class EmploymentStatus(str, enum.Enum):
    PERMANENT = "PERMANENT"
    PROBATION = "PROBATION"

class DayOverrideType(str, enum.Enum):
    WORKING = "WORKING"
    HOLIDAY = "HOLIDAY"
