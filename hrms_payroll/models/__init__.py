# hrms_payroll/models/__init__.py
from .attendance import (
    ArrivalStatus, WorkDuration, DayType,
    AttendancePolicy, AttendanceDay, AttendanceRecord,
)

__all__ = [
    "ArrivalStatus", "WorkDuration", "DayType",
    "AttendancePolicy", "AttendanceDay", "AttendanceRecord",
]
