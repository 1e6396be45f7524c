# hrms_payroll/models/attendance.py
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Mapping, Optional, Tuple, Union

from hrms_payroll.common.errors import PolicyError


class ArrivalStatus(str, Enum):
    ON_TIME = "on_time"
    LATE = "late"
    ABSENT = "absent"


class WorkDuration(str, Enum):
    FULL_DAY = "full_day"
    HALF_DAY = "half_day"
    SHORT_LEAVE = "short_leave"
    ON_LEAVE = "on_leave"

    @property
    def units(self) -> Decimal:
        """Working units credited towards earned salary."""
        return _UNITS[self]


_UNITS = {
    WorkDuration.FULL_DAY: Decimal("1.0"),
    WorkDuration.HALF_DAY: Decimal("0.5"),
    WorkDuration.SHORT_LEAVE: Decimal("0"),
    WorkDuration.ON_LEAVE: Decimal("0"),
}


class DayType(str, Enum):
    WORKING = "working"
    WEEKEND = "weekend"
    HOLIDAY = "holiday"

    @property
    def is_working(self) -> bool:
        return self is DayType.WORKING


def parse_clock(v: Union[str, time]) -> time:
    """Accept 'HH:MM' or 'HH:MM:SS' (or a time) and return a time."""
    if isinstance(v, time):
        return v
    s = str(v or "").strip()
    parts = s.split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"invalid time {v!r}")
    hh, mm = int(parts[0]), int(parts[1])
    ss = int(parts[2]) if len(parts) == 3 else 0
    return time(hh, mm, ss)


def _hours(v: Any, name: str) -> Decimal:
    try:
        d = Decimal(str(v))
    except (InvalidOperation, ValueError):
        raise PolicyError(f"{name} must be a number", payload={"field": name, "value": str(v)})
    if not d.is_finite():
        raise PolicyError(f"{name} must be finite", payload={"field": name, "value": str(v)})
    return d


@dataclass(frozen=True)
class AttendancePolicy:
    """
    Thresholds driving attendance classification.

    Built once per process (see ``extensions.init_engine``) and validated on
    construction, so every later classification can rely on:

        short_leave <= half_day <= full_day <= standard_working_hours_per_day
    """
    scheduled_start: time
    scheduled_end: time
    late_threshold_minutes: int
    full_day_minimum_hours: Decimal
    half_day_minimum_hours: Decimal
    short_leave_minimum_hours: Decimal
    standard_working_hours_per_day: Decimal
    weekend_overtime_multiplier: Decimal = Decimal("1.5")
    holiday_overtime_multiplier: Decimal = Decimal("2.5")

    def __post_init__(self):
        for name in (
            "full_day_minimum_hours",
            "half_day_minimum_hours",
            "short_leave_minimum_hours",
            "standard_working_hours_per_day",
            "weekend_overtime_multiplier",
            "holiday_overtime_multiplier",
        ):
            object.__setattr__(self, name, _hours(getattr(self, name), name))
        try:
            object.__setattr__(self, "late_threshold_minutes", int(self.late_threshold_minutes))
        except (TypeError, ValueError):
            raise PolicyError("late_threshold_minutes must be an integer",
                              payload={"value": str(self.late_threshold_minutes)})
        self._validate()

    def _validate(self):
        if not isinstance(self.scheduled_start, time) or not isinstance(self.scheduled_end, time):
            raise PolicyError("scheduled_start/scheduled_end must be times")
        if self.scheduled_start >= self.scheduled_end:
            raise PolicyError(
                "scheduled_start must be before scheduled_end",
                payload={"scheduled_start": self.scheduled_start.isoformat(),
                         "scheduled_end": self.scheduled_end.isoformat()},
            )
        if self.late_threshold_minutes < 0:
            raise PolicyError("late_threshold_minutes cannot be negative")
        if self.short_leave_minimum_hours < 0:
            raise PolicyError("short_leave_minimum_hours cannot be negative")

        ladder = [
            ("short_leave_minimum_hours", self.short_leave_minimum_hours),
            ("half_day_minimum_hours", self.half_day_minimum_hours),
            ("full_day_minimum_hours", self.full_day_minimum_hours),
            ("standard_working_hours_per_day", self.standard_working_hours_per_day),
        ]
        for (lo_name, lo), (hi_name, hi) in zip(ladder, ladder[1:]):
            if lo > hi:
                raise PolicyError(
                    f"{lo_name} ({lo}) must not exceed {hi_name} ({hi})",
                    payload={lo_name: str(lo), hi_name: str(hi)},
                )
        if self.weekend_overtime_multiplier < 1 or self.holiday_overtime_multiplier < 1:
            raise PolicyError("overtime multipliers must be >= 1")

    def overtime_multiplier(self, day_type: DayType) -> Decimal:
        if day_type is DayType.HOLIDAY:
            return self.holiday_overtime_multiplier
        if day_type is DayType.WEEKEND:
            return self.weekend_overtime_multiplier
        return Decimal("1.0")

    @classmethod
    def from_mapping(cls, cfg: Mapping[str, Any]) -> "AttendancePolicy":
        """Build from a config mapping using the ATTENDANCE_* keys."""
        keys = {
            "scheduled_start": "ATTENDANCE_SCHEDULED_START",
            "scheduled_end": "ATTENDANCE_SCHEDULED_END",
            "late_threshold_minutes": "ATTENDANCE_LATE_THRESHOLD_MINUTES",
            "full_day_minimum_hours": "ATTENDANCE_FULL_DAY_MIN_HOURS",
            "half_day_minimum_hours": "ATTENDANCE_HALF_DAY_MIN_HOURS",
            "short_leave_minimum_hours": "ATTENDANCE_SHORT_LEAVE_MIN_HOURS",
            "standard_working_hours_per_day": "ATTENDANCE_STANDARD_HOURS",
        }
        missing = [k for k in keys.values() if cfg.get(k) in (None, "")]
        if missing:
            raise PolicyError("attendance policy is incomplete", payload={"missing": missing})

        kw = {attr: cfg[k] for attr, k in keys.items()}
        try:
            kw["scheduled_start"] = parse_clock(kw["scheduled_start"])
            kw["scheduled_end"] = parse_clock(kw["scheduled_end"])
        except ValueError as e:
            raise PolicyError(str(e))

        if cfg.get("ATTENDANCE_WEEKEND_OT_MULTIPLIER") not in (None, ""):
            kw["weekend_overtime_multiplier"] = cfg["ATTENDANCE_WEEKEND_OT_MULTIPLIER"]
        if cfg.get("ATTENDANCE_HOLIDAY_OT_MULTIPLIER") not in (None, ""):
            kw["holiday_overtime_multiplier"] = cfg["ATTENDANCE_HOLIDAY_OT_MULTIPLIER"]
        return cls(**kw)

    def to_dict(self) -> dict:
        return {
            "scheduled_start": self.scheduled_start.strftime("%H:%M"),
            "scheduled_end": self.scheduled_end.strftime("%H:%M"),
            "late_threshold_minutes": self.late_threshold_minutes,
            "full_day_minimum_hours": float(self.full_day_minimum_hours),
            "half_day_minimum_hours": float(self.half_day_minimum_hours),
            "short_leave_minimum_hours": float(self.short_leave_minimum_hours),
            "standard_working_hours_per_day": float(self.standard_working_hours_per_day),
            "weekend_overtime_multiplier": float(self.weekend_overtime_multiplier),
            "holiday_overtime_multiplier": float(self.holiday_overtime_multiplier),
        }


Stamp = Union[datetime, time, None]


@dataclass(frozen=True)
class AttendanceDay:
    """Raw input for one employee-day."""
    work_date: date
    check_in: Stamp = None
    check_out: Stamp = None
    break_minutes: int = 0
    day_type: DayType = DayType.WORKING
    # per-day schedule (e.g. shift assignment); falls back to the policy
    scheduled_start: Optional[time] = None
    arrival_override: Optional[ArrivalStatus] = None
    duration_override: Optional[WorkDuration] = None


@dataclass(frozen=True)
class AttendanceRecord:
    work_date: date
    day_type: DayType
    arrival_status: ArrivalStatus
    # None while the day is open (check-in without check-out)
    work_duration: Optional[WorkDuration]
    check_in: Optional[datetime] = None
    check_out: Optional[datetime] = None
    total_hours: Optional[Decimal] = None
    overtime_hours: Decimal = Decimal("0")
    overtime_multiplier: Decimal = Decimal("1.0")
    arrival_auto: bool = True
    duration_auto: bool = True
    notes: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_open(self) -> bool:
        return self.work_duration is None

    @property
    def units(self) -> Decimal:
        if self.work_duration is None:
            return Decimal("0")
        return self.work_duration.units

    def with_duration(self, work_duration: WorkDuration, note: Optional[str] = None) -> "AttendanceRecord":
        notes = self.notes + ((note,) if note else ())
        return replace(self, work_duration=work_duration, duration_auto=False, notes=notes)

    def to_dict(self) -> dict:
        return {
            "date": self.work_date.isoformat(),
            "day_type": self.day_type.value,
            "arrival_status": self.arrival_status.value,
            "work_duration": self.work_duration.value if self.work_duration else None,
            "check_in": self.check_in.isoformat() if self.check_in else None,
            "check_out": self.check_out.isoformat() if self.check_out else None,
            "total_hours": float(self.total_hours) if self.total_hours is not None else None,
            "overtime_hours": float(self.overtime_hours),
            "overtime_multiplier": float(self.overtime_multiplier),
            "is_auto_calculated": {"arrival": self.arrival_auto, "duration": self.duration_auto},
            "notes": list(self.notes),
        }
