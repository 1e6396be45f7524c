# hrms_payroll/services/attendance_engine.py
from __future__ import annotations

import logging
from datetime import date, datetime, time as _time, timedelta, tzinfo
from decimal import Decimal
from typing import List, Optional, Tuple

from hrms_payroll.common.errors import PayloadError
from hrms_payroll.models.attendance import (
    ArrivalStatus,
    AttendanceDay,
    AttendancePolicy,
    AttendanceRecord,
    DayType,
    Stamp,
    WorkDuration,
)

log = logging.getLogger(__name__)

_ZERO = Decimal("0")
_SECS_PER_HOUR = Decimal("3600")


def _dt(d: date, v: Stamp, tz: Optional[tzinfo] = None) -> Optional[datetime]:
    if v is None:
        return None
    if isinstance(v, datetime):
        return v
    if isinstance(v, _time):
        return datetime.combine(d, v, tzinfo=v.tzinfo or tz)
    raise TypeError(f"expected datetime or time, got {type(v).__name__}")


def _day_tz(day: AttendanceDay) -> Optional[tzinfo]:
    """Zone of the day's full timestamps; clock times are placed in it."""
    stamps = [v for v in (day.check_in, day.check_out, day.scheduled_start) if isinstance(v, datetime)]
    aware = [v for v in stamps if v.utcoffset() is not None]
    if aware and len(aware) != len(stamps):
        raise PayloadError(
            "check-in/check-out mix timezone-aware and naive timestamps",
            payload={"date": day.work_date.isoformat()},
        )
    return aware[0].tzinfo if aware else None


# ---------- single rules ----------

def classify_arrival(
    check_in: Optional[datetime],
    scheduled_start: datetime,
    policy: AttendancePolicy,
    day_type: DayType = DayType.WORKING,
) -> ArrivalStatus:
    """
    - no check-in                    -> absent
    - voluntary work (weekend/holiday) -> on_time
    - check-in > start + threshold   -> late, else on_time
    """
    if check_in is None:
        return ArrivalStatus.ABSENT
    if not day_type.is_working:
        return ArrivalStatus.ON_TIME
    cutoff = scheduled_start + timedelta(minutes=policy.late_threshold_minutes)
    return ArrivalStatus.LATE if check_in > cutoff else ArrivalStatus.ON_TIME


def classify_duration(total_hours: Optional[Decimal], policy: AttendancePolicy) -> WorkDuration:
    """Thresholds are inclusive: exactly on a boundary gets the higher category."""
    if total_hours is None:
        return WorkDuration.ON_LEAVE
    h = Decimal(str(total_hours))
    if h >= policy.full_day_minimum_hours:
        return WorkDuration.FULL_DAY
    if h >= policy.half_day_minimum_hours:
        return WorkDuration.HALF_DAY
    if h >= policy.short_leave_minimum_hours:
        return WorkDuration.SHORT_LEAVE
    return WorkDuration.ON_LEAVE


def worked_hours(check_in: datetime, check_out: datetime, break_minutes: int = 0) -> Decimal:
    """(out - in) - break, never below 0. A negative break counts as none."""
    secs = Decimal(int((check_out - check_in).total_seconds()))
    secs -= Decimal(max(0, int(break_minutes or 0)) * 60)
    if secs <= 0:
        return _ZERO
    return secs / _SECS_PER_HOUR


def overtime_hours(total_hours: Decimal, policy: AttendancePolicy, day_type: DayType) -> Decimal:
    if not day_type.is_working:
        return total_hours
    extra = total_hours - policy.standard_working_hours_per_day
    return extra if extra > 0 else _ZERO


# ---------- public API ----------

def classify(day: AttendanceDay, policy: AttendancePolicy) -> AttendanceRecord:
    """
    Classify one employee-day against the policy.

    Returns an AttendanceRecord with ``arrival_status`` always set. The
    ``work_duration`` is:
      - on_leave when there is no check-in,
      - None ("open") when there is a check-in but no check-out,
      - otherwise derived from worked hours.

    Explicit overrides on the day win over derived values and are flagged as
    not auto-calculated.
    """
    d = day.work_date
    day_type = DayType(day.day_type)
    notes: List[str] = []

    tz = _day_tz(day)
    start = _dt(d, day.scheduled_start or policy.scheduled_start, tz)
    check_in = _dt(d, day.check_in, tz)
    check_out = _dt(d, day.check_out, tz)

    if check_in is None and check_out is not None:
        notes.append("Check-out recorded without a check-in; treated as absent.")
        check_out = None

    if check_in is not None and check_out is not None:
        if check_out < check_in and isinstance(day.check_out, _time):
            # clock time earlier than check-in: shift ended after midnight
            check_out = check_out + timedelta(days=1)
        elif check_out <= check_in:
            notes.append("Check-out is not after check-in; worked hours set to 0.")

    arrival = classify_arrival(check_in, start, policy, day_type)

    total: Optional[Decimal] = None
    ot = _ZERO
    duration: Optional[WorkDuration]
    if check_in is None:
        duration = WorkDuration.ON_LEAVE
    elif check_out is None:
        duration = None
    else:
        total = worked_hours(check_in, check_out, day.break_minutes)
        duration = classify_duration(total, policy)
        ot = overtime_hours(total, policy, day_type)

    arrival_auto = True
    if day.arrival_override is not None:
        arrival = ArrivalStatus(day.arrival_override)
        arrival_auto = False

    duration_auto = True
    if day.duration_override is not None:
        duration = WorkDuration(day.duration_override)
        duration_auto = False

    multiplier = policy.overtime_multiplier(day_type)
    notes.extend(_recommendations(day_type, check_in, duration, multiplier))

    rec = AttendanceRecord(
        work_date=d,
        day_type=day_type,
        arrival_status=arrival,
        work_duration=duration,
        check_in=check_in,
        check_out=check_out,
        total_hours=total,
        overtime_hours=ot,
        overtime_multiplier=multiplier,
        arrival_auto=arrival_auto,
        duration_auto=duration_auto,
        notes=tuple(notes),
    )
    log.debug("[attendance.classify] %s -> %s/%s hours=%s",
              d.isoformat(), arrival.value, duration.value if duration else "open", total)
    return rec


def classify_many(days, policy: AttendancePolicy) -> List[AttendanceRecord]:
    return [classify(day, policy) for day in days]


def resolve_open_day(record: AttendanceRecord, work_duration: WorkDuration) -> AttendanceRecord:
    """Manually settle a day that has a check-in but no check-out."""
    if not record.is_open:
        log.info("[attendance.resolve_open_day] %s already resolved as %s; overriding",
                 record.work_date.isoformat(), record.work_duration.value)
    return record.with_duration(
        WorkDuration(work_duration),
        note=f"Work duration resolved manually as {WorkDuration(work_duration).value}.",
    )


def _recommendations(
    day_type: DayType,
    check_in: Optional[datetime],
    duration: Optional[WorkDuration],
    multiplier: Decimal,
) -> Tuple[str, ...]:
    out: List[str] = []
    if check_in is not None and not day_type.is_working:
        out.append(
            f"Employee worked on a {day_type.value}. Consider applying {multiplier}x multiplier."
        )
    if check_in is not None and duration is None:
        out.append("Open day: check-out missing, work duration pending.")
    if (
        check_in is not None
        and day_type.is_working
        and duration in (WorkDuration.SHORT_LEAVE, WorkDuration.ON_LEAVE)
    ):
        out.append("Insufficient hours on a working day. Review required.")
    return tuple(out)
