# hrms_payroll/services/proration.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Iterable, List, Optional, Tuple

from hrms_payroll.common.errors import PayrollWarning, OPEN_ATTENDANCE
from hrms_payroll.common.money import ZERO, as_float, parse_salary, q2
from hrms_payroll.models.attendance import ArrivalStatus, AttendanceRecord, WorkDuration
from hrms_payroll.models.payroll.pay_run import AttendanceAggregate

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttendanceSummary:
    expected_salary: Decimal
    earned_salary: Decimal
    shortfall: Decimal

    working_days: int = 0
    full_days: int = 0
    half_days: int = 0
    short_leaves: int = 0
    absent_days: int = 0
    late_days: int = 0
    open_days: int = 0
    total_hours: Decimal = ZERO
    overtime_hours: Decimal = ZERO
    attended_units: Decimal = ZERO
    expected_units: Decimal = ZERO
    warnings: Tuple[PayrollWarning, ...] = field(default_factory=tuple)

    def to_aggregate(self) -> AttendanceAggregate:
        return AttendanceAggregate(
            expected_salary=self.expected_salary,
            earned_salary=self.earned_salary,
            shortfall=self.shortfall,
            warnings=self.warnings,
        )

    def to_dict(self) -> dict:
        return {
            "expected_salary": as_float(self.expected_salary),
            "earned_salary": as_float(self.earned_salary),
            "shortfall": as_float(self.shortfall),
            "working_days": self.working_days,
            "full_days": self.full_days,
            "half_days": self.half_days,
            "short_leaves": self.short_leaves,
            "absent_days": self.absent_days,
            "late_days": self.late_days,
            "open_days": self.open_days,
            "total_hours": round(float(self.total_hours), 2),
            "overtime_hours": round(float(self.overtime_hours), 2),
            "attended_units": float(self.attended_units),
            "expected_units": float(self.expected_units),
            "warnings": [w.to_dict() for w in self.warnings],
        }


def prorate_salary(
    base_salary: Any,
    records: Iterable[AttendanceRecord],
    employee_id: Optional[Any] = None,
) -> AttendanceSummary:
    """
    Scale contracted base salary by attended working units.

    Only working days carry expected units (1.0 each). Attended units per
    working day: full_day=1.0, half_day=0.5, anything else 0. Weekend and
    holiday work is overtime and never adds to earned salary, so
    0 <= earned_salary <= expected_salary always holds.
    """
    warnings: List[PayrollWarning] = []

    parsed = parse_salary(base_salary)
    if not parsed.ok:
        log.warning("[proration] employee=%s base_salary unusable (%s)", employee_id, parsed.warning.message)
        warnings.append(parsed.warning)
    base = parsed.value

    working = full = half = short = absent = late = open_ = 0
    total_hours = ZERO
    ot_hours = ZERO
    attended = ZERO

    for rec in records:
        if rec.total_hours is not None:
            total_hours += rec.total_hours
        ot_hours += rec.overtime_hours

        if not rec.day_type.is_working:
            continue

        working += 1
        if rec.arrival_status is ArrivalStatus.LATE:
            late += 1
        if rec.arrival_status is ArrivalStatus.ABSENT:
            absent += 1

        if rec.is_open:
            open_ += 1
            continue
        if rec.work_duration is WorkDuration.FULL_DAY:
            full += 1
        elif rec.work_duration is WorkDuration.HALF_DAY:
            half += 1
        elif rec.work_duration is WorkDuration.SHORT_LEAVE:
            short += 1
        attended += rec.units

    if open_:
        log.warning("[proration] employee=%s has %d open day(s) counted as 0 units", employee_id, open_)
        warnings.append(PayrollWarning(
            code=OPEN_ATTENDANCE,
            field="attendance",
            message=f"{open_} day(s) without check-out counted as unattended",
            value=open_,
        ))

    expected_units = Decimal(working)
    if expected_units > 0:
        earned = q2(base * attended / expected_units)
    else:
        earned = ZERO
    expected = q2(base)
    earned = min(max(earned, ZERO), expected)

    summary = AttendanceSummary(
        expected_salary=expected,
        earned_salary=earned,
        shortfall=expected - earned,
        working_days=working,
        full_days=full,
        half_days=half,
        short_leaves=short,
        absent_days=absent,
        late_days=late,
        open_days=open_,
        total_hours=total_hours,
        overtime_hours=ot_hours,
        attended_units=attended,
        expected_units=expected_units,
        warnings=tuple(warnings),
    )
    log.debug("[proration] employee=%s units=%s/%s earned=%s", employee_id, attended, expected_units, earned)
    return summary
