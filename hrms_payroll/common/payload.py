# hrms_payroll/common/payload.py
"""Map JSON-shaped dicts onto engine inputs (used by the CLI)."""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from hrms_payroll.common.errors import PayloadError
from hrms_payroll.models.attendance import (
    ArrivalStatus,
    AttendanceDay,
    DayType,
    WorkDuration,
    parse_clock,
)
from hrms_payroll.models.payroll.adjustments import FinancialAdjustments
from hrms_payroll.models.payroll.components import AllowanceComponent, DeductionComponent
from hrms_payroll.models.payroll.pay_run import AttendanceAggregate, EmployeePayrollInput


def _d(s) -> Optional[date]:
    if not s:
        return None
    try:
        return date.fromisoformat(str(s))
    except ValueError:
        return None


def _stamp(v, field: str):
    if v in (None, ""):
        return None
    s = str(v)
    try:
        if "T" in s or " " in s.strip():
            return datetime.fromisoformat(s)
        return parse_clock(s)
    except ValueError:
        raise PayloadError(f"{field} is not a time", payload={"field": field, "value": s})


def _enum(cls, v, field: str):
    if v in (None, ""):
        return None
    try:
        return cls(str(v).strip().lower())
    except ValueError:
        raise PayloadError(f"{field} has invalid value", payload={"field": field, "value": str(v)})


def _bool(v) -> bool:
    if isinstance(v, str):
        return v.strip().lower() in ("1", "true", "yes", "y")
    return bool(v)


def day_from_dict(d: Dict[str, Any], idx: int = 0) -> AttendanceDay:
    if not isinstance(d, dict):
        raise PayloadError(f"attendance_days[{idx}] must be an object")
    work_date = _d(d.get("date"))
    if work_date is None:
        raise PayloadError(f"attendance_days[{idx}].date is required (YYYY-MM-DD)")
    try:
        break_minutes = int(d.get("break_minutes") or 0)
    except (TypeError, ValueError):
        raise PayloadError(f"attendance_days[{idx}].break_minutes must be an integer")
    if break_minutes < 0:
        raise PayloadError(f"attendance_days[{idx}].break_minutes cannot be negative",
                           payload={"value": break_minutes})
    sched = d.get("scheduled_start")
    return AttendanceDay(
        work_date=work_date,
        check_in=_stamp(d.get("check_in"), f"attendance_days[{idx}].check_in"),
        check_out=_stamp(d.get("check_out"), f"attendance_days[{idx}].check_out"),
        break_minutes=break_minutes,
        day_type=_enum(DayType, d.get("day_type"), f"attendance_days[{idx}].day_type") or DayType.WORKING,
        scheduled_start=_stamp(sched, f"attendance_days[{idx}].scheduled_start") if sched else None,
        arrival_override=_enum(ArrivalStatus, d.get("arrival_status"), f"attendance_days[{idx}].arrival_status"),
        duration_override=_enum(WorkDuration, d.get("work_duration"), f"attendance_days[{idx}].work_duration"),
    )


def input_from_dict(d: Dict[str, Any], attendance: Optional[AttendanceAggregate] = None) -> EmployeePayrollInput:
    """
    Shape:
      {"employee_id": "E001", "employee_name": "...", "base_salary": 90000,
       "attendance": {"expected_salary": ..., "earned_salary": ..., "shortfall": ...},
       "allowances": [{"name": "Transport", "amount": 10, "is_percentage": true}],
       "deductions": [{"component_name": "EPF", "calculation_type": "percentage",
                       "calculation_value": 8, "category": "epf"}],
       "adjustments": {"loans": 0, "advances": 0, "bonuses": 0}}

    ``attendance`` overrides the payload's attendance block (used when the
    aggregate was derived from raw attendance days).
    """
    if not isinstance(d, dict):
        raise PayloadError("employee payload must be an object")
    if d.get("employee_id") in (None, ""):
        raise PayloadError("employee_id is required")

    if attendance is None:
        a = d.get("attendance") or {}
        if not isinstance(a, dict):
            raise PayloadError("attendance must be an object")
        attendance = AttendanceAggregate(
            expected_salary=a.get("expected_salary"),
            earned_salary=a.get("earned_salary", 0),
            shortfall=a.get("shortfall"),
        )

    allowances: List[AllowanceComponent] = []
    for i, x in enumerate(d.get("allowances") or []):
        if not isinstance(x, dict):
            raise PayloadError(f"allowances[{i}] must be an object")
        allowances.append(AllowanceComponent(
            name=str(x.get("name") or x.get("allowance_name") or ""),
            amount=x.get("amount"),
            is_percentage=_bool(x.get("is_percentage", False)),
            is_taxable=_bool(x.get("is_taxable", False)),
        ))

    deductions: List[DeductionComponent] = []
    for i, x in enumerate(d.get("deductions") or []):
        if not isinstance(x, dict):
            raise PayloadError(f"deductions[{i}] must be an object")
        deductions.append(DeductionComponent(
            component_name=str(x.get("component_name") or x.get("name") or ""),
            calculation_type=x.get("calculation_type"),
            calculation_value=x.get("calculation_value"),
            category=x.get("category") or None,
        ))

    adj = d.get("adjustments") or {}
    if not isinstance(adj, dict):
        raise PayloadError("adjustments must be an object")

    return EmployeePayrollInput(
        employee_id=d["employee_id"],
        employee_name=d.get("employee_name"),
        employee_code=d.get("employee_code"),
        base_salary=d.get("base_salary"),
        attendance=attendance,
        allowances=tuple(allowances),
        deductions=tuple(deductions),
        adjustments=FinancialAdjustments(
            loans=adj.get("loans", 0),
            advances=adj.get("advances", 0),
            bonuses=adj.get("bonuses", 0),
        ),
    )
