# hrms_payroll/extensions.py
from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional

from flask import current_app

from hrms_payroll.models.attendance import AttendanceDay, AttendancePolicy, AttendanceRecord
from hrms_payroll.models.payroll.pay_run import CalculatedPayroll, EmployeePayrollInput
from hrms_payroll.models.payroll.policy import PayPolicy
from hrms_payroll.services.attendance_engine import classify, classify_many
from hrms_payroll.services.payroll_engine import compute_payroll, compute_payroll_batch
from hrms_payroll.services.proration import AttendanceSummary, prorate_salary

log = logging.getLogger(__name__)

EXTENSION_KEY = "payroll_engine"


class PayrollEngine:
    """Engine bound to one validated configuration."""

    def __init__(self, attendance_policy: AttendancePolicy, pay_policy: Optional[PayPolicy] = None):
        self.attendance_policy = attendance_policy
        self.pay_policy = pay_policy or PayPolicy()

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> "PayrollEngine":
        return cls(AttendancePolicy.from_mapping(cfg), PayPolicy.from_mapping(cfg))

    def classify(self, day: AttendanceDay) -> AttendanceRecord:
        return classify(day, self.attendance_policy)

    def prorate(self, base_salary: Any, days: Iterable[AttendanceDay], employee_id: Any = None) -> AttendanceSummary:
        records = classify_many(days, self.attendance_policy)
        return prorate_salary(base_salary, records, employee_id=employee_id)

    def compute(self, inp: EmployeePayrollInput) -> CalculatedPayroll:
        return compute_payroll(inp, self.pay_policy)

    def compute_batch(self, inputs: Iterable[EmployeePayrollInput]) -> List[CalculatedPayroll]:
        return compute_payroll_batch(inputs, self.pay_policy)


def init_engine(app) -> PayrollEngine:
    """
    Build the engine from app.config. Raises PolicyError on an invalid policy,
    so a bad configuration stops the app from starting.
    """
    engine = PayrollEngine.from_config(app.config)
    app.extensions[EXTENSION_KEY] = engine
    app.logger.info(
        "payroll engine ready: unclassified_deductions=%s batch_workers=%s",
        engine.pay_policy.unclassified_deductions.value,
        engine.pay_policy.batch_workers,
    )
    return engine


def current_engine() -> PayrollEngine:
    return current_app.extensions[EXTENSION_KEY]
