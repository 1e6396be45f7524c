from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, List, Optional, Sequence, Tuple

from hrms_payroll.common.errors import PayrollWarning
from hrms_payroll.common.money import as_float
from hrms_payroll.models.payroll.adjustments import FinancialAdjustments
from hrms_payroll.models.payroll.components import AllowanceComponent, DeductionComponent


@dataclass(frozen=True)
class AttendanceAggregate:
    """Salary figures derived upstream from the period's attendance."""
    expected_salary: Any = None  # defaults to base_salary
    earned_salary: Any = 0
    shortfall: Any = None  # defaults to expected - earned
    warnings: Tuple[PayrollWarning, ...] = ()  # carried over from proration


@dataclass(frozen=True)
class EmployeePayrollInput:
    employee_id: Any
    base_salary: Any
    attendance: AttendanceAggregate = field(default_factory=AttendanceAggregate)
    allowances: Sequence[AllowanceComponent] = ()
    deductions: Sequence[DeductionComponent] = ()
    adjustments: FinancialAdjustments = field(default_factory=FinancialAdjustments)
    employee_name: Optional[str] = None
    employee_code: Optional[str] = None


@dataclass(frozen=True)
class PayrollLine:
    code: str
    name: str
    basis: str  # "fixed" | "percentage"
    rate: Optional[Decimal]
    amount: Decimal

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "name": self.name,
            "basis": self.basis,
            "rate": as_float(self.rate),
            "amount": as_float(self.amount),
        }


_MONEY_FIELDS = (
    "base_salary", "expected_salary", "earned_salary", "shortfall",
    "allowances_total", "bonuses_total", "total_earnings", "gross_salary",
    "epf_employee_total", "etf_employer_total", "statutory_total",
    "other_deductions_total", "loans", "advances", "financial_deductions",
    "deductions_total", "net_salary",
)


@dataclass(frozen=True)
class CalculatedPayroll:
    employee_id: Any
    employee_name: Optional[str]
    employee_code: Optional[str]

    base_salary: Decimal
    expected_salary: Decimal
    earned_salary: Decimal
    shortfall: Decimal

    allowances_total: Decimal
    bonuses_total: Decimal
    total_earnings: Decimal
    gross_salary: Decimal

    epf_employee_total: Decimal
    etf_employer_total: Decimal
    statutory_total: Decimal
    other_deductions_total: Decimal

    loans: Decimal
    advances: Decimal
    financial_deductions: Decimal

    deductions_total: Decimal
    net_salary: Decimal

    unclassified_count: int = 0
    allowance_lines: Tuple[PayrollLine, ...] = ()
    deduction_lines: Tuple[PayrollLine, ...] = ()
    warnings: Tuple[PayrollWarning, ...] = ()

    @property
    def needs_review(self) -> bool:
        return self.net_salary < 0 or bool(self.warnings)

    def to_dict(self) -> dict:
        out: dict = {
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "employee_code": self.employee_code,
        }
        for name in _MONEY_FIELDS:
            out[name] = as_float(getattr(self, name))
        out["unclassified_count"] = self.unclassified_count
        out["allowance_lines"] = [x.to_dict() for x in self.allowance_lines]
        out["deduction_lines"] = [x.to_dict() for x in self.deduction_lines]
        out["warnings"] = [w.to_dict() for w in self.warnings]
        return out


def collect_warnings(*groups: Sequence[PayrollWarning]) -> List[PayrollWarning]:
    """Flatten warning groups, dropping exact repeats (e.g. base_salary seen twice)."""
    out: List[PayrollWarning] = []
    for g in groups:
        for w in g or ():
            if w not in out:
                out.append(w)
    return out
