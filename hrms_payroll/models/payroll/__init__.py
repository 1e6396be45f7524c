# hrms_payroll/models/payroll/__init__.py
# Import order matters: components and adjustments first, then pay_run
# (which depends on both).
from .components import (
    AllowanceComponent, DeductionComponent, CalculationType,
    StatutoryKind, Categorized, Uncategorized, DeductionClass,
)
from .adjustments import FinancialAdjustments
from .policy import PayPolicy, UnclassifiedDeductionPolicy
from .pay_run import AttendanceAggregate, EmployeePayrollInput, PayrollLine, CalculatedPayroll

__all__ = [
    "AllowanceComponent", "DeductionComponent", "CalculationType",
    "StatutoryKind", "Categorized", "Uncategorized", "DeductionClass",
    "FinancialAdjustments",
    "PayPolicy", "UnclassifiedDeductionPolicy",
    "AttendanceAggregate", "EmployeePayrollInput", "PayrollLine", "CalculatedPayroll",
]
