# hrms_payroll/services/adjustments.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Tuple

from hrms_payroll.common.errors import PayrollWarning
from hrms_payroll.common.money import parse_amount, q2
from hrms_payroll.models.payroll.adjustments import FinancialAdjustments
from hrms_payroll.models.payroll.pay_run import PayrollLine


@dataclass(frozen=True)
class AdjustmentTotals:
    loans: Decimal
    advances: Decimal
    bonuses: Decimal
    warnings: Tuple[PayrollWarning, ...] = ()

    @property
    def financial_deductions(self) -> Decimal:
        return self.loans + self.advances

    @property
    def bonuses_total(self) -> Decimal:
        return self.bonuses


def aggregate_adjustments(adj: Optional[FinancialAdjustments]) -> AdjustmentTotals:
    """Loans + advances are deductions, bonuses an addition. No rates involved."""
    adj = adj or FinancialAdjustments()
    warnings: List[PayrollWarning] = []
    vals = {}
    for name in ("loans", "advances", "bonuses"):
        parsed = parse_amount(getattr(adj, name), f"adjustments.{name}")
        if not parsed.ok:
            warnings.append(parsed.warning)
        vals[name] = parsed.value
    return AdjustmentTotals(warnings=tuple(warnings), **vals)


def adjustment_lines(totals: AdjustmentTotals) -> List[PayrollLine]:
    """Payslip lines for non-zero ledger totals."""
    out: List[PayrollLine] = []
    for code, name, amount in (
        ("LOAN", "Loan installments", totals.loans),
        ("ADVANCE", "Salary advances", totals.advances),
    ):
        if amount:
            out.append(PayrollLine(code=code, name=name, basis="fixed", rate=None, amount=q2(amount)))
    return out
