# hrms_payroll/services/allowances.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Tuple

from hrms_payroll.common.errors import PayrollWarning
from hrms_payroll.common.money import ZERO, parse_amount, percent_of, q2
from hrms_payroll.models.payroll.components import AllowanceComponent
from hrms_payroll.models.payroll.pay_run import PayrollLine

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class AllowanceTotals:
    total: Decimal       # rounded once, on the sum
    raw_total: Decimal   # unrounded, for composing gross salary
    lines: Tuple[PayrollLine, ...] = ()
    warnings: Tuple[PayrollWarning, ...] = ()


def aggregate_allowances(base_salary: Decimal, components: Iterable[AllowanceComponent]) -> AllowanceTotals:
    """
    Percentage allowances are computed on the contracted base salary, not the
    attendance-prorated one. Rounding is applied to the total only.
    """
    raw = ZERO
    lines: List[PayrollLine] = []
    warnings: List[PayrollWarning] = []

    for i, comp in enumerate(components or ()):
        name = (comp.name or f"allowance[{i}]").strip()
        parsed = parse_amount(comp.amount, f"allowances[{i}].amount")
        if not parsed.ok:
            warnings.append(parsed.warning)

        if comp.is_percentage:
            amount = percent_of(base_salary, parsed.value)
            lines.append(PayrollLine(code="ALLOWANCE", name=name, basis="percentage",
                                     rate=parsed.value, amount=q2(amount)))
        else:
            amount = parsed.value
            lines.append(PayrollLine(code="ALLOWANCE", name=name, basis="fixed",
                                     rate=None, amount=q2(amount)))
        raw += amount

    log.debug("[allowances] %d component(s) total=%s", len(lines), raw)
    return AllowanceTotals(total=q2(raw), raw_total=raw, lines=tuple(lines), warnings=tuple(warnings))
