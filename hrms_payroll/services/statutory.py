# hrms_payroll/services/statutory.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from hrms_payroll.common.errors import (
    PayrollWarning,
    FIXED_DEDUCTION_SKIPPED,
    UNCLASSIFIED_DEDUCTION,
)
from hrms_payroll.common.money import ZERO, parse_amount, percent_of, q2
from hrms_payroll.models.payroll.components import (
    CalculationType,
    Categorized,
    DeductionClass,
    DeductionComponent,
    StatutoryKind,
    Uncategorized,
)
from hrms_payroll.models.payroll.pay_run import PayrollLine
from hrms_payroll.models.payroll.policy import UnclassifiedDeductionPolicy

log = logging.getLogger(__name__)

_LINE_CODES = {
    StatutoryKind.EPF: "EPF_EMP",
    StatutoryKind.ETF: "ETF_ER",
    StatutoryKind.OTHER: "OTHER",
}


def _kind_from_name(name: str) -> Optional[StatutoryKind]:
    s = (name or "").lower()
    if "epf" in s:
        return StatutoryKind.EPF
    if "etf" in s:
        return StatutoryKind.ETF
    return None


def classify_deduction(comp: DeductionComponent) -> DeductionClass:
    """
    Category first, then a case-insensitive 'epf'/'etf' substring of the
    component name. A present category is authoritative: anything other than
    epf/etf is Categorized(OTHER) and never re-tagged from the name.
    """
    cat = (comp.category or "").strip().lower()
    if cat:
        try:
            kind = StatutoryKind(cat)
        except ValueError:
            kind = StatutoryKind.OTHER
        return Categorized(kind)
    return Uncategorized(name=comp.component_name or "", kind=_kind_from_name(comp.component_name))


@dataclass(frozen=True)
class StatutoryTotals:
    epf_employee_total: Decimal
    etf_employer_total: Decimal
    statutory_total: Decimal
    other_total: Decimal
    raw_epf: Decimal = ZERO
    raw_etf: Decimal = ZERO
    raw_other: Decimal = ZERO
    unclassified_count: int = 0
    lines: Tuple[PayrollLine, ...] = ()
    warnings: Tuple[PayrollWarning, ...] = ()

    @property
    def raw_statutory(self) -> Decimal:
        return self.raw_epf + self.raw_etf


def resolve_statutory(
    earned_salary: Decimal,
    components: Iterable[DeductionComponent],
    unclassified: UnclassifiedDeductionPolicy = UnclassifiedDeductionPolicy.EXCLUDE,
) -> StatutoryTotals:
    """
    Percentage deductions on the prorated (earned) base salary, bucketed into
    EPF (employee) and ETF (employer).

    Fixed-type components are skipped. Percentage components matching neither
    EPF nor ETF are reported and, depending on ``unclassified``, either dropped
    or summed into ``other_total``.
    """
    epf = ZERO
    etf = ZERO
    other = ZERO
    unclassified_count = 0
    lines: List[PayrollLine] = []
    warnings: List[PayrollWarning] = []

    for i, comp in enumerate(components or ()):
        name = (comp.component_name or f"deduction[{i}]").strip()
        ctype = CalculationType.parse(comp.calculation_type)

        if ctype is not CalculationType.PERCENTAGE:
            log.info("[statutory] skipping %s deduction %r", comp.calculation_type, name)
            warnings.append(PayrollWarning(
                code=FIXED_DEDUCTION_SKIPPED,
                field=f"deductions[{i}]",
                message=f"{name}: only percentage deductions are computed",
                value=comp.calculation_type,
            ))
            continue

        parsed = parse_amount(comp.calculation_value, f"deductions[{i}].calculation_value")
        if not parsed.ok:
            warnings.append(parsed.warning)
        amount = percent_of(earned_salary, parsed.value)

        kind = classify_deduction(comp).kind
        if kind is StatutoryKind.EPF:
            epf += amount
        elif kind is StatutoryKind.ETF:
            etf += amount
        else:
            unclassified_count += 1
            included = unclassified is UnclassifiedDeductionPolicy.INCLUDE
            log.warning("[statutory] unclassified deduction %r (%s)", name,
                        "included as other" if included else "excluded")
            warnings.append(PayrollWarning(
                code=UNCLASSIFIED_DEDUCTION,
                field=f"deductions[{i}]",
                message=f"{name}: not EPF/ETF; {'included as other deduction' if included else 'excluded from totals'}",
                value=comp.category or comp.component_name,
            ))
            if not included:
                continue
            other += amount
            kind = StatutoryKind.OTHER

        lines.append(PayrollLine(code=_LINE_CODES[kind], name=name, basis="percentage",
                                 rate=parsed.value, amount=q2(amount)))

    return StatutoryTotals(
        epf_employee_total=q2(epf),
        etf_employer_total=q2(etf),
        statutory_total=q2(epf + etf),
        other_total=q2(other),
        raw_epf=epf,
        raw_etf=etf,
        raw_other=other,
        unclassified_count=unclassified_count,
        lines=tuple(lines),
        warnings=tuple(warnings),
    )
