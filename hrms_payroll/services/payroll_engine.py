# hrms_payroll/services/payroll_engine.py
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from hrms_payroll.common.errors import PayrollWarning, NEGATIVE_NET_SALARY
from hrms_payroll.common.money import ParsedAmount, parse_amount, parse_salary, q2
from hrms_payroll.models.payroll.pay_run import (
    CalculatedPayroll,
    EmployeePayrollInput,
    collect_warnings,
)
from hrms_payroll.models.payroll.policy import PayPolicy
from hrms_payroll.services.adjustments import adjustment_lines, aggregate_adjustments
from hrms_payroll.services.allowances import aggregate_allowances
from hrms_payroll.services.statutory import resolve_statutory

log = logging.getLogger(__name__)

_DEFAULT_POLICY = PayPolicy()


def _parse(raw, field: str, sink: List[PayrollWarning]) -> Decimal:
    p: ParsedAmount = parse_amount(raw, field)
    if not p.ok:
        sink.append(p.warning)
    return p.value


def compute_payroll(inp: EmployeePayrollInput, policy: Optional[PayPolicy] = None) -> CalculatedPayroll:
    """
    Reconcile one employee's period into gross/net salary.

        total_earnings   = allowances + bonuses
        gross_salary     = earned_salary + allowances + bonuses
        deductions_total = statutory (+ other, if included) + loans + advances
        net_salary       = gross_salary - deductions_total

    Every output is rounded to cents once, from unrounded parts. A negative
    net salary is returned as-is with a warning.
    """
    policy = policy or _DEFAULT_POLICY
    own: List[PayrollWarning] = []

    salary = parse_salary(inp.base_salary)
    if not salary.ok:
        own.append(salary.warning)
    base = salary.value
    att = inp.attendance
    earned = _parse(att.earned_salary, "attendance.earned_salary", own)
    if att.expected_salary is None or att.expected_salary == "":
        expected = base
    else:
        expected = _parse(att.expected_salary, "attendance.expected_salary", own)
    if att.shortfall is None or att.shortfall == "":
        shortfall = expected - earned
    else:
        shortfall = _parse(att.shortfall, "attendance.shortfall", own)

    allow = aggregate_allowances(base, inp.allowances)
    stat = resolve_statutory(earned, inp.deductions, policy.unclassified_deductions)
    fin = aggregate_adjustments(inp.adjustments)

    earnings_raw = allow.raw_total + fin.bonuses_total
    gross_raw = earned + earnings_raw
    deductions_raw = stat.raw_statutory + stat.raw_other + fin.financial_deductions
    net_raw = gross_raw - deductions_raw

    net = q2(net_raw)
    if net < 0:
        log.warning("[payroll] employee=%s net salary is negative (%s); needs review", inp.employee_id, net)
        own.append(PayrollWarning(
            code=NEGATIVE_NET_SALARY,
            field="net_salary",
            message="deductions exceed gross salary",
            value=net,
        ))

    result = CalculatedPayroll(
        employee_id=inp.employee_id,
        employee_name=inp.employee_name,
        employee_code=inp.employee_code,
        base_salary=q2(base),
        expected_salary=q2(expected),
        earned_salary=q2(earned),
        shortfall=q2(shortfall),
        allowances_total=allow.total,
        bonuses_total=q2(fin.bonuses_total),
        total_earnings=q2(earnings_raw),
        gross_salary=q2(gross_raw),
        epf_employee_total=stat.epf_employee_total,
        etf_employer_total=stat.etf_employer_total,
        statutory_total=stat.statutory_total,
        other_deductions_total=stat.other_total,
        loans=q2(fin.loans),
        advances=q2(fin.advances),
        financial_deductions=q2(fin.financial_deductions),
        deductions_total=q2(deductions_raw),
        net_salary=net,
        unclassified_count=stat.unclassified_count,
        allowance_lines=allow.lines,
        deduction_lines=tuple(stat.lines) + tuple(adjustment_lines(fin)),
        warnings=tuple(collect_warnings(own, att.warnings, allow.warnings, stat.warnings, fin.warnings)),
    )
    log.debug("[payroll] employee=%s gross=%s deductions=%s net=%s",
              inp.employee_id, result.gross_salary, result.deductions_total, result.net_salary)
    return result


def compute_payroll_batch(
    inputs: Iterable[EmployeePayrollInput],
    policy: Optional[PayPolicy] = None,
    max_workers: Optional[int] = None,
) -> List[CalculatedPayroll]:
    """
    One result per input, in input order. Each employee is independent, so
    with ``max_workers > 1`` the work is spread over a thread pool;
    ``Executor.map`` keeps results aligned with inputs.
    """
    policy = policy or _DEFAULT_POLICY
    items: Sequence[EmployeePayrollInput] = list(inputs)
    workers = policy.batch_workers if max_workers is None else max_workers

    if workers and workers > 1 and len(items) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            out = list(pool.map(lambda x: compute_payroll(x, policy), items))
    else:
        out = [compute_payroll(x, policy) for x in items]

    flagged = sum(1 for r in out if r.needs_review)
    log.info("[payroll.batch] computed=%d needs_review=%d workers=%s", len(out), flagged, workers or 1)
    return out
