from decimal import Decimal

from hrms_payroll.common.errors import FIXED_DEDUCTION_SKIPPED, UNCLASSIFIED_DEDUCTION
from hrms_payroll.models.payroll.components import (
    Categorized,
    DeductionComponent,
    StatutoryKind,
    Uncategorized,
)
from hrms_payroll.models.payroll.policy import UnclassifiedDeductionPolicy
from hrms_payroll.services.statutory import classify_deduction, resolve_statutory


def _pct(name, value, category=None):
    return DeductionComponent(component_name=name, calculation_type="percentage",
                              calculation_value=value, category=category)


def test_epf_on_earned_salary():
    out = resolve_statutory(Decimal("80000"), [_pct("EPF", 8, "epf")])
    assert out.epf_employee_total == Decimal("6400.00")
    assert out.etf_employer_total == Decimal("0.00")
    assert out.statutory_total == Decimal("6400.00")
    assert out.lines[0].code == "EPF_EMP"


def test_epf_and_etf_buckets():
    out = resolve_statutory(Decimal("100000"), [_pct("EPF Employee", 8, "epf"), _pct("ETF", 3, "etf")])
    assert out.epf_employee_total == Decimal("8000.00")
    assert out.etf_employer_total == Decimal("3000.00")
    assert out.statutory_total == Decimal("11000.00")
    assert [x.code for x in out.lines] == ["EPF_EMP", "ETF_ER"]


def test_name_fallback_is_case_insensitive():
    out = resolve_statutory(Decimal("1000"), [_pct("Employee epf share", 10), _pct("Company ETF", 5)])
    assert out.epf_employee_total == Decimal("100.00")
    assert out.etf_employer_total == Decimal("50.00")
    assert out.unclassified_count == 0


def test_category_wins_over_name():
    out = resolve_statutory(Decimal("1000"), [_pct("EPF-like welfare", 10, "welfare")])
    assert out.epf_employee_total == 0
    assert out.unclassified_count == 1


def test_unclassified_excluded_by_default():
    out = resolve_statutory(Decimal("1000"), [_pct("EPF", 8, "epf"), _pct("Union fee", 2)])
    assert out.statutory_total == Decimal("80.00")
    assert out.other_total == Decimal("0.00")
    assert out.unclassified_count == 1
    assert [w.code for w in out.warnings] == [UNCLASSIFIED_DEDUCTION]
    assert [x.code for x in out.lines] == ["EPF_EMP"]


def test_unclassified_included_as_other():
    out = resolve_statutory(Decimal("1000"), [_pct("EPF", 8, "epf"), _pct("Union fee", 2)],
                            UnclassifiedDeductionPolicy.INCLUDE)
    assert out.statutory_total == Decimal("80.00")
    assert out.other_total == Decimal("20.00")
    assert out.unclassified_count == 1
    assert [x.code for x in out.lines] == ["EPF_EMP", "OTHER"]


def test_fixed_deductions_are_skipped():
    fixed = DeductionComponent(component_name="EPF flat", calculation_type="fixed",
                               calculation_value=500, category="epf")
    out = resolve_statutory(Decimal("1000"), [fixed])
    assert out.statutory_total == 0
    assert out.unclassified_count == 0
    assert out.warnings[0].code == FIXED_DEDUCTION_SKIPPED


def test_zero_earned_gives_zero_deductions():
    out = resolve_statutory(Decimal("0"), [_pct("EPF", 8, "epf"), _pct("ETF", 3, "etf")])
    assert out.statutory_total == 0


def test_classify_deduction_variants():
    assert classify_deduction(_pct("anything", 1, "EPF")) == Categorized(StatutoryKind.EPF)
    assert classify_deduction(_pct("ETF", 1, "tax")) == Categorized(StatutoryKind.OTHER)
    assert classify_deduction(_pct("My ETF", 1)) == Uncategorized(name="My ETF", kind=StatutoryKind.ETF)
    assert classify_deduction(_pct("Union", 1)) == Uncategorized(name="Union", kind=None)
