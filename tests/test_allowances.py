from decimal import Decimal

from hrms_payroll.common.errors import MALFORMED_NUMBER
from hrms_payroll.models.payroll.components import AllowanceComponent
from hrms_payroll.services.allowances import aggregate_allowances


def test_percentage_of_contracted_base():
    out = aggregate_allowances(Decimal("100000"), [AllowanceComponent(name="HRA", amount=10, is_percentage=True)])
    assert out.total == Decimal("10000.00")
    assert out.lines[0].basis == "percentage"
    assert out.lines[0].rate == Decimal("10")


def test_fixed_amount_verbatim_and_mixed_sum():
    comps = [
        AllowanceComponent(name="Transport", amount="2500.50"),
        AllowanceComponent(name="Meal", amount=1500),
        AllowanceComponent(name="Special", amount="5", is_percentage=True, is_taxable=True),
    ]
    out = aggregate_allowances(Decimal("60000"), comps)
    assert out.total == Decimal("7000.50")
    assert [x.name for x in out.lines] == ["Transport", "Meal", "Special"]


def test_total_rounded_once_not_per_component():
    # 3 x 3.335 = 10.005 -> 10.01; per-line rounding would give 3 x 3.34 = 10.02
    comps = [AllowanceComponent(name=f"A{i}", amount="0.3335", is_percentage=True) for i in range(3)]
    out = aggregate_allowances(Decimal("1000"), comps)
    assert out.raw_total == Decimal("10.005")
    assert out.total == Decimal("10.01")


def test_malformed_amount_is_zero_with_warning():
    comps = [AllowanceComponent(name="Bad", amount="n/a"), AllowanceComponent(name="Good", amount=100)]
    out = aggregate_allowances(Decimal("1000"), comps)
    assert out.total == Decimal("100.00")
    assert len(out.warnings) == 1
    w = out.warnings[0]
    assert w.code == MALFORMED_NUMBER
    assert w.field == "allowances[0].amount"


def test_empty_and_blank_values():
    assert aggregate_allowances(Decimal("1000"), []).total == Decimal("0.00")
    out = aggregate_allowances(Decimal("1000"), [AllowanceComponent(name="Blank", amount=None)])
    assert out.total == 0
    assert out.warnings == ()
