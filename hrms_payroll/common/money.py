# hrms_payroll/common/money.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

from hrms_payroll.common.errors import PayrollWarning, MALFORMED_NUMBER

log = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")
_CENTS = Decimal("0.01")


@dataclass(frozen=True)
class ParsedAmount:
    """Result of parsing a numeric input.

    ``warning`` is set only when the raw value was present but unusable; in
    that case ``value`` is zero. A blank/None input is a valid zero.
    """
    value: Decimal
    warning: Optional[PayrollWarning] = None

    @property
    def ok(self) -> bool:
        return self.warning is None


def parse_amount(raw: Any, field: str) -> ParsedAmount:
    if raw is None or raw == "":
        return ParsedAmount(ZERO)
    if isinstance(raw, bool):
        return _malformed(raw, field)
    if isinstance(raw, Decimal):
        d = raw
    else:
        try:
            d = Decimal(str(raw).strip())
        except (InvalidOperation, ValueError):
            return _malformed(raw, field)
    if not d.is_finite():
        return _malformed(raw, field)
    return ParsedAmount(d)


def parse_salary(raw: Any, field: str = "base_salary") -> ParsedAmount:
    """Like parse_amount, but a negative salary is also rejected to zero."""
    parsed = parse_amount(raw, field)
    if parsed.ok and parsed.value < 0:
        log.warning("[money.parse_salary] negative %s=%s treated as 0", field, parsed.value)
        return ParsedAmount(
            ZERO,
            PayrollWarning(
                code=MALFORMED_NUMBER,
                field=field,
                message=f"{field} is negative; treated as 0",
                value=parsed.value,
            ),
        )
    return parsed


def _malformed(raw: Any, field: str) -> ParsedAmount:
    log.warning("[money.parse_amount] non-numeric %s=%r treated as 0", field, raw)
    return ParsedAmount(
        ZERO,
        PayrollWarning(
            code=MALFORMED_NUMBER,
            field=field,
            message=f"{field} is not a number; treated as 0",
            value=raw,
        ),
    )


def q2(x: Decimal) -> Decimal:
    """Round to cents, half away from zero."""
    return Decimal(x).quantize(_CENTS, rounding=ROUND_HALF_UP)


def percent_of(base: Decimal, rate: Decimal) -> Decimal:
    return base * rate / HUNDRED


def as_float(x):
    try:
        return float(x) if x is not None else None
    except (TypeError, ValueError):
        return None
