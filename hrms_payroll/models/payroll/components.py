from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union


@dataclass(frozen=True)
class AllowanceComponent:
    """
    One allowance line for an employee.

    ``amount`` is either a fixed value or, when ``is_percentage`` is set, a
    percentage of the contracted base salary. Raw values are kept as supplied;
    parsing happens in the aggregator so malformed input can be reported.
    """
    name: str
    amount: Any
    is_percentage: bool = False
    is_taxable: bool = False  # informational only


class CalculationType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"

    @classmethod
    def parse(cls, v) -> Optional["CalculationType"]:
        if isinstance(v, cls):
            return v
        s = str(v or "").strip().lower()
        if s in ("percentage", "percent", "pct", "%"):
            return cls.PERCENTAGE
        if s == "fixed":
            return cls.FIXED
        return None


@dataclass(frozen=True)
class DeductionComponent:
    component_name: str
    calculation_type: Any
    calculation_value: Any
    category: Optional[str] = None


class StatutoryKind(str, Enum):
    EPF = "epf"  # employee contribution
    ETF = "etf"  # employer contribution
    OTHER = "other"


@dataclass(frozen=True)
class Categorized:
    """Deduction tagged by its explicit category."""
    kind: StatutoryKind


@dataclass(frozen=True)
class Uncategorized:
    """Deduction without a category; ``kind`` comes from the name, if at all."""
    name: str
    kind: Optional[StatutoryKind] = None


DeductionClass = Union[Categorized, Uncategorized]
