from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class FinancialAdjustments:
    """Period totals from the financial ledger, already summed by the caller."""
    loans: Any = 0
    advances: Any = 0
    bonuses: Any = 0
