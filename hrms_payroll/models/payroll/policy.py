from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from hrms_payroll.common.errors import PolicyError


class UnclassifiedDeductionPolicy(str, Enum):
    """What to do with percentage deductions that are neither EPF nor ETF."""
    EXCLUDE = "exclude"
    INCLUDE = "include"


@dataclass(frozen=True)
class PayPolicy:
    unclassified_deductions: UnclassifiedDeductionPolicy = UnclassifiedDeductionPolicy.EXCLUDE
    batch_workers: int = 0  # 0/1 = sequential

    def __post_init__(self):
        if self.batch_workers < 0:
            raise PolicyError("batch_workers cannot be negative")

    @classmethod
    def from_mapping(cls, cfg: Mapping[str, Any]) -> "PayPolicy":
        raw = str(cfg.get("PAYROLL_UNCLASSIFIED_DEDUCTIONS") or "exclude").strip().lower()
        try:
            mode = UnclassifiedDeductionPolicy(raw)
        except ValueError:
            raise PolicyError(
                "PAYROLL_UNCLASSIFIED_DEDUCTIONS must be 'exclude' or 'include'",
                payload={"value": raw},
            )
        try:
            workers = int(cfg.get("PAYROLL_BATCH_WORKERS") or 0)
        except (TypeError, ValueError):
            raise PolicyError("PAYROLL_BATCH_WORKERS must be an integer",
                              payload={"value": str(cfg.get("PAYROLL_BATCH_WORKERS"))})
        return cls(unclassified_deductions=mode, batch_workers=workers)
