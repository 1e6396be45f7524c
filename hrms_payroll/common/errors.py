# hrms_payroll/common/errors.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


class PayrollError(Exception):
    """Base error for the payroll engine."""
    code = "PAYROLL_ERROR"

    def __init__(self, message, code=None, payload=None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.payload = payload

    def to_dict(self) -> dict:
        err = {"code": self.code, "message": self.message}
        if self.payload:
            err["detail"] = self.payload
        return err


class PolicyError(PayrollError):
    """Attendance policy / engine configuration violates an invariant."""
    code = "POLICY_INVALID"


class PayloadError(PayrollError):
    """Input payload cannot be mapped onto engine inputs."""
    code = "PAYLOAD_INVALID"


# ---- non-fatal conditions reported alongside results ----

MALFORMED_NUMBER = "MALFORMED_NUMBER"
UNCLASSIFIED_DEDUCTION = "UNCLASSIFIED_DEDUCTION"
FIXED_DEDUCTION_SKIPPED = "FIXED_DEDUCTION_SKIPPED"
NEGATIVE_NET_SALARY = "NEGATIVE_NET_SALARY"
OPEN_ATTENDANCE = "OPEN_ATTENDANCE"


@dataclass(frozen=True)
class PayrollWarning:
    code: str
    field: str
    message: str
    value: Optional[Any] = None

    def to_dict(self) -> dict:
        out = {"code": self.code, "field": self.field, "message": self.message}
        if self.value is not None:
            out["value"] = str(self.value)
        return out
