"""
trustvault.errors — typed failures raised by the custody core.

Every public operation validates eagerly and raises one of these on the first
violated precondition. The enclosing host call (see trustvault.runtime.host)
then discards every effect of that call, so an error never leaves partial state.

Hierarchy
---------
TrustError (base)
 ├─ Unauthorized        : wrong caller for the operation
 ├─ NotFound            : unknown trust / split id
 ├─ InvalidInput        : zero/empty/self-referential arguments, bound violations
 ├─ AlreadyTerminal     : release/cancel/transition on a non-active or exhausted trust
 │   └─ AlreadyReleased : every milestone of the trust is already verified
 ├─ Expired             : operation requires the trust to still be running
 ├─ NotYetExpired       : operation requires the trust to be past its deadline
 ├─ TransferFailed      : host transfer primitive declined
 ├─ TooManyRecipients   : split-trust beneficiary list over the bound
 ├─ DistributionInvalid : split-trust shares do not sum to 100
 ├─ RateExceeded        : per-grantor creation window exhausted
 ├─ SuspiciousPattern   : high-value creation after a burst of creations
 ├─ AuditExists         : an audit is already on record for the trust
 ├─ PlatformFrozen      : guarded creation while the platform is frozen
 └─ NotApproved         : guarded creation toward a recipient not on the allow-list

Each class carries a stable machine `code`; `to_dict()` gives the JSON-safe form
used in call results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class TrustError(Exception):
    """
    Base custody error.

    Attributes:
        message: Human-readable explanation.
        code:    Stable machine code string (e.g., 'NOT_FOUND').
        data:    Optional structured details (kept JSON-serializable).
    """

    message: str = "trust error"
    code: str = "TRUST_ERROR"
    data: Optional[Dict[str, Any]] = field(default=None)

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.data:
            return f"{self.code}: {self.message} ({self.data})"
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            out["data"] = self.data
        return out


class Unauthorized(TrustError):
    """Caller is not allowed to perform the operation on this record."""

    CODE = "UNAUTHORIZED"

    def __init__(self, message: str = "caller not authorized", **data: Any) -> None:
        super().__init__(message=message, code=self.CODE, data=data or None)


class NotFound(TrustError):
    """Referenced id has no record."""

    CODE = "NOT_FOUND"

    def __init__(self, message: str = "record not found", **data: Any) -> None:
        super().__init__(message=message, code=self.CODE, data=data or None)


class InvalidInput(TrustError):
    CODE = "INVALID_INPUT"

    def __init__(self, message: str = "invalid input", **data: Any) -> None:
        super().__init__(message=message, code=self.CODE, data=data or None)


class AlreadyTerminal(TrustError):
    """The trust is not in a state that allows this transition."""

    CODE = "ALREADY_TERMINAL"

    def __init__(self, message: str = "trust is not active", **data: Any) -> None:
        super().__init__(message=message, code=self.CODE, data=data or None)


class AlreadyReleased(AlreadyTerminal):
    """All milestones of the trust are already verified and paid out."""

    def __init__(self, message: str = "all milestones already released", **data: Any) -> None:
        super().__init__(message=message, **data)


class Expired(TrustError):
    CODE = "EXPIRED"

    def __init__(self, message: str = "trust has expired", **data: Any) -> None:
        super().__init__(message=message, code=self.CODE, data=data or None)


class NotYetExpired(TrustError):
    CODE = "NOT_YET_EXPIRED"

    def __init__(self, message: str = "trust has not expired yet", **data: Any) -> None:
        super().__init__(message=message, code=self.CODE, data=data or None)


class TransferFailed(TrustError):
    """The host value-transfer primitive declined the transfer."""

    CODE = "TRANSFER_FAILED"

    def __init__(self, message: str = "value transfer failed", **data: Any) -> None:
        super().__init__(message=message, code=self.CODE, data=data or None)


class TooManyRecipients(TrustError):
    CODE = "TOO_MANY_RECIPIENTS"

    def __init__(self, message: str = "too many recipients", **data: Any) -> None:
        super().__init__(message=message, code=self.CODE, data=data or None)


class DistributionInvalid(TrustError):
    CODE = "DISTRIBUTION_INVALID"

    def __init__(self, message: str = "shares must sum to 100", **data: Any) -> None:
        super().__init__(message=message, code=self.CODE, data=data or None)


class RateExceeded(TrustError):
    CODE = "RATE_EXCEEDED"

    def __init__(self, message: str = "creation rate exceeded", **data: Any) -> None:
        super().__init__(message=message, code=self.CODE, data=data or None)


class SuspiciousPattern(TrustError):
    CODE = "SUSPICIOUS_PATTERN"

    def __init__(self, message: str = "suspicious creation pattern", **data: Any) -> None:
        super().__init__(message=message, code=self.CODE, data=data or None)


class AuditExists(TrustError):
    CODE = "AUDIT_EXISTS"

    def __init__(self, message: str = "audit already submitted", **data: Any) -> None:
        super().__init__(message=message, code=self.CODE, data=data or None)


class PlatformFrozen(TrustError):
    CODE = "PLATFORM_FROZEN"

    def __init__(self, message: str = "platform is frozen", **data: Any) -> None:
        super().__init__(message=message, code=self.CODE, data=data or None)


class NotApproved(TrustError):
    CODE = "NOT_APPROVED"

    def __init__(self, message: str = "recipient not approved", **data: Any) -> None:
        super().__init__(message=message, code=self.CODE, data=data or None)


# -------- helper utilities ---------------------------------------------------


def error_to_receipt_fields(err: TrustError) -> Dict[str, Any]:
    """
    Map a TrustError to canonical receipt-like fields:

        {"status": "revert", "error": {code, message, data?}}
    """
    return {"status": "revert", "error": err.to_dict()}


__all__ = [
    "TrustError",
    "Unauthorized",
    "NotFound",
    "InvalidInput",
    "AlreadyTerminal",
    "AlreadyReleased",
    "Expired",
    "NotYetExpired",
    "TransferFailed",
    "TooManyRecipients",
    "DistributionInvalid",
    "RateExceeded",
    "SuspiciousPattern",
    "AuditExists",
    "PlatformFrozen",
    "NotApproved",
    "error_to_receipt_fields",
]
