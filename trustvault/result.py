"""
trustvault.result — tagged outcome of one contract call.

`CallResult` is what `TrustContract.invoke` returns instead of raising:

* status : CallStatus, SUCCESS or REVERT
* value  : the operation's return value (None on revert)
* error  : {code, message, data?} on revert, else None
* events : canonical events emitted by the call (empty on revert)

String forms:
  - str(CallStatus.SUCCESS) -> "success"
  - CallStatus.SUCCESS.code  -> "SUCCESS"
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .runtime.events import CanonicalEvent


class CallStatus(str, Enum):
    SUCCESS = "success"
    REVERT = "revert"

    @property
    def code(self) -> str:
        return self.value.upper()

    @property
    def is_success(self) -> bool:
        return self is CallStatus.SUCCESS

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value


@dataclass(frozen=True)
class CallResult:
    status: CallStatus
    value: Any = None
    error: Optional[Dict[str, Any]] = None
    events: Tuple[CanonicalEvent, ...] = field(default_factory=tuple)

    @property
    def is_success(self) -> bool:
        return self.status.is_success

    @property
    def error_code(self) -> Optional[str]:
        return self.error["code"] if self.error else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": str(self.status),
            "value": self.value,
            "error": self.error,
            "events": [{"name": e.name, "args": list(e.args)} for e in self.events],
        }


__all__ = ["CallStatus", "CallResult"]
