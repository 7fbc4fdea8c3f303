"""
trustvault.runtime.context — per-call environment handed to the custody core.

A CallEnv carries exactly what the host supplies for one call: the caller
identity and the current reading of the monotonic time counter. It is pure data
with strict validation. The Clock is the in-process stand-in for the host's
time counter (block height in chain deployments).

Identities are opaque non-empty strings (an address, a principal, an account
name). They are compared exactly; no case folding or checksum handling is done
here so this module stays decoupled from any particular address format.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict

MAX_IDENTITY_LEN = 128


class ContextError(ValueError):
    """Validation or coercion failure for CallEnv/Clock inputs."""


def require_identity(name: str, v: Any) -> str:
    if not isinstance(v, str):
        raise ContextError(f"{name} must be str, got {type(v).__name__}")
    if not v:
        raise ContextError(f"{name} must be non-empty")
    if len(v) > MAX_IDENTITY_LEN:
        raise ContextError(f"{name} longer than {MAX_IDENTITY_LEN} characters")
    return v


def _require_non_negative_int(name: str, v: Any) -> int:
    if not isinstance(v, int) or isinstance(v, bool):
        raise ContextError(f"{name} must be int, got {type(v).__name__}")
    if v < 0:
        raise ContextError(f"{name} must be non-negative, got {v}")
    return v


@dataclass(frozen=True)
class CallEnv:
    """
    Deterministic per-call environment.

    Fields
    ------
    caller: Identity that issued the call.
    now:    Host time counter at call time.
    """

    caller: str
    now: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "caller", require_identity("caller", self.caller))
        object.__setattr__(self, "now", _require_non_negative_int("now", self.now))

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CallEnv":
        return cls(caller=d.get("caller"), now=d.get("now", 0))  # type: ignore[arg-type]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class Clock:
    """Monotonic integer time counter."""

    def __init__(self, height: int = 0) -> None:
        self._height = _require_non_negative_int("height", height)

    @property
    def height(self) -> int:
        return self._height

    def advance(self, units: int = 1) -> int:
        self._height += _require_non_negative_int("units", units)
        return self._height

    def set_height(self, height: int) -> int:
        h = _require_non_negative_int("height", height)
        if h < self._height:
            raise ContextError(f"clock cannot go backwards ({h} < {self._height})")
        self._height = h
        return h


__all__ = [
    "MAX_IDENTITY_LEN",
    "ContextError",
    "require_identity",
    "CallEnv",
    "Clock",
]
