"""
trustvault.state.records — persisted record shapes and the trust state machine.

Records are frozen dataclasses; a mutation is "read, `replace(...)`, write back".
Each record converts to/from a plain dict with text keys for the CBOR codec.

TrustStatus edges
-----------------
    ACTIVE  → CANCELLED | REVERTED | FLAGGED
    FLAGGED → REVERTED
CANCELLED and REVERTED are terminal. `TrustStatus.transition` raises
AlreadyTerminal for anything else.

Accounting
----------
    per_milestone    = amount // len(milestones)
    released_to_date = verified_milestones * per_milestone
    remaining        = amount - released_to_date
All three derive from the current `amount`. The division remainder is never paid
through milestones. After `increase` on a trust with verified milestones,
`released_to_date` restates past releases at the new rate and so reports more
than was paid; the difference stays in custody with no operation that frees it.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, FrozenSet, Mapping, Tuple, Type, TypeVar

from ..errors import AlreadyTerminal
from .codec import CodecError

R = TypeVar("R", bound="_Record")

PROOF_DIGEST_LEN = 32


class TrustStatus(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    REVERTED = "reverted"
    FLAGGED = "flagged"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value

    @property
    def is_terminal(self) -> bool:
        return not _EDGES[self]

    def can_transition(self, to: "TrustStatus") -> bool:
        return to in _EDGES[self]

    def transition(self, to: "TrustStatus") -> "TrustStatus":
        if not self.can_transition(to):
            raise AlreadyTerminal(
                f"cannot move trust from {self.value} to {to.value}",
                status=self.value,
                target=to.value,
            )
        return to


_EDGES: Dict[TrustStatus, FrozenSet[TrustStatus]] = {
    TrustStatus.ACTIVE: frozenset({TrustStatus.CANCELLED, TrustStatus.REVERTED, TrustStatus.FLAGGED}),
    TrustStatus.FLAGGED: frozenset({TrustStatus.REVERTED}),
    TrustStatus.CANCELLED: frozenset(),
    TrustStatus.REVERTED: frozenset(),
}


class _Record:
    """Dict conversion shared by every record; tuples become lists on the wire."""

    _tuple_fields: ClassVar[Tuple[str, ...]] = ()

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for f in dataclasses.fields(self):  # type: ignore[arg-type]
            v = getattr(self, f.name)
            if isinstance(v, Enum):
                v = v.value
            elif isinstance(v, tuple):
                v = [x.to_dict() if isinstance(x, _Record) else x for x in v]
            out[f.name] = v
        return out

    @classmethod
    def from_dict(cls: Type[R], d: Mapping[str, Any]) -> R:
        names = [f.name for f in dataclasses.fields(cls)]  # type: ignore[arg-type]
        missing = [n for n in names if n not in d]
        if missing:
            raise CodecError(f"{cls.__name__} record missing fields: {missing}")
        kwargs = {n: d[n] for n in names}
        for n in cls._tuple_fields:
            kwargs[n] = tuple(kwargs[n])
        return cls(**kwargs)  # type: ignore[call-arg]

    def replace(self: R, **changes: Any) -> R:
        return dataclasses.replace(self, **changes)  # type: ignore[type-var]


# ----------------------------------------------------------------------------
# Trust
# ----------------------------------------------------------------------------


@dataclass(frozen=True)
class Trust(_Record):
    id: int
    grantor: str
    recipient: str
    amount: int
    status: TrustStatus
    created_at: int
    terminates_at: int
    milestones: Tuple[str, ...]
    verified_milestones: int = 0

    _tuple_fields: ClassVar[Tuple[str, ...]] = ("milestones",)

    def __post_init__(self) -> None:
        if not isinstance(self.status, TrustStatus):
            object.__setattr__(self, "status", TrustStatus(self.status))
        if not 0 <= self.verified_milestones <= len(self.milestones):
            raise ValueError("verified_milestones out of range")

    @property
    def per_milestone(self) -> int:
        return self.amount // len(self.milestones)

    @property
    def released_to_date(self) -> int:
        return self.verified_milestones * self.per_milestone

    @property
    def remaining(self) -> int:
        return self.amount - self.released_to_date

    @property
    def exhausted(self) -> bool:
        return self.verified_milestones >= len(self.milestones)

    def expired_at(self, now: int) -> bool:
        return now > self.terminates_at


# ----------------------------------------------------------------------------
# Split trust
# ----------------------------------------------------------------------------


@dataclass(frozen=True)
class Beneficiary(_Record):
    recipient: str
    share: int


@dataclass(frozen=True)
class SplitTrust(_Record):
    id: int
    grantor: str
    beneficiaries: Tuple[Beneficiary, ...]
    total_amount: int
    created_at: int
    status: TrustStatus

    def __post_init__(self) -> None:
        if not isinstance(self.status, TrustStatus):
            object.__setattr__(self, "status", TrustStatus(self.status))

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "SplitTrust":
        d = dict(d)
        d["beneficiaries"] = tuple(
            b if isinstance(b, Beneficiary) else Beneficiary.from_dict(b)
            for b in d.get("beneficiaries", ())
        )
        return super().from_dict(d)

    @property
    def total_shares(self) -> int:
        return sum(b.share for b in self.beneficiaries)


# ----------------------------------------------------------------------------
# Annotations
# ----------------------------------------------------------------------------


@dataclass(frozen=True)
class MilestoneRecord(_Record):
    """Evidence attached to one milestone; never gates release."""

    trust_id: int
    index: int
    progress: int
    details: str
    timestamp: int
    proof: bytes


@dataclass(frozen=True)
class GrantorActivity(_Record):
    last_action: int
    count: int


@dataclass(frozen=True)
class FlaggedTrust(_Record):
    trust_id: int
    flagger: str
    reason: str
    flagged_at: int


@dataclass(frozen=True)
class AuditRecord(_Record):
    trust_id: int
    auditor: str
    findings: str
    deposit: int
    completed: bool
    submitted_at: int


# ----------------------------------------------------------------------------
# Delegation & recovery (declared, not yet wired to any operation)
# ----------------------------------------------------------------------------


@dataclass(frozen=True)
class TrustProxy(_Record):
    trust_id: int
    delegate: str
    can_extend: bool
    can_increase: bool
    can_cancel: bool
    expires_at: int


@dataclass(frozen=True)
class RecoveryRequest(_Record):
    trust_id: int
    grantor_approved: bool
    admin_approved: bool
    reason: str


__all__ = [
    "PROOF_DIGEST_LEN",
    "TrustStatus",
    "Trust",
    "Beneficiary",
    "SplitTrust",
    "MilestoneRecord",
    "GrantorActivity",
    "FlaggedTrust",
    "AuditRecord",
    "TrustProxy",
    "RecoveryRequest",
]
