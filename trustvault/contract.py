"""
trustvault.contract — the public surface of the custody core.

One `TrustContract` owns one Host (storage, balances, events, clock) and one
admin identity fixed at construction. Each mutating method takes the caller
identity first and runs as a single atomic call: it either completes with all
of its effects or raises a TrustError with none of them.

    tc = TrustContract(admin="ops")
    tc.fund("alice", 1_000)
    tid = tc.create("alice", "bob", 400, ["design", "build"])
    tc.verify_one("ops", tid)          # bob receives 200
    tc.advance(2_000)
    tc.revert_expired("ops", tid)      # alice receives 400 (full amount)

`invoke(method, caller, **kwargs)` returns a tagged CallResult instead of
raising, for hosts that surface one success-or-failure result per call.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Sequence, TypeVar

from .config import TrustConfig
from .errors import TrustError, error_to_receipt_fields
from .ledger import custody, guard, registry, split, verification
from .result import CallResult, CallStatus
from .runtime.context import require_identity
from .runtime.events import to_canonical
from .runtime.host import Host
from .state import maps
from .state.records import (AuditRecord, FlaggedTrust, GrantorActivity,
                            MilestoneRecord, RecoveryRequest, SplitTrust,
                            Trust, TrustProxy)

log = logging.getLogger(__name__)

T = TypeVar("T")

ENTRYPOINTS = frozenset(
    {
        "create",
        "cancel",
        "revert_expired",
        "extend",
        "increase",
        "verify_one",
        "verify_batch",
        "record_milestone",
        "create_split",
        "secure_create",
        "protected_create",
        "flag",
        "submit_audit",
        "set_platform_status",
        "set_recipient_approval",
    }
)


class TrustContract:
    def __init__(
        self,
        admin: str,
        *,
        config: Optional[TrustConfig] = None,
        host: Optional[Host] = None,
    ) -> None:
        self.host = host if host is not None else Host(config=config)
        admin = require_identity("admin", admin)
        current = maps.get_admin(self.host.store)
        if current is None:
            with self.host.atomic(admin) as ctx:
                maps.set_admin(ctx.store, admin)
        elif current != admin:
            raise ValueError(f"host already administered by {current!r}")
        log.debug("trust contract ready (admin=%s, custody=%s)", admin, self.config.custody_address)

    # ------------------------------------------------------------------ #
    # Plumbing
    # ------------------------------------------------------------------ #

    @property
    def config(self) -> TrustConfig:
        return self.host.config

    def _call(self, caller: str, op: Callable[..., T], *args: Any) -> T:
        with self.host.atomic(caller) as ctx:
            log.debug("%s(%s) by %s at %d", op.__name__, args, caller, ctx.now)
            return op(ctx, *args)

    def invoke(self, method: str, caller: str, **kwargs: Any) -> CallResult:
        """Run one entry point and report the outcome instead of raising."""
        if method not in ENTRYPOINTS:
            raise AttributeError(f"unknown entry point: {method}")
        mark = len(self.host.events)
        try:
            value = getattr(self, method)(caller, **kwargs)
        except TrustError as e:
            fields = error_to_receipt_fields(e)
            return CallResult(status=CallStatus.REVERT, error=fields["error"])
        events = tuple(to_canonical(self.host.events.since(mark)))
        return CallResult(status=CallStatus.SUCCESS, value=value, events=events)

    # ------------------------------------------------------------------ #
    # Clock & balances (host side)
    # ------------------------------------------------------------------ #

    @property
    def now(self) -> int:
        return self.host.clock.height

    def advance(self, units: int = 1) -> int:
        return self.host.clock.advance(units)

    def fund(self, addr: str, amount: int) -> None:
        """Credit `addr` outside any call (faucet for local runs and tests)."""
        self.host.treasury.credit(addr, amount)

    def balance_of(self, addr: str) -> int:
        return self.host.treasury.balance_of(addr)

    def custody_balance(self) -> int:
        return self.host.treasury.balance_of(self.config.custody_address)

    # ------------------------------------------------------------------ #
    # Custody ledger
    # ------------------------------------------------------------------ #

    def create(self, caller: str, recipient: str, amount: int, milestones: Sequence[str]) -> int:
        return self._call(caller, custody.create, recipient, amount, milestones)

    def cancel(self, caller: str, trust_id: int) -> int:
        return self._call(caller, custody.cancel, trust_id)

    def revert_expired(self, caller: str, trust_id: int) -> int:
        return self._call(caller, custody.revert_expired, trust_id)

    def extend(self, caller: str, trust_id: int, extra: int) -> int:
        return self._call(caller, custody.extend, trust_id, extra)

    def increase(self, caller: str, trust_id: int, extra_amount: int) -> int:
        return self._call(caller, custody.increase, trust_id, extra_amount)

    # ------------------------------------------------------------------ #
    # Verification
    # ------------------------------------------------------------------ #

    def verify_one(self, caller: str, trust_id: int) -> int:
        return self._call(caller, verification.verify_one, trust_id)

    def verify_batch(self, caller: str, trust_ids: Sequence[int]) -> List[int]:
        return self._call(caller, verification.verify_batch, trust_ids)

    def record_milestone(
        self,
        caller: str,
        trust_id: int,
        index: int,
        progress: int,
        details: str,
        proof: bytes,
    ) -> MilestoneRecord:
        return self._call(caller, verification.record_milestone, trust_id, index, progress, details, proof)

    # ------------------------------------------------------------------ #
    # Split trusts, guard, registry
    # ------------------------------------------------------------------ #

    def create_split(self, caller: str, beneficiaries: Sequence[Any], amount: int) -> int:
        return self._call(caller, split.create_split, beneficiaries, amount)

    def secure_create(self, caller: str, recipient: str, amount: int, milestones: Sequence[str]) -> int:
        return self._call(caller, guard.secure_create, recipient, amount, milestones)

    def protected_create(self, caller: str, recipient: str, amount: int, milestones: Sequence[str]) -> int:
        return self._call(caller, guard.protected_create, recipient, amount, milestones)

    def set_platform_status(self, caller: str, frozen: bool) -> bool:
        return self._call(caller, guard.set_platform_status, frozen)

    def set_recipient_approval(self, caller: str, recipient: str, approved: bool) -> bool:
        return self._call(caller, guard.set_recipient_approval, recipient, approved)

    def flag(self, caller: str, trust_id: int, reason: str) -> FlaggedTrust:
        return self._call(caller, registry.flag, trust_id, reason)

    def submit_audit(self, caller: str, trust_id: int, findings: str) -> AuditRecord:
        return self._call(caller, registry.submit_audit, trust_id, findings)

    # ------------------------------------------------------------------ #
    # Read-only views
    # ------------------------------------------------------------------ #

    @property
    def admin(self) -> str:
        return maps.get_admin(self.host.store) or ""

    def get_trust(self, trust_id: int) -> Trust:
        return maps.require_trust(self.host.store, trust_id)

    def last_trust_id(self) -> int:
        return maps.last_trust_id(self.host.store)

    def released_to_date(self, trust_id: int) -> int:
        return self.get_trust(trust_id).released_to_date

    def remaining_in_custody(self, trust_id: int) -> int:
        return self.get_trust(trust_id).remaining

    def get_split(self, group_id: int) -> SplitTrust:
        return maps.require_split(self.host.store, group_id)

    def get_milestone_record(self, trust_id: int, index: int) -> Optional[MilestoneRecord]:
        return maps.load_milestone_record(self.host.store, trust_id, index)

    def get_activity(self, grantor: str) -> Optional[GrantorActivity]:
        return maps.load_activity(self.host.store, grantor)

    def get_flag(self, trust_id: int) -> Optional[FlaggedTrust]:
        return maps.load_flag(self.host.store, trust_id)

    def get_audit(self, trust_id: int) -> Optional[AuditRecord]:
        return maps.load_audit(self.host.store, trust_id)

    def get_recovery_request(self, trust_id: int) -> Optional[RecoveryRequest]:
        return maps.load_recovery(self.host.store, trust_id)

    def get_trust_proxy(self, trust_id: int) -> Optional[TrustProxy]:
        return maps.load_proxy(self.host.store, trust_id)

    def is_frozen(self) -> bool:
        return maps.is_frozen(self.host.store)

    def is_recipient_approved(self, recipient: str) -> bool:
        return guard.is_recipient_approved(self.host.store, recipient)


__all__ = ["ENTRYPOINTS", "TrustContract"]
