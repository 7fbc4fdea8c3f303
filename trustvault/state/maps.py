"""
trustvault.state.maps — the persistent map layout of the custody core.

Every record is owned by exactly one map, keyed by its id tuple. Cross
references (a trust id inside an AuditRecord, say) are lookups only.

    b"tv:trust:"    + u64(id)            -> Trust
    b"tv:split:"    + u64(group_id)      -> SplitTrust
    b"tv:ms:"       + u64(id) + u8(idx)  -> MilestoneRecord
    b"tv:act:"      + grantor            -> GrantorActivity
    b"tv:flag:"     + u64(id)            -> FlaggedTrust
    b"tv:audit:"    + u64(id)            -> AuditRecord
    b"tv:recovery:" + u64(id)            -> RecoveryRequest
    b"tv:proxy:"    + u64(id)            -> TrustProxy
    b"tv:approved:" + recipient          -> b"\\x01" while approved
    b"tv:next_trust_id", b"tv:next_split_id"  -> u64 counters (last issued id)
    b"tv:frozen"    -> b"\\x01" while frozen
    b"tv:admin"     -> utf8(admin)

Every accessor reads through the call's Journal, so checks always see the
state current at call time.
"""

from __future__ import annotations

from typing import Optional, Type, TypeVar

from ..errors import NotFound
from ..runtime.storage import Journal
from .codec import dumps_canonical, identity_key, loads, u8, u64
from .records import (AuditRecord, FlaggedTrust, GrantorActivity,
                      MilestoneRecord, RecoveryRequest, SplitTrust, Trust,
                      TrustProxy, _Record)

R = TypeVar("R", bound=_Record)

_P_TRUST = b"tv:trust:"
_P_SPLIT = b"tv:split:"
_P_MILESTONE = b"tv:ms:"
_P_ACTIVITY = b"tv:act:"
_P_FLAG = b"tv:flag:"
_P_AUDIT = b"tv:audit:"
_P_RECOVERY = b"tv:recovery:"
_P_PROXY = b"tv:proxy:"
_P_APPROVED = b"tv:approved:"

K_NEXT_TRUST_ID = b"tv:next_trust_id"
K_NEXT_SPLIT_ID = b"tv:next_split_id"
K_FROZEN = b"tv:frozen"
K_ADMIN = b"tv:admin"

_TRUE = b"\x01"


def _load(store: Journal, key: bytes, cls: Type[R]) -> Optional[R]:
    raw = store.get(key)
    if raw is None:
        return None
    return cls.from_dict(loads(raw))


def _save(store: Journal, key: bytes, rec: _Record) -> None:
    store.set(key, dumps_canonical(rec.to_dict()))


def _is_id(v: object) -> bool:
    return isinstance(v, int) and not isinstance(v, bool) and 1 <= v < 1 << 64


# ---------- trusts ----------


def load_trust(store: Journal, trust_id: int) -> Optional[Trust]:
    return _load(store, _P_TRUST + u64(trust_id), Trust)


def require_trust(store: Journal, trust_id: int) -> Trust:
    if not _is_id(trust_id):
        raise NotFound(f"unknown trust id {trust_id!r}", trust_id=str(trust_id))
    t = load_trust(store, trust_id)
    if t is None:
        raise NotFound(f"unknown trust id {trust_id}", trust_id=trust_id)
    return t


def save_trust(store: Journal, trust: Trust) -> None:
    _save(store, _P_TRUST + u64(trust.id), trust)


def last_trust_id(store: Journal) -> int:
    return store.get_int(K_NEXT_TRUST_ID)


def issue_trust_id(store: Journal) -> int:
    nid = last_trust_id(store) + 1
    store.set_int(K_NEXT_TRUST_ID, nid)
    return nid


# ---------- split trusts ----------


def load_split(store: Journal, group_id: int) -> Optional[SplitTrust]:
    return _load(store, _P_SPLIT + u64(group_id), SplitTrust)


def require_split(store: Journal, group_id: int) -> SplitTrust:
    s = load_split(store, group_id) if _is_id(group_id) else None
    if s is None:
        raise NotFound(f"unknown split id {group_id!r}", group_id=str(group_id))
    return s


def save_split(store: Journal, split: SplitTrust) -> None:
    _save(store, _P_SPLIT + u64(split.id), split)


def last_split_id(store: Journal) -> int:
    return store.get_int(K_NEXT_SPLIT_ID)


def issue_split_id(store: Journal) -> int:
    nid = last_split_id(store) + 1
    store.set_int(K_NEXT_SPLIT_ID, nid)
    return nid


# ---------- annotations ----------


def load_milestone_record(store: Journal, trust_id: int, index: int) -> Optional[MilestoneRecord]:
    return _load(store, _P_MILESTONE + u64(trust_id) + u8(index), MilestoneRecord)


def save_milestone_record(store: Journal, rec: MilestoneRecord) -> None:
    _save(store, _P_MILESTONE + u64(rec.trust_id) + u8(rec.index), rec)


def load_activity(store: Journal, grantor: str) -> Optional[GrantorActivity]:
    return _load(store, identity_key(_P_ACTIVITY, grantor), GrantorActivity)


def save_activity(store: Journal, grantor: str, act: GrantorActivity) -> None:
    _save(store, identity_key(_P_ACTIVITY, grantor), act)


def load_flag(store: Journal, trust_id: int) -> Optional[FlaggedTrust]:
    return _load(store, _P_FLAG + u64(trust_id), FlaggedTrust)


def save_flag(store: Journal, rec: FlaggedTrust) -> None:
    _save(store, _P_FLAG + u64(rec.trust_id), rec)


def load_audit(store: Journal, trust_id: int) -> Optional[AuditRecord]:
    return _load(store, _P_AUDIT + u64(trust_id), AuditRecord)


def save_audit(store: Journal, rec: AuditRecord) -> None:
    _save(store, _P_AUDIT + u64(rec.trust_id), rec)


def load_recovery(store: Journal, trust_id: int) -> Optional[RecoveryRequest]:
    return _load(store, _P_RECOVERY + u64(trust_id), RecoveryRequest)


def load_proxy(store: Journal, trust_id: int) -> Optional[TrustProxy]:
    return _load(store, _P_PROXY + u64(trust_id), TrustProxy)


# ---------- platform flags ----------


def is_approved(store: Journal, recipient: str) -> bool:
    return store.get(identity_key(_P_APPROVED, recipient)) == _TRUE


def set_approved(store: Journal, recipient: str, approved: bool) -> None:
    key = identity_key(_P_APPROVED, recipient)
    if approved:
        store.set(key, _TRUE)
    else:
        store.delete(key)


def is_frozen(store: Journal) -> bool:
    return store.get(K_FROZEN) == _TRUE


def set_frozen(store: Journal, frozen: bool) -> None:
    if frozen:
        store.set(K_FROZEN, _TRUE)
    else:
        store.delete(K_FROZEN)


def get_admin(store: Journal) -> Optional[str]:
    raw = store.get(K_ADMIN)
    return raw.decode("utf-8") if raw is not None else None


def set_admin(store: Journal, admin: str) -> None:
    store.set(K_ADMIN, admin.encode("utf-8"))


__all__ = [
    "load_trust",
    "require_trust",
    "save_trust",
    "last_trust_id",
    "issue_trust_id",
    "load_split",
    "require_split",
    "save_split",
    "last_split_id",
    "issue_split_id",
    "load_milestone_record",
    "save_milestone_record",
    "load_activity",
    "save_activity",
    "load_flag",
    "save_flag",
    "load_audit",
    "save_audit",
    "load_recovery",
    "load_proxy",
    "is_approved",
    "set_approved",
    "is_frozen",
    "set_frozen",
    "get_admin",
    "set_admin",
]
