# -*- coding: utf-8 -*-
"""
trustvault.ledger.custody
=========================

The custody ledger: creation and lifecycle transitions of milestone trusts.

A grantor commits `amount` for a recipient; the value moves into the custody
account at creation and leaves it only through milestone releases (see
`trustvault.ledger.verification`), a grantor cancel, or an admin revert after
expiry.

Operations
----------
- create(ctx, recipient, amount, milestones) -> trust id
- cancel(ctx, trust_id) -> refunded amount
- revert_expired(ctx, trust_id) -> refunded amount
- extend(ctx, trust_id, extra) -> new terminates_at
- increase(ctx, trust_id, extra_amount) -> new amount

Time rules
----------
"Before expiry" means ``now <= terminates_at``; revert needs ``now > terminates_at``.

Events
------
- b"TrustCreated"   {trust_id, grantor, recipient, amount, milestones, terminates_at}
- b"TrustCancelled" {trust_id, refunded}
- b"TrustReverted"  {trust_id, refunded}
- b"TrustExtended"  {trust_id, extra, terminates_at}
- b"TrustIncreased" {trust_id, extra_amount, amount}

Accounting note
---------------
`revert_expired` refunds the full recorded amount, not the part still in
custody. When milestones were already released this pays out more than the
trust has left and draws on value held for other trusts; if custody cannot
cover it the transfer fails and the call reverts. This is kept as-is and logged.

`increase` after a verification raises `per_milestone` for releases already
made. The later cancel refunds the smaller `remaining`, and the gap between
what `released_to_date` reports and what was paid stays stranded in custody.
Also kept as-is and logged.
"""
from __future__ import annotations

import logging
from typing import Any, Sequence, Tuple

from ..errors import AlreadyTerminal, Expired, InvalidInput, NotYetExpired, Unauthorized
from ..runtime.host import CallContext
from ..state import maps
from ..state.records import Trust, TrustStatus
from .access import (deposit_into_custody, release_from_custody, require_admin,
                     require_identity_arg, require_positive_amount,
                     require_text_arg)

log = logging.getLogger(__name__)


# ---------- Validation ----------


def _require_milestones(ctx: CallContext, milestones: Any) -> Tuple[str, ...]:
    if isinstance(milestones, (str, bytes)) or not isinstance(milestones, Sequence):
        raise InvalidInput("milestones must be a sequence of markers", arg="milestones")
    if len(milestones) == 0:
        raise InvalidInput("at least one milestone is required", arg="milestones")
    if len(milestones) > ctx.config.max_milestones:
        raise InvalidInput(
            f"at most {ctx.config.max_milestones} milestones allowed",
            arg="milestones",
            count=len(milestones),
        )
    return tuple(require_text_arg(ctx, "milestone", m) for m in milestones)


def _require_grantor(ctx: CallContext, trust: Trust) -> None:
    if ctx.caller != trust.grantor:
        raise Unauthorized("grantor only", trust_id=trust.id, caller=ctx.caller)


def _require_active(trust: Trust) -> None:
    if trust.status is not TrustStatus.ACTIVE:
        raise AlreadyTerminal(f"trust {trust.id} is {trust.status.value}", trust_id=trust.id)


def _require_running(ctx: CallContext, trust: Trust) -> None:
    if trust.expired_at(ctx.now):
        raise Expired(
            f"trust {trust.id} expired at {trust.terminates_at}",
            trust_id=trust.id,
            terminates_at=trust.terminates_at,
            now=ctx.now,
        )


# ---------- Core operations ----------


def create(ctx: CallContext, recipient: str, amount: int, milestones: Sequence[str]) -> int:
    """
    Escrow `amount` from the caller for `recipient`, released over `milestones`.

    Rejects a zero amount, a self-directed trust, and an empty or over-long
    milestone list. The deposit and the record are one unit: a declined
    transfer raises TransferFailed and no id is consumed.
    """
    grantor = ctx.caller
    recipient = require_identity_arg("recipient", recipient)
    amount = require_positive_amount("amount", amount)
    if recipient == grantor:
        raise InvalidInput("recipient must differ from grantor", arg="recipient")
    markers = _require_milestones(ctx, milestones)

    deposit_into_custody(ctx, grantor, amount)

    trust_id = maps.issue_trust_id(ctx.store)
    trust = Trust(
        id=trust_id,
        grantor=grantor,
        recipient=recipient,
        amount=amount,
        status=TrustStatus.ACTIVE,
        created_at=ctx.now,
        terminates_at=ctx.now + ctx.config.trust_duration,
        milestones=markers,
        verified_milestones=0,
    )
    maps.save_trust(ctx.store, trust)

    ctx.events.emit(
        b"TrustCreated",
        {
            "trust_id": trust_id,
            "grantor": grantor,
            "recipient": recipient,
            "amount": amount,
            "milestones": len(markers),
            "terminates_at": trust.terminates_at,
        },
    )
    log.info("trust %d created: %s -> %s amount=%d milestones=%d", trust_id, grantor, recipient, amount, len(markers))
    return trust_id


def cancel(ctx: CallContext, trust_id: int) -> int:
    """
    ACTIVE → CANCELLED by the grantor before expiry; refunds what is still owed.
    """
    trust = maps.require_trust(ctx.store, trust_id)
    _require_grantor(ctx, trust)
    status = trust.status.transition(TrustStatus.CANCELLED)
    _require_running(ctx, trust)

    refund = trust.remaining
    release_from_custody(ctx, trust.grantor, refund)
    maps.save_trust(ctx.store, trust.replace(status=status))

    ctx.events.emit(b"TrustCancelled", {"trust_id": trust.id, "refunded": refund})
    log.info("trust %d cancelled, refunded %d to %s", trust.id, refund, trust.grantor)
    return refund


def revert_expired(ctx: CallContext, trust_id: int) -> int:
    """
    (ACTIVE|FLAGGED) → REVERTED by the admin once the trust is past its deadline.

    Refunds the full recorded amount to the grantor (see module notes).
    """
    require_admin(ctx)
    trust = maps.require_trust(ctx.store, trust_id)
    status = trust.status.transition(TrustStatus.REVERTED)
    if not trust.expired_at(ctx.now):
        raise NotYetExpired(
            f"trust {trust.id} runs until {trust.terminates_at}",
            trust_id=trust.id,
            terminates_at=trust.terminates_at,
            now=ctx.now,
        )

    refund = trust.amount
    if refund > trust.remaining:
        log.warning(
            "trust %d revert refunds %d but only %d remains attributable (released %d)",
            trust.id,
            refund,
            trust.remaining,
            trust.released_to_date,
        )
    release_from_custody(ctx, trust.grantor, refund)
    maps.save_trust(ctx.store, trust.replace(status=status))

    ctx.events.emit(b"TrustReverted", {"trust_id": trust.id, "refunded": refund})
    log.info("trust %d reverted, refunded %d to %s", trust.id, refund, trust.grantor)
    return refund


def extend(ctx: CallContext, trust_id: int, extra: int) -> int:
    trust = maps.require_trust(ctx.store, trust_id)
    _require_grantor(ctx, trust)
    _require_active(trust)
    _require_running(ctx, trust)
    extra = require_positive_amount("extra", extra)
    if extra > ctx.config.max_extension:
        raise InvalidInput(
            f"extension limited to {ctx.config.max_extension}",
            arg="extra",
            max_extension=ctx.config.max_extension,
        )

    updated = trust.replace(terminates_at=trust.terminates_at + extra)
    maps.save_trust(ctx.store, updated)

    ctx.events.emit(
        b"TrustExtended",
        {"trust_id": trust.id, "extra": extra, "terminates_at": updated.terminates_at},
    )
    log.debug("trust %d extended to %d", trust.id, updated.terminates_at)
    return updated.terminates_at


def increase(ctx: CallContext, trust_id: int, extra_amount: int) -> int:
    trust = maps.require_trust(ctx.store, trust_id)
    _require_grantor(ctx, trust)
    _require_active(trust)
    _require_running(ctx, trust)
    extra_amount = require_positive_amount("extra_amount", extra_amount)

    deposit_into_custody(ctx, trust.grantor, extra_amount)
    updated = trust.replace(amount=trust.amount + extra_amount)
    maps.save_trust(ctx.store, updated)
    if trust.verified_milestones:
        log.warning(
            "trust %d increased after %d releases: released_to_date restated from %d to %d",
            trust.id,
            trust.verified_milestones,
            trust.released_to_date,
            updated.released_to_date,
        )

    ctx.events.emit(
        b"TrustIncreased",
        {"trust_id": trust.id, "extra_amount": extra_amount, "amount": updated.amount},
    )
    log.debug("trust %d increased to %d", trust.id, updated.amount)
    return updated.amount


__all__ = [
    "create",
    "cancel",
    "revert_expired",
    "extend",
    "increase",
]
