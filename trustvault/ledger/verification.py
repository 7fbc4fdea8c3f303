# -*- coding: utf-8 -*-
"""
trustvault.ledger.verification
==============================

Milestone verification: the only path that pays a trust's recipient.

Each admin verification releases one installment of
``amount // len(milestones)`` from custody and bumps `verified_milestones`.
The count is re-read from storage on every call; a trust whose milestones
are all verified fails AlreadyReleased and nothing moves.

`verify_batch` applies `verify_one` to up to `max_batch` ids in order inside
one checkpoint. The first failure reverts that checkpoint, so no transfer or
count change from the batch survives, and is re-raised unchanged.

`record_milestone` stores evidence (progress, details, proof digest) for one
milestone. It is an annotation; it neither requires nor triggers a release.

Events
------
- b"MilestoneVerified" {trust_id, verified, released, recipient}
- b"MilestoneRecorded" {trust_id, index, progress, proof}
"""
from __future__ import annotations

import logging
from typing import Any, List, Sequence

from ..errors import AlreadyReleased, AlreadyTerminal, InvalidInput, Unauthorized
from ..runtime.host import CallContext
from ..state import maps
from ..state.records import PROOF_DIGEST_LEN, MilestoneRecord, TrustStatus
from .access import (release_from_custody, require_admin, require_int_arg,
                     require_text_arg)

log = logging.getLogger(__name__)


def _verify(ctx: CallContext, trust_id: int) -> int:
    trust = maps.require_trust(ctx.store, trust_id)
    if trust.status is not TrustStatus.ACTIVE:
        raise AlreadyTerminal(f"trust {trust.id} is {trust.status.value}", trust_id=trust.id)
    if trust.exhausted:
        raise AlreadyReleased(
            f"trust {trust.id} has no unverified milestones",
            trust_id=trust.id,
            verified=trust.verified_milestones,
        )

    release = trust.per_milestone
    release_from_custody(ctx, trust.recipient, release)
    updated = trust.replace(verified_milestones=trust.verified_milestones + 1)
    maps.save_trust(ctx.store, updated)

    ctx.events.emit(
        b"MilestoneVerified",
        {
            "trust_id": trust.id,
            "verified": updated.verified_milestones,
            "released": release,
            "recipient": trust.recipient,
        },
    )
    log.info(
        "trust %d milestone %d/%d verified, released %d",
        trust.id,
        updated.verified_milestones,
        len(trust.milestones),
        release,
    )
    return release


def verify_one(ctx: CallContext, trust_id: int) -> int:
    """Verify the next milestone of `trust_id`; returns the amount released."""
    require_admin(ctx)
    return _verify(ctx, trust_id)


def verify_batch(ctx: CallContext, trust_ids: Sequence[int]) -> List[int]:
    """
    Verify one milestone on each trust, in order, all or nothing.

    Returns the released amounts in input order.
    """
    require_admin(ctx)
    if isinstance(trust_ids, (str, bytes)) or not isinstance(trust_ids, Sequence):
        raise InvalidInput("trust_ids must be a sequence", arg="trust_ids")
    if len(trust_ids) == 0:
        raise InvalidInput("trust_ids must be non-empty", arg="trust_ids")
    if len(trust_ids) > ctx.config.max_batch:
        raise InvalidInput(
            f"at most {ctx.config.max_batch} trusts per batch",
            arg="trust_ids",
            count=len(trust_ids),
        )

    released: List[int] = []
    with ctx.checkpoint():
        for position, trust_id in enumerate(trust_ids):
            try:
                released.append(_verify(ctx, trust_id))
            except Exception:
                log.debug("batch aborted at position %d (trust %r)", position, trust_id)
                raise
    return released


def record_milestone(
    ctx: CallContext,
    trust_id: int,
    index: int,
    progress: int,
    details: str,
    proof: bytes,
) -> MilestoneRecord:
    trust = maps.require_trust(ctx.store, trust_id)
    if ctx.caller not in (trust.recipient, trust.grantor):
        raise Unauthorized("recipient or grantor only", trust_id=trust.id, caller=ctx.caller)
    if trust.status is not TrustStatus.ACTIVE:
        raise AlreadyTerminal(f"trust {trust.id} is {trust.status.value}", trust_id=trust.id)

    index = require_int_arg("index", index)
    if not 0 <= index < len(trust.milestones):
        raise InvalidInput("milestone index out of range", arg="index", index=index)
    progress = require_int_arg("progress", progress)
    if not 0 <= progress <= 100:
        raise InvalidInput("progress must be within 0..100", arg="progress")
    details = require_text_arg(ctx, "details", details, allow_empty=True)
    proof = _require_proof(proof)

    rec = MilestoneRecord(
        trust_id=trust.id,
        index=index,
        progress=progress,
        details=details,
        timestamp=ctx.now,
        proof=proof,
    )
    maps.save_milestone_record(ctx.store, rec)
    ctx.events.emit(
        b"MilestoneRecorded",
        {"trust_id": trust.id, "index": index, "progress": progress, "proof": proof},
    )
    return rec


def _require_proof(proof: Any) -> bytes:
    if not isinstance(proof, (bytes, bytearray)) or len(proof) != PROOF_DIGEST_LEN:
        raise InvalidInput(f"proof must be a {PROOF_DIGEST_LEN}-byte digest", arg="proof")
    return bytes(proof)


__all__ = ["verify_one", "verify_batch", "record_milestone"]
