"""
trustvault.ledger.registry — flags and audits attached to trusts.

flag(ctx, trust_id, reason)
    Admin or the trust's recipient marks the trust FLAGGED. A flagged trust
    takes no further verifications, cancels, extensions or increases; only an
    admin revert after expiry moves it on. There is no unflag.

submit_audit(ctx, trust_id, findings)
    Anyone may open the single audit a trust can have, posting
    `audit_deposit` into custody. The AuditRecord is persisted with
    completed=False; a second submission fails AuditExists.
"""

from __future__ import annotations

import logging

from ..errors import AuditExists, Unauthorized
from ..runtime.host import CallContext
from ..state import maps
from ..state.records import AuditRecord, FlaggedTrust, TrustStatus
from .access import deposit_into_custody, require_text_arg

log = logging.getLogger(__name__)


def flag(ctx: CallContext, trust_id: int, reason: str) -> FlaggedTrust:
    trust = maps.require_trust(ctx.store, trust_id)
    if ctx.caller != trust.recipient and ctx.caller != maps.get_admin(ctx.store):
        raise Unauthorized("admin or recipient only", trust_id=trust.id, caller=ctx.caller)
    reason = require_text_arg(ctx, "reason", reason)
    status = trust.status.transition(TrustStatus.FLAGGED)

    maps.save_trust(ctx.store, trust.replace(status=status))
    rec = FlaggedTrust(trust_id=trust.id, flagger=ctx.caller, reason=reason, flagged_at=ctx.now)
    maps.save_flag(ctx.store, rec)

    ctx.events.emit(b"TrustFlagged", {"trust_id": trust.id, "flagger": ctx.caller, "reason": reason})
    log.info("trust %d flagged by %s", trust.id, ctx.caller)
    return rec


def submit_audit(ctx: CallContext, trust_id: int, findings: str) -> AuditRecord:
    trust = maps.require_trust(ctx.store, trust_id)
    if maps.load_audit(ctx.store, trust.id) is not None:
        raise AuditExists(f"trust {trust.id} already has an audit", trust_id=trust.id)
    findings = require_text_arg(ctx, "findings", findings)

    deposit = ctx.config.audit_deposit
    deposit_into_custody(ctx, ctx.caller, deposit)
    rec = AuditRecord(
        trust_id=trust.id,
        auditor=ctx.caller,
        findings=findings,
        deposit=deposit,
        completed=False,
        submitted_at=ctx.now,
    )
    maps.save_audit(ctx.store, rec)

    ctx.events.emit(b"AuditSubmitted", {"trust_id": trust.id, "auditor": ctx.caller, "deposit": deposit})
    log.info("audit opened on trust %d by %s", trust.id, ctx.caller)
    return rec


__all__ = ["flag", "submit_audit"]
