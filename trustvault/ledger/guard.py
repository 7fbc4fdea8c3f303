# -*- coding: utf-8 -*-
"""
trustvault.ledger.guard
=======================

Security guard around trust creation, plus the platform switches it consults.

Checks, in order, for the calling grantor:

1. Rate limit. Load (last_action, count). If more than `rate_window` units
   passed since last_action the prior count is 0 (a new window); otherwise
   the prior count must be below `max_per_window` (RateExceeded).
2. Suspicious amount. If `amount > high_value_threshold` and the prior count
   (before this action is recorded) is already `>= consecutive_limit`, fail
   SuspiciousPattern.

On passing both, (now, prior + 1) is written for the grantor. Everything runs
inside the caller's atomic call, so a later failure in the same call (frozen
platform, unapproved recipient, declined deposit) also undoes that write.

Entry points
------------
- secure_create(ctx, recipient, amount, milestones)     guard → create
- protected_create(ctx, recipient, amount, milestones)  guard → not frozen → approved → create
- set_platform_status(ctx, frozen)                      admin toggle
- set_recipient_approval(ctx, recipient, approved)      admin allow-list edit
- is_recipient_approved(store, recipient)               read-only

Events
------
- b"PlatformStatusChanged"    {frozen}
- b"RecipientApprovalChanged" {recipient, approved}
"""
from __future__ import annotations

import logging
from typing import Sequence

from ..errors import NotApproved, PlatformFrozen, RateExceeded, SuspiciousPattern
from ..runtime.host import CallContext
from ..runtime.storage import Journal
from ..state import maps
from ..state.records import GrantorActivity
from . import custody
from .access import require_admin, require_identity_arg, require_int_arg

log = logging.getLogger(__name__)


def prior_count(ctx: CallContext, grantor: str) -> int:
    """Creations already counted in the grantor's current window."""
    act = maps.load_activity(ctx.store, grantor)
    if act is None or ctx.now - act.last_action > ctx.config.rate_window:
        return 0
    return act.count


def check_and_record(ctx: CallContext, amount: int) -> GrantorActivity:
    cfg = ctx.config
    grantor = ctx.caller
    amount = require_int_arg("amount", amount)

    prior = prior_count(ctx, grantor)
    if prior >= cfg.max_per_window:
        log.warning("rate limit hit for %s: %d creations in window", grantor, prior)
        raise RateExceeded(
            f"at most {cfg.max_per_window} creations per {cfg.rate_window} units",
            grantor=grantor,
            count=prior,
        )
    if amount > cfg.high_value_threshold and prior >= cfg.consecutive_limit:
        log.warning("suspicious creation by %s: amount=%d after %d creations", grantor, amount, prior)
        raise SuspiciousPattern(
            "high-value creation after repeated creations",
            grantor=grantor,
            amount=amount,
            count=prior,
        )

    act = GrantorActivity(last_action=ctx.now, count=prior + 1)
    maps.save_activity(ctx.store, grantor, act)
    return act


def secure_create(ctx: CallContext, recipient: str, amount: int, milestones: Sequence[str]) -> int:
    check_and_record(ctx, amount)
    return custody.create(ctx, recipient, amount, milestones)


def protected_create(ctx: CallContext, recipient: str, amount: int, milestones: Sequence[str]) -> int:
    check_and_record(ctx, amount)
    if maps.is_frozen(ctx.store):
        raise PlatformFrozen()
    recipient = require_identity_arg("recipient", recipient)
    if not maps.is_approved(ctx.store, recipient):
        raise NotApproved(f"recipient {recipient} is not approved", recipient=recipient)
    return custody.create(ctx, recipient, amount, milestones)


def set_platform_status(ctx: CallContext, frozen: bool) -> bool:
    require_admin(ctx)
    frozen = bool(frozen)
    maps.set_frozen(ctx.store, frozen)
    ctx.events.emit(b"PlatformStatusChanged", {"frozen": frozen})
    log.info("platform %s by %s", "frozen" if frozen else "unfrozen", ctx.caller)
    return frozen


def set_recipient_approval(ctx: CallContext, recipient: str, approved: bool) -> bool:
    require_admin(ctx)
    recipient = require_identity_arg("recipient", recipient)
    approved = bool(approved)
    maps.set_approved(ctx.store, recipient, approved)
    ctx.events.emit(b"RecipientApprovalChanged", {"recipient": recipient, "approved": approved})
    return approved


def is_recipient_approved(store: Journal, recipient: str) -> bool:
    return maps.is_approved(store, recipient)


__all__ = [
    "prior_count",
    "check_and_record",
    "secure_create",
    "protected_create",
    "set_platform_status",
    "set_recipient_approval",
    "is_recipient_approved",
]
