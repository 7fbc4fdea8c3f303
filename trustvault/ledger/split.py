# -*- coding: utf-8 -*-
"""
trustvault.ledger.split
=======================

One-grantor-to-many-recipients escrow with percentage shares.

`create_split` escrows the total from the caller and records the beneficiary
list. Shares are whole percentages and must sum to exactly 100; the list is
immutable once stored. This core has no release path for split trusts: the
escrowed total stays in custody until a distribution operation exists.

Revert messages map to:
- empty list / zero amount / bad recipient / duplicates -> InvalidInput
- more than `max_beneficiaries` entries                 -> TooManyRecipients
- non-positive share or sum != 100                      -> DistributionInvalid

Events
------
- b"SplitCreated" {group_id, grantor, amount, beneficiaries}
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, List, Sequence, Tuple, Union

from ..errors import DistributionInvalid, InvalidInput, TooManyRecipients
from ..runtime.host import CallContext
from ..state import maps
from ..state.records import Beneficiary, SplitTrust, TrustStatus
from .access import (deposit_into_custody, require_identity_arg,
                     require_int_arg, require_positive_amount)

log = logging.getLogger(__name__)

TOTAL_SHARES = 100

BeneficiaryLike = Union[Beneficiary, Tuple[str, int], Sequence[Any]]


def _coerce(entry: BeneficiaryLike) -> Beneficiary:
    if isinstance(entry, Beneficiary):
        return entry
    if isinstance(entry, (str, bytes)) or not isinstance(entry, Sequence) or len(entry) != 2:
        raise InvalidInput("beneficiary must be a (recipient, share) pair", arg="beneficiaries")
    recipient, share = entry
    return Beneficiary(
        recipient=require_identity_arg("recipient", recipient),
        share=require_int_arg("share", share),
    )


def _validate(ctx: CallContext, entries: Iterable[BeneficiaryLike]) -> Tuple[Beneficiary, ...]:
    out: List[Beneficiary] = [_coerce(e) for e in entries]
    seen = set()
    for b in out:
        require_identity_arg("recipient", b.recipient)
        require_int_arg("share", b.share)
        if b.recipient == ctx.caller:
            raise InvalidInput("grantor cannot be a beneficiary", arg="beneficiaries")
        if b.recipient in seen:
            raise InvalidInput(f"duplicate beneficiary {b.recipient}", arg="beneficiaries")
        seen.add(b.recipient)
        if b.share <= 0:
            raise DistributionInvalid("each share must be positive", recipient=b.recipient, share=b.share)
    total = sum(b.share for b in out)
    if total != TOTAL_SHARES:
        raise DistributionInvalid(f"shares sum to {total}, expected {TOTAL_SHARES}", total=total)
    return tuple(out)


def create_split(ctx: CallContext, beneficiaries: Sequence[BeneficiaryLike], amount: int) -> int:
    if isinstance(beneficiaries, (str, bytes)) or not isinstance(beneficiaries, Sequence):
        raise InvalidInput("beneficiaries must be a sequence", arg="beneficiaries")
    if len(beneficiaries) == 0:
        raise InvalidInput("at least one beneficiary is required", arg="beneficiaries")
    if len(beneficiaries) > ctx.config.max_beneficiaries:
        raise TooManyRecipients(
            f"at most {ctx.config.max_beneficiaries} beneficiaries allowed",
            count=len(beneficiaries),
        )
    amount = require_positive_amount("amount", amount)
    entries = _validate(ctx, beneficiaries)

    deposit_into_custody(ctx, ctx.caller, amount)

    group_id = maps.issue_split_id(ctx.store)
    maps.save_split(
        ctx.store,
        SplitTrust(
            id=group_id,
            grantor=ctx.caller,
            beneficiaries=entries,
            total_amount=amount,
            created_at=ctx.now,
            status=TrustStatus.ACTIVE,
        ),
    )
    ctx.events.emit(
        b"SplitCreated",
        {"group_id": group_id, "grantor": ctx.caller, "amount": amount, "beneficiaries": len(entries)},
    )
    log.info("split %d created by %s: amount=%d beneficiaries=%d", group_id, ctx.caller, amount, len(entries))
    return group_id


__all__ = ["TOTAL_SHARES", "create_split"]
