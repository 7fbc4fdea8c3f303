"""
trustvault.ledger.access — caller and argument guards shared by the ledgers,
plus the two custody movements every component uses.

Value only enters custody through `deposit_into_custody` and only leaves it
through `release_from_custody`; both raise TransferFailed when the host
primitive declines, which aborts the whole call.
"""

from __future__ import annotations

from typing import Any

from ..errors import InvalidInput, TransferFailed, Unauthorized
from ..runtime.context import MAX_IDENTITY_LEN
from ..runtime.host import CallContext
from ..runtime.treasury import MAX_BALANCE_BITS
from ..state import maps


def require_admin(ctx: CallContext) -> str:
    admin = maps.get_admin(ctx.store)
    if admin is None or ctx.caller != admin:
        raise Unauthorized("admin only", caller=ctx.caller)
    return admin


def require_identity_arg(name: str, v: Any) -> str:
    if not isinstance(v, str) or not v or len(v) > MAX_IDENTITY_LEN:
        raise InvalidInput(f"{name} must be a non-empty identity string", arg=name)
    return v


def require_int_arg(name: str, v: Any) -> int:
    if not isinstance(v, int) or isinstance(v, bool):
        raise InvalidInput(f"{name} must be an integer", arg=name)
    return v


def require_positive_amount(name: str, v: Any) -> int:
    amount = require_int_arg(name, v)
    if amount <= 0:
        raise InvalidInput(f"{name} must be greater than zero", arg=name)
    if amount.bit_length() > MAX_BALANCE_BITS:
        raise InvalidInput(f"{name} exceeds {MAX_BALANCE_BITS}-bit limit", arg=name)
    return amount


def require_text_arg(ctx: CallContext, name: str, v: Any, *, allow_empty: bool = False) -> str:
    if not isinstance(v, str):
        raise InvalidInput(f"{name} must be text", arg=name)
    if not v and not allow_empty:
        raise InvalidInput(f"{name} must be non-empty", arg=name)
    if len(v.encode("utf-8")) > ctx.config.max_details_bytes:
        raise InvalidInput(f"{name} longer than {ctx.config.max_details_bytes} bytes", arg=name)
    return v


def deposit_into_custody(ctx: CallContext, frm: str, amount: int) -> None:
    if not ctx.treasury.transfer(amount, frm, ctx.custody):
        raise TransferFailed("deposit into custody declined", frm=frm, amount=amount)


def release_from_custody(ctx: CallContext, to: str, amount: int) -> None:
    if not ctx.treasury.transfer(amount, ctx.custody, to):
        raise TransferFailed("release from custody declined", to=to, amount=amount)


__all__ = [
    "require_admin",
    "require_identity_arg",
    "require_int_arg",
    "require_positive_amount",
    "require_text_arg",
    "deposit_into_custody",
    "release_from_custody",
]
