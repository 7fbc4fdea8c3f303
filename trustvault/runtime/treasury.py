"""
trustvault.runtime.treasury — deterministic balance ledger and transfer primitive.

This is the in-process stand-in for the host's atomic value-transfer primitive:

- balance_of(addr) -> int
- transfer(amount, frm, to) -> bool     # False (and no effect) when declined
- credit(addr, amount)                  # host/testing hook: fund an account

Balances live in a Journal, so a transfer performed inside a checkpoint is
undone when the checkpoint is reverted. Amounts are non-negative ints capped at
MAX_BALANCE_BITS.
"""

from __future__ import annotations

import logging
from hashlib import sha3_256
from typing import Optional

from .storage import Journal, MemoryBackend, StorageBackend

log = logging.getLogger(__name__)

MAX_BALANCE_BITS = 256
_MAX_BALANCE = (1 << MAX_BALANCE_BITS) - 1

_P_BAL = b"bal:"


class TreasuryError(ValueError):
    """Malformed address or amount handed to the treasury."""


def _check_addr(addr: str) -> None:
    if not isinstance(addr, str) or not addr:
        raise TreasuryError("address must be a non-empty string")


def _check_amount(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise TreasuryError("amount must be int")
    if amount.bit_length() > MAX_BALANCE_BITS:
        raise TreasuryError(f"amount exceeds {MAX_BALANCE_BITS}-bit limit")


def _key(addr: str) -> bytes:
    return _P_BAL + sha3_256(addr.encode("utf-8")).digest()


class Treasury:
    """Journaled balance ledger keyed by identity."""

    def __init__(self, backend: Optional[StorageBackend] = None) -> None:
        self.journal = Journal(backend if backend is not None else MemoryBackend())

    def balance_of(self, addr: str) -> int:
        _check_addr(addr)
        return self.journal.get_int(_key(addr))

    def credit(self, addr: str, amount: int) -> None:
        """Host/testing helper: increase balance of `addr` by `amount`."""
        _check_addr(addr)
        _check_amount(amount)
        if amount < 0:
            raise TreasuryError("credit amount must be non-negative")
        new = self.balance_of(addr) + amount
        if new > _MAX_BALANCE:
            raise TreasuryError("balance overflow")
        self.journal.set_int(_key(addr), new)

    def transfer(self, amount: int, frm: str, to: str) -> bool:
        """
        Move `amount` from `frm` to `to`.

        Returns False without touching any balance when the sender is short,
        the amount is negative or the recipient would overflow. A zero amount
        succeeds as a no-op.
        """
        _check_addr(frm)
        _check_addr(to)
        _check_amount(amount)
        if amount < 0:
            log.debug("transfer declined: negative amount %d", amount)
            return False
        if amount == 0 or frm == to:
            return True

        cur_from = self.balance_of(frm)
        if amount > cur_from:
            log.debug("transfer declined: %s holds %d < %d", frm, cur_from, amount)
            return False
        cur_to = self.balance_of(to)
        if cur_to + amount > _MAX_BALANCE:
            log.debug("transfer declined: %s balance would overflow", to)
            return False

        self.journal.set_int(_key(frm), cur_from - amount)
        self.journal.set_int(_key(to), cur_to + amount)
        return True


__all__ = ["MAX_BALANCE_BITS", "TreasuryError", "Treasury"]
