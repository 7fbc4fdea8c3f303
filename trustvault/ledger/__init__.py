"""
trustvault.ledger — the custody state machine, one module per component.

- custody       create / cancel / revert_expired / extend / increase
- verification  verify_one / verify_batch / record_milestone
- split         create_split
- guard         secure_create / protected_create / platform + allow-list switches
- registry      flag / submit_audit

Every operation takes a CallContext first and must run inside Host.atomic().
"""

from __future__ import annotations

from . import custody as custody
from . import guard as guard
from . import registry as registry
from . import split as split
from . import verification as verification

__all__ = ["custody", "guard", "registry", "split", "verification"]
