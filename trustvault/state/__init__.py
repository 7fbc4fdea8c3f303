"""
trustvault.state — record types, the trust state machine and the storage layout.
"""

from __future__ import annotations

from . import maps as maps
from .codec import CodecError
from .records import (AuditRecord, Beneficiary, FlaggedTrust, GrantorActivity,
                      MilestoneRecord, RecoveryRequest, SplitTrust, Trust,
                      TrustProxy, TrustStatus)

__all__ = [
    "maps",
    "CodecError",
    "TrustStatus",
    "Trust",
    "Beneficiary",
    "SplitTrust",
    "MilestoneRecord",
    "GrantorActivity",
    "FlaggedTrust",
    "AuditRecord",
    "TrustProxy",
    "RecoveryRequest",
]
