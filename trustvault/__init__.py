"""
trustvault — milestone-gated fund custody.

A grantor deposits value into custody for a recipient; an admin releases it in
equal installments as milestones are verified. The package holds the state
machine (trust lifecycle, partial release, rate-limited creation, flags and
audits) and an in-process host that gives it atomic calls, a balance ledger
and a monotonic clock.

Entry point:

    from trustvault import TrustContract
    tc = TrustContract(admin="ops")

Lower layers:
- trustvault.ledger   one module per component, functions over a CallContext
- trustvault.state    records, the TrustStatus state machine, storage layout
- trustvault.runtime  host primitives (journaled storage, treasury, events, clock)
"""

from __future__ import annotations

from .config import TrustConfig, load_config
from .contract import TrustContract
from .errors import TrustError
from .result import CallResult, CallStatus
from .state.records import TrustStatus
from .version import __version__


def version() -> str:
    """Return the trustvault semantic version string."""
    return __version__


__all__ = [
    "__version__",
    "version",
    "TrustContract",
    "TrustConfig",
    "load_config",
    "TrustError",
    "TrustStatus",
    "CallResult",
    "CallStatus",
]
