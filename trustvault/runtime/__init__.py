"""
trustvault runtime — in-process host primitives for the custody core.

Convenience re-exports so callers can do:

    from trustvault.runtime import Host, CallContext, CallEnv, Clock
    from trustvault.runtime import storage, treasury, events  # module namespaces

Nothing here reads wall-clock time or system randomness; the clock only moves
when the host advances it.
"""

from __future__ import annotations

from . import events as events
from . import storage as storage
from . import treasury as treasury
from .context import CallEnv, Clock, ContextError
from .host import CallContext, Host

__all__ = [
    "Host",
    "CallContext",
    "CallEnv",
    "Clock",
    "ContextError",
    "events",
    "storage",
    "treasury",
]
