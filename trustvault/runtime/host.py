"""
trustvault.runtime.host — in-process execution host with call-level atomicity.

The custody core assumes a host that supplies caller identity, a monotonic time
counter, an atomic value-transfer primitive and key/value storage with
all-or-nothing rollback per call. `Host` bundles the in-process versions of
those four collaborators; `Host.atomic(caller)` opens one call:

    with host.atomic("alice") as ctx:
        custody.create(ctx, "bob", 100, ["design"])

On normal exit the storage journal, the treasury journal and the event sink
are committed together; if any exception escapes, all three are reverted and
the exception is re-raised. Nested `atomic()` blocks nest as checkpoints.

`CallContext` is what every ledger operation receives: it is the only way the
core reaches state, so there is no ambient global.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

from ..config import TrustConfig, load_config
from .context import CallEnv, Clock
from .events import EventSink
from .storage import Journal, MemoryBackend, StorageBackend
from .treasury import Treasury

log = logging.getLogger(__name__)


@contextmanager
def staged(store: Journal, treasury: Treasury, events: EventSink) -> Iterator[None]:
    """
    Open one checkpoint on storage, balances and events; commit all three on
    normal exit, revert all three if an exception escapes.
    """
    store.begin()
    treasury.journal.begin()
    events.begin()
    try:
        yield
    except BaseException:
        store.revert()
        treasury.journal.revert()
        events.revert()
        raise
    store.commit()
    treasury.journal.commit()
    events.commit()


@dataclass(frozen=True)
class CallContext:
    """Everything one call may touch."""

    env: CallEnv
    store: Journal
    treasury: Treasury
    events: EventSink
    config: TrustConfig

    @property
    def caller(self) -> str:
        return self.env.caller

    @property
    def now(self) -> int:
        return self.env.now

    @property
    def custody(self) -> str:
        return self.config.custody_address

    def checkpoint(self):
        """Nested all-or-nothing scope inside the current call."""
        return staged(self.store, self.treasury, self.events)


class Host:
    def __init__(
        self,
        *,
        config: Optional[TrustConfig] = None,
        storage_backend: Optional[StorageBackend] = None,
        balance_backend: Optional[StorageBackend] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.config = config if config is not None else load_config()
        self.store = Journal(storage_backend if storage_backend is not None else MemoryBackend())
        self.treasury = Treasury(balance_backend)
        self.events = EventSink()
        self.clock = clock if clock is not None else Clock()

    @contextmanager
    def atomic(self, caller: str) -> Iterator[CallContext]:
        ctx = CallContext(
            env=CallEnv(caller=caller, now=self.clock.height),
            store=self.store,
            treasury=self.treasury,
            events=self.events,
            config=self.config,
        )
        try:
            with staged(self.store, self.treasury, self.events):
                yield ctx
        except BaseException as e:
            log.debug("call by %s reverted at %d: %s", caller, ctx.now, e)
            raise


__all__ = ["staged", "CallContext", "Host"]
