"""
trustvault.runtime.storage — key/value storage with journaled checkpoints.

The custody core persists every record as bytes under a prefixed key. This
module provides the substrate:

- StorageBackend: minimal protocol (get/set/delete/exists) so a host can plug
  in a real state DB.
- MemoryBackend: thread-safe in-memory default for local runs and tests.
- Journal: copy-on-write overlays over a backend with nested checkpoints.
  Writes go to the top overlay; reads consult overlays top → base.
  `commit()` merges the top overlay into its parent (or into the backend when
  it is the last one); `revert()` discards it. With no open checkpoint, writes
  go straight to the backend.

Intended usage
--------------
    j = Journal(MemoryBackend())
    j.begin()
    j.set(b"k", b"v")
    j.revert()            # b"k" never reaches the backend

Keys must be non-empty bytes within `max_key_bytes`; values bytes within
`max_value_bytes`. Violations raise StorageError.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Iterator, List, Optional, Protocol, Tuple, runtime_checkable

log = logging.getLogger(__name__)

DEFAULT_MAX_KEY_BYTES = 64
DEFAULT_MAX_VALUE_BYTES = 128 * 1024

# Deletion marker inside an overlay.
_DELETED = None


class StorageError(ValueError):
    """Key/value validation failure or journal misuse."""


# ---------------------------- Backend API ---------------------------- #


@runtime_checkable
class StorageBackend(Protocol):
    """Minimal backend interface for persistent storage."""

    def get(self, key: bytes) -> Optional[bytes]: ...
    def set(self, key: bytes, value: bytes) -> None: ...
    def delete(self, key: bytes) -> None: ...
    def exists(self, key: bytes) -> bool: ...


class MemoryBackend:
    """Thread-safe in-memory backend for local runs and tests."""

    def __init__(self) -> None:
        self._store: Dict[bytes, bytes] = {}
        self._lock = threading.RLock()

    def get(self, key: bytes) -> Optional[bytes]:
        with self._lock:
            return self._store.get(key)

    def set(self, key: bytes, value: bytes) -> None:
        with self._lock:
            self._store[key] = value

    def delete(self, key: bytes) -> None:
        with self._lock:
            self._store.pop(key, None)

    def exists(self, key: bytes) -> bool:
        with self._lock:
            return key in self._store

    def items(self) -> Iterator[Tuple[bytes, bytes]]:
        with self._lock:
            return iter(sorted(self._store.items()))

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


# ------------------------------ Journal ------------------------------ #


class Journal:
    """
    A copy-on-write write journal with nested checkpoints over a StorageBackend.

    API highlights
    --------------
    - begin() / commit() / revert() / depth()
    - get(), set(), delete(), exists()
    - get_int(), set_int() for big-endian unsigned integers
    """

    def __init__(
        self,
        backend: Optional[StorageBackend] = None,
        *,
        max_key_bytes: int = DEFAULT_MAX_KEY_BYTES,
        max_value_bytes: int = DEFAULT_MAX_VALUE_BYTES,
    ) -> None:
        if backend is None:
            backend = MemoryBackend()
        for attr in ("get", "set", "delete", "exists"):
            if not hasattr(backend, attr):
                raise StorageError(f"backend missing method: {attr}")
        self._backend = backend
        self._max_key = int(max_key_bytes)
        self._max_value = int(max_value_bytes)
        self._layers: List[Dict[bytes, Optional[bytes]]] = []

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    # --------------------------------------------------------------------- #
    # Checkpointing
    # --------------------------------------------------------------------- #

    def depth(self) -> int:
        """Number of open checkpoints (0 when writing straight to the backend)."""
        return len(self._layers)

    def begin(self) -> int:
        """Open a checkpoint. Returns the new depth."""
        self._layers.append({})
        return len(self._layers)

    def commit(self) -> None:
        """Merge the top overlay into its parent, or apply it to the backend."""
        if not self._layers:
            raise StorageError("commit without an open checkpoint")
        top = self._layers.pop()
        if self._layers:
            self._layers[-1].update(top)
            return
        for k, v in top.items():
            if v is _DELETED:
                self._backend.delete(k)
            else:
                self._backend.set(k, v)
        log.debug("journal applied %d writes to backend", len(top))

    def revert(self) -> None:
        """Discard the top overlay."""
        if not self._layers:
            raise StorageError("revert without an open checkpoint")
        dropped = self._layers.pop()
        log.debug("journal discarded %d staged writes", len(dropped))

    # --------------------------------------------------------------------- #
    # Key/value access
    # --------------------------------------------------------------------- #

    def _check_key(self, key: bytes) -> bytes:
        if not isinstance(key, (bytes, bytearray)):
            raise StorageError("storage key must be bytes")
        if len(key) == 0:
            raise StorageError("storage key must be non-empty")
        if len(key) > self._max_key:
            raise StorageError(f"storage key too long (>{self._max_key} bytes)")
        return bytes(key)

    def _check_value(self, value: bytes) -> bytes:
        if not isinstance(value, (bytes, bytearray)):
            raise StorageError("storage value must be bytes")
        if len(value) > self._max_value:
            raise StorageError(f"storage value too large (>{self._max_value} bytes)")
        return bytes(value)

    def get(self, key: bytes) -> Optional[bytes]:
        """Return the value for `key`, or None if not set."""
        k = self._check_key(key)
        for layer in reversed(self._layers):
            if k in layer:
                return layer[k]
        return self._backend.get(k)

    def set(self, key: bytes, value: bytes) -> None:
        k = self._check_key(key)
        v = self._check_value(value)
        if self._layers:
            self._layers[-1][k] = v
        else:
            self._backend.set(k, v)

    def delete(self, key: bytes) -> None:
        k = self._check_key(key)
        if self._layers:
            self._layers[-1][k] = _DELETED
        else:
            self._backend.delete(k)

    def exists(self, key: bytes) -> bool:
        return self.get(key) is not None

    # ------------------------------ typed helpers ------------------------------

    def get_int(self, key: bytes, default: int = 0) -> int:
        raw = self.get(key)
        if raw is None:
            return default
        return int.from_bytes(raw, "big", signed=False)

    def set_int(self, key: bytes, value: int) -> None:
        if not isinstance(value, int) or value < 0:
            raise StorageError("set_int value must be a non-negative int")
        width = max(1, (value.bit_length() + 7) // 8)
        self.set(key, value.to_bytes(width, "big"))


__all__ = [
    "DEFAULT_MAX_KEY_BYTES",
    "DEFAULT_MAX_VALUE_BYTES",
    "StorageError",
    "StorageBackend",
    "MemoryBackend",
    "Journal",
]
