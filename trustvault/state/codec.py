"""
trustvault.state.codec — canonical CBOR encoding for persisted records.

Records are stored as canonical CBOR maps (RFC 8949 §4.2.1 deterministic
encoding) so the same record always produces the same bytes. Map keys must be
text. Key helpers build the fixed-width integer parts of storage keys.
"""

from __future__ import annotations

from hashlib import sha3_256
from typing import Any, Mapping

import cbor2

from ..runtime.storage import DEFAULT_MAX_KEY_BYTES


class CodecError(ValueError):
    """Record bytes could not be encoded or decoded."""


def dumps_canonical(obj: Mapping[str, Any]) -> bytes:
    for k in obj.keys():
        if not isinstance(k, str):
            raise CodecError(f"non-text map key encountered (type={type(k).__name__})")
    try:
        return cbor2.dumps(dict(obj), canonical=True)
    except (cbor2.CBOREncodeError, TypeError, ValueError) as e:
        raise CodecError(f"cannot encode record: {e}") from e


def loads(data: bytes) -> Any:
    try:
        return cbor2.loads(data)
    except (cbor2.CBORDecodeError, ValueError) as e:
        raise CodecError(f"cannot decode record: {e}") from e


def u64(n: int) -> bytes:
    if not isinstance(n, int) or n < 0 or n >= 1 << 64:
        raise CodecError(f"id out of u64 range: {n!r}")
    return n.to_bytes(8, "big")


def u8(n: int) -> bytes:
    if not isinstance(n, int) or n < 0 or n > 0xFF:
        raise CodecError(f"index out of u8 range: {n!r}")
    return bytes([n])


def identity_key(prefix: bytes, identity: str) -> bytes:
    """prefix + utf8(identity), hashed when it would exceed the storage key cap."""
    raw = identity.encode("utf-8")
    if len(prefix) + len(raw) <= DEFAULT_MAX_KEY_BYTES:
        return prefix + raw
    return prefix + b"#" + sha3_256(raw).digest()


__all__ = ["CodecError", "dumps_canonical", "loads", "u64", "u8", "identity_key"]
