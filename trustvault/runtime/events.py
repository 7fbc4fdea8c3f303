"""
trustvault.runtime.events — ordered event log for contract calls.

Ledger code emits `(name: bytes, args: mapping)` pairs through `EventSink.emit`.
Names are non-empty bytes of at most MAX_EVENT_NAME_BYTES; keys are ASCII
identifiers; values are bytes, text, ints within MAX_INT_BITS, or booleans.
The sink keeps a stack of marks that `Host` pushes and pops with the storage
journal, so a reverted call drops exactly the events it emitted.

`to_canonical` renders events as `{"k", "t", "v"}` triples for CallResult.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Sequence, Tuple

MAX_EVENT_NAME_BYTES = 64
MAX_KEY_LEN = 64
MAX_BYTES_LEN = 4096
MAX_INT_BITS = 256

# Argument names follow Python identifier rules (ASCII only).
_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

ArgValue = Any  # bytes | str | int | bool, checked at emit time


class EventError(ValueError):
    """Malformed event name or argument."""


@dataclass(frozen=True)
class Event:
    """In-process representation of an emitted event."""

    name: bytes
    args: Dict[str, ArgValue]


@dataclass(frozen=True)
class CanonicalEvent:
    """
    Canonical event representation for call results:

        name: decoded event name
        args: tuple of {"k": name, "t": tag, "v": value}, where the tag is
              "b" for bytes (value as 0x-hex), "s" for text,
              "i" for integers and "z" for booleans
    """

    name: str
    args: Sequence[Mapping[str, Any]]


def _check_name(name: Any) -> bytes:
    if not isinstance(name, (bytes, bytearray)) or len(name) == 0:
        raise EventError("event name must be non-empty bytes")
    if len(name) > MAX_EVENT_NAME_BYTES:
        raise EventError("event name too long")
    return bytes(name)


def _check_key(key: Any) -> str:
    if not isinstance(key, str) or not key or len(key) > MAX_KEY_LEN:
        raise EventError(f"bad event key: {key!r}")
    if not _KEY_RE.match(key):
        raise EventError(f"event key has invalid characters: {key!r}")
    return key


def _check_value(value: Any) -> ArgValue:
    if isinstance(value, (bytes, bytearray)):
        if len(value) > MAX_BYTES_LEN:
            raise EventError("event bytes arg too long")
        return bytes(value)
    if isinstance(value, str):
        if len(value.encode("utf-8")) > MAX_BYTES_LEN:
            raise EventError("event text arg too long")
        return value
    if isinstance(value, bool):
        # before the int branch: True would otherwise pass as 1
        return value
    if isinstance(value, int):
        if value.bit_length() > MAX_INT_BITS:
            raise EventError("event int arg out of range")
        return int(value)
    raise EventError(f"unsupported event arg type: {type(value).__name__}")


class EventSink:
    """Ordered event log with checkpoint/rollback aligned to the storage journal."""

    def __init__(self) -> None:
        self._events: List[Event] = []
        self._marks: List[int] = []

    def emit(self, name: bytes, args: Mapping[str, Any]) -> None:
        bname = _check_name(name)
        if not isinstance(args, Mapping):
            raise EventError("event args must be a mapping")
        checked = {_check_key(k): _check_value(v) for k, v in args.items()}
        self._events.append(Event(bname, checked))

    def begin(self) -> None:
        self._marks.append(len(self._events))

    def commit(self) -> None:
        self._marks.pop()

    def revert(self) -> None:
        del self._events[self._marks.pop():]

    def since(self, mark: int) -> Tuple[Event, ...]:
        return tuple(self._events[mark:])

    def __len__(self) -> int:
        return len(self._events)

    def get_events(self) -> List[Event]:
        return list(self._events)


def to_canonical(events: Sequence[Event]) -> List[CanonicalEvent]:
    out: List[CanonicalEvent] = []
    for ev in events:
        enc: List[Dict[str, Any]] = []
        for k, v in ev.args.items():
            if isinstance(v, bytes):
                enc.append({"k": k, "t": "b", "v": "0x" + v.hex()})
            elif isinstance(v, str):
                enc.append({"k": k, "t": "s", "v": v})
            elif isinstance(v, bool):
                enc.append({"k": k, "t": "z", "v": v})
            else:
                enc.append({"k": k, "t": "i", "v": int(v)})
        out.append(CanonicalEvent(name=ev.name.decode("utf-8", errors="replace"), args=tuple(enc)))
    return out


__all__ = [
    "Event",
    "CanonicalEvent",
    "EventError",
    "EventSink",
    "to_canonical",
    "MAX_EVENT_NAME_BYTES",
    "MAX_KEY_LEN",
    "MAX_BYTES_LEN",
    "MAX_INT_BITS",
]
