from __future__ import annotations

import pytest

from trustvault.runtime.context import CallEnv, Clock, ContextError
from trustvault.runtime.events import EventError, EventSink, to_canonical
from trustvault.runtime.host import Host, staged
from trustvault.runtime.storage import Journal, MemoryBackend, StorageError
from trustvault.runtime.treasury import Treasury, TreasuryError


# =====================================================
# Journal
# =====================================================


def test_journal_without_checkpoint_writes_through():
    be = MemoryBackend()
    j = Journal(be)
    j.set(b"k", b"v")
    assert be.get(b"k") == b"v"
    j.delete(b"k")
    assert not be.exists(b"k")


def test_journal_revert_discards_and_commit_applies():
    be = MemoryBackend()
    be.set(b"keep", b"1")
    j = Journal(be)

    j.begin()
    j.set(b"a", b"x")
    j.delete(b"keep")
    assert j.get(b"a") == b"x"
    assert j.get(b"keep") is None
    j.revert()
    assert j.get(b"a") is None
    assert j.get(b"keep") == b"1"

    j.begin()
    j.set(b"a", b"y")
    j.delete(b"keep")
    j.commit()
    assert be.get(b"a") == b"y"
    assert not be.exists(b"keep")
    assert j.depth() == 0


def test_journal_nested_checkpoints_behave_as_a_stack():
    be = MemoryBackend()
    j = Journal(be)
    j.begin()
    j.set(b"outer", b"1")
    j.begin()
    j.set(b"inner", b"2")
    j.set(b"outer", b"overwritten")
    j.revert()
    assert j.get(b"inner") is None
    assert j.get(b"outer") == b"1"

    j.begin()
    j.set(b"inner", b"3")
    j.commit()
    assert be.get(b"inner") is None  # still staged in the outer layer
    j.commit()
    assert dict(be.items()) == {b"inner": b"3", b"outer": b"1"}


def test_journal_ints_and_validation():
    j = Journal()
    assert j.get_int(b"n") == 0
    assert j.get_int(b"n", default=7) == 7
    j.set_int(b"n", 0)
    assert j.get_int(b"n") == 0
    j.set_int(b"n", 1 << 70)
    assert j.get_int(b"n") == 1 << 70

    with pytest.raises(StorageError):
        j.set_int(b"n", -1)
    with pytest.raises(StorageError):
        j.set(b"", b"v")
    with pytest.raises(StorageError):
        j.set(b"k" * 65, b"v")
    with pytest.raises(StorageError):
        j.set("text-key", b"v")  # type: ignore[arg-type]
    with pytest.raises(StorageError):
        j.commit()
    with pytest.raises(StorageError):
        j.revert()


def test_journal_rejects_backend_without_api():
    with pytest.raises(StorageError):
        Journal(object())  # type: ignore[arg-type]


# =====================================================
# Treasury
# =====================================================


def test_transfer_moves_value():
    t = Treasury()
    t.credit("a", 100)
    assert t.transfer(40, "a", "b") is True
    assert t.balance_of("a") == 60
    assert t.balance_of("b") == 40


@pytest.mark.parametrize("amount", [-1, 101])
def test_transfer_declines_without_effect(amount):
    t = Treasury()
    t.credit("a", 100)
    assert t.transfer(amount, "a", "b") is False
    assert t.balance_of("a") == 100
    assert t.balance_of("b") == 0


def test_transfer_zero_and_self_are_noops():
    t = Treasury()
    assert t.transfer(0, "a", "b") is True
    t.credit("a", 5)
    assert t.transfer(5, "a", "a") is True
    assert t.balance_of("a") == 5


def test_treasury_input_errors():
    t = Treasury()
    with pytest.raises(TreasuryError):
        t.balance_of("")
    with pytest.raises(TreasuryError):
        t.credit("a", -1)
    with pytest.raises(TreasuryError):
        t.transfer(1.5, "a", "b")  # type: ignore[arg-type]
    with pytest.raises(TreasuryError):
        t.credit("a", 1 << 256)


def test_treasury_transfer_rolls_back_with_its_journal():
    t = Treasury()
    t.credit("a", 10)
    t.journal.begin()
    assert t.transfer(10, "a", "b")
    t.journal.revert()
    assert t.balance_of("a") == 10
    assert t.balance_of("b") == 0


# =====================================================
# Events
# =====================================================


def test_event_sink_marks_roll_back():
    s = EventSink()
    s.emit(b"A", {"x": 1})
    s.begin()
    s.emit(b"B", {"y": b"\x01"})
    s.begin()
    s.emit(b"C", {})
    s.revert()
    s.commit()
    assert [e.name for e in s.get_events()] == [b"A", b"B"]
    assert [e.name for e in s.since(1)] == [b"B"]


@pytest.mark.parametrize(
    "name,args",
    [
        (b"", {}),
        ("Text", {}),
        (b"X" * 65, {}),
        (b"Ok", {"bad-key": 1}),
        (b"Ok", {"1st": 1}),
        (b"Ok", {"v": 1.5}),
        (b"Ok", {"v": 1 << 300}),
        (b"Ok", [("k", 1)]),
    ],
)
def test_event_validation(name, args):
    with pytest.raises(EventError):
        EventSink().emit(name, args)


def test_canonical_encoding_tags_each_type():
    s = EventSink()
    s.emit(b"Mixed", {"b": b"\xab", "s": "hi", "z": True, "i": 3})
    (ev,) = to_canonical(s.get_events())
    assert ev.name == "Mixed"
    assert list(ev.args) == [
        {"k": "b", "t": "b", "v": "0xab"},
        {"k": "s", "t": "s", "v": "hi"},
        {"k": "z", "t": "z", "v": True},
        {"k": "i", "t": "i", "v": 3},
    ]


# =====================================================
# Context / clock
# =====================================================


def test_call_env_validation():
    env = CallEnv.from_dict({"caller": "alice", "now": 3})
    assert env.to_dict() == {"caller": "alice", "now": 3}
    for bad in ({"caller": "", "now": 0}, {"caller": "a", "now": -1}, {"caller": 5, "now": 0}, {"now": 0}):
        with pytest.raises(ContextError):
            CallEnv.from_dict(bad)
    with pytest.raises(ContextError):
        CallEnv(caller="x" * 129, now=0)


def test_clock_is_monotonic():
    c = Clock()
    assert c.advance() == 1
    assert c.advance(9) == 10
    assert c.set_height(10) == 10
    with pytest.raises(ContextError):
        c.set_height(9)
    with pytest.raises(ContextError):
        c.advance(-1)


# =====================================================
# Host.atomic / staged
# =====================================================


def test_atomic_commits_storage_balances_and_events_together():
    host = Host()
    host.treasury.credit("a", 10)
    with host.atomic("a") as ctx:
        ctx.store.set(b"k", b"v")
        assert ctx.treasury.transfer(4, "a", ctx.custody)
        ctx.events.emit(b"Done", {})
    assert host.store.get(b"k") == b"v"
    assert host.treasury.balance_of(host.config.custody_address) == 4
    assert len(host.events) == 1
    assert host.store.depth() == 0


def test_atomic_reverts_everything_on_error():
    host = Host()
    host.treasury.credit("a", 10)
    with pytest.raises(RuntimeError):
        with host.atomic("a") as ctx:
            ctx.store.set(b"k", b"v")
            ctx.treasury.transfer(4, "a", "b")
            ctx.events.emit(b"Lost", {})
            raise RuntimeError("boom")
    assert host.store.get(b"k") is None
    assert host.treasury.balance_of("a") == 10
    assert len(host.events) == 0
    assert host.store.depth() == 0
    assert host.treasury.journal.depth() == 0


def test_nested_checkpoint_reverts_only_itself_when_handled():
    host = Host()
    with host.atomic("a") as ctx:
        ctx.store.set(b"outer", b"1")
        with pytest.raises(KeyError):
            with ctx.checkpoint():
                ctx.store.set(b"inner", b"2")
                ctx.events.emit(b"Inner", {})
                raise KeyError("inner")
    assert host.store.get(b"outer") == b"1"
    assert host.store.get(b"inner") is None
    assert len(host.events) == 0


def test_staged_helper_is_usable_directly():
    store, treasury, events = Journal(), Treasury(), EventSink()
    with staged(store, treasury, events):
        store.set(b"x", b"1")
    assert store.get(b"x") == b"1"


def test_atomic_snapshots_the_clock():
    host = Host()
    host.clock.set_height(7)
    with host.atomic("a") as ctx:
        host.clock.advance(5)
        assert ctx.now == 7
