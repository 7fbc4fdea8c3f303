from __future__ import annotations

import pytest

from trustvault.errors import (AlreadyReleased, AlreadyTerminal, InvalidInput,
                               NotFound, TransferFailed, Unauthorized)
from trustvault.state.records import TrustStatus

from conftest import ADMIN, ALICE, BOB, CAROL, DAVE, STARTING_BALANCE, digest


def test_each_verification_releases_one_installment(tc, make_trust):
    tid = make_trust(amount=100)
    for n in range(1, 5):
        assert tc.verify_one(ADMIN, tid) == 25
        assert tc.get_trust(tid).verified_milestones == n
        assert tc.balance_of(BOB) == STARTING_BALANCE + 25 * n
        assert tc.released_to_date(tid) == 25 * n

    custody = tc.custody_balance()
    with pytest.raises(AlreadyReleased) as ei:
        tc.verify_one(ADMIN, tid)
    assert isinstance(ei.value, AlreadyTerminal)
    assert tc.balance_of(BOB) == STARTING_BALANCE + 100
    assert tc.custody_balance() == custody


def test_fully_verified_trust_stays_active(tc, make_trust):
    tid = make_trust(milestones=["one"])
    tc.verify_one(ADMIN, tid)
    t = tc.get_trust(tid)
    assert t.status is TrustStatus.ACTIVE
    assert t.exhausted
    assert t.remaining == 0


def test_verify_is_admin_only(tc, make_trust):
    tid = make_trust()
    for who in (ALICE, BOB):
        with pytest.raises(Unauthorized):
            tc.verify_one(who, tid)
    assert tc.get_trust(tid).verified_milestones == 0


def test_verify_unknown_or_terminal_trust(tc, make_trust):
    with pytest.raises(NotFound):
        tc.verify_one(ADMIN, 42)
    tid = make_trust()
    tc.cancel(ALICE, tid)
    with pytest.raises(AlreadyTerminal):
        tc.verify_one(ADMIN, tid)


def test_verify_declined_transfer_leaves_count_unchanged(tc, make_trust):
    tid = make_trust(amount=100)
    # Drain custody behind the ledger's back so the release cannot be paid.
    assert tc.host.treasury.transfer(100, tc.config.custody_address, "elsewhere")

    with pytest.raises(TransferFailed):
        tc.verify_one(ADMIN, tid)
    assert tc.get_trust(tid).verified_milestones == 0
    assert tc.balance_of(BOB) == STARTING_BALANCE


def test_small_amount_releases_zero_per_milestone(tc):
    tid = tc.create(ALICE, BOB, 3, ["a", "b", "c", "d"])
    assert tc.verify_one(ADMIN, tid) == 0
    assert tc.get_trust(tid).verified_milestones == 1
    assert tc.remaining_in_custody(tid) == 3


# ---------------------------------------------------------------------------
# verify_batch
# ---------------------------------------------------------------------------


def test_batch_verifies_each_trust_in_order(tc, make_trust):
    a = make_trust(amount=100)
    b = make_trust(grantor=CAROL, recipient=DAVE, amount=60, milestones=["x", "y"])
    assert tc.verify_batch(ADMIN, [a, b, a]) == [25, 30, 25]
    assert tc.get_trust(a).verified_milestones == 2
    assert tc.get_trust(b).verified_milestones == 1
    assert tc.balance_of(BOB) == STARTING_BALANCE + 50
    assert tc.balance_of(DAVE) == STARTING_BALANCE + 30


def test_batch_failure_rolls_back_every_element(tc, make_trust):
    a = make_trust(amount=100)
    b = make_trust(grantor=CAROL, recipient=DAVE, amount=50, milestones=["only"])
    c = make_trust(grantor=DAVE, recipient=CAROL, amount=80, milestones=["p", "q"])
    tc.verify_one(ADMIN, b)

    balances = {who: tc.balance_of(who) for who in (BOB, CAROL, DAVE)}
    custody = tc.custody_balance()
    events = len(tc.host.events)

    with pytest.raises(AlreadyReleased):
        tc.verify_batch(ADMIN, [a, b, c])

    assert tc.get_trust(a).verified_milestones == 0
    assert tc.get_trust(b).verified_milestones == 1
    assert tc.get_trust(c).verified_milestones == 0
    assert {who: tc.balance_of(who) for who in (BOB, CAROL, DAVE)} == balances
    assert tc.custody_balance() == custody
    assert len(tc.host.events) == events


def test_batch_surfaces_the_first_failure(tc, make_trust):
    a = make_trust()
    tc.cancel(ALICE, a)
    with pytest.raises(AlreadyTerminal) as ei:
        tc.verify_batch(ADMIN, [a, 999])
    assert not isinstance(ei.value, NotFound)

    b = make_trust()
    with pytest.raises(NotFound):
        tc.verify_batch(ADMIN, [b, 999, a])
    assert tc.get_trust(b).verified_milestones == 0


@pytest.mark.parametrize("ids", [[], list(range(1, 12)), "12", None])
def test_batch_rejects_bad_id_lists(tc, make_trust, ids):
    make_trust()
    with pytest.raises(InvalidInput):
        tc.verify_batch(ADMIN, ids)


def test_batch_is_admin_only(tc, make_trust):
    tid = make_trust()
    with pytest.raises(Unauthorized):
        tc.verify_batch(ALICE, [tid])


def test_batch_accepts_the_size_bound(tc):
    ids = [tc.create(ALICE, BOB, 10, ["m"]) for _ in range(5)]
    ids += [tc.create(CAROL, BOB, 10, ["m"]) for _ in range(5)]
    assert tc.verify_batch(ADMIN, ids) == [10] * 10


# ---------------------------------------------------------------------------
# record_milestone
# ---------------------------------------------------------------------------


def test_record_milestone_by_recipient_and_grantor(tc, make_trust):
    tid = make_trust()
    rec = tc.record_milestone(BOB, tid, 0, 50, "halfway", digest("m0"))
    assert rec.progress == 50
    assert rec.timestamp == tc.now
    assert tc.get_milestone_record(tid, 0) == rec

    tc.advance(3)
    rec2 = tc.record_milestone(ALICE, tid, 0, 100, "", digest("m0-final"))
    assert tc.get_milestone_record(tid, 0) == rec2
    assert tc.get_milestone_record(tid, 1) is None


def test_record_milestone_does_not_release(tc, make_trust):
    tid = make_trust()
    tc.record_milestone(BOB, tid, 3, 100, "done", digest())
    assert tc.get_trust(tid).verified_milestones == 0
    assert tc.balance_of(BOB) == STARTING_BALANCE


def test_record_milestone_access(tc, make_trust):
    tid = make_trust()
    for who in (CAROL, ADMIN):
        with pytest.raises(Unauthorized):
            tc.record_milestone(who, tid, 0, 10, "", digest())
    tc.cancel(ALICE, tid)
    with pytest.raises(AlreadyTerminal):
        tc.record_milestone(BOB, tid, 0, 10, "", digest())


@pytest.mark.parametrize(
    "index,progress,details,proof",
    [
        (4, 10, "", digest()),
        (-1, 10, "", digest()),
        (0, 101, "", digest()),
        (0, -1, "", digest()),
        (0, 10, "x" * 257, digest()),
        (0, 10, "", b"\x00" * 31),
        (0, 10, "", "not-bytes"),
    ],
)
def test_record_milestone_rejects_bad_arguments(tc, make_trust, index, progress, details, proof):
    tid = make_trust()
    with pytest.raises(InvalidInput):
        tc.record_milestone(BOB, tid, index, progress, details, proof)
    assert tc.get_milestone_record(tid, 0) is None
