from __future__ import annotations

import hashlib
import os
from typing import Callable, Sequence

import pytest

from trustvault.config import TrustConfig, load_config
from trustvault.contract import TrustContract

ADMIN = "admin"
ALICE = "alice"
BOB = "bob"
CAROL = "carol"
DAVE = "dave"

STARTING_BALANCE = 10_000_000_000

# Tests pin their own knobs; a developer shell exporting TRUSTVAULT_* must not leak in.
for _k in list(os.environ):
    if _k.startswith("TRUSTVAULT_"):
        os.environ.pop(_k)
load_config.cache_clear()


@pytest.fixture
def config() -> TrustConfig:
    return TrustConfig()


@pytest.fixture
def tc(config: TrustConfig) -> TrustContract:
    """A fresh contract with funded grantors and the clock at 100."""
    contract = TrustContract(ADMIN, config=config)
    for who in (ALICE, BOB, CAROL, DAVE):
        contract.fund(who, STARTING_BALANCE)
    contract.advance(100)
    return contract


@pytest.fixture
def make_trust(tc: TrustContract) -> Callable[..., int]:
    def _make(
        grantor: str = ALICE,
        recipient: str = BOB,
        amount: int = 100,
        milestones: Sequence[str] = ("m1", "m2", "m3", "m4"),
    ) -> int:
        return tc.create(grantor, recipient, amount, list(milestones))

    return _make


def digest(tag: str = "proof") -> bytes:
    """32-byte proof digest for milestone records."""
    return hashlib.sha3_256(tag.encode("utf-8")).digest()
