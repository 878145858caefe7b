"""Shared fixtures for platform tests (F2)."""

import pytest

from learnplatform.core.ledger import PLATFORM_ISSUER
from learnplatform.core.platform import LearnPlatform
from learnplatform.core.session_engine import SettlementPolicy

INSTRUCTOR = "0xA"
STUDENT = "0xB"
OTHER = "0xC"
NOW = 1_700_000_000


@pytest.fixture
def policy():
    """Small whole-number policy so expected amounts stay readable."""
    return SettlementPolicy(base_reward=50)


@pytest.fixture
def platform(policy):
    """Platform with an instructor, a student funded with 150 and a skill priced 100."""
    platform = LearnPlatform(policy=policy, clock=lambda: NOW)
    platform.register_user(INSTRUCTOR, "alice", is_instructor=True)
    platform.register_user(STUDENT, "bob", is_instructor=False)
    platform.register_user(OTHER, "carol", is_instructor=False)
    platform.mint(STUDENT, 150, caller=PLATFORM_ISSUER)
    platform.create_skill(
        INSTRUCTOR,
        "Solidity 101",
        "Smart contracts from scratch",
        "Programming",
        60,
        100,
        "QmSolidity",
    )
    return platform


@pytest.fixture
def assert_conserved():
    """Check that balances plus escrow equal total supply."""

    def check(platform):
        total = sum(platform.ledger.accounts().values())
        assert total + platform.total_escrowed() == platform.total_supply()

    return check
