"""
Pytest configuration and shared fixtures for the test suite.
"""

from typing import List

import pytest

from disperse.config import ZERO_ADDRESS, DisperseConfig, set_config
from disperse.core.distributor import BatchDistributor
from disperse.ledger.memory import InMemoryLedger
from disperse.state.world import World


# ============================================================================
# Test Data Generators
# ============================================================================

def generate_test_address(index: int = 0) -> str:
    """Generate a deterministic test address."""
    return f"0x{index + 1:040x}"


PAYER = generate_test_address(0)
ALICE = generate_test_address(1)
BOB = generate_test_address(2)
CAROL = generate_test_address(3)
DISTRIBUTOR = "0x" + "d1" * 20
NULL = ZERO_ADDRESS

NATIVE_FUNDS = 10_000
TOKEN_FUNDS = 10_000


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def reset_config():
    """Drop the global configuration after each test."""
    yield
    set_config(None)


@pytest.fixture
def test_config() -> DisperseConfig:
    """Create a test configuration."""
    config = DisperseConfig(
        amount_bits=256,
        distributor_address=DISTRIBUTOR,
        log_level="DEBUG",
    )
    set_config(config)
    return config


# ============================================================================
# World Fixtures
# ============================================================================

@pytest.fixture
def world() -> World:
    """Create a world where the payer holds native value."""
    world = World()
    world.native.mint(PAYER, NATIVE_FUNDS)
    return world


@pytest.fixture
def token(world) -> InMemoryLedger:
    """Create a token ledger where the payer holds tokens."""
    ledger = world.token("TKN")
    ledger.mint(PAYER, TOKEN_FUNDS)
    return ledger


@pytest.fixture
def distributor(world, test_config) -> BatchDistributor:
    """Create a distributor over the test world."""
    return BatchDistributor(world.native, world.journal, config=test_config)


@pytest.fixture
def recipients() -> List[str]:
    """Three distinct recipients."""
    return [ALICE, BOB, CAROL]


def native_balances(world: World, accounts: List[str]) -> List[int]:
    """Snapshot native balances of several accounts."""
    return [world.native.balance_of(account) for account in accounts]


def token_balances(ledger: InMemoryLedger, accounts: List[str]) -> List[int]:
    """Snapshot token balances of several accounts."""
    return [ledger.balances().get(account, 0) for account in accounts]
