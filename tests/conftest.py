"""Test configuration and fixtures for Stake Ledger."""
import os
import pytest
from unittest.mock import MagicMock
from stake_ledger.core.clock import ManualClock
from stake_ledger.core.ledger import StakingLedger
from stake_ledger.core.token import AssetLedger, InMemoryToken

START_TIME = 1_700_000_000
DAY = 24 * 60 * 60
TOKEN = 10 ** 18


def tokens(amount):
    """Whole tokens to base units."""
    return int(amount * TOKEN)


@pytest.fixture
def clock():
    """Clock frozen at a fixed start time."""
    return ManualClock(START_TIME)


@pytest.fixture
def token():
    """Token with two funded users and a reward treasury."""
    token = InMemoryToken(address="0x" + "ab" * 20)
    token.mint("alice", tokens(1000))
    token.mint("bob", tokens(1000))
    return token


@pytest.fixture
def ledger(token, clock):
    """Ledger paying 100 tokens a day with a funded reward pool."""
    ledger = StakingLedger(token, reward_rate=100, clock=clock)
    token.mint(ledger.address, tokens(1_000_000))
    return ledger


@pytest.fixture
def mock_token():
    """Create a mock asset ledger that accepts every transfer."""
    token = MagicMock(spec=AssetLedger)
    token.address = "0x" + "cd" * 20
    token.balance_of.return_value = tokens(1000)
    token.transfer.return_value = True
    token.transfer_from.return_value = True
    return token


@pytest.fixture
def env_setup(tmp_path):
    """Set up environment variables for testing."""
    os.environ["STAKE_LEDGER_HOME"] = str(tmp_path / "home")
    os.environ["STAKE_LEDGER_LOG_LEVEL"] = "DEBUG"
    yield tmp_path / "home"
    del os.environ["STAKE_LEDGER_HOME"]
    del os.environ["STAKE_LEDGER_LOG_LEVEL"]
