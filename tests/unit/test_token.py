"""Tests for the in-memory staked token."""
import pytest
from conftest import tokens
from stake_ledger.core.errors import TokenPaused
from stake_ledger.core.token import InMemoryToken


def test_mint_and_balance(token):
    """Test minting credits the owner."""
    token.mint("carol", tokens(5))
    assert token.balance_of("carol") == tokens(5)
    assert token.balance_of("nobody") == 0
    assert token.total_supply == tokens(2005)


def test_mint_rejects_non_positive(token):
    with pytest.raises(ValueError):
        token.mint("carol", 0)


def test_transfer(token):
    """Test a transfer moves balance between accounts."""
    assert token.transfer("alice", "bob", tokens(100)) is True
    assert token.balance_of("alice") == tokens(900)
    assert token.balance_of("bob") == tokens(1100)


def test_transfer_insufficient_balance(token):
    """Test overdrawing returns False and moves nothing."""
    assert token.transfer_from("alice", "bob", tokens(1001)) is False
    assert token.balance_of("alice") == tokens(1000)


def test_zero_transfer_succeeds(token):
    """Test transferring zero is accepted, even from an empty account."""
    assert token.transfer("nobody", "alice", 0) is True
    assert token.balance_of("alice") == tokens(1000)


def test_negative_transfer_rejected(token):
    assert token.transfer("alice", "bob", -1) is False


def test_paused_token(token):
    """Test a paused token rejects transfers and mints until unpaused."""
    token.pause()
    assert token.transfer("alice", "bob", 1) is False
    with pytest.raises(TokenPaused):
        token.mint("alice", 1)

    token.unpause()
    assert token.transfer("alice", "bob", 1) is True


def test_balances_is_a_copy():
    token = InMemoryToken(address="0x01", balances={"alice": 10})
    token.balances["alice"] = 0
    assert token.balance_of("alice") == 10
