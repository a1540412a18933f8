"""Tests that failed transfers leave the ledger and balances untouched."""
import pytest
from unittest.mock import call
from conftest import DAY, tokens
from stake_ledger.core.errors import TransferFailed
from stake_ledger.core.ledger import StakingLedger
from stake_ledger.core.token import InMemoryToken


class RejectingToken(InMemoryToken):
    """Token that rejects pulls of one specific amount."""

    def __init__(self, *args, reject_pull_of=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.reject_pull_of = reject_pull_of

    def transfer_from(self, owner, recipient, amount):
        if amount == self.reject_pull_of:
            return False
        return super().transfer_from(owner, recipient, amount)


def updated_ledger(token, clock):
    """Ledger where alice staked 500 tokens a day ago and updated her rewards."""
    ledger = StakingLedger(token, reward_rate=100, clock=clock)
    ledger.stake("alice", tokens(500))
    clock.advance(DAY)
    ledger.update_reward("alice")
    return ledger


def test_stake_rejected_pull(mock_token, clock):
    """Test a rejected deposit leaves no record behind."""
    mock_token.transfer_from.return_value = False
    ledger = StakingLedger(mock_token, reward_rate=100, clock=clock)

    with pytest.raises(TransferFailed):
        ledger.stake("alice", tokens(100))
    assert ledger.records() == {}
    assert ledger.get_total_staked() == 0
    assert len(ledger.events) == 0


def test_stake_while_token_paused(ledger, token):
    """Test staking against a paused token changes nothing."""
    balances = token.balances
    token.pause()
    with pytest.raises(TransferFailed):
        ledger.stake("alice", tokens(100))
    assert token.balances == balances
    assert ledger.get_total_staked() == 0


def test_transfer_exception_is_wrapped(mock_token, clock):
    """Test exceptions raised by the token surface as TransferFailed."""
    mock_token.transfer_from.side_effect = RuntimeError("node unavailable")
    ledger = StakingLedger(mock_token, reward_rate=100, clock=clock)

    with pytest.raises(TransferFailed) as exc_info:
        ledger.stake("alice", tokens(100))
    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert ledger.get_total_staked() == 0


def test_unstake_rejected_push(ledger, clock, token):
    """Test a rejected withdrawal restores the stake."""
    ledger.stake("alice", tokens(300))
    clock.advance(DAY)
    token.pause()

    with pytest.raises(TransferFailed):
        ledger.unstake("alice")
    assert ledger.get_stake_record("alice").amount_staked == tokens(300)
    assert ledger.get_total_staked() == tokens(300)


def test_claim_rejected_push(ledger, clock, token):
    """Test a rejected payout keeps rewards pending and updated."""
    ledger.stake("alice", tokens(500))
    clock.advance(DAY)
    ledger.update_reward("alice")
    token.pause()

    with pytest.raises(TransferFailed):
        ledger.claim_reward("alice")
    record = ledger.get_stake_record("alice")
    assert record.pending_rewards == tokens(100)
    assert record.rewards_updated is True


def test_claim_with_empty_reward_pool(token, clock):
    """Test claiming more than custody holds fails without side effects."""
    ledger = StakingLedger(token, reward_rate=100, clock=clock)
    ledger.stake("alice", tokens(50))
    clock.advance(DAY)
    ledger.update_reward("alice")

    with pytest.raises(TransferFailed):
        ledger.claim_reward("alice")
    assert ledger.get_stake_record("alice").pending_rewards == tokens(100)
    assert token.balance_of("alice") == tokens(950)


def test_restake_failed_pull_restores_balances(clock):
    """Test a rejected final pull reverses both payouts of a restake."""
    token = RejectingToken(address="0x" + "ef" * 20, reject_pull_of=tokens(600))
    token.mint("alice", tokens(1000))
    ledger = updated_ledger(token, clock)
    token.mint(ledger.address, tokens(1000))
    before = ledger.get_stake_record("alice")
    balances = token.balances
    events = len(ledger.events)

    with pytest.raises(TransferFailed):
        ledger.restake("alice")
    assert ledger.get_stake_record("alice") == before
    assert ledger.get_total_staked() == tokens(500)
    assert token.balances == balances
    assert len(ledger.events) == events


def test_restake_compensation_order(mock_token, clock):
    """Test completed restake transfers are reversed newest first."""
    ledger = updated_ledger(mock_token, clock)
    mock_token.reset_mock()
    mock_token.transfer_from.side_effect = lambda owner, recipient, amount: amount != tokens(600)

    with pytest.raises(TransferFailed):
        ledger.restake("alice")
    assert mock_token.transfer_from.call_args_list == [
        call("alice", ledger.address, tokens(600)),
        call("alice", ledger.address, tokens(100)),
        call("alice", ledger.address, tokens(500)),
    ]
    assert ledger.get_stake_record("alice").amount_staked == tokens(500)


def test_restake_failed_payout(mock_token, clock):
    """Test a rejected reward payout reverses the principal payout."""
    ledger = updated_ledger(mock_token, clock)
    mock_token.reset_mock()
    mock_token.transfer.side_effect = [True, False]

    with pytest.raises(TransferFailed):
        ledger.restake("alice")
    assert mock_token.transfer_from.call_args_list == [call("alice", ledger.address, tokens(500))]
    record = ledger.get_stake_record("alice")
    assert record.pending_rewards == tokens(100)
    assert record.rewards_updated is True
