"""Tests for concurrent use of one ledger."""
import threading

from conftest import DAY, tokens


def test_concurrent_stakes_keep_total(ledger, token):
    """Test stakes from many threads are all counted."""
    users = [f"user{i}" for i in range(8)]
    for user in users:
        token.mint(user, tokens(100))

    def worker(user):
        for _ in range(50):
            ledger.stake(user, tokens(1))

    threads = [threading.Thread(target=worker, args=(user,)) for user in users]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert ledger.get_total_staked() == tokens(400)
    for user in users:
        assert ledger.get_stake_record(user).amount_staked == tokens(50)
        assert token.balance_of(user) == tokens(50)


def test_concurrent_updates_accrue_once(ledger, clock):
    """Test racing updates for one participant credit a single day."""
    ledger.stake("alice", tokens(100))
    clock.advance(DAY)
    results = []

    def worker():
        try:
            results.append(ledger.update_reward("alice"))
        except Exception as e:
            results.append(type(e).__name__)

    threads = [threading.Thread(target=worker) for _ in range(6)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(tokens(100)) == 1
    assert results.count("ClaimOncePerDay") == 5
    assert ledger.get_stake_record("alice").pending_rewards == tokens(100)
