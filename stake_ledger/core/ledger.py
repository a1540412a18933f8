"""Staking ledger: deposits, daily reward accrual and time-gated withdrawals."""
import functools
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Tuple

from loguru import logger

from .clock import SystemClock
from .errors import (
    AddressZero,
    ClaimOncePerDay,
    InsufficientBalance,
    InvalidAmount,
    NoStakedAmount,
    RestakeNotAllowed,
    RewardRateZero,
    RewardsNotUpdated,
    StakingError,
    TransferFailed,
    UnstakeNotAllowed,
    UpdateNotEligible,
)
from .events import (
    REWARD_CLAIMED,
    REWARD_UPDATED,
    RESTAKED,
    STAKED,
    UNSTAKED,
    EventLog,
    LedgerEvent,
)
from .stake import StakeRecord
from .token import ZERO_ADDRESS, AssetLedger

LOCK_PERIOD = 24 * 60 * 60
SCALE = 10 ** 18
DEFAULT_LEDGER_ADDRESS = "staking-ledger"

# (direction, participant, amount); direction is "pull" into custody or "push" out of it
Transfer = Tuple[str, str, int]


def _operation(name: str):
    """Serialize a public operation on the ledger lock and log rejections."""
    def decorator(func):
        @functools.wraps(func)
        def wrapper(self, participant: str, *args, **kwargs):
            with self._lock:
                try:
                    return func(self, participant, *args, **kwargs)
                except StakingError as e:
                    logger.warning(f"{name} rejected for {participant}: {e.code}")
                    raise
        return wrapper
    return decorator


class StakingLedger:
    """Tracks stakes of every participant and pays a fixed daily reward.

    The reward emission is ``reward_rate`` whole tokens per day, shared
    pro rata between stakers at the moment each of them updates their
    rewards. Rewards are pull based: a participant calls
    :meth:`update_reward` at most once per day, then :meth:`claim_reward`
    or :meth:`restake`.

    Every public operation runs under one re-entrant lock and either applies
    completely or raises a :class:`StakingError` with nothing changed, in
    the ledger or in the token balances.
    """

    def __init__(self,
                 staked_token: AssetLedger,
                 reward_rate: int,
                 clock=None,
                 address: str = DEFAULT_LEDGER_ADDRESS,
                 records: Optional[Dict[str, StakeRecord]] = None,
                 events: Optional[List[LedgerEvent]] = None):
        """Initialize the ledger.

        Args:
            staked_token: Asset that is staked and paid out as reward
            reward_rate: Whole tokens distributed per day at 100% share
            clock: Object with a ``now()`` method returning UNIX seconds
            address: Identity of the ledger's custody account on the token
            records: Previously persisted stake records
            events: Previously persisted event history

        Raises:
            AddressZero: If the token is missing or has the zero address
            RewardRateZero: If the reward rate is not positive
        """
        if staked_token is None or getattr(staked_token, "address", None) in (None, "", ZERO_ADDRESS):
            raise AddressZero()
        if not reward_rate or reward_rate < 0:
            raise RewardRateZero()

        self._token = staked_token
        self._reward_rate = int(reward_rate)
        self._clock = clock or SystemClock()
        self.address = address
        self._records: Dict[str, StakeRecord] = {
            participant: record.model_copy() for participant, record in (records or {}).items()
        }
        self._total_staked = sum(r.amount_staked for r in self._records.values())
        self.events = EventLog(events)
        self._lock = threading.RLock()

    # Queries

    @property
    def staked_token(self) -> AssetLedger:
        return self._token

    def get_reward_rate(self) -> int:
        return self._reward_rate

    def get_total_staked(self) -> int:
        with self._lock:
            return self._total_staked

    def get_stake_record(self, participant: str) -> StakeRecord:
        """Get a copy of a participant's record (zero-valued if unknown)."""
        with self._lock:
            return self._lookup(participant).model_copy()

    def records(self) -> Dict[str, StakeRecord]:
        """Get copies of all records ever created."""
        with self._lock:
            return {p: r.model_copy() for p, r in self._records.items()}

    def custody_balance(self) -> int:
        return self._token.balance_of(self.address)

    def subscribe(self, listener):
        return self.events.subscribe(listener)

    # Operations

    @_operation("stake")
    def stake(self, participant: str, amount: int) -> StakeRecord:
        """Deposit ``amount`` base units from ``participant`` into custody.

        Raises:
            InvalidAmount: Amount is zero or not a positive integer
            InsufficientBalance: Participant holds less than ``amount``
            TransferFailed: The token rejected the deposit
        """
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            raise InvalidAmount()
        if self._token.balance_of(participant) < amount:
            raise InsufficientBalance()

        now = self._clock.now()
        with self._atomic(participant) as journal:
            record = self._record_for_update(participant)
            record.amount_staked += amount
            record.last_stake_time = now
            if record.first_stake_time is None:
                record.first_stake_time = now
            self._total_staked += amount
            self._pull(participant, amount, journal)

        logger.info(f"{participant} staked {amount} (total staked {self._total_staked})")
        self._emit(STAKED, participant, amount, now)
        return record.model_copy()

    @_operation("unstake")
    def unstake(self, participant: str) -> int:
        """Withdraw the whole principal; pending rewards stay claimable.

        Returns:
            The amount returned to the participant
        """
        record = self._lookup(participant)
        if record.amount_staked == 0:
            raise NoStakedAmount()
        now = self._clock.now()
        if now < record.last_stake_time + LOCK_PERIOD:
            raise UnstakeNotAllowed()

        amount = record.amount_staked
        with self._atomic(participant) as journal:
            record = self._record_for_update(participant)
            record.amount_staked = 0
            self._total_staked -= amount
            self._push(participant, amount, journal)

        logger.info(f"{participant} unstaked {amount} (total staked {self._total_staked})")
        self._emit(UNSTAKED, participant, amount, now)
        return amount

    @_operation("update_reward")
    def update_reward(self, participant: str) -> int:
        """Accrue rewards for the full days since the last accrual.

        The participant's share is ``amount_staked / total_staked`` in
        ``SCALE`` fixed point, so rewards come out in base units of an
        18-decimal token. Days are counted from the last update, or from the
        last stake when rewards were never updated, and partial days are
        dropped.

        Returns:
            The reward credited by this call
        """
        record = self._lookup(participant)
        now = self._clock.now()
        # the daily gate applies even after a full unstake
        if record.last_update_time is not None and now < record.last_update_time + LOCK_PERIOD:
            raise ClaimOncePerDay()
        if record.amount_staked == 0:
            raise NoStakedAmount()
        if now < record.first_stake_time + LOCK_PERIOD:
            raise UpdateNotEligible()

        since = record.last_stake_time if record.last_update_time is None else record.last_update_time
        elapsed_days = (now - since) // LOCK_PERIOD
        # total_staked includes this participant's positive stake
        share = record.amount_staked * SCALE // self._total_staked
        rewards = share * self._reward_rate * elapsed_days

        with self._atomic(participant):
            record = self._record_for_update(participant)
            record.last_reward = rewards
            record.pending_rewards += rewards
            record.last_update_time = now
            record.rewards_updated = True

        logger.info(f"{participant} accrued {rewards} over {elapsed_days} day(s), pending {record.pending_rewards}")
        self._emit(REWARD_UPDATED, participant, True, now)
        return rewards

    @_operation("claim_reward")
    def claim_reward(self, participant: str) -> int:
        """Pay out pending rewards.

        Returns:
            The amount paid
        """
        record = self._lookup(participant)
        if not record.rewards_updated:
            raise RewardsNotUpdated()

        now = self._clock.now()
        amount = record.pending_rewards
        with self._atomic(participant) as journal:
            record = self._record_for_update(participant)
            record.pending_rewards = 0
            record.rewards_updated = False
            self._push(participant, amount, journal)

        logger.info(f"{participant} claimed {amount}")
        self._emit(REWARD_CLAIMED, participant, amount, now)
        return amount

    @_operation("restake")
    def restake(self, participant: str) -> int:
        """Stake pending rewards on top of the current principal.

        Observable transfers are, in order: principal out, reward out, then
        principal plus reward back in. ``first_stake_time`` is left alone.

        Returns:
            The new staked amount
        """
        record = self._lookup(participant)
        if record.amount_staked == 0:
            raise NoStakedAmount()
        if not record.rewards_updated:
            raise RewardsNotUpdated()
        now = self._clock.now()
        if now < record.last_stake_time + LOCK_PERIOD:
            raise RestakeNotAllowed()

        old_amount = record.amount_staked
        reward = record.pending_rewards
        new_amount = old_amount + reward
        with self._atomic(participant) as journal:
            record = self._record_for_update(participant)
            record.amount_staked = new_amount
            self._total_staked = self._total_staked - old_amount + new_amount
            record.pending_rewards = 0
            record.rewards_updated = False
            record.last_update_time = now
            record.last_stake_time = now
            self._push(participant, old_amount, journal)
            self._push(participant, reward, journal)
            self._pull(participant, new_amount, journal)

        logger.info(f"{participant} restaked {old_amount} + {reward} = {new_amount}")
        self._emit(RESTAKED, participant, new_amount, now)
        return new_amount

    # Internals

    def _lookup(self, participant: str) -> StakeRecord:
        record = self._records.get(participant)
        return record if record is not None else StakeRecord()

    def _record_for_update(self, participant: str) -> StakeRecord:
        record = self._records.get(participant)
        if record is None:
            record = self._records[participant] = StakeRecord()
        return record

    @contextmanager
    def _atomic(self, participant: str) -> Iterator[List[Transfer]]:
        """Restore the participant's record, the total and token balances on error.

        Yields a journal the transfer helpers append to; completed transfers
        are reversed newest first if the block raises.
        """
        existing = self._records.get(participant)
        snapshot = existing.model_copy() if existing is not None else None
        total = self._total_staked
        journal: List[Transfer] = []
        try:
            yield journal
        except Exception:
            if snapshot is None:
                self._records.pop(participant, None)
            else:
                self._records[participant] = snapshot
            self._total_staked = total
            self._compensate(journal)
            raise

    def _pull(self, participant: str, amount: int, journal: List[Transfer]) -> None:
        self._call_token(self._token.transfer_from, participant, self.address, amount)
        journal.append(("pull", participant, amount))

    def _push(self, participant: str, amount: int, journal: List[Transfer]) -> None:
        self._call_token(self._token.transfer, self.address, participant, amount)
        journal.append(("push", participant, amount))

    @staticmethod
    def _call_token(method, sender: str, recipient: str, amount: int) -> None:
        try:
            ok = method(sender, recipient, amount)
        except Exception as e:
            raise TransferFailed(f"Transfer of {amount} from {sender} to {recipient} failed: {e}") from e
        if not ok:
            raise TransferFailed(f"Transfer of {amount} from {sender} to {recipient} was rejected")

    def _compensate(self, journal: List[Transfer]) -> None:
        for direction, participant, amount in reversed(journal):
            try:
                if direction == "pull":
                    self._call_token(self._token.transfer, self.address, participant, amount)
                else:
                    self._call_token(self._token.transfer_from, participant, self.address, amount)
                logger.debug(f"Reversed {direction} of {amount} for {participant}")
            except TransferFailed as e:
                logger.error(f"Could not reverse {direction} of {amount} for {participant}: {e}")

    def _emit(self, name: str, participant: str, value, timestamp: int) -> None:
        self.events.emit(LedgerEvent(name=name, participant=participant, value=value, timestamp=timestamp))
