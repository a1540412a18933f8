"""Stake records held by the ledger."""
from typing import Optional
from pydantic import BaseModel, Field


class StakeRecord(BaseModel):
    """Staking state of a single participant."""
    amount_staked: int = Field(default=0, ge=0)
    pending_rewards: int = Field(default=0, ge=0)
    last_reward: int = 0
    first_stake_time: Optional[int] = None  # set once, on the first stake
    last_update_time: Optional[int] = None  # None until the first reward update
    last_stake_time: Optional[int] = None
    rewards_updated: bool = False

    @property
    def is_active(self) -> bool:
        return self.amount_staked > 0
