from pathlib import Path
from typing import Optional

import click
from loguru import logger

from .clock import ManualClock, SystemClock
from .config import LedgerSettings, load_settings
from .errors import StoreError
from .ledger import LOCK_PERIOD, SCALE, StakingLedger
from .stake import StakeRecord
from .store import LedgerStore
from .token import InMemoryToken

__all__ = [
    "LOCK_PERIOD",
    "SCALE",
    "InMemoryToken",
    "LedgerCLI",
    "LedgerSettings",
    "LedgerStore",
    "ManualClock",
    "StakeRecord",
    "StakingLedger",
    "SystemClock",
]


class LedgerCLI:
    """State shared by CLI commands: settings, clock and the ledger store."""

    def __init__(self, settings: LedgerSettings, clock=None):
        self.settings = settings
        self.clock = clock or SystemClock()
        self.store = LedgerStore(settings.state_file)

    @classmethod
    def from_options(cls,
                     config_path: Optional[Path] = None,
                     state_dir: Optional[Path] = None,
                     log_level: Optional[str] = None,
                     now: Optional[int] = None) -> "LedgerCLI":
        settings = load_settings(config_path, state_dir=state_dir, log_level=log_level)
        clock = ManualClock(now) if now is not None else SystemClock()
        return cls(settings, clock)

    def create_ledger(self, reward_rate: Optional[int] = None) -> StakingLedger:
        """Create a fresh token and ledger from settings."""
        token = InMemoryToken(
            address=self.settings.token_address,
            name=self.settings.token_name,
            symbol=self.settings.token_symbol,
            decimals=self.settings.decimals,
        )
        ledger = StakingLedger(
            staked_token=token,
            reward_rate=self.settings.reward_rate if reward_rate is None else reward_rate,
            clock=self.clock,
            address=self.settings.ledger_address,
        )
        logger.info(f"Created ledger with reward rate {ledger.get_reward_rate()} {token.symbol}/day")
        return ledger

    def load_ledger(self) -> StakingLedger:
        """Load the saved ledger.

        Raises:
            click.ClickException: If no ledger was initialized or it cannot be read
        """
        try:
            ledger = self.store.load(clock=self.clock)
        except StoreError as e:
            raise click.ClickException(str(e))
        if ledger is None:
            raise click.ClickException(
                f"No ledger found at {self.store.path}. Create one with: stake-ledger init"
            )
        return ledger

    def save(self, ledger: StakingLedger) -> None:
        self.store.save(ledger)
