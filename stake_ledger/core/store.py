"""JSON persistence of the ledger and its token between CLI runs."""
import json
import os
from pathlib import Path
from typing import Optional

from loguru import logger
from pydantic import ValidationError

from .errors import StakingError, StoreError
from .events import LedgerEvent
from .ledger import StakingLedger
from .stake import StakeRecord
from .token import InMemoryToken

STATE_VERSION = 1


class LedgerStore:
    """Saves a ledger and its in-memory token as one JSON document."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def save(self, ledger: StakingLedger) -> None:
        token = ledger.staked_token
        state = {
            "version": STATE_VERSION,
            "token": {
                "address": token.address,
                "name": token.name,
                "symbol": token.symbol,
                "decimals": token.decimals,
                "paused": token.paused,
                # Balances exceed JSON's safe integer range, keep them as strings
                "balances": {owner: str(amount) for owner, amount in token.balances.items()},
            },
            "ledger": {
                "address": ledger.address,
                "reward_rate": ledger.get_reward_rate(),
                "total_staked": str(ledger.get_total_staked()),
                "records": {
                    participant: record.model_dump(mode="json")
                    for participant, record in ledger.records().items()
                },
                "events": [event.to_dict() for event in ledger.events.all_events()],
            },
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(".tmp")
        with open(tmp_path, 'w') as f:
            json.dump(state, f, indent=2)
        os.replace(tmp_path, self.path)
        logger.debug(f"Saved ledger state to {self.path}")

    def load(self, clock=None) -> Optional[StakingLedger]:
        """Load the ledger, or None when nothing was saved yet.

        Raises:
            StoreError: If the file is corrupted or inconsistent
        """
        if not self.path.exists():
            return None
        try:
            with open(self.path) as f:
                state = json.load(f)
            token_state = state["token"]
            token = InMemoryToken(
                address=token_state["address"],
                name=token_state["name"],
                symbol=token_state["symbol"],
                decimals=token_state["decimals"],
                balances={owner: int(amount) for owner, amount in token_state["balances"].items()},
                paused=token_state["paused"],
            )
            ledger_state = state["ledger"]
            records = {
                participant: StakeRecord(**data)
                for participant, data in ledger_state["records"].items()
            }
            events = [LedgerEvent(**event) for event in ledger_state["events"]]
            ledger = StakingLedger(
                staked_token=token,
                reward_rate=ledger_state["reward_rate"],
                clock=clock,
                address=ledger_state["address"],
                records=records,
                events=events,
            )
        except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError,
                ValidationError, StakingError) as e:
            raise StoreError(f"Failed to load ledger state from {self.path}: {e}") from e

        if ledger.get_total_staked() != int(ledger_state["total_staked"]):
            raise StoreError(
                f"Stored total staked {ledger_state['total_staked']} does not match "
                f"the sum of records {ledger.get_total_staked()}"
            )
        return ledger
