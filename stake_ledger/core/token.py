"""Fungible asset used as the ledger's staked token."""
from typing import Dict, Optional, Protocol

from loguru import logger

from .errors import TokenPaused

ZERO_ADDRESS = "0x" + "0" * 40


class AssetLedger(Protocol):
    """Transfer capability the staking ledger depends on.

    Both transfer primitives report success with a boolean. Callers must
    treat ``False`` the same way as a raised exception.
    """
    address: str

    def balance_of(self, owner: str) -> int:
        ...

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        ...

    def transfer_from(self, owner: str, recipient: str, amount: int) -> bool:
        ...


class InMemoryToken:
    """Pausable token with integer base-unit balances kept in a dict.

    Zero-amount transfers succeed without moving anything.
    """

    def __init__(self,
                 address: str,
                 name: str = "Stake Token",
                 symbol: str = "STK",
                 decimals: int = 18,
                 balances: Optional[Dict[str, int]] = None,
                 paused: bool = False):
        self.address = address
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self.paused = paused
        self._balances: Dict[str, int] = dict(balances or {})

    @property
    def total_supply(self) -> int:
        return sum(self._balances.values())

    @property
    def balances(self) -> Dict[str, int]:
        return dict(self._balances)

    def balance_of(self, owner: str) -> int:
        return self._balances.get(owner, 0)

    def mint(self, owner: str, amount: int) -> None:
        """Create ``amount`` new base units for ``owner``.

        Raises:
            TokenPaused: If the token is paused
            ValueError: If amount is not positive
        """
        if self.paused:
            raise TokenPaused(f"{self.symbol} is paused")
        if amount <= 0:
            raise ValueError("Mint amount must be positive")
        self._balances[owner] = self.balance_of(owner) + amount
        logger.debug(f"Minted {amount} {self.symbol} to {owner}")

    def pause(self) -> None:
        self.paused = True
        logger.info(f"{self.symbol} transfers paused")

    def unpause(self) -> None:
        self.paused = False
        logger.info(f"{self.symbol} transfers resumed")

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        return self._move(sender, recipient, amount)

    def transfer_from(self, owner: str, recipient: str, amount: int) -> bool:
        return self._move(owner, recipient, amount)

    def _move(self, sender: str, recipient: str, amount: int) -> bool:
        if self.paused:
            logger.debug(f"Rejected transfer of {amount} from {sender}: token paused")
            return False
        if amount < 0 or self.balance_of(sender) < amount:
            logger.debug(f"Rejected transfer of {amount} from {sender}: insufficient balance")
            return False
        self._balances[sender] = self.balance_of(sender) - amount
        self._balances[recipient] = self.balance_of(recipient) + amount
        return True
