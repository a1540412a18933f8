"""Stake Ledger: token staking with daily pro-rata rewards."""
from .core import InMemoryToken, StakingLedger

__version__ = "0.1.0"
