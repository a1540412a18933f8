"""Time sources for the ledger.

The ledger never moves time itself; it only compares timestamps it reads
from a clock handed to it at construction.
"""
import time
from typing import Optional


class SystemClock:
    """Wall clock in whole UNIX seconds."""

    def now(self) -> int:
        return int(time.time())


class ManualClock:
    """Clock that only moves when told to.

    Used by tests and by the CLI ``--now`` option.
    """

    def __init__(self, start: Optional[int] = None):
        self._now = int(time.time()) if start is None else int(start)

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        """Move forward by ``seconds`` and return the new time."""
        if seconds < 0:
            raise ValueError("Clock can only move forward")
        self._now += int(seconds)
        return self._now

    def set(self, timestamp: int) -> None:
        if timestamp < self._now:
            raise ValueError("Clock can only move forward")
        self._now = int(timestamp)
