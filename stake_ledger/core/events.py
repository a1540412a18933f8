"""Events emitted by the staking ledger."""
from dataclasses import dataclass, asdict
from typing import Callable, Dict, List, Optional, Union

from loguru import logger

STAKED = "Staked"
UNSTAKED = "Unstaked"
REWARD_UPDATED = "RewardUpdated"
REWARD_CLAIMED = "RewardClaimed"
RESTAKED = "Restaked"


@dataclass
class LedgerEvent:
    """One successful ledger operation.

    ``value`` is the amount for value-moving events, the new staked total for
    ``Restaked`` and the flag for ``RewardUpdated``.
    """
    name: str
    participant: str
    value: Union[int, bool]
    timestamp: int

    def to_dict(self) -> Dict:
        return asdict(self)


Listener = Callable[[LedgerEvent], None]


class EventLog:
    """Ordered event history with synchronous subscribers."""

    def __init__(self, events: Optional[List[LedgerEvent]] = None):
        self._events: List[LedgerEvent] = list(events or [])
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def emit(self, event: LedgerEvent) -> None:
        self._events.append(event)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                # operation already committed
                logger.error(f"Event listener failed for {event.name}: {e}")

    def all_events(self) -> List[LedgerEvent]:
        return list(self._events)

    def for_participant(self, participant: str) -> List[LedgerEvent]:
        return [e for e in self._events if e.participant == participant]

    def recent(self, limit: int = 10) -> List[LedgerEvent]:
        """Get most recent N events, newest first."""
        return list(reversed(self._events[-limit:])) if limit > 0 else []

    def __len__(self) -> int:
        return len(self._events)
