"""Notifications emitted by pool operations."""
from collections import deque
from typing import Callable, Deque, List
from loguru import logger
from pydantic import BaseModel


class PoolEvent(BaseModel):
    """Base notification."""
    timestamp: int  # ms


class StakeCreated(PoolEvent):
    staker: str
    stake_id: int
    amount: int
    start_time: int
    end_time: int
    apy_bp: int


class StakeClaimed(PoolEvent):
    staker: str
    stake_id: int
    principal: int
    reward: int
    total: int
    emergency: bool = False


class RewardsAdded(PoolEvent):
    funder: str
    amount: int
    reserve_total: int


class PauseChanged(PoolEvent):
    by: str
    paused: bool


class AdminAdded(PoolEvent):
    admin: str
    admin_count: int


class AdminRevoked(PoolEvent):
    admin: str
    admin_count: int


class OwnershipTransferred(PoolEvent):
    previous_owner: str
    new_owner: str


Listener = Callable[[PoolEvent], None]

DEFAULT_HISTORY_SIZE = 10_000


class EventLog:
    """Event history with optional listeners.

    Only the most recent ``max_history`` events are kept. StakePool emits
    after releasing its lock, so a listener may call back into the pool.
    """

    def __init__(self, max_history: int = DEFAULT_HISTORY_SIZE):
        self.history: Deque[PoolEvent] = deque(maxlen=max_history)
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def emit(self, event: PoolEvent) -> None:
        self.history.append(event)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                # A failing listener must not undo an applied operation
                logger.error(f"Event listener failed on {type(event).__name__}: {e}")

    def of_type(self, event_type: type) -> List[PoolEvent]:
        return [e for e in self.history if isinstance(e, event_type)]
