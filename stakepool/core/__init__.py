"""Core stake pool ledger."""
from .capability import MAX_ADMINS, AdminCap, CapabilityRegistry, OwnerCap
from .clock import Clock, ManualClock, SystemClock
from .errors import (
    AlreadyExists,
    CapacityExceeded,
    InsufficientReserve,
    InvalidAmount,
    InvalidPeriod,
    InvariantViolation,
    NotFound,
    NotMatured,
    Paused,
    StakePoolError,
    Unauthorized,
)
from .pool import PoolState, PoolStats, StakePool
from .rewards import APY_TABLE, MIN_STAKE_AMOUNT, LockPeriod, calculate_reward, quote_reward
from .stake import Stake
from .token import Balance, Coin, TokenError, TokenLedger
