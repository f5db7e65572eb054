"""Lock periods, APY table and the reward formula."""
from enum import IntEnum
from typing import Dict

from .errors import InvalidAmount, InvalidPeriod

SECONDS_PER_DAY = 86_400
MS_PER_DAY = SECONDS_PER_DAY * 1000
DAYS_PER_YEAR = 365
BASIS_POINTS = 10_000

MIN_STAKE_AMOUNT = 100_000_000  # 0.1 token


class LockPeriod(IntEnum):
    DAYS_30 = 30
    DAYS_90 = 90
    DAYS_180 = 180
    DAYS_365 = 365


# Lock period (days) -> APY in basis points
APY_TABLE: Dict[LockPeriod, int] = {
    LockPeriod.DAYS_30: 500,
    LockPeriod.DAYS_90: 800,
    LockPeriod.DAYS_180: 1200,
    LockPeriod.DAYS_365: 2000,
}


def apy_for_period(period_days: int) -> int:
    """Look up the APY (basis points) for a lock period in days.

    Raises:
        InvalidPeriod: If the period is not in the table
    """
    try:
        return APY_TABLE[LockPeriod(period_days)]
    except ValueError:
        raise InvalidPeriod(f"Unsupported lock period: {period_days} days")


def lock_duration_ms(period_days: int) -> int:
    return period_days * MS_PER_DAY


def calculate_reward(amount: int, apy_bp: int, duration_seconds: int) -> int:
    """Yield for ``amount`` locked ``duration_seconds`` at ``apy_bp``.

    Exact integer math, truncated: floor(amount * apy * secs / (10000 * 365 days)).
    """
    return (amount * apy_bp * duration_seconds) // (BASIS_POINTS * DAYS_PER_YEAR * SECONDS_PER_DAY)


def quote_reward(amount: int, period_days: int) -> int:
    """Reward a stake of ``amount`` for ``period_days`` would earn at maturity.

    Raises:
        InvalidAmount: If ``amount`` is not a non-negative integer
        InvalidPeriod: If the period is not in the table
    """
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
        raise InvalidAmount(f"Amount must be a non-negative integer of base units, got {amount!r}")
    apy_bp = apy_for_period(period_days)
    return calculate_reward(amount, apy_bp, period_days * SECONDS_PER_DAY)
