"""Error types raised by the stake pool."""


class StakePoolError(Exception):
    """Base class for all pool errors."""


class Unauthorized(StakePoolError):
    """Caller does not hold the required capability or privilege."""


class Paused(StakePoolError):
    """Pool is paused and the entry point is blocked."""


class InvalidAmount(StakePoolError):
    """Amount is zero or below the minimum stake."""


class InvalidPeriod(StakePoolError):
    """Lock period is not one of the supported periods."""


class NotMatured(StakePoolError):
    """Stake cannot be claimed before its end time."""


class NotFound(StakePoolError):
    """Stake or admin does not exist (or the stake is already claimed)."""


class CapacityExceeded(StakePoolError):
    """Admin set is full."""


class AlreadyExists(StakePoolError):
    """Address already holds an admin capability."""


class InsufficientReserve(StakePoolError):
    """Payout would exceed what the pool's balances can cover."""


class InvariantViolation(StakePoolError):
    """Pool state is internally inconsistent."""
