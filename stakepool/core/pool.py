"""Stake pool ledger and controller."""
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from loguru import logger
from pydantic import BaseModel

from .capability import MAX_ADMINS, AdminCap, CapabilityRegistry, OwnerCap
from .clock import Clock, SystemClock
from .errors import (
    InsufficientReserve,
    InvalidAmount,
    InvariantViolation,
    NotFound,
    NotMatured,
    Paused,
    Unauthorized,
)
from .events import (
    AdminAdded,
    AdminRevoked,
    EventLog,
    OwnershipTransferred,
    PauseChanged,
    RewardsAdded,
    StakeClaimed,
    StakeCreated,
)
from .rewards import MIN_STAKE_AMOUNT, apy_for_period, calculate_reward, lock_duration_ms, quote_reward
from .stake import Stake
from .token import Balance, Coin, format_amount


class PoolStats(BaseModel):
    """Aggregate view of the pool."""
    total_staked: int
    total_rewards_distributed: int
    reward_reserve: int
    locked_principal: int
    last_stake_id: int
    paused: bool
    owner: str
    admins: List[str]


@dataclass
class PoolState:
    """Everything the pool owns. Mutated only by StakePool under its lock."""
    registry: CapabilityRegistry
    paused: bool = False
    next_stake_id: int = 1
    total_staked: int = 0
    total_rewards_distributed: int = 0
    principal: Balance = field(default_factory=Balance)
    reserve: Balance = field(default_factory=Balance)
    stakes: Dict[str, List[Stake]] = field(default_factory=dict)

    def unclaimed_total(self) -> int:
        return sum(s.amount for records in self.stakes.values() for s in records if not s.claimed)

    def check_invariants(self) -> None:
        """Raise InvariantViolation if the ledger and balances disagree."""
        if self.total_staked != self.unclaimed_total():
            raise InvariantViolation("total_staked does not match unclaimed stakes")
        if self.principal.value != self.total_staked:
            raise InvariantViolation("locked principal does not match total_staked")
        if self.reserve.value < 0:
            raise InvariantViolation("reward reserve is negative")
        if self.registry.admin_count > MAX_ADMINS:
            raise InvariantViolation(f"{self.registry.admin_count} admins exceed the limit of {MAX_ADMINS}")
        max_id = max((s.id for records in self.stakes.values() for s in records), default=0)
        if self.next_stake_id <= max_id:
            raise InvariantViolation(f"next_stake_id {self.next_stake_id} would reuse stake id {max_id}")


class StakePool:
    """Operations on a single pool.

    Every operation runs under one lock so mutations are applied one at a time
    and queries never see a half-applied change. All checks run before any
    state is touched. Events are emitted once the lock is released, so a
    listener sees the operation already applied and may query the pool.
    """

    def __init__(self, state: PoolState, clock: Optional[Clock] = None, events: Optional[EventLog] = None):
        self.state = state
        self.clock = clock or SystemClock()
        self.events = events or EventLog()
        self._lock = threading.RLock()

    @classmethod
    def create(cls, owner: str, clock: Optional[Clock] = None) -> Tuple["StakePool", OwnerCap]:
        """Bootstrap a new pool and hand back its owner capability."""
        registry, owner_cap = CapabilityRegistry.bootstrap(owner)
        pool = cls(PoolState(registry=registry), clock=clock)
        logger.info(f"Created stake pool owned by {owner}")
        return pool, owner_cap

    # Authorization

    @property
    def owner(self) -> str:
        return self.state.registry.owner

    @property
    def admins(self) -> List[str]:
        with self._lock:
            return self.state.registry.admin_addresses()

    @property
    def paused(self) -> bool:
        return self.state.paused

    def is_privileged(self, address: str) -> bool:
        with self._lock:
            return self.state.registry.is_privileged(address)

    def verify_owner(self, caller: str, owner_cap: OwnerCap) -> None:
        """Raise Unauthorized unless ``caller`` is the owner holding the live ``owner_cap``."""
        with self._lock:
            self.state.registry.verify_owner(caller, owner_cap)

    def _require_privileged(self, caller: str) -> None:
        if not self.state.registry.is_privileged(caller):
            raise Unauthorized(f"{caller} is neither owner nor admin")

    def grant_admin(self, caller: str, owner_cap: OwnerCap, new_admin: str) -> AdminCap:
        with self._lock:
            registry = self.state.registry
            cap = registry.grant_admin(caller, owner_cap, new_admin)
            event = AdminAdded(timestamp=self.clock.now_ms(), admin=new_admin, admin_count=registry.admin_count)
        self.events.emit(event)
        logger.info(f"Granted admin to {new_admin} ({event.admin_count} admins)")
        return cap

    def revoke_admin(self, caller: str, owner_cap: OwnerCap, admin: str) -> None:
        with self._lock:
            registry = self.state.registry
            registry.revoke_admin(caller, owner_cap, admin)
            event = AdminRevoked(timestamp=self.clock.now_ms(), admin=admin, admin_count=registry.admin_count)
        self.events.emit(event)
        logger.info(f"Revoked admin {admin} ({event.admin_count} admins)")

    def transfer_owner(self, caller: str, owner_cap: OwnerCap, new_owner: str) -> None:
        with self._lock:
            self.state.registry.transfer_owner(caller, owner_cap, new_owner)
            event = OwnershipTransferred(timestamp=self.clock.now_ms(), previous_owner=caller, new_owner=new_owner)
        self.events.emit(event)
        logger.info(f"Ownership transferred from {caller} to {new_owner}")

    def pause(self, caller: str) -> None:
        self._set_paused(caller, True)

    def unpause(self, caller: str) -> None:
        self._set_paused(caller, False)

    def _set_paused(self, caller: str, paused: bool) -> None:
        with self._lock:
            self._require_privileged(caller)
            self.state.paused = paused
            event = PauseChanged(timestamp=self.clock.now_ms(), by=caller, paused=paused)
        self.events.emit(event)
        logger.info(f"Pool {'paused' if paused else 'unpaused'} by {caller}")

    def add_rewards(self, caller: str, coin: Coin) -> int:
        """Fund the reward reserve. Returns the new reserve total."""
        with self._lock:
            self._require_privileged(caller)
            amount = coin.value
            if amount <= 0:
                raise InvalidAmount("Reward deposit must be positive")
            reserve_total = self.state.reserve.join(coin)
            event = RewardsAdded(
                timestamp=self.clock.now_ms(), funder=caller, amount=amount, reserve_total=reserve_total
            )
        self.events.emit(event)
        logger.info(f"{caller} added {format_amount(amount)} to rewards (reserve {format_amount(reserve_total)})")
        return reserve_total

    # Staking

    def stake(self, caller: str, coin: Coin, period_days: int) -> Stake:
        """Lock ``coin`` for ``period_days``.

        Args:
            caller: Staking account
            coin: Principal to lock; consumed on success
            period_days: One of 30, 90, 180, 365

        Returns:
            Copy of the new stake record

        Raises:
            Paused: If the pool is paused
            InvalidAmount: If the coin is below MIN_STAKE_AMOUNT
            InvalidPeriod: If the period is not supported
        """
        with self._lock:
            state = self.state
            if state.paused:
                raise Paused("Staking is paused")
            amount = coin.value
            if amount < MIN_STAKE_AMOUNT:
                raise InvalidAmount(f"Minimum stake is {format_amount(MIN_STAKE_AMOUNT)}, got {format_amount(amount)}")
            apy_bp = apy_for_period(period_days)

            now = self.clock.now_ms()
            record = Stake(
                id=state.next_stake_id,
                amount=amount,
                start_time=now,
                end_time=now + lock_duration_ms(period_days),
                apy_bp=apy_bp,
            )
            state.principal.join(coin)
            state.stakes.setdefault(caller, []).append(record)
            state.total_staked += amount
            state.next_stake_id += 1

            created = record.model_copy()
            event = StakeCreated(
                timestamp=now,
                staker=caller,
                stake_id=record.id,
                amount=amount,
                start_time=record.start_time,
                end_time=record.end_time,
                apy_bp=apy_bp,
            )
        self.events.emit(event)
        logger.info(f"{caller} staked {format_amount(amount)} for {period_days} days (stake {record.id})")
        return created

    def _find_unclaimed(self, caller: str, stake_id: int) -> Stake:
        for record in self.state.stakes.get(caller, []):
            if record.id == stake_id and not record.claimed:
                return record
        logger.debug(f"No unclaimed stake {stake_id} for {caller}")
        raise NotFound(f"No unclaimed stake {stake_id} for {caller}")

    def claim(self, caller: str, stake_id: int) -> Coin:
        """Claim a matured stake. Returns principal plus reward as one coin."""
        with self._lock:
            state = self.state
            record = self._find_unclaimed(caller, stake_id)
            now = self.clock.now_ms()
            if not record.is_mature(now):
                raise NotMatured(f"Stake {stake_id} matures at {record.end_time}, now {now}")

            reward = calculate_reward(record.amount, record.apy_bp, record.duration_seconds)
            if state.reserve.value < reward:
                raise InsufficientReserve(
                    f"Reward reserve {format_amount(state.reserve.value)} cannot cover {format_amount(reward)}"
                )
            if state.principal.value < record.amount:
                raise InsufficientReserve("Locked principal cannot cover stake")

            record.mark_claimed()
            state.total_staked -= record.amount
            state.total_rewards_distributed += reward
            payout = state.principal.split(record.amount)
            payout.merge(state.reserve.split(reward))

            event = StakeClaimed(
                timestamp=now,
                staker=caller,
                stake_id=stake_id,
                principal=record.amount,
                reward=reward,
                total=payout.value,
            )
        self.events.emit(event)
        logger.info(f"{caller} claimed stake {stake_id}: {format_amount(record.amount)} + {format_amount(reward)} reward")
        return payout

    def emergency_unstake(self, caller: str, stake_id: int) -> Coin:
        """Exit a stake at any time, forfeiting the reward."""
        with self._lock:
            state = self.state
            record = self._find_unclaimed(caller, stake_id)
            if state.principal.value < record.amount:
                raise InsufficientReserve("Locked principal cannot cover stake")

            record.mark_claimed()
            state.total_staked -= record.amount
            payout = state.principal.split(record.amount)

            event = StakeClaimed(
                timestamp=self.clock.now_ms(),
                staker=caller,
                stake_id=stake_id,
                principal=record.amount,
                reward=0,
                total=payout.value,
                emergency=True,
            )
        self.events.emit(event)
        logger.info(f"{caller} emergency-unstaked stake {stake_id}: {format_amount(record.amount)}, reward forfeited")
        return payout

    # Queries

    def get_user_stakes(self, address: str) -> List[Stake]:
        with self._lock:
            return [s.model_copy() for s in self.state.stakes.get(address, [])]

    def get_stake(self, address: str, stake_id: int) -> Stake:
        with self._lock:
            for record in self.state.stakes.get(address, []):
                if record.id == stake_id:
                    return record.model_copy()
            raise NotFound(f"No stake {stake_id} for {address}")

    def get_pool_stats(self) -> PoolStats:
        with self._lock:
            state = self.state
            return PoolStats(
                total_staked=state.total_staked,
                total_rewards_distributed=state.total_rewards_distributed,
                reward_reserve=state.reserve.value,
                locked_principal=state.principal.value,
                last_stake_id=state.next_stake_id - 1,
                paused=state.paused,
                owner=state.registry.owner,
                admins=state.registry.admin_addresses(),
            )

    def calculate_reward(self, amount: int, period_days: int) -> int:
        """Reward a hypothetical stake would earn; no stake needs to exist."""
        return quote_reward(amount, period_days)
