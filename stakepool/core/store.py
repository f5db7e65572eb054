"""JSON persistence for a pool, its token ledger and the owner capability."""
import json
import os
from pathlib import Path
from typing import Dict, NamedTuple, Optional, Union
from loguru import logger

from .capability import CapabilityRegistry, OwnerCap
from .clock import Clock
from .errors import InvariantViolation
from .pool import PoolState, StakePool
from .stake import Stake
from .token import Balance, TokenLedger

STATE_FILE = "pool_state.json"


def get_state_dir() -> str:
    """Get the state directory path."""
    return os.getenv(
        "STAKE_POOL_STATE_DIR",
        os.path.join(os.path.expanduser("~"), ".stake-pool")
    )


class StoredPool(NamedTuple):
    pool: StakePool
    ledger: TokenLedger
    owner_cap: Optional[OwnerCap]


def state_to_dict(state: PoolState) -> Dict:
    registry = state.registry
    return {
        "owner": registry.owner,
        "owner_cap_id": registry.owner_cap_id,
        "admins": dict(registry.admins),
        "paused": state.paused,
        "next_stake_id": state.next_stake_id,
        "total_staked": state.total_staked,
        "total_rewards_distributed": state.total_rewards_distributed,
        "principal": state.principal.value,
        "reserve": state.reserve.value,
        "stakes": {
            address: [record.model_dump() for record in records]
            for address, records in state.stakes.items()
        },
    }


def state_from_dict(data: Dict) -> PoolState:
    registry = CapabilityRegistry(
        owner=data["owner"],
        owner_cap_id=data["owner_cap_id"],
        admins=data.get("admins", {}),
    )
    state = PoolState(
        registry=registry,
        paused=data.get("paused", False),
        next_stake_id=data.get("next_stake_id", 1),
        total_staked=data.get("total_staked", 0),
        total_rewards_distributed=data.get("total_rewards_distributed", 0),
        principal=Balance(data.get("principal", 0)),
        reserve=Balance(data.get("reserve", 0)),
        stakes={
            address: [Stake.model_validate(record) for record in records]
            for address, records in data.get("stakes", {}).items()
        },
    )
    state.check_invariants()
    return state


def save_state(path: Union[str, Path], pool: StakePool, ledger: TokenLedger,
               owner_cap: Optional[OwnerCap] = None) -> None:
    """Write the pool snapshot to ``path``."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = {
        "pool": state_to_dict(pool.state),
        "ledger": ledger.to_dict(),
        "owner_cap": {"id": owner_cap.id, "holder": owner_cap.holder} if owner_cap else None,
    }
    tmp_path = path.with_suffix(".tmp")
    with open(tmp_path, 'w') as f:
        json.dump(data, f, indent=2)
    os.replace(tmp_path, path)
    logger.debug(f"Saved pool state to {path}")


def load_state(path: Union[str, Path], clock: Optional[Clock] = None) -> StoredPool:
    """Read a pool snapshot written by :func:`save_state`.

    Raises:
        FileNotFoundError: If no snapshot exists at ``path``
        ValueError: If the snapshot is malformed or its balances are inconsistent
    """
    path = Path(path)
    with open(path) as f:
        data = json.load(f)
    try:
        state = state_from_dict(data["pool"])
    except (KeyError, InvariantViolation) as e:
        raise ValueError(f"Corrupt pool state in {path}: {e}")
    cap_data = data.get("owner_cap")
    owner_cap = OwnerCap(**cap_data) if cap_data else None
    logger.debug(f"Loaded pool state from {path}")
    return StoredPool(StakePool(state, clock=clock), TokenLedger.from_dict(data.get("ledger", {})), owner_cap)
