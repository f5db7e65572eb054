"""Test configuration and fixtures for Stake Pool."""
import sys
import pytest
from loguru import logger
from stakepool.core import Coin, ManualClock, StakePool
from stakepool.core.token import BASE_UNIT

START_MS = 1_700_000_000_000


@pytest.fixture
def clock():
    """Manual clock parked at a fixed timestamp."""
    return ManualClock(START_MS)


@pytest.fixture
def pool_and_cap(clock):
    return StakePool.create("owner", clock=clock)


@pytest.fixture
def pool(pool_and_cap):
    """Fresh pool owned by ``owner`` with an empty reward reserve."""
    return pool_and_cap[0]


@pytest.fixture
def owner_cap(pool_and_cap):
    return pool_and_cap[1]


@pytest.fixture
def funded_pool(pool):
    """Pool with 1000 tokens in the reward reserve."""
    pool.add_rewards("owner", Coin(1_000 * BASE_UNIT))
    return pool


@pytest.fixture
def state_dir(tmp_path, monkeypatch):
    """Point the state directory at a temporary path."""
    monkeypatch.setenv("STAKE_POOL_STATE_DIR", str(tmp_path))
    monkeypatch.delenv("STAKE_POOL_LOG_LEVEL", raising=False)
    return tmp_path


@pytest.fixture(autouse=True)
def reset_logger():
    """Restore the default loguru sink after tests that reconfigure it."""
    yield
    logger.remove()
    logger.add(sys.stderr)
