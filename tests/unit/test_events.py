"""Unit tests for pool notifications."""
import threading
from stakepool.core import Coin
from stakepool.core.events import EventLog, PauseChanged, RewardsAdded, StakeCreated
from stakepool.core.token import BASE_UNIT


def test_listeners_receive_events(pool):
    """Test subscribing to pool notifications."""
    seen = []
    pool.events.subscribe(seen.append)
    pool.add_rewards("owner", Coin(BASE_UNIT))
    pool.stake("bob", Coin(BASE_UNIT), 30)
    assert [type(e) for e in seen] == [RewardsAdded, StakeCreated]
    assert seen == list(pool.events.history)


def test_failing_listener_does_not_block_operation(pool):
    """Test that a broken listener cannot undo an applied operation."""
    def broken(event):
        raise RuntimeError("boom")

    seen = []
    pool.events.subscribe(broken)
    pool.events.subscribe(seen.append)
    record = pool.stake("bob", Coin(BASE_UNIT), 30)
    assert pool.get_stake("bob", record.id).amount == BASE_UNIT
    assert len(seen) == 1


def test_of_type():
    log = EventLog()
    log.emit(PauseChanged(timestamp=1, by="owner", paused=True))
    log.emit(RewardsAdded(timestamp=2, funder="owner", amount=5, reserve_total=5))
    assert [e.timestamp for e in log.of_type(PauseChanged)] == [1]
    assert log.of_type(StakeCreated) == []


def test_history_is_bounded():
    """Test that only the most recent events are kept."""
    log = EventLog(max_history=3)
    for ts in range(5):
        log.emit(PauseChanged(timestamp=ts, by="owner", paused=True))
    assert [e.timestamp for e in log.history] == [2, 3, 4]


def test_listener_may_wait_on_other_threads(pool):
    """Test that listeners run after the pool lock is released."""
    stats = []
    blocked = []

    def read_from_worker(event):
        worker = threading.Thread(target=lambda: stats.append(pool.get_pool_stats()))
        worker.start()
        worker.join(timeout=5)
        blocked.append(worker.is_alive())

    pool.events.subscribe(read_from_worker)
    pool.stake("bob", Coin(BASE_UNIT), 30)
    assert blocked == [False]
    assert len(stats) == 1
    assert stats[0].total_staked == BASE_UNIT
