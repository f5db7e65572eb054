"""Unit tests for serialized access to the pool."""
import threading
import pytest
from stakepool.core import Coin, NotFound
from stakepool.core.token import BASE_UNIT

DAY_MS = 86_400_000


def _race(workers):
    barrier = threading.Barrier(len(workers))
    results = [None] * len(workers)

    def run(i, fn):
        barrier.wait()
        try:
            results[i] = fn()
        except Exception as e:
            results[i] = e

    threads = [threading.Thread(target=run, args=(i, fn)) for i, fn in enumerate(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)
    return results


@pytest.mark.parametrize("attempts", [2, 8])
def test_concurrent_claims_pay_once(funded_pool, clock, attempts):
    """Test that racing claims on one stake produce a single payout."""
    record = funded_pool.stake("bob", Coin(BASE_UNIT), 30)
    clock.advance(30 * DAY_MS)

    results = _race([lambda: funded_pool.claim("bob", record.id)] * attempts)

    payouts = [r for r in results if isinstance(r, Coin)]
    failures = [r for r in results if isinstance(r, NotFound)]
    assert len(payouts) == 1
    assert len(failures) == attempts - 1
    assert funded_pool.get_pool_stats().total_rewards_distributed == 4_109_589
    funded_pool.state.check_invariants()


def test_claim_races_emergency_unstake(funded_pool, clock):
    """Test that claim and emergency unstake cannot both retire a stake."""
    record = funded_pool.stake("bob", Coin(BASE_UNIT), 30)
    clock.advance(30 * DAY_MS)

    results = _race([
        lambda: funded_pool.claim("bob", record.id),
        lambda: funded_pool.emergency_unstake("bob", record.id),
    ])

    assert sum(isinstance(r, Coin) for r in results) == 1
    assert sum(isinstance(r, NotFound) for r in results) == 1
    funded_pool.state.check_invariants()


def test_concurrent_stakes_get_unique_ids(pool):
    """Test that parallel stakes never share an id."""
    accounts = [f"user{i}" for i in range(16)]
    results = _race([lambda a=a: pool.stake(a, Coin(BASE_UNIT), 90) for a in accounts])

    ids = sorted(r.id for r in results)
    assert ids == list(range(1, 17))
    assert pool.get_pool_stats().total_staked == 16 * BASE_UNIT
    pool.state.check_invariants()
