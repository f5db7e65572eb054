"""Unit tests for the reward formula and period table."""
import pytest
from stakepool.core.errors import InvalidAmount, InvalidPeriod
from stakepool.core.rewards import (
    APY_TABLE,
    LockPeriod,
    apy_for_period,
    calculate_reward,
    lock_duration_ms,
    quote_reward,
)

DAY_SECONDS = 86_400


def test_reference_reward():
    """Test the 30 day / 5% reference value."""
    assert calculate_reward(1_000_000_000, 500, 30 * DAY_SECONDS) == 4_109_589


@pytest.mark.parametrize("days,expected", [
    (30, 4_109_589),
    (90, 19_726_027),
    (180, 59_178_082),
    (365, 200_000_000),
])
def test_quote_per_period(days, expected):
    """Test quotes for one token across every lock period."""
    assert quote_reward(1_000_000_000, days) == expected


def test_reward_truncates():
    """Test that fractional base units are floored, never rounded."""
    # exact value is 5_073_566.67
    assert calculate_reward(1_234_567_890, 500, 30 * DAY_SECONDS) == 5_073_566
    assert calculate_reward(1, 500, 30 * DAY_SECONDS) == 0


def test_reward_is_exact_for_large_amounts():
    """Test that large amounts do not lose precision."""
    amount = 10 ** 18
    assert calculate_reward(amount, 2000, 365 * DAY_SECONDS) == amount // 5


def test_apy_table():
    """Test the fixed APY table."""
    assert {int(p): apy for p, apy in APY_TABLE.items()} == {30: 500, 90: 800, 180: 1200, 365: 2000}
    for period in LockPeriod:
        assert apy_for_period(int(period)) == APY_TABLE[period]


@pytest.mark.parametrize("days", [0, 1, 29, 31, 60, 364, 366, -30])
def test_unknown_period(days):
    """Test that periods outside the table are rejected."""
    with pytest.raises(InvalidPeriod):
        apy_for_period(days)
    with pytest.raises(InvalidPeriod):
        quote_reward(1_000_000_000, days)


def test_lock_duration_ms():
    assert lock_duration_ms(30) == 30 * 86_400 * 1000


@pytest.mark.parametrize("amount", [-1, -1_000_000_000, 1.5e9, 1.0, "1000000000", None, True])
def test_quote_rejects_bad_amount(amount):
    """Test that quotes only accept non-negative integer base units."""
    with pytest.raises(InvalidAmount):
        quote_reward(amount, 30)


def test_quote_of_zero():
    assert quote_reward(0, 365) == 0
