"""Unit tests for stake records."""
import pytest
from pydantic import ValidationError
from stakepool.core.stake import Stake

DAY_MS = 86_400_000


@pytest.fixture
def record():
    return Stake(id=1, amount=1_000_000_000, start_time=0, end_time=30 * DAY_MS, apy_bp=500)


def test_stake_creation(record):
    """Test creating a stake record."""
    assert record.id == 1
    assert record.amount == 1_000_000_000
    assert record.apy_bp == 500
    assert record.claimed is False
    assert record.duration_seconds == 30 * 86_400


@pytest.mark.parametrize("amount", [0, -5])
def test_stake_rejects_non_positive_amount(amount):
    """Test that a stake must lock a positive amount."""
    with pytest.raises(ValidationError):
        Stake(id=1, amount=amount, start_time=0, end_time=DAY_MS, apy_bp=500)


def test_stake_rejects_inverted_window():
    """Test that end_time cannot precede start_time."""
    with pytest.raises(ValidationError):
        Stake(id=1, amount=1, start_time=DAY_MS, end_time=0, apy_bp=500)


def test_maturity_boundary(record):
    """Test maturity is reached exactly at end_time."""
    assert not record.is_mature(record.end_time - 1)
    assert record.is_mature(record.end_time)
    assert record.is_mature(record.end_time + 1)


def test_claimed_flag_is_one_way(record):
    """Test that a stake can only be marked claimed once."""
    record.mark_claimed()
    assert record.claimed is True
    with pytest.raises(ValueError):
        record.mark_claimed()
    assert record.claimed is True


def test_copy_is_independent(record):
    """Test that copies handed out by queries do not alias the original."""
    copy = record.model_copy()
    copy.mark_claimed()
    assert record.claimed is False


def test_dump_and_validate(record):
    """Test the serialized form used by the state store."""
    data = record.model_dump()
    assert data == {
        "id": 1,
        "amount": 1_000_000_000,
        "start_time": 0,
        "end_time": 30 * DAY_MS,
        "apy_bp": 500,
        "claimed": False,
    }
    assert Stake.model_validate(data) == record
