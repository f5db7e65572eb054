"""Fungible token primitives used by the stake pool."""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Dict, Union
from loguru import logger

DECIMALS = 9
BASE_UNIT = 10 ** DECIMALS
TOTAL_SUPPLY = 1_000_000_000 * BASE_UNIT  # 1B tokens


class TokenError(Exception):
    """Base class for token errors."""


class InsufficientBalance(TokenError):
    """Withdrawal exceeds the available value."""


class SupplyExceeded(TokenError):
    """Mint would push circulating supply past TOTAL_SUPPLY."""


class CoinSpent(TokenError):
    """Coin has already been joined into a balance or burned."""


def to_base_units(amount: Union[str, int, Decimal]) -> int:
    """Convert a token amount (e.g. "1.5") into integer base units.

    Raises:
        ValueError: If the amount is negative, malformed or finer than 9 decimals
    """
    try:
        value = Decimal(str(amount)) * BASE_UNIT
    except InvalidOperation:
        raise ValueError(f"Invalid token amount: {amount!r}")
    if value < 0 or value != value.to_integral_value():
        raise ValueError(f"Invalid token amount: {amount!r}")
    return int(value)


def format_amount(base_units: int) -> str:
    """Render base units as a token string with 9 decimals."""
    whole, frac = divmod(base_units, BASE_UNIT)
    return f"{whole}.{frac:0{DECIMALS}d}"


@dataclass
class Coin:
    """A concrete, transferable amount of the token."""
    value: int = 0
    spent: bool = False

    def __post_init__(self):
        if self.value < 0:
            raise ValueError("Coin value cannot be negative")

    def merge(self, other: "Coin") -> None:
        """Absorb another coin into this one."""
        if self.spent or other.spent:
            raise CoinSpent("Cannot merge a spent coin")
        self.value += other.value
        other.value = 0
        other.spent = True


@dataclass
class Balance:
    """Stored value that only moves through join (deposit) and split (withdraw)."""
    value: int = 0

    def join(self, coin: Coin) -> int:
        """Deposit a coin, consuming it. Returns the new balance."""
        if coin.spent:
            raise CoinSpent("Coin has already been spent")
        self.value += coin.value
        coin.value = 0
        coin.spent = True
        return self.value

    def split(self, amount: int) -> Coin:
        """Withdraw ``amount`` as a new coin."""
        if amount < 0:
            raise ValueError("Cannot withdraw a negative amount")
        if amount > self.value:
            raise InsufficientBalance(f"Cannot withdraw {amount}, only {self.value} available")
        self.value -= amount
        return Coin(amount)


class TokenLedger:
    """Account holdings plus mint/burn against a fixed total supply."""

    def __init__(self, holdings: Dict[str, int] = None, burned: int = 0):
        self.holdings: Dict[str, int] = dict(holdings or {})
        self.burned = burned

    @property
    def circulating_supply(self) -> int:
        """Value held by accounts (coins in flight or in pools are not counted)."""
        return sum(self.holdings.values())

    def balance_of(self, account: str) -> int:
        return self.holdings.get(account, 0)

    def mint(self, amount: int, recipient: str, outstanding: int = 0) -> int:
        """Mint ``amount`` into ``recipient``'s holdings.

        Args:
            amount: Base units to mint
            recipient: Receiving account
            outstanding: Value held outside the ledger (e.g. locked in a pool)
                that still counts toward the supply cap

        Returns:
            Recipient's new balance
        """
        if amount <= 0:
            raise ValueError("Mint amount must be positive")
        if self.circulating_supply + outstanding + amount > TOTAL_SUPPLY:
            raise SupplyExceeded(f"Minting {amount} would exceed total supply {TOTAL_SUPPLY}")
        self.holdings[recipient] = self.balance_of(recipient) + amount
        logger.info(f"Minted {format_amount(amount)} to {recipient}")
        return self.holdings[recipient]

    def burn(self, coin: Coin) -> int:
        """Destroy a coin and return the amount burned."""
        if coin.spent:
            raise CoinSpent("Coin has already been spent")
        amount = coin.value
        coin.value = 0
        coin.spent = True
        self.burned += amount
        logger.info(f"Burned {format_amount(amount)}")
        return amount

    def withdraw(self, account: str, amount: int) -> Coin:
        """Take ``amount`` out of an account as a coin."""
        available = self.balance_of(account)
        if amount > available:
            raise InsufficientBalance(f"{account} holds {available}, cannot withdraw {amount}")
        balance = Balance(available)
        coin = balance.split(amount)
        self.holdings[account] = balance.value
        return coin

    def deposit(self, account: str, coin: Coin) -> int:
        """Credit a coin to an account. Returns the account's new balance."""
        balance = Balance(self.balance_of(account))
        balance.join(coin)
        self.holdings[account] = balance.value
        return balance.value

    def to_dict(self) -> Dict:
        return {"holdings": dict(self.holdings), "burned": self.burned}

    @classmethod
    def from_dict(cls, data: Dict) -> "TokenLedger":
        return cls(holdings=data.get("holdings", {}), burned=data.get("burned", 0))
