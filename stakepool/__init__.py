"""Stake Pool: fixed-term token staking with a funded reward reserve."""

__version__ = "0.1.0"
