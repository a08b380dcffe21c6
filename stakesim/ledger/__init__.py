"""
Ledger access.

This module provides:
- Ledger: Abstract query/submission/clock-control interface
- MemoryLedger: Deterministic in-process staking ledger
- Web3Ledger: JSON-RPC ledger via web3.py (Hardhat/Anvil forks)
"""

from .base import (
    Ledger,
    REWARD_CONTROLLER,
    REWARD_MASTER,
    REWARD_PAID,
    REWARD_TREASURY,
    STAKE_CLAIMED,
    STAKE_CREATED,
    STAKING,
    TOKEN,
)
from .memory import MemoryLedger, MemoryStake, linear_reward, role_address
from .web3_ledger import Web3Ledger

__all__ = [
    "Ledger",
    "MemoryLedger",
    "MemoryStake",
    "Web3Ledger",
    "linear_reward",
    "role_address",
    "REWARD_CONTROLLER",
    "REWARD_MASTER",
    "REWARD_PAID",
    "REWARD_TREASURY",
    "STAKE_CLAIMED",
    "STAKE_CREATED",
    "STAKING",
    "TOKEN",
]
