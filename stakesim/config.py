"""
Environment-driven settings.

Environment Variables:
    STAKESIM_RPC_URL: JSON-RPC endpoint of the (forked) node
    STAKESIM_STAKING_ADDRESS: Staking contract
    STAKESIM_TOKEN_ADDRESS: Staked token contract
    STAKESIM_REWARD_CONTROLLER_ADDRESS: Reward controller (emits RewardPaid)
    STAKESIM_REWARD_MASTER_ADDRESS: Reward master (adviser registry)
    STAKESIM_REWARD_TREASURY_ADDRESS: Treasury paying rewards
    STAKESIM_OWNER: Identity administering reward contracts
    STAKESIM_MINTER: Identity funding token top-ups
    STAKESIM_WINDOW_BLOCKS: Blocks per log query - default: 500
    STAKESIM_MIN_NATIVE_BALANCE: Gas balance floor in wei - default: 1 ether
    STAKESIM_APPROVAL_AMOUNT: Allowance granted when too low - default: 2,000,000 ether
"""

import os
from dataclasses import dataclass
from typing import Dict, Optional

from .core.numbers import WEI
from .ledger.base import REWARD_CONTROLLER, REWARD_MASTER, REWARD_TREASURY, STAKING, TOKEN

DEFAULT_WINDOW_BLOCKS = 500
DEFAULT_MIN_NATIVE_BALANCE = WEI
DEFAULT_APPROVAL_AMOUNT = 2_000_000 * WEI


def _env_int(key: str, default: int) -> int:
    val = os.getenv(key)
    if not val:
        return default
    try:
        parsed = int(val, 0)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


@dataclass(frozen=True)
class Settings:
    """Resolved configuration."""
    rpc_url: Optional[str] = None
    staking_address: Optional[str] = None
    token_address: Optional[str] = None
    reward_controller_address: Optional[str] = None
    reward_master_address: Optional[str] = None
    reward_treasury_address: Optional[str] = None
    owner: Optional[str] = None
    minter: Optional[str] = None
    window_blocks: int = DEFAULT_WINDOW_BLOCKS
    min_native_balance: int = DEFAULT_MIN_NATIVE_BALANCE
    approval_amount: int = DEFAULT_APPROVAL_AMOUNT

    @staticmethod
    def from_env() -> "Settings":
        return Settings(
            rpc_url=os.getenv("STAKESIM_RPC_URL"),
            staking_address=os.getenv("STAKESIM_STAKING_ADDRESS"),
            token_address=os.getenv("STAKESIM_TOKEN_ADDRESS"),
            reward_controller_address=os.getenv("STAKESIM_REWARD_CONTROLLER_ADDRESS"),
            reward_master_address=os.getenv("STAKESIM_REWARD_MASTER_ADDRESS"),
            reward_treasury_address=os.getenv("STAKESIM_REWARD_TREASURY_ADDRESS"),
            owner=os.getenv("STAKESIM_OWNER"),
            minter=os.getenv("STAKESIM_MINTER"),
            window_blocks=_env_int("STAKESIM_WINDOW_BLOCKS", DEFAULT_WINDOW_BLOCKS),
            min_native_balance=_env_int("STAKESIM_MIN_NATIVE_BALANCE", DEFAULT_MIN_NATIVE_BALANCE),
            approval_amount=_env_int("STAKESIM_APPROVAL_AMOUNT", DEFAULT_APPROVAL_AMOUNT),
        )

    def contract_addresses(self) -> Dict[str, str]:
        """Contract role -> address for every configured contract."""
        pairs = {
            STAKING: self.staking_address,
            TOKEN: self.token_address,
            REWARD_CONTROLLER: self.reward_controller_address,
            REWARD_MASTER: self.reward_master_address,
            REWARD_TREASURY: self.reward_treasury_address,
        }
        return {role: addr for role, addr in pairs.items() if addr}
