"""
Ledger abstract interface.

Defines the query, submission and clock-control contract the harvester and
the replay engine consume.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence

from ..core.events import BlockMeta, RawLog
from ..core.receipts import Call, Receipt, TxHandle
from .abi import classic_action_hash

STAKING = "staking"
TOKEN = "token"
REWARD_CONTROLLER = "reward_controller"
REWARD_MASTER = "reward_master"
REWARD_TREASURY = "reward_treasury"

STAKE_CREATED = "StakeCreated"
STAKE_CLAIMED = "StakeClaimed"
REWARD_PAID = "RewardPaid"


class Ledger(ABC):
    """
    Abstract ledger interface.

    All implementations must guarantee:
    - Range-bounded historical log queries in (block, log index) order
    - wait() returns only once the mutation is included in a block
    - Submissions are accepted only from impersonated identities
    """

    # Queries

    @abstractmethod
    def latest_block(self) -> int:
        """Number of the latest block."""
        ...

    @abstractmethod
    def get_block(self, number: int) -> BlockMeta:
        """
        Get block metadata.

        Raises:
            LedgerError: If the block does not exist
        """
        ...

    @abstractmethod
    def get_logs(
        self,
        address: Optional[str],
        topics: Optional[Sequence[Optional[str]]],
        from_block: int,
        to_block: int,
    ) -> List[RawLog]:
        """
        Query emitted logs.

        Args:
            address: Emitting contract filter (None = any)
            topics: Topic filter, topics[0] selects the event (None = any)
            from_block: First block (inclusive)
            to_block: Last block (inclusive)

        Returns:
            Log entries in ascending (block, log index) order
        """
        ...

    @abstractmethod
    def event_topic(self, name: str) -> str:
        """Topic identifying an event by name."""
        ...

    @abstractmethod
    def contract_address(self, role: str) -> str:
        """Address of a contract by role (STAKING, TOKEN, ...)."""
        ...

    @abstractmethod
    def native_balance(self, address: str) -> int:
        ...

    @abstractmethod
    def token_balance(self, address: str) -> int:
        ...

    @abstractmethod
    def allowance(self, owner: str, spender: str) -> int:
        ...

    @abstractmethod
    def total_staked(self) -> int:
        ...

    # Submission

    @abstractmethod
    def submit(self, sender: str, call: Call) -> TxHandle:
        """
        Submit a mutation on behalf of sender.

        Raises:
            LedgerError: If the submission is rejected
        """
        ...

    @abstractmethod
    def wait(self, handle: TxHandle) -> Receipt:
        """
        Await finalization of a submitted mutation.

        Raises:
            LedgerError: If the mutation fails to execute
        """
        ...

    @abstractmethod
    def impersonate(self, address: str) -> None:
        ...

    @abstractmethod
    def stop_impersonating(self, address: str) -> None:
        ...

    @contextmanager
    def impersonating(self, address: str) -> Iterator[str]:
        """
        Scoped authority over address's transactions.

        Released on exit, including when the body raises.
        """
        self.impersonate(address)
        try:
            yield address
        finally:
            self.stop_impersonating(address)

    # Clock control

    @abstractmethod
    def now(self) -> int:
        """Timestamp of the latest block."""
        ...

    @abstractmethod
    def set_automine(self, enabled: bool) -> None:
        ...

    @abstractmethod
    def mine_at(self, timestamp: int) -> None:
        """Mine one block at exactly timestamp, including all pending mutations."""
        ...

    @abstractmethod
    def set_balance(self, address: str, amount: int) -> None:
        ...

    def action_id(self, action: str) -> str:
        """Reward adviser action id for a classic stake or unstake."""
        return classic_action_hash(action)

    def set_interval_mining(self, interval: int) -> None:
        """
        Configure interval block production (0 disables it).

        Implementations may override. Default does nothing.
        """
        return None
