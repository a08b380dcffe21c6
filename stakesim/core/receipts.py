"""
Submission records exchanged with a ledger.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from .events import RawLog


@dataclass(frozen=True)
class Call:
    """
    A contract mutation request.

    Fields:
        contract: Contract role ("staking", "token", "reward_master", ...)
        function: Function name on that contract
        args: Positional call arguments
    """
    contract: str
    function: str
    args: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class TxHandle:
    """Handle to a submitted mutation."""
    hash: str
    sender: str
    call: Call
    nonce: int = 0


@dataclass(frozen=True)
class Receipt:
    """
    Finalized mutation record.

    Fields:
        transaction_hash: Hash of the finalized transaction
        block_number: Block the transaction was included in
        timestamp: Timestamp of that block
        status: 1 for success, 0 for revert
        logs: Log entries emitted by the transaction, in order
    """
    transaction_hash: str
    block_number: int
    timestamp: int
    status: int = 1
    logs: List[RawLog] = field(default_factory=list)

    def find_event(self, name: str, emitter: Optional[str] = None) -> Optional[RawLog]:
        """
        Find the single log entry with a given event name.

        Args:
            name: Event name to look for
            emitter: Restrict to logs emitted by this address (case-insensitive)

        Returns:
            First matching RawLog, or None
        """
        for log in self.logs:
            if log.event != name:
                continue
            if emitter is not None and (log.address or "").lower() != emitter.lower():
                continue
            return log
        return None

    def to_dict(self):
        return {
            "transactionHash": self.transaction_hash,
            "blockNumber": self.block_number,
            "timestamp": self.timestamp,
            "status": self.status,
            "logs": [
                {
                    "event": log.event,
                    "logIndex": log.log_index,
                    "address": log.address,
                    "args": dict(log.args) if log.args is not None else None,
                }
                for log in self.logs
            ],
        }
