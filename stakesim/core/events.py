"""
Ledger event records.

RawLog is a log entry as returned by a ledger query; StakeEvent is the typed
domain record decoded from it. Both are immutable.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class BlockMeta:
    """Metadata of the block enclosing a log entry."""
    number: int
    timestamp: int


@dataclass(frozen=True)
class RawLog:
    """
    Raw emitted-event record.

    Fields:
        event: Event name (e.g., "StakeCreated"), None if unrecognised
        block_number: Block containing the entry
        transaction_hash: Hash of the emitting transaction
        log_index: Position of the entry within its block
        address: Emitting contract address
        args: Ordered argument bag (name -> value), None if unparseable
    """
    event: Optional[str]
    block_number: int
    transaction_hash: str
    log_index: int = 0
    address: Optional[str] = None
    args: Optional[Mapping[str, Any]] = None

    def positional(self, index: int) -> Any:
        """
        Get the argument at a position in declaration order.

        Raises:
            IndexError: If args is absent or too short
        """
        if self.args is None:
            raise IndexError("RawLog has no args")
        return list(self.args.values())[index]

    def arg(self, name: str, default: Any = None) -> Any:
        if self.args is None:
            return default
        return self.args.get(name, default)


def iso_date(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


@dataclass(frozen=True)
class StakeEvent:
    """
    Decoded staking event.

    Quantities (stake_id, amount, locked_till, reward) are decimal strings so
    that uint256 values survive JSON round trips untruncated.
    """
    name: Optional[str]
    block_number: int
    timestamp: int
    transaction_hash: str
    address: str
    stake_id: Optional[str] = None
    amount: Optional[str] = None
    locked_till: Optional[str] = None
    reward: Optional[str] = None

    @property
    def date(self) -> str:
        return iso_date(self.timestamp)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "blockNumber": self.block_number,
            "timestamp": self.timestamp,
            "date": self.date,
            "transactionHash": self.transaction_hash,
            "address": self.address,
            "stakeID": self.stake_id,
            "amount": self.amount,
            "lockedTill": self.locked_till,
        }
        if self.reward is not None:
            data["reward"] = self.reward
        return data

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "StakeEvent":
        return StakeEvent(
            name=data.get("name"),
            block_number=int(data["blockNumber"]),
            timestamp=int(data["timestamp"]),
            transaction_hash=data["transactionHash"],
            address=data["address"],
            stake_id=data.get("stakeID"),
            amount=data.get("amount"),
            locked_till=data.get("lockedTill"),
            reward=data.get("reward"),
        )
