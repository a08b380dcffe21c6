"""
Replay actions and their results.

An action is a single stake or unstake request. Staking and unstaking actions
of the same position share a uuid; the join is validated when a batch is
loaded, before anything touches the ledger.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .errors import CorrelationError
from .events import RawLog
from .numbers import parse_int, parse_optional_int
from .receipts import Receipt, TxHandle

HISTORICAL_TYPES = ("real", "historical")


class ActionType(str, Enum):
    HISTORICAL = "historical"
    SYNTHETIC = "synthetic"


class ActionKind(str, Enum):
    STAKING = "staking"
    UNSTAKING = "unstaking"


@dataclass
class Action:
    """
    Stake or unstake request.

    Mutable: a staking action's observed stake_id is written into the
    unstaking action sharing its uuid.

    Fields:
        uuid: Correlation key shared by a stake and its unstake
        type: Historical (replayed real data) or synthetic (generated)
        kind: Staking or unstaking
        address: Actor performing the action
        amount: Staked amount (wei)
        timestamp: Ledger time the action must land at
        stake_id: Stake identifier, None until resolved for synthetic stakes
        expected_reward: Reward the source data expects (unstaking only)
        date: Display date carried through from source data
        transaction_hash: Set once the action has been executed
        raw_type: Original type string from source data
    """
    uuid: str
    type: ActionType
    kind: ActionKind
    address: str
    amount: int
    timestamp: int
    stake_id: Optional[int] = None
    expected_reward: Optional[int] = None
    date: Optional[str] = None
    transaction_hash: Optional[str] = None
    raw_type: Optional[str] = None

    @property
    def is_staking(self) -> bool:
        return self.kind == ActionKind.STAKING

    @property
    def is_historical(self) -> bool:
        return self.type == ActionType.HISTORICAL

    def label(self) -> str:
        suffix = f".{self.stake_id}" if self.stake_id is not None else ""
        return f"{self.kind.value} {self.amount} for {self.address}{suffix}"

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Action":
        """
        Build an action from its persisted JSON form.

        Raises:
            ValueError: If a required field is missing or malformed
        """
        try:
            raw_type = str(data["type"])
            kind = ActionKind(data["action"])
            return Action(
                uuid=str(data["uuid"]),
                type=ActionType.HISTORICAL if raw_type in HISTORICAL_TYPES else ActionType.SYNTHETIC,
                kind=kind,
                address=str(data["address"]),
                amount=parse_int(data["amount"]),
                timestamp=parse_int(data["timestamp"]),
                stake_id=parse_optional_int(data.get("stakeID")),
                expected_reward=parse_optional_int(data.get("rewardsBN")),
                date=data.get("date"),
                transaction_hash=data.get("transactionHash"),
                raw_type=raw_type,
            )
        except KeyError as ex:
            raise ValueError(f"action is missing field {ex.args[0]!r}: {data}") from ex
        except TypeError as ex:
            raise ValueError(f"malformed action {data}: {ex}") from ex

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "uuid": self.uuid,
            "type": self.raw_type or self.type.value,
            "action": self.kind.value,
            "address": self.address,
            "amount": str(self.amount),
            "timestamp": self.timestamp,
        }
        if self.date is not None:
            data["date"] = self.date
        if self.stake_id is not None:
            data["stakeID"] = str(self.stake_id)
        if self.expected_reward is not None:
            data["rewardsBN"] = str(self.expected_reward)
        if self.transaction_hash is not None:
            data["transactionHash"] = self.transaction_hash
        return data


@dataclass(frozen=True)
class ActionResult:
    """
    Outcome of one executed action.

    Fields:
        kind: Staking or unstaking
        submission: Handle of the submitted mutation
        receipt: Finalized receipt
        event: The StakeCreated / RewardPaid entry matched in the receipt
        stake_id: Observed stake id (staking only)
        reward: Observed reward (unstaking only)
        index: Position of the action in its batch (-1 outside a batch)
    """
    kind: ActionKind
    submission: TxHandle
    receipt: Receipt
    event: RawLog
    stake_id: Optional[int] = None
    reward: Optional[int] = None
    index: int = -1

    @property
    def value(self) -> Optional[int]:
        return self.stake_id if self.kind == ActionKind.STAKING else self.reward

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "index": self.index,
            "action": self.kind.value,
            "transactionHash": self.submission.hash,
            "blockNumber": self.receipt.block_number,
            "timestamp": self.receipt.timestamp,
        }
        if self.stake_id is not None:
            data["stakeID"] = str(self.stake_id)
        if self.reward is not None:
            data["reward"] = str(self.reward)
        return data


def load_actions(path: str) -> List[Action]:
    """
    Load an ordered action batch from a JSON file.

    Returns:
        Actions in file order
    """
    with open(path, "r") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON array of actions")
    return [Action.from_dict(d) for d in data]


def save_actions(path: str, actions: Iterable[Action]) -> None:
    with open(path, "w") as f:
        json.dump([a.to_dict() for a in actions], f, indent=2)


def partition(actions: Iterable[Action]) -> Tuple[List[Action], List[Action]]:
    """Split actions into (historical, synthetic), preserving order."""
    historical: List[Action] = []
    synthetic: List[Action] = []
    for a in actions:
        (historical if a.is_historical else synthetic).append(a)
    return historical, synthetic


def validate_correlation(actions: List[Action]) -> Dict[str, Tuple[int, int]]:
    """
    Join staking and unstaking actions on uuid.

    Rejects the batch if:
    - a uuid is shared by two staking or two unstaking actions
    - a staking action has no unstaking partner
    - an unstaking action needs a partner (synthetic, or no declared stakeID)
      and has none
    - an unstaking action comes before its staking partner

    Args:
        actions: Ordered action batch

    Returns:
        uuid -> (staking index, unstaking index) for every joined pair

    Raises:
        CorrelationError: On the first violation found
    """
    staking: Dict[str, int] = {}
    unstaking: Dict[str, int] = {}

    for i, a in enumerate(actions):
        index = staking if a.is_staking else unstaking
        if a.uuid in index:
            raise CorrelationError(
                f"uuid {a.uuid} used by {a.kind.value} actions #{index[a.uuid]} and #{i}"
            )
        index[a.uuid] = i

    pairs: Dict[str, Tuple[int, int]] = {}
    for uuid, si in staking.items():
        ui = unstaking.get(uuid)
        if ui is None:
            raise CorrelationError(
                f"staking action #{si} (uuid {uuid}) has no corresponding unstaking action"
            )
        if ui < si:
            raise CorrelationError(
                f"unstaking action #{ui} precedes its staking action #{si} (uuid {uuid})"
            )
        pairs[uuid] = (si, ui)

    for uuid, ui in unstaking.items():
        if uuid in staking:
            continue
        a = actions[ui]
        if not a.is_historical or a.stake_id is None:
            raise CorrelationError(
                f"unstaking action #{ui} (uuid {uuid}) has no corresponding staking action"
            )

    return pairs
