"""
Replay runner: drive an ordered action batch against a ledger.

Each action is executed at its recorded timestamp. Stakes bind their observed
stake id onto the correlated unstake; unstakes reconcile the paid reward
against the expected one. Protocol violations abort the whole run.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..core.actions import Action, ActionResult, validate_correlation
from ..core.errors import (
    CorrelationError,
    InvalidTransitionError,
    LedgerError,
    ProtocolViolation,
    ReplayAbortedError,
    StakeIdMismatchError,
)
from ..core.numbers import format_ether
from ..executor.executor import ActionExecutor
from ..executor.session import Session
from ..ledger.base import REWARD_TREASURY, STAKING
from ..logging_config import get_logger
from .stats import ReplayStats, delta_per_token
from .warmup import WarmupPlan, warm_up

DEFAULT_SNAPSHOT_EVERY = 5

SnapshotFn = Callable[[int, Dict[str, Any]], None]


class ReplayState(str, Enum):
    INIT = "init"
    WARM = "warm"
    RUNNING = "running"
    DONE = "done"
    ABORTED = "aborted"


_TRANSITIONS = {
    ReplayState.INIT: {ReplayState.WARM, ReplayState.RUNNING},
    ReplayState.WARM: {ReplayState.RUNNING},
    ReplayState.RUNNING: {ReplayState.DONE, ReplayState.ABORTED},
    ReplayState.DONE: set(),
    ReplayState.ABORTED: set(),
}


@dataclass(frozen=True)
class ReplayResult:
    """
    Result of a replay run.

    Fields:
        actions: The executed batch, with stake ids and transaction hashes bound
        results: One ActionResult per action, in input order
        stats: Final reconciliation statistics
        final_timestamp: Ledger clock after the last action
        snapshots: Diagnostics snapshots taken during the run
        total_staked: Staking contract total after each action
    """
    actions: List[Action]
    results: List[ActionResult]
    stats: ReplayStats
    final_timestamp: int
    snapshots: List[Dict[str, Any]] = field(default_factory=list)
    total_staked: List[int] = field(default_factory=list)

    def to_report(self) -> Dict[str, Any]:
        rows = []
        for i, (action, result) in enumerate(zip(self.actions, self.results)):
            row = result.to_dict()
            row["uuid"] = action.uuid
            row["type"] = action.type.value
            row["address"] = action.address
            row["amount"] = str(action.amount)
            if action.stake_id is not None:
                row["stakeID"] = str(action.stake_id)
            if action.expected_reward is not None and result.reward is not None:
                row["expectedReward"] = str(action.expected_reward)
                delta = result.reward - action.expected_reward
                row["delta"] = str(delta)
                row["deltaPerToken"] = delta_per_token(delta, action.amount)
            if i < len(self.total_staked):
                row["totalStaked"] = str(self.total_staked[i])
            rows.append(row)
        return {
            "stats": self.stats.snapshot(),
            "finalTimestamp": self.final_timestamp,
            "actions": rows,
        }


class ReplayEngine:
    """
    Replays stake/unstake actions in order against a session's ledger.

    States: INIT -> WARM (optional) -> RUNNING -> DONE, or ABORTED when a
    run fails. An engine runs one batch.
    """

    def __init__(
        self,
        session: Session,
        snapshot_every: int = DEFAULT_SNAPSHOT_EVERY,
        on_snapshot: Optional[SnapshotFn] = None,
    ) -> None:
        """
        Args:
            session: Session to replay in
            snapshot_every: Emit a diagnostics snapshot every N actions
            on_snapshot: Called with (action index, snapshot) for each snapshot
        """
        if snapshot_every < 1:
            raise ValueError(f"snapshot_every must be >= 1, got {snapshot_every}")
        self.session = session
        self.executor = ActionExecutor(session)
        self.snapshot_every = snapshot_every
        self.on_snapshot = on_snapshot
        self.state = ReplayState.INIT
        self.stats = ReplayStats()
        self.logger = get_logger(__name__)

    def _transition(self, target: ReplayState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise InvalidTransitionError(f"cannot go from {self.state.value} to {target.value}")
        self.state = target

    def warm_up(self, plan: Optional[WarmupPlan] = None) -> None:
        """
        Prepare the ledger for replay.

        Raises:
            InvalidTransitionError: If the engine is not in INIT
        """
        self._transition(ReplayState.WARM)
        warm_up(self.session, plan or WarmupPlan())

    def ledger_state(self) -> Dict[str, str]:
        """
        Staking and reward balances for diagnostics.

        Roles the ledger does not know are left out.
        """
        ledger = self.session.ledger
        state = {"totalStaked": str(ledger.total_staked())}
        for key, role in (("stakingBalance", STAKING), ("treasuryBalance", REWARD_TREASURY)):
            try:
                address = ledger.contract_address(role)
            except LedgerError:
                continue
            state[key] = str(ledger.token_balance(address))
        return state

    def snapshot(self, index: int, timestamp: int, with_ledger: bool = True) -> Dict[str, Any]:
        """
        Diagnostics at an action index: reconciliation stats, plus ledger
        balances unless with_ledger is False.
        """
        snap = self.stats.snapshot()
        snap["index"] = index
        snap["timestamp"] = timestamp
        if with_ledger:
            snap.update(self.ledger_state())
        return snap

    def run(self, actions: Sequence[Action]) -> ReplayResult:
        """
        Replay actions in order.

        Args:
            actions: Ordered action batch. Unstaking actions get their stake_id
                bound from the correlated stake as the run progresses.

        Returns:
            ReplayResult with one ActionResult per action

        Raises:
            CorrelationError: If the batch fails the stake/unstake join
            ReplayAbortedError: If a protocol violation occurs mid-run
            LedgerError: If the ledger fails a query or submission
            InvalidTransitionError: If the engine already ran
        """
        actions = list(actions)
        pairs = validate_correlation(actions)
        unstake_index: Dict[str, int] = {uuid: ui for uuid, (_, ui) in pairs.items()}

        self._transition(ReplayState.RUNNING)
        ledger = self.session.ledger
        ledger.set_automine(False)
        ledger.set_interval_mining(0)

        results: List[ActionResult] = []
        snapshots: List[Dict[str, Any]] = []
        total_staked: List[int] = []
        prev_timestamp = actions[0].timestamp if actions else 0
        last = len(actions) - 1

        for i, action in enumerate(actions):
            log = get_logger(__name__, trace_id=action.uuid)
            dt = action.timestamp - prev_timestamp
            log.info(
                f"#{i} {action.type.value} {action.label()} at {action.timestamp} "
                f"({action.date or '-'}), dt={dt}"
            )
            try:
                result = self._execute(i, action, actions, unstake_index)
            except ProtocolViolation as ex:
                self._transition(ReplayState.ABORTED)
                snap = self.snapshot(i, self.session.now())
                log.error(f"Replay aborted at action #{i} ({action.label()}): {ex}")
                raise ReplayAbortedError(i, action, snapshot=snap, reason=str(ex)) from ex
            except LedgerError as ex:
                self._transition(ReplayState.ABORTED)
                ex.index = i
                ex.action = action
                ex.snapshot = self.snapshot(i, prev_timestamp, with_ledger=False)
                log.error(f"Ledger failure at action #{i} ({action.label()}): {ex}")
                raise
            except Exception as ex:
                self._transition(ReplayState.ABORTED)
                log.error(f"Unexpected failure at action #{i} ({action.label()}): {ex!r}")
                raise

            results.append(result)
            staked = ledger.total_staked()
            total_staked.append(staked)
            log.info(f"   Total staked: {format_ether(staked)}")
            prev_timestamp = action.timestamp

            if (i + 1) % self.snapshot_every == 0 or i == last:
                snap = self.snapshot(i, result.receipt.timestamp)
                snapshots.append(snap)
                log.info(
                    f"After {i + 1} actions: total |delta| "
                    f"{format_ether(self.stats.total_absolute_delta)}, net delta "
                    f"{format_ether(self.stats.net_delta)}, rewards paid "
                    f"{format_ether(self.stats.total_rewards_paid)}"
                )
                state = ", ".join(
                    f"{key} {format_ether(int(snap[key]))}"
                    for key in ("totalStaked", "stakingBalance", "treasuryBalance")
                    if key in snap
                )
                log.info(f"   State: {state}")
                if self.on_snapshot is not None:
                    self.on_snapshot(i, snap)

        self._transition(ReplayState.DONE)
        return ReplayResult(
            actions=actions,
            results=results,
            stats=self.stats,
            final_timestamp=self.session.now(),
            snapshots=snapshots,
            total_staked=total_staked,
        )

    def _execute(
        self,
        index: int,
        action: Action,
        actions: List[Action],
        unstake_index: Dict[str, int],
    ) -> ActionResult:
        if action.is_staking:
            result = self.executor.stake(
                action.address, action.amount, at_timestamp=action.timestamp, trace_id=action.uuid
            )
            self._bind_stake_id(action, result.stake_id, actions, unstake_index)
        else:
            if action.stake_id is None:
                raise CorrelationError(
                    f"unstaking action #{index} (uuid {action.uuid}) has no stake id to release"
                )
            result = self.executor.unstake(
                action.address, action.stake_id, at_timestamp=action.timestamp, trace_id=action.uuid
            )
            self._reconcile(action, result.reward)

        action.transaction_hash = result.submission.hash
        return ActionResult(
            kind=result.kind,
            submission=result.submission,
            receipt=result.receipt,
            event=result.event,
            stake_id=result.stake_id,
            reward=result.reward,
            index=index,
        )

    def _bind_stake_id(
        self,
        action: Action,
        observed: int,
        actions: List[Action],
        unstake_index: Dict[str, int],
    ) -> None:
        if action.stake_id is not None and action.stake_id != observed:
            raise StakeIdMismatchError(
                f"expected stakeID {action.stake_id} for {action.address} but got {observed}"
            )
        action.stake_id = observed

        ui = unstake_index.get(action.uuid)
        if ui is None:
            raise CorrelationError(f"no unstaking action for uuid {action.uuid}")
        partner = actions[ui]
        if partner.stake_id is not None and partner.stake_id != observed:
            raise StakeIdMismatchError(
                f"unstaking action #{ui} declares stakeID {partner.stake_id} but stake produced {observed}"
            )
        partner.stake_id = observed

    def _reconcile(self, action: Action, reward: int) -> None:
        if action.expected_reward is None:
            self.stats.record_unexpected(reward)
            return
        delta = self.stats.record(reward, action.expected_reward)
        get_logger(__name__, trace_id=action.uuid).info(
            f"   Reward {format_ether(reward)} vs expected {format_ether(action.expected_reward)} "
            f"(delta {format_ether(delta)}, {delta_per_token(delta, action.amount)} per token)"
        )

    def batch_unstake(self, stakes: Sequence[Tuple[str, int]]) -> List[ActionResult]:
        """
        Unstake (address, stake_id) pairs at the current ledger time.

        Not part of a replay run; the clock is not pinned.
        """
        if self.state == ReplayState.RUNNING:
            raise InvalidTransitionError("cannot batch-unstake during a replay run")
        results = []
        for address, stake_id in stakes:
            self.logger.info(f"Unstaking {address}.{stake_id}")
            result = self.executor.unstake(address, stake_id)
            self.stats.record_unexpected(result.reward)
            results.append(result)
        return results
