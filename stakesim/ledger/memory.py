"""
In-memory staking ledger.

A deterministic, single-process model of the stake/unstake/reward workflow:
token balances and allowances, per-account stakes, a reward controller paying
from a treasury, block production with automine or manual mining, and
impersonation. It is not a general-purpose chain: only the calls the
executor and warm-up issue are understood.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

from ..core.errors import LedgerError
from ..core.events import BlockMeta, RawLog
from ..core.ids import stable_id, tx_hash
from ..core.receipts import Call, Receipt, TxHandle
from .base import (
    REWARD_CONTROLLER,
    REWARD_MASTER,
    REWARD_PAID,
    REWARD_TREASURY,
    STAKE_CLAIMED,
    STAKE_CREATED,
    STAKING,
    TOKEN,
    Ledger,
)

logger = logging.getLogger(__name__)

YEAR = 365 * 24 * 3600
GAS_COST = 21000 * 10 ** 9
DEFAULT_SUPPLY = 10 ** 9 * 10 ** 18


def role_address(role: str) -> str:
    """Deterministic address for a contract role or named identity."""
    return "0x" + stable_id("address", role)[:40]


@dataclass
class MemoryStake:
    """A stake held by the in-memory staking contract."""
    owner: str
    stake_id: int
    amount: int
    staked_at: int
    locked_till: int
    claimed_at: Optional[int] = None


# (stake, unstake_timestamp) -> reward, or None for no RewardPaid event
RewardFn = Callable[[MemoryStake, int], Optional[int]]


def linear_reward(apr_percent: int = 10) -> RewardFn:
    """Reward accruing linearly at apr_percent per year of stake time."""

    def reward(stake: MemoryStake, unstake_timestamp: int) -> Optional[int]:
        elapsed = max(unstake_timestamp - stake.staked_at, 0)
        return stake.amount * elapsed * apr_percent // (100 * YEAR)

    return reward


class _Revert(Exception):
    pass


class MemoryLedger(Ledger):
    """
    Deterministic in-memory ledger.

    Transaction hashes derive from (sender, nonce, call) so identical runs
    produce identical receipts.
    """

    def __init__(
        self,
        genesis_timestamp: int = 0,
        reward_fn: Optional[RewardFn] = None,
        lock_period: int = 0,
        funder: Optional[str] = None,
        owner: Optional[str] = None,
        initial_supply: int = DEFAULT_SUPPLY,
        gas_cost: int = GAS_COST,
    ) -> None:
        """
        Initialize ledger with a genesis block.

        Args:
            genesis_timestamp: Timestamp of block 0
            reward_fn: Reward rule applied on unstake (default: 10% APR)
            lock_period: Seconds a stake stays locked after creation
            funder: Identity holding the initial token supply
            owner: Identity allowed to administer reward contracts
            initial_supply: Tokens credited to funder at genesis
            gas_cost: Native balance charged per submission
        """
        self.reward_fn = reward_fn or linear_reward()
        self.lock_period = lock_period
        self.gas_cost = gas_cost
        self.funder = _norm(funder or role_address("minter"))
        self.owner = _norm(owner or role_address("owner"))

        self.blocks: List[BlockMeta] = [BlockMeta(number=0, timestamp=genesis_timestamp)]
        self.logs: List[Tuple[str, RawLog]] = []
        self.native: Dict[str, int] = {}
        self.tokens: Dict[str, int] = {self.funder: initial_supply}
        self.allowances: Dict[Tuple[str, str], int] = {}
        self.stakes: Dict[str, List[MemoryStake]] = {}
        self.advisers: Set[Tuple[str, str]] = set()
        self.controller_active = False

        self.automine = True
        self.interval_mining = 0
        self.pending: List[TxHandle] = []
        self.receipts: Dict[str, Receipt] = {}
        self.impersonated: Set[str] = set()
        self.nonces: Dict[str, int] = {}

        self.addresses = {
            role: role_address(role)
            for role in (STAKING, TOKEN, REWARD_CONTROLLER, REWARD_MASTER, REWARD_TREASURY)
        }

    # Queries

    def latest_block(self) -> int:
        return self.blocks[-1].number

    def get_block(self, number: int) -> BlockMeta:
        if number < 0 or number >= len(self.blocks):
            raise LedgerError(f"block {number} not found")
        return self.blocks[number]

    def get_logs(
        self,
        address: Optional[str],
        topics: Optional[Sequence[Optional[str]]],
        from_block: int,
        to_block: int,
    ) -> List[RawLog]:
        topic0 = topics[0] if topics else None
        out = []
        for topic, log in self.logs:
            if log.block_number < from_block or log.block_number > to_block:
                continue
            if address is not None and _norm(log.address) != _norm(address):
                continue
            if topic0 is not None and topic != topic0:
                continue
            out.append(log)
        return out

    def event_topic(self, name: str) -> str:
        return "0x" + stable_id("event", name)

    def contract_address(self, role: str) -> str:
        try:
            return self.addresses[role]
        except KeyError:
            raise LedgerError(f"unknown contract role: {role}") from None

    def native_balance(self, address: str) -> int:
        return self.native.get(_norm(address), 0)

    def token_balance(self, address: str) -> int:
        return self.tokens.get(_norm(address), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self.allowances.get((_norm(owner), _norm(spender)), 0)

    def total_staked(self) -> int:
        return sum(
            s.amount for stakes in self.stakes.values() for s in stakes if s.claimed_at is None
        )

    def stakes_of(self, address: str) -> List[MemoryStake]:
        return list(self.stakes.get(_norm(address), []))

    # Submission

    def impersonate(self, address: str) -> None:
        self.impersonated.add(_norm(address))

    def stop_impersonating(self, address: str) -> None:
        self.impersonated.discard(_norm(address))

    def submit(self, sender: str, call: Call) -> TxHandle:
        sender = _norm(sender)
        if sender not in self.impersonated:
            raise LedgerError(f"sender {sender} is not impersonated")
        if self.native.get(sender, 0) < self.gas_cost:
            raise LedgerError(f"insufficient funds for gas: {sender}")
        self.native[sender] -= self.gas_cost

        nonce = self.nonces.get(sender, 0)
        self.nonces[sender] = nonce + 1
        handle = TxHandle(
            hash=tx_hash("tx", sender, str(nonce), call.contract, call.function, repr(call.args)),
            sender=sender,
            call=call,
            nonce=nonce,
        )
        self.pending.append(handle)
        if self.automine:
            self.mine_at(self.now() + 1)
        return handle

    def wait(self, handle: TxHandle) -> Receipt:
        if handle.hash not in self.receipts:
            if handle not in self.pending:
                raise LedgerError(f"unknown transaction {handle.hash}")
            self.mine_at(self.now() + 1)
        receipt = self.receipts[handle.hash]
        if receipt.status != 1:
            raise LedgerError(f"transaction {handle.hash} reverted")
        return receipt

    # Clock control

    def now(self) -> int:
        return self.blocks[-1].timestamp

    def set_automine(self, enabled: bool) -> None:
        self.automine = enabled
        if enabled and self.pending:
            self.mine_at(self.now() + 1)

    def set_interval_mining(self, interval: int) -> None:
        self.interval_mining = interval

    def set_balance(self, address: str, amount: int) -> None:
        self.native[_norm(address)] = amount

    def mine_at(self, timestamp: int) -> None:
        if timestamp <= self.now():
            raise LedgerError(
                f"block timestamp {timestamp} must be greater than latest {self.now()}"
            )
        block = BlockMeta(number=self.latest_block() + 1, timestamp=timestamp)
        self.blocks.append(block)
        pending, self.pending = self.pending, []
        for handle in pending:
            self.receipts[handle.hash] = self._execute(block, handle)

    # Execution

    def _execute(self, block: BlockMeta, handle: TxHandle) -> Receipt:
        emitted: List[Tuple[str, str, "OrderedDict[str, object]"]] = []
        snapshot = self._snapshot()
        try:
            fn = self._dispatch(handle.call)
            fn(block, handle.sender, emitted, *handle.call.args)
        except _Revert as ex:
            self._restore(snapshot)
            logger.debug(f"Transaction {handle.hash} reverted: {ex}")
            return Receipt(
                transaction_hash=handle.hash,
                block_number=block.number,
                timestamp=block.timestamp,
                status=0,
            )

        logs = []
        base_index = sum(1 for _, log in self.logs if log.block_number == block.number)
        for offset, (emitter, name, args) in enumerate(emitted):
            log = RawLog(
                event=name,
                block_number=block.number,
                transaction_hash=handle.hash,
                log_index=base_index + offset,
                address=emitter,
                args=args,
            )
            self.logs.append((self.event_topic(name), log))
            logs.append(log)
        return Receipt(
            transaction_hash=handle.hash,
            block_number=block.number,
            timestamp=block.timestamp,
            status=1,
            logs=logs,
        )

    def _dispatch(self, call: Call):
        table = {
            (TOKEN, "transfer"): self._token_transfer,
            (TOKEN, "approve"): self._token_approve,
            (STAKING, "stake"): self._stake,
            (STAKING, "unstake"): self._unstake,
            (REWARD_MASTER, "addRewardAdviser"): self._add_reward_adviser,
            (REWARD_CONTROLLER, "setActive"): self._set_active,
        }
        fn = table.get((call.contract, call.function))
        if fn is None:
            raise LedgerError(f"unsupported call {call.contract}.{call.function}")
        return fn

    def _snapshot(self):
        return (
            dict(self.tokens),
            dict(self.allowances),
            {k: [MemoryStake(**vars(s)) for s in v] for k, v in self.stakes.items()},
            set(self.advisers),
            self.controller_active,
        )

    def _restore(self, snapshot) -> None:
        (self.tokens, self.allowances, self.stakes, self.advisers, self.controller_active) = snapshot

    def _move_tokens(self, src: str, dst: str, amount: int, emitted) -> None:
        if self.tokens.get(src, 0) < amount:
            raise _Revert("transfer amount exceeds balance")
        self.tokens[src] = self.tokens.get(src, 0) - amount
        self.tokens[dst] = self.tokens.get(dst, 0) + amount
        emitted.append(
            (self.addresses[TOKEN], "Transfer", OrderedDict(
                [("from", src), ("to", dst), ("value", amount)]
            ))
        )

    def _token_transfer(self, block, sender, emitted, to, amount) -> None:
        self._move_tokens(sender, _norm(to), int(amount), emitted)

    def _token_approve(self, block, sender, emitted, spender, amount) -> None:
        self.allowances[(sender, _norm(spender))] = int(amount)
        emitted.append(
            (self.addresses[TOKEN], "Approval", OrderedDict(
                [("owner", sender), ("spender", _norm(spender)), ("value", int(amount))]
            ))
        )

    def _stake(self, block, sender, emitted, amount, stake_type=None, data=None) -> None:
        amount = int(amount)
        if amount <= 0:
            raise _Revert("zero amount")
        staking = self.addresses[STAKING]
        key = (sender, staking)
        if self.allowances.get(key, 0) < amount:
            raise _Revert("insufficient allowance")
        self.allowances[key] -= amount
        self._move_tokens(sender, staking, amount, emitted)

        stakes = self.stakes.setdefault(sender, [])
        stake = MemoryStake(
            owner=sender,
            stake_id=len(stakes),
            amount=amount,
            staked_at=block.timestamp,
            locked_till=block.timestamp + self.lock_period,
        )
        stakes.append(stake)
        emitted.append(
            (staking, STAKE_CREATED, OrderedDict([
                ("account", sender),
                ("stakeID", stake.stake_id),
                ("amount", amount),
                ("lockedTill", stake.locked_till),
            ]))
        )

    def _unstake(self, block, sender, emitted, stake_id, data=None, is_forced=False) -> None:
        stake_id = int(stake_id)
        stakes = self.stakes.get(sender, [])
        if stake_id >= len(stakes):
            raise _Revert("unknown stake")
        stake = stakes[stake_id]
        if stake.claimed_at is not None:
            raise _Revert("stake claimed")
        if block.timestamp < stake.locked_till and not is_forced:
            raise _Revert("stake locked")
        stake.claimed_at = block.timestamp
        staking = self.addresses[STAKING]
        self._move_tokens(staking, sender, stake.amount, emitted)
        emitted.append(
            (staking, STAKE_CLAIMED, OrderedDict([
                ("account", sender),
                ("stakeID", stake.stake_id),
                ("amount", stake.amount),
            ]))
        )

        if not self.controller_active or (staking, self.action_id("unstake")) not in self.advisers:
            return
        reward = self.reward_fn(stake, block.timestamp)
        if reward is None:
            return
        controller = self.addresses[REWARD_CONTROLLER]
        self._move_tokens(self.addresses[REWARD_TREASURY], sender, reward, emitted)
        emitted.append(
            (controller, REWARD_PAID, OrderedDict([("staker", sender), ("reward", reward)]))
        )

    def _add_reward_adviser(self, block, sender, emitted, oracle, action, adviser=None) -> None:
        if sender != self.owner:
            raise _Revert("unauthorized")
        self.advisers.add((_norm(oracle), str(action).lower()))

    def _set_active(self, block, sender, emitted) -> None:
        if sender != self.owner:
            raise _Revert("unauthorized")
        self.controller_active = True


def _norm(address: Optional[str]) -> str:
    return (address or "").lower()
