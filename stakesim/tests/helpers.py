"""Builders shared by the test modules."""

from stakesim.core.actions import Action, ActionKind, ActionType
from stakesim.executor import ExecutorSettings, Session
from stakesim.ledger import MemoryLedger
from stakesim.replay import WarmupPlan, warm_up

ALICE = "0x" + "a1" * 20
BOB = "0x" + "b0" * 20


def memory_session(ledger=None, warm=True) -> Session:
    ledger = ledger or MemoryLedger()
    session = Session(ledger, ExecutorSettings(funder=ledger.funder, owner=ledger.owner))
    if warm:
        warm_up(session, WarmupPlan())
    return session


def stake_action(uuid, address, amount, timestamp, type=ActionType.SYNTHETIC, stake_id=None) -> Action:
    return Action(
        uuid=uuid,
        type=type,
        kind=ActionKind.STAKING,
        address=address,
        amount=amount,
        timestamp=timestamp,
        stake_id=stake_id,
    )


def unstake_action(uuid, address, amount, timestamp, expected=None, type=ActionType.SYNTHETIC, stake_id=None) -> Action:
    return Action(
        uuid=uuid,
        type=type,
        kind=ActionKind.UNSTAKING,
        address=address,
        amount=amount,
        timestamp=timestamp,
        stake_id=stake_id,
        expected_reward=expected,
    )


