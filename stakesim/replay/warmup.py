"""
Warm-up: prepare a ledger before replaying actions.

Optionally time-warps, funds administrative identities and the reward
treasury, registers the reward controller as adviser for stake and unstake
actions, and activates it.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Union

from ..core.errors import LedgerError
from ..core.numbers import WEI, format_ether
from ..core.receipts import Call
from ..ledger.abi import STAKE, UNSTAKE
from ..ledger.base import REWARD_CONTROLLER, REWARD_MASTER, REWARD_TREASURY, STAKING, TOKEN

logger = logging.getLogger(__name__)


def parse_date(value: Union[str, int]) -> int:
    """
    Parse an ISO-8601 date (or a timestamp) into a unix timestamp.

    Naive dates are taken as UTC. A trailing "Z" is accepted.
    """
    if isinstance(value, int):
        return value
    s = value.strip()
    if s.isdigit():
        return int(s)
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp())


@dataclass
class WarmupPlan:
    """
    Fields:
        warp_to: Date or timestamp to time-warp to (None = no warp)
        fund_identities: Identities whose native balance is set to fund_amount
        fund_amount: Native balance for funded identities
        treasury_funding: Tokens transferred from the funder to the treasury
        register_adviser: Register the reward controller for stake/unstake
        activate_controller: Call setActive() on the reward controller
    """
    warp_to: Optional[Union[str, int]] = None
    fund_identities: List[str] = field(default_factory=list)
    fund_amount: int = 0x1000000000000000
    treasury_funding: int = 2_000_000 * WEI
    register_adviser: bool = True
    activate_controller: bool = True


def warm_up(session, plan: WarmupPlan) -> None:
    """
    Apply a warm-up plan with automine enabled.

    Args:
        session: Session to prepare
        plan: What to prepare

    Raises:
        LedgerError: If a warm-up mutation fails
    """
    ledger = session.ledger
    settings = session.settings

    if plan.warp_to is not None:
        ts = parse_date(plan.warp_to)
        logger.info(f"time-warping to {plan.warp_to} ({ts})")
        session.clock.advance_to(ts)

    ledger.set_automine(True)

    identities = list(plan.fund_identities)
    for who in (settings.owner, settings.funder):
        if who and who not in identities:
            identities.append(who)
    for who in identities:
        ledger.set_balance(who, plan.fund_amount)

    now = session.clock.now()
    logger.info(f"Current block time: {now}")
    logger.info(f"Total staked: {format_ether(ledger.total_staked())}")

    if plan.treasury_funding:
        if not settings.funder:
            raise LedgerError("treasury funding requested but no funder configured")
        treasury = ledger.contract_address(REWARD_TREASURY)
        with ledger.impersonating(settings.funder):
            handle = ledger.submit(
                settings.funder, Call(TOKEN, "transfer", (treasury, plan.treasury_funding))
            )
        ledger.wait(handle)
        logger.info(f"Funded reward treasury with {format_ether(plan.treasury_funding)}")

    if plan.register_adviser or plan.activate_controller:
        if not settings.owner:
            raise LedgerError("reward controller setup requested but no owner configured")
        owner = settings.owner
        staking = ledger.contract_address(STAKING)
        controller = ledger.contract_address(REWARD_CONTROLLER)
        with ledger.impersonating(owner):
            handles = []
            if plan.register_adviser:
                for action in (STAKE, UNSTAKE):
                    action_id = ledger.action_id(action)
                    handles.append(ledger.submit(
                        owner, Call(REWARD_MASTER, "addRewardAdviser", (staking, action_id, controller))
                    ))
                    logger.info(f"Registered reward adviser for {action} ({action_id})")
            if plan.activate_controller:
                handles.append(ledger.submit(owner, Call(REWARD_CONTROLLER, "setActive", ())))
        for handle in handles:
            ledger.wait(handle)
