"""
Action executor: the two atomic ledger mutations of the staking workflow.

stake() locks funds under a new stake id; unstake() releases them and
triggers a reward payout. Each mutation is correlated with the event it must
emit. Balance and allowance shortfalls are topped up before submitting;
missing events and misdirected rewards are protocol violations.
"""

from typing import Optional

from ..core.actions import ActionKind, ActionResult
from ..core.errors import BeneficiaryMismatchError, LedgerError, MissingEventError
from ..core.numbers import format_ether, parse_int
from ..core.receipts import Call
from ..ledger.base import REWARD_CONTROLLER, REWARD_PAID, STAKE_CREATED, STAKING, TOKEN
from ..logging_config import get_logger
from .session import Session


class ActionExecutor:
    """
    Executes stake and unstake mutations within a session.

    Every submission happens inside a scoped impersonation of the submitting
    identity, released before the next step, including on failure.
    """

    def __init__(self, session: Session) -> None:
        self.session = session
        self.ledger = session.ledger
        self.clock = session.clock
        self.settings = session.settings
        self.logger = get_logger(__name__)

    def _log(self, trace_id: Optional[str]):
        return get_logger(__name__, trace_id=trace_id) if trace_id else self.logger

    def _optional_address(self, role: str) -> Optional[str]:
        try:
            return self.ledger.contract_address(role)
        except LedgerError:
            return None

    # Preconditions

    def ensure_min_balance(self, actor: str, trace_id: Optional[str] = None) -> bool:
        """
        Top up actor's native balance if it is below the gas floor.

        Returns:
            True if a top-up was made
        """
        balance = self.ledger.native_balance(actor)
        if balance >= self.settings.min_native_balance:
            return False
        top_up = max(self.settings.native_top_up, self.settings.min_native_balance)
        self._log(trace_id).info(
            f"   Native balance of {actor} {format_ether(balance)} below min "
            f"{format_ether(self.settings.min_native_balance)}; setting {format_ether(top_up)}"
        )
        self.ledger.set_balance(actor, top_up)
        return True

    def ensure_min_token_balance(self, actor: str, amount: int, trace_id: Optional[str] = None) -> bool:
        """
        Transfer the token shortfall to actor from the funder identity.

        Returns:
            True if a transfer was submitted

        Raises:
            LedgerError: If a top-up is needed and no funder is configured
        """
        balance = self.ledger.token_balance(actor)
        if balance >= amount:
            return False
        funder = self.settings.funder
        if not funder:
            raise LedgerError(f"token balance of {actor} below {amount} and no funder configured")
        shortfall = amount - balance
        self.ensure_min_balance(funder, trace_id)
        with self.ledger.impersonating(funder):
            handle = self.ledger.submit(funder, Call(TOKEN, "transfer", (actor, shortfall)))
        self._log(trace_id).info(
            f"   Token balance of {actor} {format_ether(balance)} below {format_ether(amount)}; "
            f"transferring {format_ether(shortfall)} as {handle.hash}"
        )
        return True

    def ensure_approval(self, actor: str, amount: int, trace_id: Optional[str] = None) -> bool:
        """
        Approve the staking contract if actor's allowance is below amount.

        Must be called while actor is impersonated.

        Returns:
            True if an approval was submitted
        """
        staking = self.ledger.contract_address(STAKING)
        allowance = self.ledger.allowance(actor, staking)
        if allowance >= amount:
            return False
        lots = self.settings.approval_amount
        handle = self.ledger.submit(actor, Call(TOKEN, "approve", (staking, lots)))
        self._log(trace_id).info(
            f"   Allowance for {actor} {format_ether(allowance)} below min {format_ether(amount)}; "
            f"approving {format_ether(lots)} as {handle.hash}"
        )
        return True

    # Mutations

    def stake(
        self,
        actor: str,
        amount: int,
        at_timestamp: Optional[int] = None,
        trace_id: Optional[str] = None,
    ) -> ActionResult:
        """
        Lock amount under a new stake id.

        Args:
            actor: Staking identity
            amount: Amount to stake (wei)
            at_timestamp: Mine the stake in a block at this time if it is ahead
                of the ledger clock
            trace_id: Correlation id for log lines

        Returns:
            ActionResult with stake_id set

        Raises:
            MissingEventError: If the receipt carries no StakeCreated event
            LedgerError: If submission or execution fails
        """
        log = self._log(trace_id)
        self.session.actors_seen.add(actor)
        self.ensure_min_balance(actor, trace_id)
        self.ensure_min_token_balance(actor, amount, trace_id)

        with self.ledger.impersonating(actor):
            self.ensure_approval(actor, amount, trace_id)
            handle = self.ledger.submit(
                actor, Call(STAKING, "stake", (amount, self.settings.stake_type, b""))
            )
        log.info(f"   Submitted stake() as {handle.hash}")

        if at_timestamp is not None:
            self.clock.advance_to(at_timestamp)
        receipt = self.ledger.wait(handle)

        event = receipt.find_event(STAKE_CREATED, emitter=self._optional_address(STAKING))
        if event is None or event.arg("stakeID") is None:
            log.error(f"Didn't get StakeCreated event from stake(): {receipt.to_dict()}")
            raise MissingEventError(
                f"stake() by {actor} in {receipt.transaction_hash} emitted no StakeCreated event",
                receipt=receipt,
            )
        stake_id = parse_int(event.arg("stakeID"))
        return ActionResult(
            kind=ActionKind.STAKING,
            submission=handle,
            receipt=receipt,
            event=event,
            stake_id=stake_id,
        )

    def unstake(
        self,
        actor: str,
        stake_id: int,
        at_timestamp: Optional[int] = None,
        trace_id: Optional[str] = None,
    ) -> ActionResult:
        """
        Release a stake and collect its reward.

        The clock is moved to at_timestamp - 1 before submitting and to
        at_timestamp after, so the unstake is mined exactly at at_timestamp.

        Args:
            actor: Stake owner
            stake_id: Stake to release
            at_timestamp: Time the unstake must be mined at
            trace_id: Correlation id for log lines

        Returns:
            ActionResult with reward set

        Raises:
            MissingEventError: If the receipt carries no RewardPaid event
            BeneficiaryMismatchError: If the reward went to someone else
            LedgerError: If submission or execution fails
        """
        log = self._log(trace_id)
        self.session.actors_seen.add(actor)
        self.ensure_min_balance(actor, trace_id)

        if at_timestamp is not None:
            self.clock.advance_to(at_timestamp - 1)
        with self.ledger.impersonating(actor):
            handle = self.ledger.submit(actor, Call(STAKING, "unstake", (stake_id, b"", False)))
        log.info(f"   Submitted unstake() as {handle.hash}")

        if at_timestamp is not None:
            self.clock.advance_to(at_timestamp)
        receipt = self.ledger.wait(handle)

        event = receipt.find_event(REWARD_PAID, emitter=self._optional_address(REWARD_CONTROLLER))
        if event is None or event.arg("reward") is None:
            log.error(f"Didn't get RewardPaid event from unstake(): {receipt.to_dict()}")
            raise MissingEventError(
                f"unstake() of {actor}.{stake_id} in {receipt.transaction_hash} emitted no RewardPaid event",
                receipt=receipt,
            )
        staker = event.arg("staker", event.positional(0))
        if str(staker).lower() != actor.lower():
            raise BeneficiaryMismatchError(
                f"Unstaked from {actor} but got RewardPaid event to {staker}"
            )
        reward = parse_int(event.arg("reward"))
        return ActionResult(
            kind=ActionKind.UNSTAKING,
            submission=handle,
            receipt=receipt,
            event=event,
            reward=reward,
        )
