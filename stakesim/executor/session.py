"""
Session: explicit context passed to every executor and replay operation.

Holds the ledger, the clock controller, executor settings and the registry of
actors seen in this session, in place of shared module-level state.
"""

from dataclasses import dataclass, field
from typing import Optional, Set

from ..config import DEFAULT_APPROVAL_AMOUNT, DEFAULT_MIN_NATIVE_BALANCE, Settings
from ..core.clock import TimeController
from ..ledger.abi import CLASSIC, hash4bytes


@dataclass(frozen=True)
class ExecutorSettings:
    """
    Fields:
        min_native_balance: Gas balance floor; actors below it are topped up
        native_top_up: Balance actors are set to when topped up
        approval_amount: Allowance granted when the current one is too low
        funder: Identity token shortfalls are transferred from
        owner: Identity administering reward contracts (warm-up only)
        stake_type: bytes4 stake type passed to stake()
    """
    min_native_balance: int = DEFAULT_MIN_NATIVE_BALANCE
    native_top_up: int = 0x1000000000000000
    approval_amount: int = DEFAULT_APPROVAL_AMOUNT
    funder: Optional[str] = None
    owner: Optional[str] = None
    stake_type: bytes = field(default_factory=lambda: hash4bytes(CLASSIC))

    @staticmethod
    def from_settings(settings: Settings) -> "ExecutorSettings":
        return ExecutorSettings(
            min_native_balance=settings.min_native_balance,
            native_top_up=max(0x1000000000000000, settings.min_native_balance * 2),
            approval_amount=settings.approval_amount,
            funder=settings.minter,
            owner=settings.owner,
        )


class Session:
    """
    Context object for one harvesting/replay session.

    Fields:
        ledger: Ledger all operations run against
        clock: TimeController over that ledger
        settings: Executor settings
        actors_seen: Identities that submitted mutations in this session
    """

    def __init__(self, ledger, settings: Optional[ExecutorSettings] = None) -> None:
        self.ledger = ledger
        self.clock = TimeController(ledger)
        self.settings = settings or ExecutorSettings()
        self.actors_seen: Set[str] = set()

    def now(self) -> int:
        return self.clock.now()
