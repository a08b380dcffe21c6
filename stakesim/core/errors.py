"""
Exception types for the harvesting and replay engine.

ProtocolViolation subclasses are fatal: they abort a replay run.
"""

from typing import Any, Dict, Optional


class StakesimError(Exception):
    """Base class for all stakesim errors."""
    pass


class LedgerError(StakesimError):
    """
    Raised when a ledger query or submission fails.

    During a replay run the engine sets index, action and snapshot to the
    failing action before re-raising.
    """
    index: Optional[int] = None
    action: Any = None
    snapshot: Optional[Dict[str, Any]] = None


class ChunkSinkError(StakesimError):
    """Raised when a chunk sink cannot persist a window."""
    pass


class InvalidTransitionError(StakesimError):
    """Raised when the replay engine is driven through an illegal state change."""
    pass


class ProtocolViolation(StakesimError):
    """Raised when the ledger contradicts the stake/unstake/reward protocol."""
    pass


class MissingEventError(ProtocolViolation):
    """Raised when a finalized mutation lacks its expected event."""

    def __init__(self, message: str, receipt: Any = None) -> None:
        super().__init__(message)
        self.receipt = receipt


class BeneficiaryMismatchError(ProtocolViolation):
    """Raised when a reward is paid to someone other than the unstaking actor."""
    pass


class StakeIdMismatchError(ProtocolViolation):
    """Raised when source data declares a stakeID the ledger did not produce."""
    pass


class CorrelationError(ProtocolViolation):
    """Raised when staking and unstaking actions cannot be joined by uuid."""
    pass


class ReplayAbortedError(StakesimError):
    """
    Raised when a protocol violation aborts a replay run.

    Carries the offending action index, the action itself and the
    diagnostics snapshot at the point of failure.
    """

    def __init__(
        self,
        index: int,
        action: Any,
        snapshot: Optional[Dict[str, Any]] = None,
        reason: str = "",
    ) -> None:
        self.index = index
        self.action = action
        self.snapshot = snapshot or {}
        self.reason = reason
        super().__init__(f"replay aborted at action #{index}: {reason}")
