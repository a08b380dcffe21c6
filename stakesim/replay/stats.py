"""
Reward reconciliation accumulators.

Integer arithmetic only: deltas are exact at any magnitude.
"""

from dataclasses import dataclass
from typing import Any, Dict

from ..core.numbers import WEI, format_ether


@dataclass
class ReplayStats:
    """
    Running divergence between paid and expected rewards.

    Fields:
        total_absolute_delta: Sum of |actual - expected|
        net_delta: Sum of (actual - expected)
        total_rewards_paid: Sum of actual rewards, reconciled or not
        reconciled: Number of rewards compared against an expectation
        unreconciled: Number of rewards paid without an expectation
    """
    total_absolute_delta: int = 0
    net_delta: int = 0
    total_rewards_paid: int = 0
    reconciled: int = 0
    unreconciled: int = 0

    def record(self, actual: int, expected: int) -> int:
        """
        Account one reward against its expectation.

        Returns:
            actual - expected
        """
        delta = actual - expected
        self.total_absolute_delta += abs(delta)
        self.net_delta += delta
        self.total_rewards_paid += actual
        self.reconciled += 1
        return delta

    def record_unexpected(self, actual: int) -> None:
        """Account a reward that has no expectation to compare against."""
        self.total_rewards_paid += actual
        self.unreconciled += 1

    def snapshot(self) -> Dict[str, Any]:
        return {
            "totalAbsoluteDelta": str(self.total_absolute_delta),
            "netDelta": str(self.net_delta),
            "totalRewardsPaid": str(self.total_rewards_paid),
            "reconciled": self.reconciled,
            "unreconciled": self.unreconciled,
        }


def delta_per_token(delta: int, amount: int) -> str:
    """
    Reward delta per whole token staked, as an ether-formatted string.

    Rounds toward zero. Returns "0" for a zero amount.
    """
    if amount == 0:
        return "0"
    per_token = abs(delta) * WEI // amount
    return format_ether(-per_token if delta < 0 else per_token)
