"""
Simulated ledger clock control.

The ledger clock is the timestamp of the latest block. TimeController is the
only component that moves it.
"""

import logging

logger = logging.getLogger(__name__)


class TimeController:
    """
    Advances the ledger clock to pinned timestamps.

    advance_to() mines a single block at exactly the target timestamp when the
    clock trails it, and does nothing otherwise. Calling it twice with the
    same target is the same as calling it once.
    """

    def __init__(self, ledger) -> None:
        """
        Args:
            ledger: Ledger exposing now() and mine_at(timestamp)
        """
        self.ledger = ledger

    def now(self) -> int:
        """Get the current ledger timestamp."""
        return self.ledger.now()

    def advance_to(self, target: int) -> bool:
        """
        Move the clock forward to target if it is behind.

        Args:
            target: Timestamp to advance to

        Returns:
            True if a block was mined, False if the clock was already there
        """
        now = self.ledger.now()
        if now < target:
            self.ledger.mine_at(target)
            logger.debug(f"Mined block at {target}")
            return True
        logger.debug(f"Skipping mining since current block {now} >= {target}")
        return False
