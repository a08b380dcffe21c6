"""
stakesim CLI - staking event harvesting and replay simulation

Commands:
- stakesim harvest - Harvest stake events into JSON snapshots
- stakesim simulate - Replay an action batch against a ledger
- stakesim actions inspect - Validate an action batch
- stakesim version - Show version information
"""

from stakesim import __version__

__all__ = ["__version__"]
