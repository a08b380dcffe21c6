"""
Stake Simulation Engine

Ledger-event harvesting and deterministic stake/unstake replay for validating
staking reward protocols against live or forked ledgers.
"""

__version__ = "0.1.0"
