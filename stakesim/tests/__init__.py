"""
Test suite for stakesim.

Focus areas:
- Windowed harvesting equivalence
- Clock control idempotence
- Stake/unstake protocol invariants
- Reward reconciliation accounting
- Correlation integrity
"""
