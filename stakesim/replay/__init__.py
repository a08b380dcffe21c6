"""Replay engine: warm-up, action replay and reward reconciliation."""

from .runner import ReplayEngine, ReplayResult, ReplayState
from .stats import ReplayStats, delta_per_token
from .warmup import WarmupPlan, parse_date, warm_up

__all__ = [
    "ReplayEngine",
    "ReplayResult",
    "ReplayState",
    "ReplayStats",
    "WarmupPlan",
    "delta_per_token",
    "parse_date",
    "warm_up",
]
