"""
Action execution.

This module provides:
- Session: explicit context (ledger, clock, settings, actor registry)
- ExecutorSettings: balance floors, approval amount, funder identity
- ActionExecutor: stake / unstake with precondition remediation
"""

from .session import ExecutorSettings, Session
from .executor import ActionExecutor

__all__ = [
    "ActionExecutor",
    "ExecutorSettings",
    "Session",
]
