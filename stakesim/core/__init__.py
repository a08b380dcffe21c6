"""
Core primitives for harvesting and replay.

This module provides:
- StakeEvent / RawLog / BlockMeta: ledger event records
- Action / ActionResult: replay inputs and outputs
- Call / TxHandle / Receipt: submission records
- TimeController: ledger clock control
- Canonical: deterministic serialization
- Errors: exception taxonomy
"""

from .events import BlockMeta, RawLog, StakeEvent
from .actions import (
    Action,
    ActionKind,
    ActionResult,
    ActionType,
    load_actions,
    partition,
    save_actions,
    validate_correlation,
)
from .receipts import Call, Receipt, TxHandle
from .clock import TimeController
from .canonical import canonicalize, canonical_json_bytes, canonical_json_str, digest
from .ids import stable_id
from .errors import (
    BeneficiaryMismatchError,
    ChunkSinkError,
    CorrelationError,
    InvalidTransitionError,
    LedgerError,
    MissingEventError,
    ProtocolViolation,
    ReplayAbortedError,
    StakeIdMismatchError,
    StakesimError,
)

__all__ = [
    "BlockMeta",
    "RawLog",
    "StakeEvent",
    "Action",
    "ActionKind",
    "ActionResult",
    "ActionType",
    "load_actions",
    "partition",
    "save_actions",
    "validate_correlation",
    "Call",
    "Receipt",
    "TxHandle",
    "TimeController",
    "canonicalize",
    "canonical_json_bytes",
    "canonical_json_str",
    "digest",
    "stable_id",
    "BeneficiaryMismatchError",
    "ChunkSinkError",
    "CorrelationError",
    "InvalidTransitionError",
    "LedgerError",
    "MissingEventError",
    "ProtocolViolation",
    "ReplayAbortedError",
    "StakeIdMismatchError",
    "StakesimError",
]
