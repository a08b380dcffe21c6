"""
Stable identifier generation.

Provides deterministic ID generation without randomness.
"""

import hashlib


def stable_id(*parts: str) -> str:
    """
    Generate stable ID derived from inputs (no randomness).

    Used for deterministic transaction hashes in the in-memory ledger.

    Args:
        *parts: String parts to combine into ID

    Returns:
        SHA-256 hash as hex string

    Example:
        stable_id("tx", "0xabc", "7") -> "a3f2..."
    """
    raw = "|".join(parts).encode("utf-8")
    return hashlib.sha256(raw).hexdigest()


def tx_hash(*parts: str) -> str:
    """0x-prefixed stable id, shaped like a transaction hash."""
    return "0x" + stable_id(*parts)
