"""
Event decoder: raw log entry + block metadata -> StakeEvent.

Pure. An entry without an argument bag decodes to None and is skipped by
callers rather than failing the pass.
"""

from typing import Callable, Dict, Optional

from ..core.events import BlockMeta, RawLog, StakeEvent
from ..core.numbers import to_decimal_str

DecodeFn = Callable[[RawLog], Optional[StakeEvent]]


def decode_stake_event(raw: RawLog, block: BlockMeta) -> Optional[StakeEvent]:
    """
    Decode one raw staking log entry.

    Required: a non-empty argument bag whose first positional argument is the
    account. Optional: stakeID, amount, lockedTill, reward.

    Args:
        raw: Raw log entry
        block: Metadata of the block containing the entry

    Returns:
        StakeEvent, or None if the entry has no usable arguments
    """
    if not raw.args:
        return None
    try:
        return StakeEvent(
            name=raw.event,
            block_number=raw.block_number,
            timestamp=block.timestamp,
            transaction_hash=raw.transaction_hash,
            address=str(raw.positional(0)),
            stake_id=to_decimal_str(raw.arg("stakeID")),
            amount=to_decimal_str(raw.arg("amount")),
            locked_till=to_decimal_str(raw.arg("lockedTill")),
            reward=to_decimal_str(raw.arg("reward")),
        )
    except (TypeError, ValueError):
        return None


def make_ledger_decoder(ledger) -> DecodeFn:
    """
    Bind decode_stake_event to a ledger's block lookups.

    Block metadata is fetched once per block number.

    Args:
        ledger: Ledger providing get_block()

    Returns:
        One-argument decode function
    """
    cache: Dict[int, BlockMeta] = {}

    def decode(raw: RawLog) -> Optional[StakeEvent]:
        if not raw.args:
            return None
        block = cache.get(raw.block_number)
        if block is None:
            block = ledger.get_block(raw.block_number)
            cache[raw.block_number] = block
        return decode_stake_event(raw, block)

    return decode
