"""
Range paginator: walk a block range in fixed-size windows.

Each window is one log query; decoded batches are optionally flushed to a
chunk sink and concatenated into the result. Query errors propagate: retry
policy belongs to the caller.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

from ..core.events import RawLog, StakeEvent
from ..ledger.base import REWARD_CONTROLLER, REWARD_PAID, STAKING
from .decoder import DecodeFn, make_ledger_decoder

logger = logging.getLogger(__name__)

QUERY_BLOCKS = 500

QueryFn = Callable[[int, int], Sequence[RawLog]]
ChunkSinkFn = Callable[[List[StakeEvent], int, int], None]


@dataclass
class PaginationStats:
    """Counters for one pagination pass."""
    windows: int = 0
    entries: int = 0
    decoded: int = 0
    skipped: int = 0


def iter_windows(start_block: int, end_block: int, window_size: int) -> Iterator[Tuple[int, int]]:
    """
    Yield (lo, hi) windows covering [start_block, end_block].

    Windows are contiguous, non-overlapping and at most window_size blocks.

    Raises:
        ValueError: If start_block > end_block or window_size < 1
    """
    if window_size < 1:
        raise ValueError(f"window_size must be >= 1, got {window_size}")
    if start_block > end_block:
        raise ValueError(f"start_block {start_block} is after end_block {end_block}")
    lo = start_block
    while lo <= end_block:
        hi = min(lo + window_size - 1, end_block)
        yield lo, hi
        lo = hi + 1


def paginate(
    start_block: int,
    end_block: int,
    window_size: int,
    query_fn: QueryFn,
    decode_fn: DecodeFn,
    chunk_sink: Optional[ChunkSinkFn] = None,
    stats: Optional[PaginationStats] = None,
) -> List[StakeEvent]:
    """
    Query, decode and accumulate events window by window.

    Args:
        start_block: First block (inclusive)
        end_block: Last block (inclusive)
        window_size: Maximum blocks per query
        query_fn: (lo, hi) -> raw log entries in that range
        decode_fn: raw entry -> StakeEvent or None (skipped)
        chunk_sink: Called with (batch, lo, hi) after each window
        stats: Counters to update (optional)

    Returns:
        Decoded events of all windows, in window order
    """
    stats = stats if stats is not None else PaginationStats()
    events: List[StakeEvent] = []

    for lo, hi in iter_windows(start_block, end_block, window_size):
        entries = query_fn(lo, hi)
        batch = []
        for raw in entries:
            ev = decode_fn(raw)
            if ev is None:
                stats.skipped += 1
                continue
            batch.append(ev)
        stats.windows += 1
        stats.entries += len(entries)
        stats.decoded += len(batch)
        logger.debug(f"Window {lo}-{hi}: {len(entries)} entries, {len(batch)} decoded")

        if chunk_sink is not None:
            chunk_sink(batch, lo, hi)
        events.extend(batch)

    if stats.skipped:
        logger.warning(f"Skipped {stats.skipped} undecodable log entries in {start_block}-{end_block}")
    logger.info(
        f"Paginated blocks {start_block}-{end_block} in {stats.windows} windows: "
        f"{stats.decoded} events"
    )
    return events


def harvest_events(
    ledger,
    event_name: str,
    start_block: int,
    end_block: Optional[int] = None,
    address: Optional[str] = None,
    window_size: int = QUERY_BLOCKS,
    chunk_sink: Optional[ChunkSinkFn] = None,
    stats: Optional[PaginationStats] = None,
) -> List[StakeEvent]:
    """
    Harvest one event kind from a ledger.

    Args:
        ledger: Ledger to query
        event_name: StakeCreated, StakeClaimed or RewardPaid
        start_block: First block (inclusive)
        end_block: Last block (inclusive, default: latest block)
        address: Emitting contract (default: staking contract, or the reward
            controller for RewardPaid)
        window_size: Maximum blocks per query
        chunk_sink: Called with (batch, lo, hi) after each window
        stats: Counters to update (optional)

    Returns:
        Decoded events in ascending block order
    """
    if end_block is None:
        end_block = ledger.latest_block()
    if address is None:
        role = REWARD_CONTROLLER if event_name == REWARD_PAID else STAKING
        address = ledger.contract_address(role)
    topics = [ledger.event_topic(event_name)]

    def query(lo: int, hi: int) -> Sequence[RawLog]:
        return ledger.get_logs(address, topics, lo, hi)

    return paginate(
        start_block,
        end_block,
        window_size,
        query,
        make_ledger_decoder(ledger),
        chunk_sink=chunk_sink,
        stats=stats,
    )
