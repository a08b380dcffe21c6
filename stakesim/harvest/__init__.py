"""
Event harvesting.

This module provides:
- decode_stake_event: raw log entry -> StakeEvent
- paginate / harvest_events: windowed log extraction
- FileChunkSink / S3ChunkSink: per-window persistence
"""

from .decoder import decode_stake_event, make_ledger_decoder
from .paginator import QUERY_BLOCKS, PaginationStats, harvest_events, iter_windows, paginate
from .sinks import ChunkSink, FileChunkSink, S3ChunkSink, read_events, write_events

__all__ = [
    "decode_stake_event",
    "make_ledger_decoder",
    "QUERY_BLOCKS",
    "PaginationStats",
    "harvest_events",
    "iter_windows",
    "paginate",
    "ChunkSink",
    "FileChunkSink",
    "S3ChunkSink",
    "read_events",
    "write_events",
]
