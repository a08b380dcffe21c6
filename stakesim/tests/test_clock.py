"""
Tests for ledger clock control.
"""

import pytest

from stakesim.core.clock import TimeController
from stakesim.core.errors import LedgerError
from stakesim.ledger import MemoryLedger


def test_advance_moves_clock_to_exact_target():
    ledger = MemoryLedger(genesis_timestamp=1000)
    clock = TimeController(ledger)

    assert clock.advance_to(1500) is True
    assert clock.now() == 1500
    assert ledger.latest_block() == 1


def test_advance_is_idempotent():
    ledger = MemoryLedger(genesis_timestamp=1000)
    clock = TimeController(ledger)

    clock.advance_to(2000)
    once = (clock.now(), ledger.latest_block())
    assert clock.advance_to(2000) is False
    assert (clock.now(), ledger.latest_block()) == once


def test_advance_to_past_is_noop():
    ledger = MemoryLedger(genesis_timestamp=1000)
    clock = TimeController(ledger)

    assert clock.advance_to(999) is False
    assert clock.advance_to(1000) is False
    assert clock.now() == 1000
    assert ledger.latest_block() == 0


def test_non_decreasing_targets():
    ledger = MemoryLedger()
    clock = TimeController(ledger)

    for target in (10, 10, 11, 50, 50, 50):
        clock.advance_to(target)
        assert clock.now() == target


def test_mine_at_rejects_non_increasing_timestamp():
    ledger = MemoryLedger(genesis_timestamp=10)

    with pytest.raises(LedgerError):
        ledger.mine_at(10)
