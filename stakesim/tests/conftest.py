import pytest

from stakesim.core.numbers import WEI
from stakesim.ledger import MemoryLedger

from .helpers import memory_session


@pytest.fixture
def ledger():
    return MemoryLedger()


@pytest.fixture
def session(ledger):
    return memory_session(ledger)


@pytest.fixture
def big_amount():
    return 1000 * WEI
