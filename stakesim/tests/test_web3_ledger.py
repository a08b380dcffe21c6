"""
Tests for the web3.py ledger against an in-process stand-in for the node.

Logs and receipts are built by hand in the shape eth_getLogs returns.
"""

import pytest
from web3 import Web3
from web3.exceptions import TransactionNotFound

from stakesim.core.errors import LedgerError
from stakesim.core.receipts import Call, TxHandle
from stakesim.harvest import PaginationStats, harvest_events
from stakesim.ledger import STAKE_CREATED, STAKING, TOKEN, Web3Ledger

STAKING_ADDRESS = "0x" + "01" * 20
TOKEN_ADDRESS = "0x" + "02" * 20
STAKER = "0x" + "ab" * 20
TX_HASH = bytes(range(32))
STAKE_CREATED_SIGNATURE = "StakeCreated(address,uint256,uint256,uint32)"


class FakeFunction:
    def __init__(self, contract, name, args):
        self.contract = contract
        self.name = name
        self.args = args

    def transact(self, tx):
        if self.contract.reject is not None:
            raise self.contract.reject
        self.contract.sent.append((self.name, self.args, tx))
        return TX_HASH


class FakeContract:
    def __init__(self, address, abi):
        self.address = address
        self.abi = abi
        self.sent = []
        self.reject = None

    def get_function_by_name(self, name):
        return lambda *args: FakeFunction(self, name, args)


class FakeProvider:
    def __init__(self):
        self.requests = []

    def make_request(self, method, params):
        self.requests.append((method, params))
        return {"jsonrpc": "2.0", "id": len(self.requests), "result": None}


class FakeEth:
    def __init__(self):
        self.logs = []
        self.log_queries = []
        self.blocks = {}
        self.receipt = None
        self.mined = False
        self.contracts = {}
        self.block_number = 0

    def contract(self, address, abi):
        self.contracts[address] = FakeContract(address, abi)
        return self.contracts[address]

    def get_logs(self, params):
        self.log_queries.append(params)
        return [
            log for log in self.logs
            if params["fromBlock"] <= log["blockNumber"] <= params["toBlock"]
        ]

    def get_block(self, number):
        return {"number": number, "timestamp": self.blocks.get(number, 1_600_000_000 + number)}

    def get_transaction_receipt(self, tx_hash):
        if not self.mined:
            raise TransactionNotFound(f"transaction {tx_hash} not found")
        return self.receipt

    def wait_for_transaction_receipt(self, tx_hash, timeout):
        return self.receipt


class FakeWeb3:
    def __init__(self):
        self.codec = Web3().codec
        self.eth = FakeEth()
        self.provider = FakeProvider()


def make_ledger():
    w3 = FakeWeb3()
    ledger = Web3Ledger(w3, {STAKING: STAKING_ADDRESS, TOKEN: TOKEN_ADDRESS})
    return w3, ledger


def word(value):
    return value.to_bytes(32, "big")


def stake_created_log(w3, block, stake_id, amount, data=None):
    if data is None:
        data = w3.codec.encode(["uint256", "uint32"], [amount, 1_700_000_000])
    return {
        "address": Web3.to_checksum_address(STAKING_ADDRESS),
        "topics": [
            bytes(Web3.keccak(text=STAKE_CREATED_SIGNATURE)),
            bytes(12) + bytes.fromhex(STAKER[2:]),
            word(stake_id),
        ],
        "data": data,
        "blockNumber": block,
        "blockHash": word(block),
        "transactionHash": TX_HASH,
        "transactionIndex": 0,
        "logIndex": 0,
    }


def test_normalize_log_decodes_known_event():
    w3, ledger = make_ledger()

    raw = ledger._normalize_log(stake_created_log(w3, 12, stake_id=7, amount=5 * 10 ** 18))

    assert raw.event == "StakeCreated"
    assert raw.block_number == 12
    assert raw.transaction_hash == Web3.to_hex(TX_HASH)
    assert list(raw.args) == ["account", "stakeID", "amount", "lockedTill"]
    assert raw.args["account"] == Web3.to_checksum_address(STAKER)
    assert raw.args["stakeID"] == 7
    assert raw.args["amount"] == 5 * 10 ** 18


def test_normalize_log_undecodable_and_unknown():
    w3, ledger = make_ledger()
    unknown = stake_created_log(w3, 3, stake_id=1, amount=1)
    unknown["topics"] = [bytes(Web3.keccak(text="Other(uint256)"))]

    broken = ledger._normalize_log(stake_created_log(w3, 3, stake_id=1, amount=1, data=b""))
    other = ledger._normalize_log(unknown)

    assert broken.event == "StakeCreated"
    assert broken.args is None
    assert other.event is None
    assert other.args is None


def test_harvest_skips_undecodable_logs():
    w3, ledger = make_ledger()
    w3.eth.logs = [
        stake_created_log(w3, 10, stake_id=0, amount=10 ** 18),
        stake_created_log(w3, 11, stake_id=1, amount=1, data=b""),
        stake_created_log(w3, 25, stake_id=2, amount=3 * 10 ** 18),
    ]
    stats = PaginationStats()

    events = harvest_events(ledger, STAKE_CREATED, 0, 30, window_size=20, stats=stats)

    assert [e.stake_id for e in events] == ["0", "2"]
    assert [e.amount for e in events] == [str(10 ** 18), str(3 * 10 ** 18)]
    assert stats.entries == 3
    assert stats.skipped == 1
    assert events[1].timestamp == 1_600_000_025


def test_get_logs_params():
    w3, ledger = make_ledger()
    topic = ledger.event_topic(STAKE_CREATED)

    ledger.get_logs(STAKING_ADDRESS, [topic], 5, 9)
    ledger.get_logs(None, None, 1, 2)

    assert w3.eth.log_queries == [
        {
            "fromBlock": 5,
            "toBlock": 9,
            "address": Web3.to_checksum_address(STAKING_ADDRESS),
            "topics": [Web3.to_hex(Web3.keccak(text=STAKE_CREATED_SIGNATURE))],
        },
        {"fromBlock": 1, "toBlock": 2},
    ]


def test_wait_mines_pending_transaction_when_automine_off():
    w3, ledger = make_ledger()
    ledger.set_automine(False)
    w3.eth.receipt = {"status": 1, "blockNumber": 40, "logs": [stake_created_log(w3, 40, stake_id=3, amount=1)]}
    handle = TxHandle(hash=Web3.to_hex(TX_HASH), sender=STAKER, call=Call(STAKING, "stake", (1, b"", b"")))

    receipt = ledger.wait(handle)

    assert [m for m, _ in w3.provider.requests] == ["evm_setAutomine", "evm_mine"]
    assert receipt.block_number == 40
    assert receipt.timestamp == 1_600_000_040
    assert receipt.find_event(STAKE_CREATED).arg("stakeID") == 3


def test_wait_leaves_mining_to_node_when_automine_on():
    w3, ledger = make_ledger()
    w3.eth.mined = True
    w3.eth.receipt = {"status": 1, "blockNumber": 2, "logs": []}

    ledger.wait(TxHandle(hash="0x01", sender=STAKER, call=Call(TOKEN, "transfer", (STAKER, 1))))

    assert w3.provider.requests == []


def test_wait_raises_on_revert():
    w3, ledger = make_ledger()
    w3.eth.mined = True
    w3.eth.receipt = {"status": 0, "blockNumber": 2, "logs": []}

    with pytest.raises(LedgerError, match="reverted"):
        ledger.wait(TxHandle(hash="0x01", sender=STAKER, call=Call(TOKEN, "transfer", (STAKER, 1))))


def test_submit_checksums_addresses():
    w3, ledger = make_ledger()
    token = w3.eth.contracts[Web3.to_checksum_address(TOKEN_ADDRESS)]

    handle = ledger.submit(STAKER, Call(TOKEN, "approve", (STAKING_ADDRESS, 10 ** 18)))

    assert handle.hash == Web3.to_hex(TX_HASH)
    assert token.sent == [(
        "approve",
        (Web3.to_checksum_address(STAKING_ADDRESS), 10 ** 18),
        {"from": Web3.to_checksum_address(STAKER)},
    )]


def test_submit_rejection_is_ledger_error():
    w3, ledger = make_ledger()
    w3.eth.contracts[Web3.to_checksum_address(STAKING_ADDRESS)].reject = ValueError("execution reverted")

    with pytest.raises(LedgerError, match="staking.stake"):
        ledger.submit(STAKER, Call(STAKING, "stake", (1, b"\x00" * 4, b"")))


def test_rpc_error_is_ledger_error():
    w3, ledger = make_ledger()
    w3.provider.make_request = lambda method, params: {"error": {"code": -32601, "message": "no such method"}}

    with pytest.raises(LedgerError, match="evm_setIntervalMining"):
        ledger.set_interval_mining(0)
