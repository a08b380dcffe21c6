"""
web3.py ledger backed by a Hardhat (or Anvil) node, typically a mainnet fork.

Historical queries use eth_getLogs; mutations are sent as eth_sendTransaction
from impersonated accounts; clock control goes through the node's evm_* and
hardhat_* methods.
"""

import logging
from collections import OrderedDict
from typing import Any, Dict, List, Optional, Sequence

from web3 import Web3
from web3._utils.events import get_event_data
from web3.exceptions import TransactionNotFound, Web3Exception

from ..core.errors import LedgerError
from ..core.events import BlockMeta, RawLog
from ..core.receipts import Call, Receipt, TxHandle
from .abi import ABIS
from .base import Ledger, STAKING, TOKEN

logger = logging.getLogger(__name__)


def event_signature(abi: Dict[str, Any]) -> str:
    types = ",".join(i["type"] for i in abi["inputs"])
    return f"{abi['name']}({types})"


def event_topic_of(abi: Dict[str, Any]) -> str:
    return Web3.to_hex(Web3.keccak(text=event_signature(abi)))


class Web3Ledger(Ledger):
    """
    Ledger backed by a JSON-RPC node through web3.py.

    Contract roles (staking, token, reward_controller, reward_master,
    reward_treasury) map to deployed addresses supplied at construction.
    """

    def __init__(
        self,
        w3: Web3,
        addresses: Dict[str, str],
        receipt_timeout: float = 120,
    ) -> None:
        """
        Initialize ledger.

        Args:
            w3: Connected Web3 instance
            addresses: Contract role -> address
            receipt_timeout: Seconds to wait for a receipt

        Raises:
            LedgerError: If a required contract address is missing
        """
        self.w3 = w3
        self.receipt_timeout = receipt_timeout
        self.automine = True
        self.addresses = {
            role: Web3.to_checksum_address(addr) for role, addr in addresses.items() if addr
        }
        for role in (STAKING, TOKEN):
            if role not in self.addresses:
                raise LedgerError(f"missing contract address for {role}")

        self.contracts = {
            role: w3.eth.contract(address=addr, abi=ABIS[role])
            for role, addr in self.addresses.items()
            if role in ABIS
        }
        self._events_by_topic: Dict[str, Dict[str, Any]] = {}
        for abi in ABIS.values():
            for entry in abi:
                if entry["type"] == "event":
                    self._events_by_topic[event_topic_of(entry)] = entry

    @classmethod
    def from_url(cls, rpc_url: str, addresses: Dict[str, str], **kwargs) -> "Web3Ledger":
        w3 = Web3(Web3.HTTPProvider(rpc_url))
        return cls(w3, addresses, **kwargs)

    def _rpc(self, method: str, params: list) -> Any:
        response = self.w3.provider.make_request(method, params)
        if response.get("error"):
            raise LedgerError(f"{method} failed: {response['error']}")
        return response.get("result")

    def _checksum(self, address: str) -> str:
        return Web3.to_checksum_address(address)

    def _contract(self, role: str):
        try:
            return self.contracts[role]
        except KeyError:
            raise LedgerError(f"no contract configured for role {role}") from None

    def _normalize_log(self, log: Dict[str, Any]) -> RawLog:
        topics = log.get("topics") or []
        topic0 = Web3.to_hex(topics[0]) if topics else None
        event_abi = self._events_by_topic.get(topic0) if topic0 else None

        name = event_abi["name"] if event_abi else None
        args = None
        if event_abi is not None:
            try:
                data = get_event_data(self.w3.codec, event_abi, log)
                decoded = dict(data["args"])
                args = OrderedDict((i["name"], decoded[i["name"]]) for i in event_abi["inputs"])
            except Exception as ex:
                logger.warning(f"Failed decoding {name} log in {Web3.to_hex(log['transactionHash'])}: {ex}")

        return RawLog(
            event=name,
            block_number=int(log["blockNumber"]),
            transaction_hash=Web3.to_hex(log["transactionHash"]),
            log_index=int(log.get("logIndex", 0)),
            address=log.get("address"),
            args=args,
        )

    # Queries

    def latest_block(self) -> int:
        return self.w3.eth.block_number

    def get_block(self, number: int) -> BlockMeta:
        try:
            block = self.w3.eth.get_block(number)
        except Web3Exception as ex:
            raise LedgerError(f"block {number} not found: {ex}") from ex
        return BlockMeta(number=int(block["number"]), timestamp=int(block["timestamp"]))

    def get_logs(
        self,
        address: Optional[str],
        topics: Optional[Sequence[Optional[str]]],
        from_block: int,
        to_block: int,
    ) -> List[RawLog]:
        params: Dict[str, Any] = {"fromBlock": from_block, "toBlock": to_block}
        if address is not None:
            params["address"] = self._checksum(address)
        if topics:
            params["topics"] = list(topics)
        logs = self.w3.eth.get_logs(params)
        return [self._normalize_log(dict(log)) for log in logs]

    def event_topic(self, name: str) -> str:
        for topic, abi in self._events_by_topic.items():
            if abi["name"] == name:
                return topic
        raise LedgerError(f"unknown event {name}")

    def contract_address(self, role: str) -> str:
        try:
            return self.addresses[role]
        except KeyError:
            raise LedgerError(f"unknown contract role: {role}") from None

    def native_balance(self, address: str) -> int:
        return self.w3.eth.get_balance(self._checksum(address))

    def token_balance(self, address: str) -> int:
        return self._contract(TOKEN).functions.balanceOf(self._checksum(address)).call()

    def allowance(self, owner: str, spender: str) -> int:
        return self._contract(TOKEN).functions.allowance(
            self._checksum(owner), self._checksum(spender)
        ).call()

    def total_staked(self) -> int:
        return self._contract(STAKING).functions.totalStaked().call()

    # Submission

    def impersonate(self, address: str) -> None:
        self._rpc("hardhat_impersonateAccount", [self._checksum(address)])

    def stop_impersonating(self, address: str) -> None:
        self._rpc("hardhat_stopImpersonatingAccount", [self._checksum(address)])

    def submit(self, sender: str, call: Call) -> TxHandle:
        contract = self._contract(call.contract)
        args = [self._checksum(a) if isinstance(a, str) and Web3.is_address(a) else a for a in call.args]
        try:
            fn = contract.get_function_by_name(call.function)(*args)
            tx = fn.transact({"from": self._checksum(sender)})
        except (Web3Exception, ValueError) as ex:
            raise LedgerError(f"{call.contract}.{call.function} from {sender} rejected: {ex}") from ex
        return TxHandle(hash=Web3.to_hex(tx), sender=sender, call=call)

    def wait(self, handle: TxHandle) -> Receipt:
        try:
            self.w3.eth.get_transaction_receipt(handle.hash)
        except TransactionNotFound:
            if not self.automine:
                self._rpc("evm_mine", [])
        try:
            receipt = self.w3.eth.wait_for_transaction_receipt(handle.hash, timeout=self.receipt_timeout)
        except Web3Exception as ex:
            raise LedgerError(f"transaction {handle.hash} not finalized: {ex}") from ex
        if receipt["status"] != 1:
            raise LedgerError(f"transaction {handle.hash} reverted")
        block = self.get_block(receipt["blockNumber"])
        return Receipt(
            transaction_hash=handle.hash,
            block_number=block.number,
            timestamp=block.timestamp,
            status=receipt["status"],
            logs=[self._normalize_log(dict(log)) for log in receipt["logs"]],
        )

    # Clock control

    def now(self) -> int:
        return int(self.w3.eth.get_block("latest")["timestamp"])

    def set_automine(self, enabled: bool) -> None:
        self._rpc("evm_setAutomine", [enabled])
        self.automine = enabled

    def set_interval_mining(self, interval: int) -> None:
        self._rpc("evm_setIntervalMining", [interval])

    def mine_at(self, timestamp: int) -> None:
        self._rpc("evm_mine", [timestamp])

    def set_balance(self, address: str, amount: int) -> None:
        self._rpc("hardhat_setBalance", [self._checksum(address), hex(amount)])
