"""SafeExecutor with a stubbed async Web3."""

import asyncio

import pytest

from adapters.safe_executor import SafeExecutor, pack_signatures
from core.errors import ExecutionError
from core.tx_engine.signer import SignatureProvider

KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
SAFE = "0x" + "11" * 20
LOW_OWNER = "0x" + "01" * 20
HIGH_OWNER = "0x" + "f0" * 20


class DummyFunction:
    def __init__(self, eth, args):
        self.eth = eth
        self.args = args

    async def estimate_gas(self, tx):
        return 100000

    async def build_transaction(self, tx):
        self.eth.built = dict(tx)
        return {
            **tx,
            "to": SAFE,
            "data": "0x6a761202",
            "value": 0,
            "maxFeePerGas": 2 * 10**9,
            "maxPriorityFeePerGas": 10**9,
        }


class DummyContract:
    def __init__(self, eth):
        eth_ref = eth

        class _Functions:
            @staticmethod
            def execTransaction(*args):
                eth_ref.exec_args = args
                return DummyFunction(eth_ref, args)

        self.functions = _Functions()


class DummyEth:
    def __init__(self, status=1):
        self.status = status
        self.sent = []

    def contract(self, address, abi):
        self.contract_address = address
        return DummyContract(self)

    async def get_transaction_count(self, address, block):
        return 5

    @property
    def chain_id(self):
        async def _cid():
            return 1

        return _cid()

    async def send_raw_transaction(self, raw):
        self.sent.append(raw)
        return b"\x12" * 32

    async def wait_for_transaction_receipt(self, tx_hash, timeout):
        return {"transactionHash": tx_hash, "blockNumber": 42, "gasUsed": 90000, "status": self.status}


class DummyWeb3:
    def __init__(self, status=1):
        self.eth = DummyEth(status)


PROPOSAL = {
    "safeTxHash": "0x01",
    "to": "0x" + "aa" * 20,
    "value": "1000000",
    "data": None,
    "operation": 0,
    "confirmations": [
        {"owner": HIGH_OWNER, "signature": "0x" + "bb" * 65},
        {"owner": LOW_OWNER, "signature": "0x" + "aa" * 65},
    ],
}


def test_pack_signatures_sorted_by_owner():
    packed = pack_signatures(PROPOSAL["confirmations"])
    assert packed == bytes.fromhex("aa" * 65 + "bb" * 65)


def test_execute_returns_receipt():
    web3 = DummyWeb3()
    executor = SafeExecutor("http://rpc", SignatureProvider(KEY), web3=web3)
    receipt = asyncio.run(executor.execute(SAFE, PROPOSAL))
    assert receipt == {
        "transactionHash": "0x" + "12" * 32,
        "blockNumber": 42,
        "gasUsed": 90000,
        "status": 1,
    }
    assert web3.eth.built["gas"] == 120000
    assert web3.eth.built["nonce"] == 5
    assert web3.eth.exec_args[1] == 1000000
    assert web3.eth.exec_args[2] == b""
    assert web3.eth.exec_args[-1] == bytes.fromhex("aa" * 65 + "bb" * 65)
    assert len(web3.eth.sent) == 1


def test_reverted_execution_raises():
    executor = SafeExecutor("http://rpc", SignatureProvider(KEY), web3=DummyWeb3(status=0))
    with pytest.raises(ExecutionError, match="reverted"):
        asyncio.run(executor.execute(SAFE, PROPOSAL))
