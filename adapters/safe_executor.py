"""On-chain execution of fully confirmed Safe proposals.

Module purpose and system role:
- Submit ``execTransaction`` to the Safe contract once enough owners signed.
- Wait for the receipt and fail loudly on revert.

Integration points and dependencies:
- ``web3`` AsyncWeb3 for RPC; the agent key signs through
  :class:`core.tx_engine.signer.SignatureProvider`.
- A Web3-like object may be injected for tests; otherwise a fresh
  AsyncWeb3 is created per execution so no provider session outlives its
  event loop.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping

from hexbytes import HexBytes
from web3 import AsyncWeb3, Web3

from core.errors import ExecutionError
from core.logger import StructuredLogger, log_error
from core.tx_engine.signer import SignatureProvider

LOG = StructuredLogger("safe_executor")

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

SAFE_EXEC_ABI = [
    {
        "inputs": [
            {"internalType": "address", "name": "to", "type": "address"},
            {"internalType": "uint256", "name": "value", "type": "uint256"},
            {"internalType": "bytes", "name": "data", "type": "bytes"},
            {"internalType": "enum Enum.Operation", "name": "operation", "type": "uint8"},
            {"internalType": "uint256", "name": "safeTxGas", "type": "uint256"},
            {"internalType": "uint256", "name": "baseGas", "type": "uint256"},
            {"internalType": "uint256", "name": "gasPrice", "type": "uint256"},
            {"internalType": "address", "name": "gasToken", "type": "address"},
            {"internalType": "address payable", "name": "refundReceiver", "type": "address"},
            {"internalType": "bytes", "name": "signatures", "type": "bytes"},
        ],
        "name": "execTransaction",
        "outputs": [{"internalType": "bool", "name": "success", "type": "bool"}],
        "stateMutability": "payable",
        "type": "function",
    }
]


def _hex_to_bytes(value: Any) -> bytes:
    if not value:
        return b""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return bytes(HexBytes(value))


def pack_signatures(confirmations: List[Mapping[str, Any]]) -> bytes:
    """Concatenate owner signatures ordered by ascending owner address."""

    ordered = sorted(confirmations, key=lambda c: int(str(c["owner"]), 16))
    return b"".join(_hex_to_bytes(c["signature"]) for c in ordered)


def _receipt_dict(receipt: Mapping[str, Any]) -> Dict[str, Any]:
    tx_hash = receipt.get("transactionHash")
    return {
        "transactionHash": "0x" + bytes(HexBytes(tx_hash)).hex() if tx_hash is not None else None,
        "blockNumber": receipt.get("blockNumber"),
        "gasUsed": receipt.get("gasUsed"),
        "status": receipt.get("status"),
    }


class SafeExecutor:
    """Sends ``execTransaction`` for a confirmed proposal, at most once per call."""

    def __init__(
        self,
        rpc_url: str,
        signer: SignatureProvider,
        *,
        receipt_timeout: float = 120.0,
        gas_multiplier: float = 1.2,
        web3: Any | None = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.signer = signer
        self.receipt_timeout = receipt_timeout
        self.gas_multiplier = gas_multiplier
        self.web3 = web3

    def _web3(self) -> Any:
        if self.web3 is not None:
            return self.web3
        return AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(self.rpc_url))

    # ------------------------------------------------------------------
    async def execute(self, wallet: str, proposal: Mapping[str, Any]) -> Dict[str, Any]:
        """Submit ``proposal`` (a service transaction dict) and return its receipt."""

        safe_tx_hash = str(proposal.get("safeTxHash", ""))
        try:
            w3 = self._web3()
            safe = w3.eth.contract(address=Web3.to_checksum_address(wallet), abi=SAFE_EXEC_ABI)
            fn = safe.functions.execTransaction(
                Web3.to_checksum_address(proposal["to"]),
                int(proposal.get("value") or 0),
                _hex_to_bytes(proposal.get("data")),
                int(proposal.get("operation") or 0),
                int(proposal.get("safeTxGas") or 0),
                int(proposal.get("baseGas") or 0),
                int(proposal.get("gasPrice") or 0),
                Web3.to_checksum_address(proposal.get("gasToken") or ZERO_ADDRESS),
                Web3.to_checksum_address(proposal.get("refundReceiver") or ZERO_ADDRESS),
                pack_signatures(proposal.get("confirmations") or []),
            )
            sender = self.signer.address
            estimated = await fn.estimate_gas({"from": sender})
            tx = await fn.build_transaction(
                {
                    "from": sender,
                    "nonce": await w3.eth.get_transaction_count(sender, "pending"),
                    "gas": int(estimated * self.gas_multiplier),
                    "chainId": await w3.eth.chain_id,
                }
            )
            raw = self.signer.sign_transaction(tx)
            tx_hash = await w3.eth.send_raw_transaction(raw)
            LOG.log("exec_sent", tx_id=safe_tx_hash, wallet=wallet, chain_tx=tx_hash)
            receipt = await w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.receipt_timeout
            )
        except Exception as exc:
            log_error("safe_executor", str(exc), event="exec_fail", tx_id=safe_tx_hash, wallet=wallet)
            raise ExecutionError(f"execution of {safe_tx_hash} failed: {exc}") from exc

        result = _receipt_dict(receipt)
        if result["status"] != 1:
            LOG.log("exec_reverted", tx_id=safe_tx_hash, wallet=wallet, risk_level="high", error="reverted", receipt=result)
            raise ExecutionError(f"execution of {safe_tx_hash} reverted in block {result['blockNumber']}")
        LOG.log("exec_confirmed", tx_id=safe_tx_hash, wallet=wallet, receipt=result)
        return result
