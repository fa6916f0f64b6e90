"""Threshold check and single-shot execution of multisig proposals."""

from __future__ import annotations

from typing import Any, Optional

from core import metrics
from core.errors import ExecutionError
from core.logger import StructuredLogger
from core.models import ExecutionResult, PendingTransaction

LOG = StructuredLogger("threshold_executor")


class ThresholdExecutor:
    """Execute a proposal once its confirmations reach the wallet threshold.

    ``service`` provides ``get_threshold(wallet)`` and ``get_transaction(hash)``;
    ``chain`` provides ``execute(wallet, proposal)`` returning a receipt.
    Execution is attempted at most once per call and never retried here.
    """

    def __init__(self, service: Any, chain: Any) -> None:
        self.service = service
        self.chain = chain

    async def wallet_threshold(self, wallet: str) -> int:
        """Current owner threshold of ``wallet`` as the service reports it."""
        try:
            return int(await self.service.get_threshold(wallet))
        except Exception as exc:
            raise ExecutionError(f"threshold lookup for {wallet} failed: {exc}") from exc

    async def try_execute(
        self,
        wallet: str,
        pending: PendingTransaction,
        threshold: Optional[int] = None,
    ) -> Optional[ExecutionResult]:
        """Execute ``pending`` if it has enough confirmations.

        ``threshold`` is looked up from the wallet when not given; the
        proposal's own recorded threshold is never used here.
        """
        tx_hash = pending.transaction_hash
        if threshold is None:
            threshold = await self.wallet_threshold(wallet)

        if pending.confirmations_count < threshold:
            LOG.log(
                "awaiting_cosigners",
                tx_id=tx_hash,
                wallet=wallet,
                confirmations=pending.confirmations_count,
                threshold=threshold,
            )
            return None

        try:
            proposal = await self.service.get_transaction(tx_hash)
        except Exception as exc:
            raise ExecutionError(f"proposal lookup for {tx_hash} failed: {exc}") from exc

        try:
            receipt = await self.chain.execute(wallet, proposal)
        except ExecutionError:
            raise
        except Exception as exc:
            raise ExecutionError(f"execution of {tx_hash} failed: {exc}") from exc

        metrics.record_execution()
        LOG.log(
            "executed",
            tx_id=tx_hash,
            wallet=wallet,
            confirmations=pending.confirmations_count,
            threshold=threshold,
        )
        return ExecutionResult(transaction_hash=tx_hash, receipt=dict(receipt))
