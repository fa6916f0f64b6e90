"""Co-signing decision engine.

Module purpose and system role:
    - Turn a firewall-classified request into reject / sign / sign-and-execute.
    - ``blocked`` is rejected, ``approved`` is signed directly and ``warning``
      is adjudicated by the reasoning oracle first.

Integration points and dependencies:
    - :class:`ai.adjudicator.ReasoningAdjudicator` for warning requests.
    - :class:`core.tx_engine.signer.SignatureProvider` for payload signatures.
    - :class:`core.tx_engine.pending_tracker.PendingTransactionTracker` and
      :class:`core.tx_engine.threshold_executor.ThresholdExecutor` for
      coordination-service progress.

``decide`` never raises: every pipeline error becomes a ``failed`` outcome.
Cancellation is the exception; it propagates, and a confirmation that was
already posted before it stays posted.
"""

from __future__ import annotations

import time
import uuid
from typing import Any

from core import metrics
from core.errors import CosignerError, InvalidRequestError
from core.logger import StructuredLogger
from core.models import (
    DecisionOutcome,
    DecisionState,
    PendingTransaction,
    TransactionRequest,
    TxStatus,
)

LOG = StructuredLogger("decision_engine")

REJECTED_PREFIX = "Transaction rejected: "
APPROVED_PREFIX = "Transaction approved: "
NOT_SIGNED_PREFIX = "Transaction not signed: "


class DecisionEngine:
    """Evaluate each request independently; holds no per-request state."""

    def __init__(
        self,
        adjudicator: Any,
        signer: Any,
        tracker: Any,
        executor: Any,
        *,
        require_pending_transaction: bool = False,
    ) -> None:
        self.adjudicator = adjudicator
        self.signer = signer
        self.tracker = tracker
        self.executor = executor
        self.require_pending_transaction = require_pending_transaction

    # ------------------------------------------------------------------
    async def decide(self, request: TransactionRequest) -> DecisionOutcome:
        request_id = uuid.uuid4().hex
        started = time.monotonic()
        wallet = getattr(request, "wallet_address", "")
        status = getattr(request, "status", None)
        try:
            outcome = await self._decide(request, request_id)
        except Exception as exc:
            kind = type(exc).__name__ if isinstance(exc, CosignerError) else "unexpected"
            metrics.record_error(kind)
            LOG.log(
                "decision_failed",
                tx_id=request_id,
                wallet=wallet,
                risk_level="high",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            outcome = DecisionOutcome(
                state=DecisionState.FAILED,
                agent_reason=f"{NOT_SIGNED_PREFIX}{exc}",
            )
        metrics.record_decision(outcome.state.value, time.monotonic() - started)
        LOG.log(
            "decision",
            tx_id=request_id,
            wallet=wallet,
            status=getattr(status, "value", status),
            state=outcome.state.value,
            signed=outcome.signed,
            safe_tx_hash=outcome.transaction_hash,
        )
        return outcome

    # ------------------------------------------------------------------
    async def _decide(self, request: TransactionRequest, request_id: str) -> DecisionOutcome:
        try:
            status = TxStatus(request.status)
        except ValueError as exc:
            raise InvalidRequestError(f"unknown status {request.status!r}") from exc

        if status is TxStatus.BLOCKED:
            return DecisionOutcome(
                state=DecisionState.REJECTED,
                agent_reason=f"{REJECTED_PREFIX}{request.bot_reason}",
            )

        if status is TxStatus.APPROVED:
            return await self._sign_and_progress(
                request, request_id, f"{APPROVED_PREFIX}{request.bot_reason}"
            )

        result = await self.adjudicator.adjudicate(request)
        if not result.verdict:
            return DecisionOutcome(state=DecisionState.REJECTED, agent_reason=result.rationale)
        return await self._sign_and_progress(request, request_id, result.rationale)

    # ------------------------------------------------------------------
    async def _sign_and_progress(
        self, request: TransactionRequest, request_id: str, reason: str
    ) -> DecisionOutcome:
        wallet = request.wallet_address
        pending = await self.tracker.find_pending(wallet, request.payload)

        if pending is None and self.require_pending_transaction:
            return DecisionOutcome(
                state=DecisionState.REJECTED,
                agent_reason=f"{NOT_SIGNED_PREFIX}no pending transaction for {wallet} matches the payload",
            )

        signature = self.signer.sign(request.payload)

        if pending is None:
            # willing to sign, but nothing in the coordination service was advanced
            LOG.log("no_pending_transaction", tx_id=request_id, wallet=wallet, risk_level="low")
            return DecisionOutcome(
                state=DecisionState.SIGNED_PENDING,
                agent_reason=reason,
                signature=signature,
            )

        threshold = await self.executor.wallet_threshold(wallet)
        pending = await self._confirm(pending, threshold, request_id, wallet)
        execution = await self.executor.try_execute(wallet, pending, threshold)
        if execution is None:
            return DecisionOutcome(
                state=DecisionState.SIGNED_PENDING,
                agent_reason=reason,
                signature=signature,
                transaction_hash=pending.transaction_hash,
            )
        return DecisionOutcome(
            state=DecisionState.SIGNED_EXECUTED,
            agent_reason=reason,
            signature=signature,
            transaction_hash=execution.transaction_hash,
            receipt=execution.receipt,
        )

    async def _confirm(
        self,
        pending: PendingTransaction,
        threshold: int,
        request_id: str,
        wallet: str,
    ) -> PendingTransaction:
        """Add this signer's confirmation unless it would be redundant.

        ``threshold`` is the wallet's live threshold, the same value the
        executor checks against afterwards.
        """
        owner = self.signer.address
        if pending.confirmed_by_owner(owner):
            LOG.log("confirmation_skipped", tx_id=request_id, wallet=wallet, reason="already_confirmed")
            return pending
        if 0 < threshold <= pending.confirmations_count:
            LOG.log("confirmation_skipped", tx_id=request_id, wallet=wallet, reason="threshold_met")
            return pending
        # the service only accepts a signature over the proposal's own hash
        confirmation = self.signer.sign_safe_hash(pending.transaction_hash)
        await self.tracker.confirm(pending.transaction_hash, confirmation)
        return pending.with_confirmation(owner)
