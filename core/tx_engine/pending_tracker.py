"""Pending multisig proposal lookup and confirmation submission."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from core.errors import ConfirmationError, CoordinationServiceError
from core.logger import StructuredLogger
from core.models import PendingTransaction

LOG = StructuredLogger("pending_tracker")


def _same_address(a: Optional[str], b: Any) -> bool:
    return isinstance(a, str) and isinstance(b, str) and a.lower() == b.lower()


def _payload_value(payload: Mapping[str, Any]) -> Optional[int]:
    value = payload.get("value")
    try:
        if isinstance(value, str) and value.lower().startswith("0x"):
            return int(value, 16)
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def select_pending(
    pending: List[PendingTransaction], payload: Mapping[str, Any]
) -> Optional[PendingTransaction]:
    """Pick the proposal ``payload`` refers to.

    Only proposals with the payload's destination and value qualify. An
    explicit ``safeTxHash`` in the payload must also match exactly; otherwise
    the lowest-nonce qualifying proposal wins.
    """

    value = _payload_value(payload)
    matches = [
        tx
        for tx in pending
        if _same_address(tx.destination, payload.get("to")) and tx.value == value
    ]
    wanted = payload.get("safeTxHash")
    if wanted:
        for tx in matches:
            if tx.transaction_hash.lower() == str(wanted).lower():
                return tx
        return None
    if not matches:
        return None
    return min(matches, key=lambda tx: tx.nonce if tx.nonce is not None else 0)


class PendingTransactionTracker:
    """Read proposals from, and add confirmations to, the coordination service.

    ``service`` needs ``list_pending(wallet)`` and ``confirm(hash, signature)``
    coroutines (see :class:`adapters.safe_service.SafeTransactionServiceClient`).
    """

    def __init__(self, service: Any) -> None:
        self.service = service

    # ------------------------------------------------------------------
    async def list_pending(self, wallet: str) -> List[PendingTransaction]:
        try:
            entries = await self.service.list_pending(wallet)
        except CoordinationServiceError as exc:
            if exc.not_found:
                # unknown wallet to the service means nothing is pending
                LOG.log("no_pending", wallet=wallet, risk_level="low")
                return []
            raise
        return [PendingTransaction.from_service(e) for e in entries]

    async def find_pending(
        self, wallet: str, payload: Mapping[str, Any]
    ) -> Optional[PendingTransaction]:
        return select_pending(await self.list_pending(wallet), payload)

    async def confirm(self, transaction_hash: str, signature: bytes) -> None:
        try:
            await self.service.confirm(transaction_hash, signature)
        except Exception as exc:
            LOG.log("confirm_fail", tx_id=transaction_hash, risk_level="high", error=str(exc))
            raise ConfirmationError(
                f"confirmation of {transaction_hash} rejected: {exc}"
            ) from exc
        LOG.log("confirmed", tx_id=transaction_hash, risk_level="low")
