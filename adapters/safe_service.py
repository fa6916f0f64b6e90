"""Safe Transaction Service client (multisig coordination service).

Module purpose and system role:
    - List multisig proposals awaiting confirmation for a Safe.
    - Post owner confirmations and read back proposal/threshold state.

Integration points and dependencies:
    - ``aiohttp`` for HTTP; one session per operation so the client is safe
      to share across requests running on different event loops.
    - Every non-2xx response or transport failure raises
      :class:`core.errors.CoordinationServiceError` carrying the status code.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import aiohttp
from web3 import Web3

from core.errors import CoordinationServiceError
from core.logger import StructuredLogger

LOG = StructuredLogger("safe_service")

MAX_PAGES = 10


def _checksum(address: str) -> str:
    return Web3.to_checksum_address(address) if Web3.is_address(address) else address


def normalize_proposal(tx: Dict[str, Any]) -> Dict[str, Any]:
    """Reduce a service proposal to the fields the tracker consumes."""

    confirmations = tx.get("confirmations") or []
    return {
        "hash": tx.get("safeTxHash"),
        "confirmations": len(confirmations),
        "threshold": int(tx.get("confirmationsRequired") or 0),
        "to": tx.get("to"),
        "value": int(tx.get("value") or 0),
        "nonce": tx.get("nonce"),
        "confirmed_by": [c.get("owner") for c in confirmations if c.get("owner")],
    }


class SafeTransactionServiceClient:
    """Async client for the Safe Transaction Service REST API."""

    def __init__(self, base_url: str, *, timeout: float = 10.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    # ------------------------------------------------------------------
    async def _request(
        self,
        method: str,
        path_or_url: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        url = path_or_url if path_or_url.startswith("http") else f"{self.base_url}{path_or_url}"
        try:
            async with aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as session:
                async with session.request(method, url, json=json, params=params) as resp:
                    if resp.status >= 400:
                        body = await resp.text()
                        raise CoordinationServiceError(
                            f"{method} {url} returned {resp.status}: {body[:200]}",
                            status=resp.status,
                        )
                    if resp.content_type != "application/json":
                        return None
                    return await resp.json()
        except aiohttp.ClientError as exc:
            raise CoordinationServiceError(f"{method} {url} failed: {exc}") from exc
        except asyncio.TimeoutError as exc:
            raise CoordinationServiceError(
                f"{method} {url} timed out after {self.timeout}s"
            ) from exc

    # ------------------------------------------------------------------
    async def list_pending(self, wallet: str) -> List[Dict[str, Any]]:
        """Return unexecuted proposals for ``wallet``, following pagination."""

        url: Optional[str] = f"/api/v1/safes/{_checksum(wallet)}/multisig-transactions/"
        params: Optional[Dict[str, str]] = {"executed": "false"}
        proposals: List[Dict[str, Any]] = []
        pages = 0
        while url and pages < MAX_PAGES:
            data = await self._request("GET", url, params=params) or {}
            proposals.extend(
                normalize_proposal(tx)
                for tx in data.get("results", [])
                if not tx.get("isExecuted")
            )
            url = data.get("next")
            params = None  # ``next`` already carries the query
            pages += 1
        if url:
            LOG.log(
                "pending_list_truncated",
                wallet=wallet,
                risk_level="medium",
                pages=pages,
                count=len(proposals),
                next_page=url,
            )
        LOG.log("list_pending", wallet=wallet, count=len(proposals))
        return proposals

    async def get_transaction(self, tx_hash: str) -> Dict[str, Any]:
        data = await self._request("GET", f"/api/v1/multisig-transactions/{tx_hash}/")
        return data or {}

    async def get_threshold(self, wallet: str) -> int:
        data = await self._request("GET", f"/api/v1/safes/{_checksum(wallet)}/") or {}
        if "threshold" not in data:
            raise CoordinationServiceError(f"no threshold reported for {wallet}")
        return int(data["threshold"])

    async def confirm(self, tx_hash: str, signature: bytes) -> Dict[str, int]:
        """Post ``signature`` for ``tx_hash`` and return the new confirmation count."""

        await self._request(
            "POST",
            f"/api/v1/multisig-transactions/{tx_hash}/confirmations/",
            json={"signature": "0x" + bytes(signature).hex()},
        )
        tx = await self.get_transaction(tx_hash)
        count = len(tx.get("confirmations") or [])
        LOG.log("confirm", tx_id=tx_hash, confirmations=count)
        return {"confirmationCount": count}
