"""Tests for pending proposal lookup and confirmation."""

import asyncio

import pytest

from core.errors import ConfirmationError, CoordinationServiceError
from core.models import PendingTransaction
from core.tx_engine.pending_tracker import PendingTransactionTracker, select_pending

DEST = "0x" + "aa" * 20


class DummyService:
    def __init__(self, entries=None, list_exc=None, confirm_exc=None):
        self.entries = entries or []
        self.list_exc = list_exc
        self.confirm_exc = confirm_exc
        self.confirmed = []

    async def list_pending(self, wallet):
        if self.list_exc:
            raise self.list_exc
        return self.entries

    async def confirm(self, tx_hash, signature):
        if self.confirm_exc:
            raise self.confirm_exc
        self.confirmed.append((tx_hash, signature))
        return {"confirmationCount": 1}


def test_not_found_is_empty():
    service = DummyService(list_exc=CoordinationServiceError("missing", status=404))
    assert asyncio.run(PendingTransactionTracker(service).list_pending("0xsafe")) == []


def test_other_service_errors_propagate():
    service = DummyService(list_exc=CoordinationServiceError("boom", status=500))
    with pytest.raises(CoordinationServiceError):
        asyncio.run(PendingTransactionTracker(service).list_pending("0xsafe"))


def test_entries_become_pending_transactions():
    service = DummyService(
        entries=[{"hash": "0x01", "confirmations": 1, "threshold": 2, "to": DEST, "value": 5, "nonce": 3}]
    )
    pending = asyncio.run(PendingTransactionTracker(service).list_pending("0xsafe"))
    assert pending == [PendingTransaction("0x01", 1, 2, DEST, 5, 3)]


def test_confirm_wraps_errors():
    service = DummyService(confirm_exc=CoordinationServiceError("bad signature", status=422))
    with pytest.raises(ConfirmationError, match="bad signature"):
        asyncio.run(PendingTransactionTracker(service).confirm("0x01", b"\x01"))


def test_confirm_forwards_signature():
    service = DummyService()
    asyncio.run(PendingTransactionTracker(service).confirm("0x01", b"\x01"))
    assert service.confirmed == [("0x01", b"\x01")]


def test_select_by_destination_and_value_lowest_nonce():
    pending = [
        PendingTransaction("0x03", 0, 2, DEST, 5, 9),
        PendingTransaction("0x02", 0, 2, DEST.upper().replace("0X", "0x"), 5, 4),
        PendingTransaction("0x01", 0, 2, DEST, 6, 1),
    ]
    assert select_pending(pending, {"to": DEST, "value": "5"}).transaction_hash == "0x02"
    assert select_pending(pending, {"to": DEST, "value": 7}) is None


def test_select_by_explicit_hash():
    pending = [
        PendingTransaction("0x01", 0, 2, DEST, 5, 1),
        PendingTransaction("0xABC", 0, 2, DEST, 5, 2),
    ]
    assert select_pending(pending, {"safeTxHash": "0xabc", "to": DEST, "value": 5}) is pending[1]
    assert select_pending(pending, {"safeTxHash": "0xdef", "to": DEST, "value": 5}) is None


def test_explicit_hash_must_match_destination_and_value():
    other = "0x" + "bb" * 20
    pending = [PendingTransaction("0xABC", 0, 2, other, 10**21, 1)]
    assert select_pending(pending, {"safeTxHash": "0xabc", "to": DEST, "value": 1}) is None
    assert select_pending(pending, {"safeTxHash": "0xabc", "to": other, "value": 1}) is None
