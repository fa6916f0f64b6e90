import pytest

from core.errors import InvalidRequestError
from core.models import (
    DecisionOutcome,
    DecisionState,
    PendingTransaction,
    TransactionRequest,
    TxStatus,
)

WIRE_REQUEST = {
    "status": "warning",
    "bot_reason": "large transfer",
    "reason": "Operator authorized emergency withdrawal",
    "txpayload": {"to": "0x" + "aa" * 20, "value": 1000000},
    "safeAddress": "0x" + "11" * 20,
    "erc20TokenAddress": "0x" + "22" * 20,
}


def test_from_wire_format():
    req = TransactionRequest.from_dict(WIRE_REQUEST)
    assert req.status is TxStatus.WARNING
    assert req.primary_reason == "Operator authorized emergency withdrawal"
    assert req.payload["value"] == 1000000
    assert req.wallet_address == "0x" + "11" * 20
    assert req.token_address == "0x" + "22" * 20


def test_from_snake_case_without_token():
    req = TransactionRequest.from_dict(
        {
            "status": "approved",
            "bot_reason": "ok",
            "primary_reason": "pay invoice",
            "payload": {"to": "0x" + "aa" * 20, "value": 1},
            "wallet_address": "0xsafe",
        }
    )
    assert req.status is TxStatus.APPROVED
    assert req.token_address is None


@pytest.mark.parametrize("status", ["", "APPROVED", "pending", None, 1])
def test_invalid_status_rejected(status):
    data = dict(WIRE_REQUEST, status=status)
    with pytest.raises(InvalidRequestError):
        TransactionRequest.from_dict(data)


def test_missing_reason_rejected():
    data = {k: v for k, v in WIRE_REQUEST.items() if k != "reason"}
    with pytest.raises(InvalidRequestError):
        TransactionRequest.from_dict(data)


def test_non_object_payload_rejected():
    with pytest.raises(InvalidRequestError):
        TransactionRequest.from_dict(dict(WIRE_REQUEST, txpayload=[1, 2]))


def test_pending_with_confirmation_is_idempotent_per_owner():
    tx = PendingTransaction("0xhash", 1, 3, confirmed_by=("0xAbC",))
    assert tx.with_confirmation("0xabc") is tx
    bumped = tx.with_confirmation("0xdef")
    assert bumped.confirmations_count == 2
    assert bumped.confirmed_by_owner("0xDEF")
    assert tx.confirmations_count == 1


def test_outcome_wire_shape():
    signed = DecisionOutcome(DecisionState.SIGNED_PENDING, "ok", signature=b"\xab\xcd")
    assert signed.to_dict()["status"] == "signed"
    assert signed.to_dict()["signature"] == "0xabcd"
    rejected = DecisionOutcome(DecisionState.REJECTED, "no").to_dict()
    assert rejected["status"] == "not signed"
    assert rejected["signature"] is None
    assert rejected["state"] == "rejected"
