"""Value objects exchanged between the co-signer components."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from .errors import InvalidRequestError


class TxStatus(Enum):
    BLOCKED = "blocked"
    APPROVED = "approved"
    WARNING = "warning"


class DecisionState(Enum):
    REJECTED = "rejected"
    SIGNED_PENDING = "signed_pending"
    SIGNED_EXECUTED = "signed_executed"
    FAILED = "failed"


# wire name -> field name; the camelCase names are what the firewall sends
_REQUEST_ALIASES = {
    "bot_reason": "bot_reason",
    "reason": "primary_reason",
    "primary_reason": "primary_reason",
    "txpayload": "payload",
    "payload": "payload",
    "safeAddress": "wallet_address",
    "wallet_address": "wallet_address",
    "erc20TokenAddress": "token_address",
    "token_address": "token_address",
}


@dataclass(frozen=True)
class TransactionRequest:
    """A firewall-classified transaction awaiting a co-signing decision."""

    status: TxStatus
    bot_reason: str
    primary_reason: str
    payload: Dict[str, Any]
    wallet_address: str
    token_address: Optional[str] = None

    def __post_init__(self) -> None:
        try:
            status = TxStatus(self.status)
        except ValueError as exc:
            raise InvalidRequestError(
                f"status must be one of blocked, approved, warning; got {self.status!r}"
            ) from exc
        object.__setattr__(self, "status", status)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TransactionRequest":
        """Build a request from its JSON form, validating every field."""

        if not isinstance(data, Mapping):
            raise InvalidRequestError("request body must be a JSON object")
        fields: Dict[str, Any] = {}
        for key, name in _REQUEST_ALIASES.items():
            if key in data and name not in fields:
                fields[name] = data[key]

        raw_status = data.get("status")
        try:
            status = TxStatus(raw_status)
        except ValueError as exc:
            raise InvalidRequestError(
                f"status must be one of blocked, approved, warning; got {raw_status!r}"
            ) from exc

        for name in ("bot_reason", "primary_reason", "wallet_address"):
            if not isinstance(fields.get(name), str):
                raise InvalidRequestError(f"{name} must be a string")
        token = fields.get("token_address")
        if token is not None and not isinstance(token, str):
            raise InvalidRequestError("token_address must be a string")
        payload = fields.get("payload")
        if payload is None:
            payload = {}
        if not isinstance(payload, dict):
            raise InvalidRequestError("payload must be a JSON object")

        return cls(
            status=status,
            bot_reason=fields["bot_reason"],
            primary_reason=fields["primary_reason"],
            payload=dict(payload),
            wallet_address=fields["wallet_address"],
            token_address=token,
        )


@dataclass(frozen=True)
class PendingTransaction:
    """A proposal tracked by the coordination service."""

    transaction_hash: str
    confirmations_count: int
    required_threshold: int
    destination: Optional[str] = None
    value: Optional[int] = None
    nonce: Optional[int] = None
    confirmed_by: Tuple[str, ...] = ()

    @classmethod
    def from_service(cls, entry: Mapping[str, Any]) -> "PendingTransaction":
        value = entry.get("value")
        nonce = entry.get("nonce")
        return cls(
            transaction_hash=str(entry["hash"]),
            confirmations_count=int(entry.get("confirmations", 0)),
            required_threshold=int(entry.get("threshold", 0)),
            destination=entry.get("to"),
            value=int(value) if value is not None else None,
            nonce=int(nonce) if nonce is not None else None,
            confirmed_by=tuple(entry.get("confirmed_by", ())),
        )

    def confirmed_by_owner(self, owner: str) -> bool:
        return owner.lower() in {o.lower() for o in self.confirmed_by}

    def with_confirmation(self, owner: str) -> "PendingTransaction":
        """Return the record as it stands once ``owner`` has confirmed."""
        if self.confirmed_by_owner(owner):
            return self
        return replace(
            self,
            confirmations_count=self.confirmations_count + 1,
            confirmed_by=self.confirmed_by + (owner,),
        )


@dataclass(frozen=True)
class AdjudicationResult:
    verdict: bool
    rationale: str


@dataclass(frozen=True)
class ExecutionResult:
    transaction_hash: str
    receipt: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DecisionOutcome:
    """The engine's sole output. ``agent_reason`` is always populated."""

    state: DecisionState
    agent_reason: str
    signature: Optional[bytes] = None
    transaction_hash: Optional[str] = None
    receipt: Optional[Dict[str, Any]] = None

    @property
    def signed(self) -> bool:
        return self.signature is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": "signed" if self.signed else "not signed",
            "state": self.state.value,
            "agent_reason": self.agent_reason,
            "signature": "0x" + bytes(self.signature).hex() if self.signature is not None else None,
            "transaction_hash": self.transaction_hash,
            "receipt": self.receipt,
        }
