"""Payload signing for the co-signer agent.

Module purpose and system role:
- Compute the canonical digest keccak256(abi.encode(address to, uint256 value)).
- Sign the digest as an EIP-191 personal message with the agent key.
- Sign raw transactions for the on-chain executor.

Integration points and dependencies:
- ``eth_abi`` for ABI encoding, ``web3`` for keccak/address helpers and
  ``eth_account`` for ECDSA signing.
- Signatures are deterministic (RFC 6979); no network I/O happens here.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping

from eth_abi import encode
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount
from hexbytes import HexBytes
from web3 import Web3

from core.config import get_secret
from core.errors import SigningError

UINT256_MAX = 2**256 - 1


def _as_uint256(value: Any) -> int:
    if isinstance(value, bool):
        raise SigningError("payload value must be numeric")
    if isinstance(value, int):
        number = value
    elif isinstance(value, float) and value.is_integer():
        number = int(value)
    elif isinstance(value, str):
        text = value.strip()
        try:
            number = int(text, 16) if text.lower().startswith("0x") else int(text)
        except ValueError as exc:
            raise SigningError(f"payload value {value!r} is not a number") from exc
    else:
        raise SigningError(f"payload value {value!r} is not a number")
    if number < 0 or number > UINT256_MAX:
        raise SigningError("payload value out of uint256 range")
    return number


def payload_digest(payload: Mapping[str, Any]) -> bytes:
    """Return keccak256 of the ABI-encoded (destination, value) pair."""

    if not isinstance(payload, Mapping):
        raise SigningError("payload must be a mapping")
    missing = [k for k in ("to", "value") if payload.get(k) is None]
    if missing:
        raise SigningError(f"payload missing required fields: {', '.join(missing)}")
    to = payload["to"]
    if not isinstance(to, str) or not Web3.is_address(to):
        raise SigningError(f"payload destination {to!r} is not a valid address")
    encoded = encode(
        ["address", "uint256"],
        [Web3.to_checksum_address(to), _as_uint256(payload["value"])],
    )
    return bytes(Web3.keccak(encoded))


def _load_account(credential: str) -> LocalAccount:
    if not isinstance(credential, str) or not credential.strip():
        raise SigningError("signing credential is empty")
    try:
        return Account.from_key(credential.strip())
    except Exception as exc:
        # the key text itself must not end up in the message
        raise SigningError(f"malformed signing credential ({type(exc).__name__})") from None


def sign_payload(payload: Mapping[str, Any], credential: str) -> HexBytes:
    """Sign ``payload`` with ``credential``; same inputs give the same bytes."""

    return SignatureProvider(credential).sign(payload)


class SignatureProvider:
    """Holds the agent credential and signs on its behalf."""

    def __init__(self, credential: str) -> None:
        self._account = _load_account(credential)

    @classmethod
    def from_secret(cls, name: str = "AGENT_PRIVATE_KEY") -> "SignatureProvider":
        return cls(get_secret(name))

    @property
    def address(self) -> str:
        return str(self._account.address)

    def sign(self, payload: Mapping[str, Any]) -> HexBytes:
        digest = payload_digest(payload)
        signed = self._account.sign_message(encode_defunct(primitive=digest))
        return HexBytes(signed.signature)

    def sign_safe_hash(self, safe_tx_hash: str) -> HexBytes:
        """Owner confirmation for a Safe proposal.

        eth_sign over the 32-byte ``safeTxHash`` with ``v`` raised by 4, the
        form ``execTransaction`` accepts for prefixed-message signatures.
        """
        try:
            digest = bytes(HexBytes(safe_tx_hash))
        except (TypeError, ValueError) as exc:
            raise SigningError(f"proposal hash {safe_tx_hash!r} is not hex") from exc
        if len(digest) != 32:
            raise SigningError(f"proposal hash {safe_tx_hash!r} is not 32 bytes")
        sig = bytes(self._account.sign_message(encode_defunct(primitive=digest)).signature)
        return HexBytes(sig[:64] + bytes([sig[64] + 4]))

    def sign_transaction(self, tx: Dict[str, Any]) -> HexBytes:
        """Sign a fully built transaction dict and return the raw bytes."""
        try:
            signed = self._account.sign_transaction(tx)
        except Exception as exc:
            raise SigningError(f"transaction signing failed: {exc}") from exc
        return HexBytes(signed.raw_transaction)

    def __repr__(self) -> str:
        return f"SignatureProvider(address={self.address})"
