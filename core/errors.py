"""Error taxonomy for the co-signer pipeline.

Every error below is converted into a ``failed`` outcome at the decision
engine boundary; none of them reach the HTTP caller as an exception.
"""

from __future__ import annotations


class CosignerError(Exception):
    """Base class for all co-signer pipeline failures."""


class AdjudicationError(CosignerError):
    """The reasoning oracle was unreachable, timed out or answered nothing."""


class SigningError(CosignerError):
    """The credential is malformed or the payload lacks signable fields."""


class ConfirmationError(CosignerError):
    """The coordination service rejected a confirmation."""


class ExecutionError(CosignerError):
    """On-chain submission or finalisation of a multisig transaction failed."""


class CoordinationServiceError(CosignerError):
    """Transport-level failure talking to the coordination service.

    ``status`` carries the HTTP status code, or ``None`` when the request
    never produced a response.
    """

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status

    @property
    def not_found(self) -> bool:
        return self.status == 404


class InvalidRequestError(ValueError):
    """Incoming transaction request failed schema validation."""
