from __future__ import annotations

"""
Error taxonomy for the UNIQ-ID verification engine.

Every failure the core can produce maps onto exactly one ``ErrorKind``. The
components raise the matching ``UniqIdError`` subclass; the orchestrator turns
it into a ``Rejected`` verdict carrying the same kind, so callers never see a
specific reason downgraded into a generic one.

Usage
-----
    from uniqid.errors import InvalidInput

    raise InvalidInput("email is not a valid address", details={"field": "email"})

Design
------
- Every error has:
  - ``kind`` (ErrorKind): stable machine tag (e.g. "InvalidInput")
  - ``message`` (str): human-friendly summary, never contains a credential
  - ``details`` (dict|None): optional structured diagnostics
  - ``retryable`` (bool): whether resubmitting the same input may succeed
- ``to_dict()`` returns a JSON-ready mapping.
"""

from enum import Enum
from typing import Any, Dict, Mapping, Optional


class ErrorKind(str, Enum):
    """Tagged failure reasons surfaced in verdicts."""

    INVALID_INPUT = "InvalidInput"
    PROOF_INVALID = "ProofInvalid"
    VERIFIER_UNAVAILABLE = "VerifierUnavailable"
    REGISTRY_UNAVAILABLE = "RegistryUnavailable"
    NOT_REGISTERED = "NotRegistered"
    IDENTIFIER_MISMATCH = "IdentifierMismatch"
    # Account-store outcomes (site-local, outside the verification core)
    ALREADY_REGISTERED = "AlreadyRegistered"
    ACCOUNT_NOT_FOUND = "AccountNotFound"


_RETRYABLE = frozenset({ErrorKind.VERIFIER_UNAVAILABLE, ErrorKind.REGISTRY_UNAVAILABLE})


class UniqIdError(Exception):
    """Base class for all engine errors."""

    kind: ErrorKind = ErrorKind.INVALID_INPUT

    def __init__(self, message: str, *, details: Optional[Mapping[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details) if details else {}

    @property
    def retryable(self) -> bool:
        return self.kind in _RETRYABLE

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "reason": self.kind.value,
            "message": self.message,
            "retryable": self.retryable,
        }
        if self.details:
            body["details"] = dict(self.details)
        return body

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


# ------------------------------ Concrete types ------------------------------- #


class InvalidInput(UniqIdError):
    """Malformed email, missing secret, bad identifier text or bad request shape."""

    kind = ErrorKind.INVALID_INPUT


class ProofInvalid(UniqIdError):
    kind = ErrorKind.PROOF_INVALID


class VerifierUnavailable(UniqIdError):
    """Verification key missing/invalid, worker pool broken, or verification timed out."""

    kind = ErrorKind.VERIFIER_UNAVAILABLE


class RegistryUnavailable(UniqIdError):
    """The registry could not be queried (after the bounded retries)."""

    kind = ErrorKind.REGISTRY_UNAVAILABLE


class NotRegistered(UniqIdError):
    kind = ErrorKind.NOT_REGISTERED


class IdentifierMismatch(UniqIdError):
    kind = ErrorKind.IDENTIFIER_MISMATCH

    def __init__(self, claimed: Mapping[str, str], resolved: Mapping[str, str]):
        super().__init__(
            "claimed identifier does not match the registry",
            details={"claimed": dict(claimed), "resolved": dict(resolved)},
        )


class AlreadyRegistered(UniqIdError):
    kind = ErrorKind.ALREADY_REGISTERED


class AccountNotFound(UniqIdError):
    kind = ErrorKind.ACCOUNT_NOT_FOUND


__all__ = [
    "ErrorKind",
    "UniqIdError",
    "InvalidInput",
    "ProofInvalid",
    "VerifierUnavailable",
    "RegistryUnavailable",
    "NotRegistered",
    "IdentifierMismatch",
    "AlreadyRegistered",
    "AccountNotFound",
]
