"""
uniqid.types
============

Request / verdict value types and their JSON wire form (**msgspec**).

Request (wire)
--------------
    {
      "claimedIdentifier": "UNIQ-000042",
      "credential": {"email": "...", "secret": "..."},   # either this ...
      "leaf": "0x...", "proof": {...}                     # ... or these two
    }

Verdict (wire)
--------------
    {"outcome": "Accepted", "identifier": {"decimal": "42", "display": "UNIQ-000042"}, "leaf": "0x..."}
    {"outcome": "Rejected", "reason": "IdentifierMismatch", "detail": {...}}

A verdict is one of exactly two shapes; a rejection never carries an
identifier or a leaf.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

import msgspec

from .errors import ErrorKind, InvalidInput
from .identifiers import Identifier


# -----------------------------------------------------------------------------
# Registry sentinel
# -----------------------------------------------------------------------------


class Unregistered:
    """The registry returned 0 for a leaf. Use the `UNREGISTERED` singleton."""

    _instance: Optional["Unregistered"] = None

    def __new__(cls) -> "Unregistered":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNREGISTERED"


UNREGISTERED = Unregistered()


# -----------------------------------------------------------------------------
# Requests
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class Credential:
    """Raw preimage. Lives for one request; never logged or stored."""

    email: str = field(repr=False)
    secret: str = field(repr=False)


_KEY_ALIASES = {
    "claimed_identifier": "claimedIdentifier",
    "claimedId": "claimedIdentifier",
}


@dataclass(frozen=True)
class VerificationRequest:
    claimed_identifier: Union[str, int]
    credential: Optional[Credential] = None
    leaf: Optional[Union[str, bytes]] = None
    proof: Optional[Any] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        claimed = self.claimed_identifier
        if claimed is None or isinstance(claimed, bool) or not isinstance(claimed, (str, int)):
            raise InvalidInput("claimedIdentifier is required", details={"field": "claimedIdentifier"})
        if isinstance(claimed, str) and not claimed.strip():
            raise InvalidInput("claimedIdentifier is required", details={"field": "claimedIdentifier"})

        has_proof_path = self.leaf is not None or self.proof is not None
        if self.credential is not None and has_proof_path:
            raise InvalidInput("send either credential or leaf+proof, not both")
        if self.credential is None and not has_proof_path:
            raise InvalidInput("credential or leaf+proof is required")
        if has_proof_path and (self.leaf is None or self.proof is None):
            raise InvalidInput("leaf and proof must be sent together")

    @property
    def path(self) -> str:
        return "credential" if self.credential is not None else "proof"

    @classmethod
    def from_mapping(cls, obj: Mapping[str, Any]) -> "VerificationRequest":
        """Build from a wire mapping; camelCase and snake_case keys are both accepted."""
        if not isinstance(obj, Mapping):
            raise InvalidInput("request must be an object")
        data = {_KEY_ALIASES.get(k, k): v for k, v in obj.items()}

        credential = None
        raw_cred = data.get("credential")
        if raw_cred is not None:
            if not isinstance(raw_cred, Mapping):
                raise InvalidInput("credential must be an object", details={"field": "credential"})
            email, secret = raw_cred.get("email"), raw_cred.get("secret")
            if not isinstance(email, str) or not isinstance(secret, str):
                raise InvalidInput(
                    "credential.email and credential.secret must be strings",
                    details={"field": "credential"},
                )
            credential = Credential(email=email, secret=secret)

        leaf = data.get("leaf")
        if leaf is not None and not isinstance(leaf, (str, bytes)):
            raise InvalidInput("leaf must be bytes32 hex", details={"field": "leaf"})

        return cls(
            claimed_identifier=data.get("claimedIdentifier"),
            credential=credential,
            leaf=leaf,
            proof=data.get("proof"),
        )


# -----------------------------------------------------------------------------
# Verdicts
# -----------------------------------------------------------------------------


class Outcome(str, Enum):
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"


@dataclass(frozen=True)
class Accepted:
    identifier: Identifier
    leaf: str

    outcome = Outcome.ACCEPTED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "identifier": self.identifier.to_dict(),
            "leaf": self.leaf,
        }


@dataclass(frozen=True)
class Rejected:
    reason: ErrorKind
    message: str = ""
    detail: Dict[str, Any] = field(default_factory=dict)

    outcome = Outcome.REJECTED

    @property
    def retryable(self) -> bool:
        return self.reason in (ErrorKind.REGISTRY_UNAVAILABLE, ErrorKind.VERIFIER_UNAVAILABLE)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"outcome": self.outcome.value, "reason": self.reason.value}
        if self.message:
            out["message"] = self.message
        if self.detail:
            out["detail"] = self.detail
        return out


Verdict = Union[Accepted, Rejected]


# -----------------------------------------------------------------------------
# Wire structs
# -----------------------------------------------------------------------------


class CredentialWire(msgspec.Struct, frozen=True):
    email: str
    secret: str


class RequestWire(msgspec.Struct, frozen=True, rename="camel"):
    claimed_identifier: Union[str, int]
    credential: Optional[CredentialWire] = None
    leaf: Optional[str] = None
    proof: Optional[Union[Dict[str, Any], str]] = None


class IdentifierWire(msgspec.Struct, frozen=True):
    decimal: str
    display: str


class VerdictWire(msgspec.Struct, frozen=True, omit_defaults=True):
    outcome: str
    identifier: Optional[IdentifierWire] = None
    leaf: Optional[str] = None
    reason: Optional[str] = None
    message: Optional[str] = None
    detail: Optional[Dict[str, Any]] = None


_encoder = msgspec.json.Encoder()
_request_decoder = msgspec.json.Decoder(RequestWire)
_verdict_decoder = msgspec.json.Decoder(VerdictWire)


def encode_verdict(verdict: Verdict) -> bytes:
    if isinstance(verdict, Accepted):
        wire = VerdictWire(
            outcome=verdict.outcome.value,
            identifier=IdentifierWire(verdict.identifier.decimal, verdict.identifier.display),
            leaf=verdict.leaf,
        )
    else:
        wire = VerdictWire(
            outcome=verdict.outcome.value,
            reason=verdict.reason.value,
            message=verdict.message or None,
            detail=verdict.detail or None,
        )
    return _encoder.encode(wire)


def decode_verdict(data: Union[bytes, str], *, prefix: str = "UNIQ") -> Verdict:
    try:
        wire = _verdict_decoder.decode(data)
    except (msgspec.DecodeError, msgspec.ValidationError) as e:
        raise InvalidInput(f"malformed verdict: {e}") from e
    if wire.outcome == Outcome.ACCEPTED.value:
        if wire.identifier is None or wire.leaf is None:
            raise InvalidInput("accepted verdict needs identifier and leaf")
        return Accepted(identifier=Identifier(int(wire.identifier.decimal), prefix), leaf=wire.leaf)
    if wire.outcome == Outcome.REJECTED.value and wire.reason is not None:
        try:
            reason = ErrorKind(wire.reason)
        except ValueError as e:
            raise InvalidInput(f"unknown rejection reason {wire.reason!r}") from e
        return Rejected(reason=reason, message=wire.message or "", detail=wire.detail or {})
    raise InvalidInput(f"unknown verdict outcome {wire.outcome!r}")


def decode_request(data: Union[bytes, str]) -> VerificationRequest:
    """Strict JSON -> VerificationRequest. Shape errors surface as InvalidInput."""
    try:
        wire = _request_decoder.decode(data)
    except (msgspec.DecodeError, msgspec.ValidationError) as e:
        raise InvalidInput(f"malformed request: {e}") from e
    credential = (
        Credential(email=wire.credential.email, secret=wire.credential.secret)
        if wire.credential is not None
        else None
    )
    return VerificationRequest(
        claimed_identifier=wire.claimed_identifier,
        credential=credential,
        leaf=wire.leaf,
        proof=wire.proof,
    )


__all__ = [
    "Unregistered",
    "UNREGISTERED",
    "Credential",
    "VerificationRequest",
    "Outcome",
    "Accepted",
    "Rejected",
    "Verdict",
    "encode_verdict",
    "decode_verdict",
    "decode_request",
]
