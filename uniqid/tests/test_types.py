from __future__ import annotations

import json

import pytest

from uniqid.errors import ErrorKind, IdentifierMismatch, InvalidInput, RegistryUnavailable
from uniqid.identifiers import Identifier
from uniqid.interfaces import LeafDeriver, ProofVerifier, RegistryReader
from uniqid.hasher import Hasher
from uniqid.registry import UNREGISTERED, InMemoryRegistry, Unregistered
from uniqid.tests import StaticVerifier
from uniqid.types import (
    Accepted,
    Credential,
    Rejected,
    VerificationRequest,
    decode_request,
    decode_verdict,
    encode_verdict,
)

LEAF = "0x" + "0" * 62 + "2a"


def test_unregistered_is_a_falsy_singleton() -> None:
    assert Unregistered() is UNREGISTERED
    assert not UNREGISTERED
    assert repr(UNREGISTERED) == "UNREGISTERED"


def test_credential_repr_hides_values() -> None:
    r = repr(Credential(email="a@b.com", secret="hunter2"))
    assert "a@b.com" not in r
    assert "hunter2" not in r


def test_request_aliases() -> None:
    for key in ("claimedIdentifier", "claimed_identifier", "claimedId"):
        req = VerificationRequest.from_mapping({key: "42", "leaf": LEAF, "proof": {}})
        assert req.claimed_identifier == "42"
        assert req.path == "proof"


def test_decode_request() -> None:
    req = decode_request(
        json.dumps({"claimedIdentifier": "UNIQ-000042", "credential": {"email": "a@b.com", "secret": "s"}})
    )
    assert req.path == "credential"
    assert req.credential == Credential("a@b.com", "s")
    for bad in (b"{", b"[]", b'{"claimedIdentifier": "42", "leaf": 5, "proof": {}}', b'{"leaf": "0x1"}'):
        with pytest.raises(InvalidInput):
            decode_request(bad)


def test_accepted_wire_form() -> None:
    verdict = Accepted(identifier=Identifier(42), leaf=LEAF)
    wire = json.loads(encode_verdict(verdict))
    assert wire == {"outcome": "Accepted", "identifier": {"decimal": "42", "display": "UNIQ-000042"}, "leaf": LEAF}
    assert decode_verdict(encode_verdict(verdict)) == verdict


def test_rejected_wire_form_has_no_identifier() -> None:
    err = IdentifierMismatch({"decimal": "7", "display": "UNIQ-000007"}, {"decimal": "42", "display": "UNIQ-000042"})
    verdict = Rejected(reason=err.kind, message=err.message, detail=dict(err.details))
    wire = json.loads(encode_verdict(verdict))
    assert wire["outcome"] == "Rejected"
    assert wire["reason"] == "IdentifierMismatch"
    assert "identifier" not in wire and "leaf" not in wire
    assert decode_verdict(encode_verdict(verdict)) == verdict


def test_bare_rejection_omits_empty_fields() -> None:
    assert json.loads(encode_verdict(Rejected(ErrorKind.NOT_REGISTERED))) == {
        "outcome": "Rejected",
        "reason": "NotRegistered",
    }


def test_decode_verdict_rejects_unknowns() -> None:
    for bad in (
        b'{"outcome": "Maybe"}',
        b'{"outcome": "Rejected", "reason": "Nope"}',
        b'{"outcome": "Accepted"}',
        b"nope",
    ):
        with pytest.raises(InvalidInput):
            decode_verdict(bad)


def test_retryable_reasons() -> None:
    assert Rejected(ErrorKind.REGISTRY_UNAVAILABLE).retryable
    assert Rejected(ErrorKind.VERIFIER_UNAVAILABLE).retryable
    assert not Rejected(ErrorKind.PROOF_INVALID).retryable
    assert RegistryUnavailable("x").to_dict()["retryable"] is True


def test_components_satisfy_interfaces() -> None:
    assert isinstance(Hasher(), LeafDeriver)
    assert isinstance(InMemoryRegistry(), RegistryReader)
    assert isinstance(StaticVerifier(), ProofVerifier)
