"""
uniqid - UNIQ-ID verification engine.

Derives leaf commitments from (email, secret), resolves leaves against the
on-chain registry, verifies Groth16 leaf proofs, and composes these into a
single Accepted / Rejected verdict per request.

Quick start
-----------
    from uniqid import VerificationOrchestrator, InMemoryRegistry, derive_leaf

    registry = InMemoryRegistry([derive_leaf("a@b.com", "s3cret")])
    orch = VerificationOrchestrator(registry=registry)
    verdict = await orch.verify({
        "claimedIdentifier": "UNIQ-000001",
        "credential": {"email": "a@b.com", "secret": "s3cret"},
    })
"""

from __future__ import annotations

from .errors import ErrorKind, UniqIdError
from .hasher import Hasher, LeafDerivation, derive_leaf, normalize_email
from .identifiers import Identifier, IdentifierCodec, format_identifier, identifiers_equal, parse
from .interfaces import INTERFACE_VERSION, LeafDeriver, ProofVerifier, RegistryReader
from .orchestrator import State, VerificationOrchestrator
from .registry import UNREGISTERED, EthRegistryReader, InMemoryRegistry, RegistryConfig
from .types import Accepted, Credential, Rejected, VerificationRequest
from .version import __version__

__all__ = [
    "__version__",
    "ErrorKind",
    "UniqIdError",
    "Hasher",
    "LeafDerivation",
    "derive_leaf",
    "normalize_email",
    "Identifier",
    "IdentifierCodec",
    "parse",
    "format_identifier",
    "identifiers_equal",
    "INTERFACE_VERSION",
    "LeafDeriver",
    "ProofVerifier",
    "RegistryReader",
    "State",
    "VerificationOrchestrator",
    "UNREGISTERED",
    "EthRegistryReader",
    "InMemoryRegistry",
    "RegistryConfig",
    "Accepted",
    "Credential",
    "Rejected",
    "VerificationRequest",
]
