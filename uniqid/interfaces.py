"""
Verifier ⇄ Collaborator Interfaces
==================================

The orchestrator talks to its three collaborators through these narrow,
versioned protocols. Implementations are passed in explicitly (constructor
injection); nothing is discovered by attribute name at runtime.

    LeafDeriver     derive_leaf(email, secret) -> bytes32 hex
    RegistryReader  resolve(leaf) -> Identifier | UNREGISTERED      (async)
    ProofVerifier   verify(leaf, proof) -> bool                     (async)

Bumping INTERFACE_VERSION signals a breaking change to any of them.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol, Union, runtime_checkable

from .identifiers import Identifier
from .types import Unregistered

INTERFACE_VERSION = 1


@runtime_checkable
class LeafDeriver(Protocol):
    def derive_leaf(self, email: str, secret: str) -> str:
        """Return the leaf as 0x-prefixed bytes32 hex. Raises InvalidInput."""
        ...


@runtime_checkable
class RegistryReader(Protocol):
    async def resolve(self, leaf: Union[int, str, bytes]) -> Union[Identifier, Unregistered]:
        """
        Fresh read of the registry for `leaf`. Raises RegistryUnavailable
        (retryable) or InvalidInput (malformed leaf, not retried).
        """
        ...


@runtime_checkable
class ProofVerifier(Protocol):
    async def verify(self, leaf: Union[int, str, bytes], proof: Union[str, bytes, Mapping[str, Any]]) -> bool:
        """True iff the proof is valid for `leaf`. Raises VerifierUnavailable."""
        ...


__all__ = ["INTERFACE_VERSION", "LeafDeriver", "RegistryReader", "ProofVerifier"]
