"""
uniqid.orchestrator
===================

Per-request state machine composing the Hasher, ProofVerifier,
RegistryReader and IdentifierCodec into a single verdict:

    RECEIVED -> LEAF_READY -> PROOF_CHECKED -> REGISTRY_RESOLVED
             -> IDENTIFIER_COMPARED -> ACCEPTED | REJECTED(reason)

Steps run strictly in that order, each only after its predecessor finished.
Any `UniqIdError` raised by a step ends the request with `Rejected` carrying
the error's own kind and details; nothing is downgraded to a generic reason,
and a rejection never carries an identifier. Unexpected exceptions are logged
and propagate.

Collaborators are injected; the orchestrator itself keeps no state between
requests and may be shared by any number of concurrent ones.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Any, Mapping, Optional, Union

from .errors import (
    IdentifierMismatch,
    InvalidInput,
    NotRegistered,
    ProofInvalid,
    UniqIdError,
    VerifierUnavailable,
)
from .field import coerce_leaf, parse_bytes32, to_bytes32_hex
from .hasher import Hasher
from .identifiers import Identifier, IdentifierCodec
from .interfaces import LeafDeriver, ProofVerifier, RegistryReader
from .logging import bind_request_context, clear_request_context, get_logger
from .types import Accepted, Rejected, Unregistered, VerificationRequest, Verdict

log = get_logger(__name__)


class State(str, Enum):
    RECEIVED = "RECEIVED"
    LEAF_READY = "LEAF_READY"
    PROOF_CHECKED = "PROOF_CHECKED"
    REGISTRY_RESOLVED = "REGISTRY_RESOLVED"
    IDENTIFIER_COMPARED = "IDENTIFIER_COMPARED"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class VerificationOrchestrator:
    def __init__(
        self,
        *,
        registry: RegistryReader,
        verifier: Optional[ProofVerifier] = None,
        hasher: Optional[LeafDeriver] = None,
        codec: Optional[IdentifierCodec] = None,
        accept_credentials: bool = True,
    ):
        self.registry = registry
        self.verifier = verifier
        self.hasher = hasher if hasher is not None else Hasher()
        self.codec = codec if codec is not None else IdentifierCodec()
        self.accept_credentials = accept_credentials

    async def verify(self, request: Union[VerificationRequest, Mapping[str, Any]]) -> Verdict:
        """Run one request to a terminal verdict."""
        request_id = uuid.uuid4().hex[:16]
        bind_request_context(request_id=request_id)
        state = State.RECEIVED
        log.debug("verify.state", state=state.value)
        try:
            if not isinstance(request, VerificationRequest):
                request = VerificationRequest.from_mapping(request)
            verdict = await self._run(request)
        except UniqIdError as e:
            verdict = Rejected(reason=e.kind, message=e.message, detail=dict(e.details))
            log.info("verify.rejected", reason=e.kind.value, retryable=e.retryable)
        except Exception:
            log.exception("verify.failed")
            raise
        else:
            log.info("verify.accepted", identifier=verdict.identifier.decimal, leaf=verdict.leaf)
        finally:
            clear_request_context("request_id")
        return verdict

    def _enter(self, state: State, **kv: Any) -> State:
        log.debug("verify.state", state=state.value, **kv)
        return state

    async def _run(self, request: VerificationRequest) -> Accepted:
        # RECEIVED -> LEAF_READY
        if request.credential is not None:
            if not self.accept_credentials:
                raise InvalidInput(
                    "credential requests are disabled; submit leaf and proof",
                    details={"field": "credential"},
                )
            leaf = parse_bytes32(
                self.hasher.derive_leaf(request.credential.email, request.credential.secret)
            )
        else:
            leaf = coerce_leaf(request.leaf)
        leaf_hex = to_bytes32_hex(leaf)
        self._enter(State.LEAF_READY, path=request.path, leaf=leaf_hex)

        # LEAF_READY -> PROOF_CHECKED
        if request.credential is None:
            if self.verifier is None:
                raise VerifierUnavailable("no verifying key is configured")
            if not await self.verifier.verify(leaf, request.proof):
                raise ProofInvalid("proof does not verify for this leaf", details={"leaf": leaf_hex})
        # A revealed preimage is its own proof of knowledge.
        self._enter(State.PROOF_CHECKED)

        # PROOF_CHECKED -> REGISTRY_RESOLVED
        resolved = await self.registry.resolve(leaf)
        if isinstance(resolved, Unregistered):
            raise NotRegistered("leaf is not registered", details={"leaf": leaf_hex})
        resolved = Identifier(int(resolved), self.codec.prefix)
        self._enter(State.REGISTRY_RESOLVED, identifier=resolved.decimal)

        # REGISTRY_RESOLVED -> IDENTIFIER_COMPARED
        claimed = self.codec.parse(request.claimed_identifier)
        if claimed != resolved:
            raise IdentifierMismatch(claimed.to_dict(), resolved.to_dict())
        self._enter(State.IDENTIFIER_COMPARED)

        return Accepted(identifier=resolved, leaf=leaf_hex)


__all__ = ["State", "VerificationOrchestrator"]
