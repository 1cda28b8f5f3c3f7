"""
uniqid.verifiers
================

Groth16/BN254 proof verification for leaf-membership proofs.

The circuit proves knowledge of (emailHash, secretHash) such that
Poseidon(emailHash, secretHash) == leaf, with the leaf as its single public
signal. `Groth16ProofVerifier` loads the verifying key once, then checks
proofs on a worker pool so CPU-bound pairings do not block the event loop.

    verifier = Groth16ProofVerifier.from_file("verification_key.json")
    ok = await verifier.verify(leaf, proof_json)

License: MIT
"""

from __future__ import annotations

import asyncio
import functools
import json
import os
from concurrent.futures import Executor, ProcessPoolExecutor
from concurrent.futures.process import BrokenProcessPool
from typing import Any, Dict, List, Mapping, Optional, Union

from ..errors import VerifierUnavailable
from ..field import coerce_leaf
from ..logging import get_logger
from .groth16_bn254 import load_vk, verify_groth16
from .snarkjs import (
    load_json,
    normalize_groth16_proof,
    normalize_groth16_vk,
    normalize_numbers,
    vk_fingerprint,
)

log = get_logger(__name__)

# The leaf circuit exposes exactly one public signal.
N_PUBLIC = 1

ProofLike = Union[str, bytes, Mapping[str, Any]]


def _prepare_proof(leaf: int, proof: ProofLike) -> Optional[Dict[str, Any]]:
    """Normalize a proof for the worker, or None if it cannot possibly verify."""
    try:
        raw = load_json(proof)
        normalized, publics = normalize_groth16_proof(normalize_numbers(raw))
    except (ValueError, TypeError, KeyError, RecursionError):
        return None
    if publics is not None and publics != [leaf]:
        return None
    return normalized


class Groth16ProofVerifier:
    """
    Verifies leaf proofs against one fixed verifying key.

    Parameters
    ----------
    vk:
        snarkjs verification_key.json contents (raw or normalized).
    executor:
        Where pairings run. Defaults to a process pool sized to the number
        of cores, created on first use and owned by this verifier.
    timeout_s:
        Upper bound for a single verification; exceeding it raises
        VerifierUnavailable.
    """

    def __init__(
        self,
        vk: Mapping[str, Any],
        *,
        executor: Optional[Executor] = None,
        timeout_s: float = 10.0,
        max_workers: Optional[int] = None,
        source: Optional[str] = None,
    ) -> None:
        try:
            self._vk = normalize_groth16_vk(normalize_numbers(vk))
            load_vk(self._vk)  # on-curve checks up front
        except (ValueError, TypeError, KeyError, IndexError) as e:
            raise VerifierUnavailable(
                f"verifying key is invalid: {e}", details={"source": source}
            ) from e
        n_public = len(self._vk["IC"]) - 1
        if n_public != N_PUBLIC:
            raise VerifierUnavailable(
                f"verifying key expects {n_public} public signals, leaf circuit has {N_PUBLIC}",
                details={"source": source},
            )
        if timeout_s <= 0:
            raise ValueError("timeout_s must be > 0")

        self.fingerprint = vk_fingerprint(self._vk)
        self.timeout_s = timeout_s
        self._executor = executor
        self._owns_executor = executor is None
        self._max_workers = max_workers or os.cpu_count() or 1
        log.info("verifier.vk_loaded", fingerprint=self.fingerprint, source=source)

    @classmethod
    def from_file(cls, path: Union[str, os.PathLike], **kwargs: Any) -> "Groth16ProofVerifier":
        try:
            with open(path, "r", encoding="utf-8") as f:
                vk = json.load(f)
        except FileNotFoundError as e:
            raise VerifierUnavailable(
                "verifying key not found", details={"source": os.fspath(path)}
            ) from e
        except (OSError, ValueError) as e:
            raise VerifierUnavailable(
                f"verifying key unreadable: {e}", details={"source": os.fspath(path)}
            ) from e
        if not isinstance(vk, dict):
            raise VerifierUnavailable(
                "verifying key must be a JSON object", details={"source": os.fspath(path)}
            )
        return cls(vk, source=os.fspath(path), **kwargs)

    @classmethod
    def from_mapping(cls, vk: Mapping[str, Any], **kwargs: Any) -> "Groth16ProofVerifier":
        return cls(vk, **kwargs)

    @property
    def vk(self) -> Dict[str, Any]:
        return self._vk

    def _get_executor(self) -> Executor:
        if self._executor is None:
            self._executor = ProcessPoolExecutor(max_workers=self._max_workers)
        return self._executor

    def _public_inputs(self, leaf: Union[int, str, bytes]) -> List[int]:
        return [coerce_leaf(leaf)]

    def verify_sync(self, leaf: Union[int, str, bytes], proof: ProofLike) -> bool:
        """Blocking verification on the calling thread."""
        publics = self._public_inputs(leaf)
        normalized = _prepare_proof(publics[0], proof)
        if normalized is None:
            return False
        return verify_groth16(self._vk, normalized, publics, cache_key=self.fingerprint)

    async def verify(self, leaf: Union[int, str, bytes], proof: ProofLike) -> bool:
        """
        True iff `proof` attests knowledge of the leaf's preimage. A malformed
        proof is simply False; only operational failures raise.
        """
        publics = self._public_inputs(leaf)
        normalized = _prepare_proof(publics[0], proof)
        if normalized is None:
            log.debug("verifier.proof_malformed")
            return False

        loop = asyncio.get_running_loop()
        try:
            fut = loop.run_in_executor(
                self._get_executor(),
                functools.partial(
                    verify_groth16, self._vk, normalized, publics, cache_key=self.fingerprint
                ),
            )
            return bool(await asyncio.wait_for(fut, timeout=self.timeout_s))
        except asyncio.TimeoutError as e:
            log.warning("verifier.timeout", timeout_s=self.timeout_s)
            raise VerifierUnavailable(
                "proof verification timed out", details={"timeout_s": self.timeout_s}
            ) from e
        except (BrokenProcessPool, RuntimeError) as e:
            # RuntimeError: executor already shut down
            log.error("verifier.pool_failed", error=str(e))
            raise VerifierUnavailable(f"verification worker failed: {e}") from e

    def close(self) -> None:
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None


__all__ = ["N_PUBLIC", "Groth16ProofVerifier"]
