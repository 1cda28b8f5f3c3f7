"""Hash primitives used by the leaf pipeline: Keccak-256 and Poseidon (BN254)."""

from __future__ import annotations

from .keccak import keccak256, keccak256_int
from .poseidon import PoseidonParams, get_params, poseidon, poseidon_permute

__all__ = [
    "keccak256",
    "keccak256_int",
    "PoseidonParams",
    "get_params",
    "poseidon",
    "poseidon_permute",
]
