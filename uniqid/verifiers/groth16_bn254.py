"""
uniqid.verifiers.groth16_bn254
==============================

Groth16 verifier for BN254 (altbn128), consuming snarkjs-layout JSON that has
already been normalized to Python ints (see `uniqid.verifiers.snarkjs`).

Verification equation (standard form)
-------------------------------------
    e(A, B) == e(alpha1, beta2) * e(VK_x, gamma2) * e(C, delta2)

We implement this as a product check in GT:
    e(A, B) * e(-alpha1, beta2) * e(-VK_x, gamma2) * e(-C, delta2) == 1

where VK_x = IC[0] + sum_i input_i * IC[i+1].

Public API
----------
- load_vk(vk_json) -> VerifyingKey
- load_proof(proof_json) -> Proof
- verify_groth16(vk_json, proof_json, public_inputs) -> bool

`verify_groth16` is a module-level function taking plain data so it can be
shipped to a process pool. Parsed verifying keys are memoized per process.

License: MIT
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

from py_ecc.optimized_bn128 import FQ, FQ2, field_modulus
from py_ecc.optimized_bn128 import add as _add
from py_ecc.optimized_bn128 import multiply as _mul
from py_ecc.optimized_bn128 import neg as _neg

from ..field import R as _FR
from .pairing_bn254 import check_pairing_product, is_on_curve_g1, is_on_curve_g2

G1Point = Any
G2Point = Any


# ---------------------------
# Point construction
# ---------------------------


def _coords(*values: int) -> None:
    # FQ would silently reduce an out-of-range coordinate
    for v in values:
        if not 0 <= v < field_modulus:
            raise ValueError("curve coordinate is not in the base field")


def _g1(x: int, y: int) -> G1Point:
    _coords(x, y)
    # snarkjs encodes infinity as [0, 0] (affine)
    if x == 0 and y == 0:
        return (FQ(1), FQ(1), FQ(0))
    return (FQ(x), FQ(y), FQ(1))


def _g2(xx: Sequence[int], yy: Sequence[int]) -> G2Point:
    # xx = [x_c0, x_c1], yy = [y_c0, y_c1]
    _coords(*xx, *yy)
    if not any(xx) and not any(yy):
        return (FQ2([1, 0]), FQ2([1, 0]), FQ2([0, 0]))
    return (FQ2([xx[0], xx[1]]), FQ2([yy[0], yy[1]]), FQ2([1, 0]))


# ---------------------------
# Data classes
# ---------------------------


@dataclass(frozen=True)
class VerifyingKey:
    alpha1: G1Point
    beta2: G2Point
    gamma2: G2Point
    delta2: G2Point
    IC: List[G1Point]  # [IC0, IC1, ..., ICn]

    @property
    def n_public(self) -> int:
        return len(self.IC) - 1


@dataclass(frozen=True)
class Proof:
    A: G1Point
    B: G2Point
    C: G1Point


# ---------------------------
# Loaders
# ---------------------------


def load_vk(vk_json: Mapping[str, Any]) -> VerifyingKey:
    """Build a VerifyingKey from a normalized snarkjs verifying key, checking every point."""
    a1 = vk_json["vk_alpha_1"]
    b2 = vk_json["vk_beta_2"]
    g2 = vk_json["vk_gamma_2"]
    d2 = vk_json["vk_delta_2"]

    alpha1 = _g1(a1[0], a1[1])
    beta2 = _g2(b2[0], b2[1])
    gamma2 = _g2(g2[0], g2[1])
    delta2 = _g2(d2[0], d2[1])
    ic_pts = [_g1(x, y) for (x, y) in vk_json["IC"]]

    if not (
        is_on_curve_g1(alpha1)
        and is_on_curve_g2(beta2)
        and is_on_curve_g2(gamma2)
        and is_on_curve_g2(delta2)
    ):
        raise ValueError("VK points are not on curve")
    for P in ic_pts:
        if not is_on_curve_g1(P):
            raise ValueError("IC point not on G1 curve")

    return VerifyingKey(
        alpha1=alpha1, beta2=beta2, gamma2=gamma2, delta2=delta2, IC=ic_pts
    )


def load_proof(proof_json: Mapping[str, Any]) -> Proof:
    A = proof_json["pi_a"]
    B = proof_json["pi_b"]
    C = proof_json["pi_c"]

    A1 = _g1(A[0], A[1])
    B2 = _g2(B[0], B[1])
    C1 = _g1(C[0], C[1])

    if not (is_on_curve_g1(A1) and is_on_curve_g2(B2) and is_on_curve_g1(C1)):
        raise ValueError("Proof points are not on curve")

    return Proof(A=A1, B=B2, C=C1)


# Per-process cache: parsing + on-curve checks are not free and the VK never changes.
_VK_CACHE: Dict[str, VerifyingKey] = {}


def _prepared_vk(vk_json: Mapping[str, Any], cache_key: Optional[str]) -> VerifyingKey:
    if cache_key is None:
        return load_vk(vk_json)
    vk = _VK_CACHE.get(cache_key)
    if vk is None:
        vk = _VK_CACHE[cache_key] = load_vk(vk_json)
    return vk


# ---------------------------
# Core verification
# ---------------------------


def _vk_x(IC: Sequence[G1Point], inputs: Sequence[int]) -> G1Point:
    """VK_x = IC[0] + sum_i inputs[i] * IC[i+1] in G1."""
    if len(IC) != len(inputs) + 1:
        raise ValueError(f"IC length {len(IC)} != 1 + len(inputs) {len(inputs)}")
    acc = IC[0]
    for i, s in enumerate(inputs):
        if not 0 <= s < _FR:
            raise ValueError("public input is not a canonical field element")
        if s != 0:
            acc = _add(acc, _mul(IC[i + 1], s))
    return acc


def verify_groth16(
    vk_json: Mapping[str, Any],
    proof_json: Mapping[str, Any],
    public_inputs: Sequence[int],
    *,
    cache_key: Optional[str] = None,
) -> bool:
    """
    Verify a Groth16 proof. Returns True on success, False otherwise: malformed
    proofs and off-curve points are routine failures, not exceptions.
    """
    try:
        vk = _prepared_vk(vk_json, cache_key)
        pf = load_proof(proof_json)
        vkx = _vk_x(vk.IC, [int(v) for v in public_inputs])
        pairs = [
            (pf.A, pf.B),
            (_neg(vk.alpha1), vk.beta2),
            (_neg(vkx), vk.gamma2),
            (_neg(pf.C), vk.delta2),
        ]
        return check_pairing_product(pairs)
    except (ValueError, TypeError, KeyError, IndexError, AssertionError):
        return False


__all__ = ["VerifyingKey", "Proof", "load_vk", "load_proof", "verify_groth16"]
