"""
BN254 pairing-product check over `py_ecc.optimized_bn128`.

Groth16 verification reduces to asking whether a product of pairings
e(P_1, Q_1) * ... * e(P_n, Q_n) is the identity in GT. `check_pairing_product`
answers that with one Miller loop per pair and a single final
exponentiation over the accumulated value.

Points are py_ecc projective tuples: G1 over FQ, G2 over FQ2 (the twist).
py_ecc's `pairing` takes its arguments as (G2, G1); callers here always pass
(G1, G2) pairs.

License: MIT
"""

from __future__ import annotations

from typing import Any, Iterable, Optional, Tuple

from py_ecc.optimized_bn128 import (
    FQ12,
    G1 as _G1,
    G2 as _G2,
    b as _B,
    b2 as _B2,
    final_exponentiate as _final_exponentiate,
    is_on_curve as _is_on_curve,
    normalize as _normalize,
    pairing as _pairing,
)

G1Point = Any
G2Point = Any


def g1_generator() -> G1Point:
    return _G1


def g2_generator() -> G2Point:
    return _G2


def _at_infinity(point: Any) -> bool:
    # projective z == 0
    return point is None or point[-1] == point[-1].zero()


def is_on_curve_g1(P: G1Point) -> bool:
    """On y^2 = x^3 + 3, or the point at infinity."""
    return _at_infinity(P) or bool(_is_on_curve(P, _B))


def is_on_curve_g2(Q: G2Point) -> bool:
    """On the sextic twist, or the point at infinity."""
    return _at_infinity(Q) or bool(_is_on_curve(Q, _B2))


def normalize_g1(P: G1Point) -> Optional[Tuple[int, int]]:
    if _at_infinity(P):
        return None
    x, y = _normalize(P)
    return int(x.n), int(y.n)


def normalize_g2(Q: G2Point) -> Optional[Tuple[Tuple[int, int], Tuple[int, int]]]:
    """((x.c0, x.c1), (y.c0, y.c1)) where an FQ2 value is c0 + c1*i; None at infinity."""
    if _at_infinity(Q):
        return None
    x, y = _normalize(Q)
    return (int(x.coeffs[0]), int(x.coeffs[1])), (int(y.coeffs[0]), int(y.coeffs[1]))


def check_pairing_product(
    pairs: Iterable[Tuple[G1Point, G2Point]], *, validate: bool = True
) -> bool:
    """
    True iff the product of e(P, Q) over `pairs` is 1.

    With `validate`, an off-curve point raises ValueError. A pair with a
    point at infinity contributes the identity and is skipped.
    """
    miller = FQ12.one()
    for P, Q in pairs:
        if validate and not is_on_curve_g1(P):
            raise ValueError("G1 point is not on curve")
        if validate and not is_on_curve_g2(Q):
            raise ValueError("G2 point is not on curve")
        if _at_infinity(P) or _at_infinity(Q):
            continue
        miller = miller * _pairing(Q, P, final_exponentiate=False)
    return _final_exponentiate(miller) == FQ12.one()


__all__ = [
    "check_pairing_product",
    "is_on_curve_g1",
    "is_on_curve_g2",
    "normalize_g1",
    "normalize_g2",
    "g1_generator",
    "g2_generator",
]
