"""
uniqid.hashing.poseidon
=======================

Poseidon hash over the BN254 scalar field (Fr), bit-compatible with
circomlib / circomlibjs ``poseidon``.

Parameters
----------
Round constants and MDS matrices come from the Grain LFSR generator
(Grassi et al.) run for the BN254 field with x^5 S-boxes, which is how
circomlib produced its tables. They are generated on first use of a state
width and cached.

Construction (matches circomlib)
--------------------------------
- width t = len(inputs) + 1, state = [0, in_1, ..., in_n]
- R_F = 8 full rounds, R_P partial rounds from `PARTIAL_ROUNDS[t - 2]`
- each round: add round constants, S-box (all words in full rounds, word 0
  in partial rounds), multiply by the MDS matrix
- output = state[0] after a single permutation

Known answers
-------------
    poseidon([1])    == 18586133768512220936620570745912940619677854269274689475585506675881198879027
    poseidon([1, 2]) == 7853200120776062878684798364095072458815029376092732009249414926327459813530

Public API
----------
- PoseidonParams(t, R_F, R_P, alpha, mds, rc)
- get_params(t) -> PoseidonParams
- poseidon_permute(state, params) -> list[int]
- poseidon(inputs) -> int

License: MIT
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, List, Sequence

from ..field import R as _MOD

FULL_ROUNDS = 8
PARTIAL_ROUNDS = (56, 57, 56, 60, 60, 63, 64, 63, 60, 66, 60, 65, 70, 60, 64, 68)
MAX_INPUTS = len(PARTIAL_ROUNDS)
ALPHA = 5
FIELD_BITS = 254


# ---------------------------
# Field arithmetic (mod Fr)
# ---------------------------


def _fadd(a: int, b: int) -> int:
    return (a + b) % _MOD


def _fmul(a: int, b: int) -> int:
    return (a * b) % _MOD


def _finv(a: int) -> int:
    return pow(a % _MOD, _MOD - 2, _MOD)


def _fpow_alpha(x: int, alpha: int) -> int:
    # x^5 with three multiplications
    if alpha == 5:
        x2 = _fmul(x, x)
        x4 = _fmul(x2, x2)
        return _fmul(x, x4)
    return pow(x, alpha, _MOD)


# ---------------------------
# Parameters
# ---------------------------


@dataclass(frozen=True)
class PoseidonParams:
    t: int  # state width
    R_F: int  # number of full rounds
    R_P: int  # number of partial rounds
    alpha: int  # S-box exponent
    mds: List[List[int]]  # MDS matrix, shape t x t
    rc: List[List[int]]  # round constants, shape (R_F + R_P) x t

    def validate(self) -> None:
        if self.t < 2:
            raise ValueError("t must be >= 2")
        if self.R_F % 2 != 0:
            raise ValueError(
                "R_F must be even (split half-before/after partial rounds)"
            )
        if self.alpha < 3 or self.alpha % 2 == 0:
            raise ValueError("alpha must be an odd integer >= 3")
        if len(self.mds) != self.t or any(len(row) != self.t for row in self.mds):
            raise ValueError("mds must be t x t")
        expected_rounds = self.R_F + self.R_P
        if len(self.rc) != expected_rounds or any(
            len(row) != self.t for row in self.rc
        ):
            raise ValueError(f"rc must be (R_F+R_P) x t = {expected_rounds} x {self.t}")


def _bits(value: int, width: int) -> List[int]:
    return [int(b) for b in format(value, f"0{width}b")]


def _grain_source(t: int, R_F: int, R_P: int) -> Callable[[int], int]:
    """
    Self-shrinking Grain LFSR seeded with the parameter description
    (field=prime, sbox=x^alpha, n, t, R_F, R_P). Returns `draw(nbits) -> int`.
    """
    seed = (
        _bits(1, 2)  # field: GF(p)
        + _bits(0, 4)  # sbox: x^alpha
        + _bits(FIELD_BITS, 12)
        + _bits(t, 12)
        + _bits(R_F, 10)
        + _bits(R_P, 10)
        + [1] * 30
    )
    reg = deque(seed, maxlen=80)

    def step() -> int:
        bit = reg[62] ^ reg[51] ^ reg[38] ^ reg[23] ^ reg[13] ^ reg[0]
        reg.append(bit)  # maxlen drops reg[0]
        return bit

    for _ in range(160):
        step()

    def next_bit() -> int:
        # Bits are consumed in pairs; the second is output only if the first is 1.
        bit = step()
        while bit == 0:
            step()
            bit = step()
        return step()

    def draw(nbits: int) -> int:
        out = 0
        for _ in range(nbits):
            out = (out << 1) | next_bit()
        return out

    return draw


def _derive_params(t: int) -> PoseidonParams:
    R_F = FULL_ROUNDS
    R_P = PARTIAL_ROUNDS[t - 2]
    draw = _grain_source(t, R_F, R_P)

    # Round constants first (rejection-sampled below the modulus) ...
    flat: List[int] = []
    for _ in range((R_F + R_P) * t):
        c = draw(FIELD_BITS)
        while c >= _MOD:
            c = draw(FIELD_BITS)
        flat.append(c)
    rc = [flat[r * t:(r + 1) * t] for r in range(R_F + R_P)]

    # ... then a Cauchy MDS matrix M[i][j] = 1 / (x_i + y_j) from the same stream.
    while True:
        samples = [draw(FIELD_BITS) % _MOD for _ in range(2 * t)]
        if len(set(samples)) != len(samples):
            continue
        xs, ys = samples[:t], samples[t:]
        if any(_fadd(x, y) == 0 for x in xs for y in ys):
            continue
        mds = [[_finv(_fadd(x, y)) for y in ys] for x in xs]
        break

    params = PoseidonParams(t=t, R_F=R_F, R_P=R_P, alpha=ALPHA, mds=mds, rc=rc)
    params.validate()
    return params


@lru_cache(maxsize=None)
def get_params(t: int) -> PoseidonParams:
    """Return (and cache) the circomlib parameter set for state width `t`."""
    if not 2 <= t <= MAX_INPUTS + 1:
        raise ValueError(f"unsupported Poseidon width t={t} (2..{MAX_INPUTS + 1})")
    return _derive_params(t)


# ---------------------------
# Permutation
# ---------------------------


def _apply_mds(state: List[int], mds: List[List[int]]) -> List[int]:
    t = len(state)
    out = [0] * t
    for i in range(t):
        acc = 0
        row = mds[i]
        for j in range(t):
            acc += row[j] * state[j]
        out[i] = acc % _MOD
    return out


def poseidon_permute(state: Sequence[int], params: PoseidonParams) -> List[int]:
    """
    Poseidon permutation.

    Round schedule:
      R_F/2 full rounds, R_P partial rounds (S-box on word 0), R_F/2 full rounds

    The input is not modified.
    """
    t, alpha, mds, rc = params.t, params.alpha, params.mds, params.rc
    if len(state) != t:
        raise ValueError(f"state length {len(state)} != t={t}")

    half = params.R_F // 2
    x = [int(v) % _MOD for v in state]
    for r in range(params.R_F + params.R_P):
        consts = rc[r]
        x = [_fadd(x[i], consts[i]) for i in range(t)]
        if r < half or r >= half + params.R_P:
            x = [_fpow_alpha(v, alpha) for v in x]
        else:
            x[0] = _fpow_alpha(x[0], alpha)
        x = _apply_mds(x, mds)
    return x


# ---------------------------
# Hash interface
# ---------------------------


def poseidon(inputs: Sequence[int]) -> int:
    """
    circomlib-compatible Poseidon of 1..16 field elements.

    Inputs are reduced modulo Fr (circomlibjs does the same via `F.e`).
    """
    n = len(inputs)
    if not 1 <= n <= MAX_INPUTS:
        raise ValueError(f"poseidon takes 1..{MAX_INPUTS} inputs, got {n}")
    params = get_params(n + 1)
    state = [0] + [int(v) % _MOD for v in inputs]
    return poseidon_permute(state, params)[0]


__all__ = [
    "FULL_ROUNDS",
    "PARTIAL_ROUNDS",
    "MAX_INPUTS",
    "PoseidonParams",
    "get_params",
    "poseidon_permute",
    "poseidon",
]
