"""
uniqid.tests helpers

Shared vectors, fakes and fixture builders for the uniqid test-suite.
Importable without network access; nothing here touches a real node.

Exports:
- LEAF_VECTORS: pinned (email, secret) -> hashes/leaf vectors
- RPC_URL, CONTRACT: endpoint/contract used with respx
- rpc_result(value) / rpc_error(code, message): JSON-RPC response bodies
- StaticVerifier: ProofVerifier double with a fixed answer (optional delay)
- make_groth16_fixture(leaf, seed) -> (vk_json, proof_json)
"""

from __future__ import annotations

import asyncio
import random
from typing import Any, Dict, List, Tuple

from py_ecc.optimized_bn128 import multiply

from uniqid.field import R, to_bytes32_hex
from uniqid.verifiers.pairing_bn254 import g1_generator, g2_generator, normalize_g1, normalize_g2

# --- Pinned vectors -----------------------------------------------------------
# Computed with an independent JavaScript implementation of the pipeline.

LEAF_VECTORS: List[Dict[str, Any]] = [
    {
        "email": "alice@example.com",
        "secret": "correct horse battery staple",
        "email_keccak_mod_r": 9442795690386943280767297128646743839004807684462467420232979141467548185592,
        "email_hash": 4178182190182042318832530653517681675081848013762874953623495284830309037522,
        "secret_hash": 12515218189860841831061217786489999104288902929889629775847685966247141783203,
        "leaf": "0x2f4bfe2b45b6f046cf94cea62733f010d1e8ab4ef05fa2b8f89b0ca68211cdf7",
        "leaf_swapped": "0x185be8a5ff6c7e44abaabc9ad33c66ffa4403d22c347686d9214d87810a28504",
    },
    {
        "email": "a@b.com",
        "secret": "s3cret",
        "email_keccak_mod_r": 2979732490779039610996290203315415026417481942836649995508529983013066992418,
        "email_hash": 15157948730164547001003478748786726589604640747078767485587268264669333215099,
        "secret_hash": 16446967549810329531090949355566742609267856766792805084601122267152118928452,
        "leaf": "0x0e4617a6663b199abf1df027b1ed16e45f49e0dff5e614575372648890efdb9f",
        "leaf_swapped": "0x1299606f345db6d3cc1c27c37f36e54b23e5a37527026f68f6bd51a21f685a46",
    },
]

# --- JSON-RPC -------------------------------------------------------------------

RPC_URL = "http://registry.test:8545/"
CONTRACT = "0x" + "ab" * 20


def rpc_result(value: int, *, id: int = 1) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": id, "result": to_bytes32_hex(value)}


def rpc_error(code: int = -32000, message: str = "execution reverted", *, id: int = 1) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": id, "error": {"code": code, "message": message}}


# --- Verifier double -----------------------------------------------------------


class StaticVerifier:
    """Answers every proof with `result`, after an optional delay."""

    def __init__(self, result: bool = True, *, delay_s: float = 0.0):
        self.result = result
        self.delay_s = delay_s
        self.calls: List[Tuple[int, Any]] = []

    async def verify(self, leaf, proof) -> bool:
        self.calls.append((leaf, proof))
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        return self.result


# --- Groth16 fixtures ------------------------------------------------------------


def _g1_json(P) -> List[str]:
    x, y = normalize_g1(P)
    return [str(x), str(y), "1"]


def _g2_json(Q) -> List[List[str]]:
    (x0, x1), (y0, y1) = normalize_g2(Q)
    return [[str(x0), str(x1)], [str(y0), str(y1)], ["1", "0"]]


def make_groth16_fixture(leaf: int, seed: int = 7) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Build a verifying key and a proof for public input `leaf` that satisfy the
    Groth16 pairing equation, by choosing every exponent (trapdoor) directly:

        vk: alpha1 = alpha*G1, beta2 = beta*G2, gamma2 = gamma*G2,
            delta2 = delta*G2, IC = [u0*G1, u1*G1]
        proof: A = a*G1, B = b*G2, C = c*G1 with
               c = (a*b - alpha*beta - (u0 + leaf*u1)*gamma) / delta   (mod r)

    Returns snarkjs-layout JSON (decimal strings, projective 3rd coordinate).
    """
    rng = random.Random(seed)

    def rand() -> int:
        return rng.randrange(1, R)

    alpha, beta, gamma, delta, u0, u1, a, b = (rand() for _ in range(8))
    G1, G2 = g1_generator(), g2_generator()

    vk = {
        "protocol": "groth16",
        "curve": "bn128",
        "nPublic": 1,
        "vk_alpha_1": _g1_json(multiply(G1, alpha)),
        "vk_beta_2": _g2_json(multiply(G2, beta)),
        "vk_gamma_2": _g2_json(multiply(G2, gamma)),
        "vk_delta_2": _g2_json(multiply(G2, delta)),
        "IC": [_g1_json(multiply(G1, u0)), _g1_json(multiply(G1, u1))],
    }

    vk_x = (u0 + leaf * u1) % R
    c = (a * b - alpha * beta - vk_x * gamma) * pow(delta, R - 2, R) % R
    proof = {
        "pi_a": _g1_json(multiply(G1, a)),
        "pi_b": _g2_json(multiply(G2, b)),
        "pi_c": _g1_json(multiply(G1, c)),
        "protocol": "groth16",
        "curve": "bn128",
    }
    return vk, proof


__all__ = [
    "LEAF_VECTORS",
    "RPC_URL",
    "CONTRACT",
    "rpc_result",
    "rpc_error",
    "StaticVerifier",
    "make_groth16_fixture",
]
