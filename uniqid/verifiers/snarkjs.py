"""
uniqid.verifiers.snarkjs
========================

Reading snarkjs Groth16 artifacts (curve "bn128") into the plain-int shapes
`groth16_bn254` works on. Nothing here checks a proof: it decodes JSON,
turns decimal, hex and BigInt ("123n") strings into ints, and fixes up
point layouts.

Typical shapes
--------------
Verifying key (verification_key.json):
{
  "protocol": "groth16",
  "curve": "bn128",
  "nPublic": 1,
  "vk_alpha_1": [ "..", "..", "1" ],
  "vk_beta_2":  [[ "..",".." ], [ "..",".." ], [ "1","0" ]],
  "vk_gamma_2": [[ "..",".." ], [ "..",".." ], [ "1","0" ]],
  "vk_delta_2": [[ "..",".." ], [ "..",".." ], [ "1","0" ]],
  "IC": [ [ "..", "..", "1" ], ... ]
}

Proof (proof.json), optionally bundled with publics:
{
  "pi_a": [ "..", "..", "1" ],
  "pi_b": [[ "..",".." ], [ "..",".." ], [ "1","0" ]],
  "pi_c": [ "..", "..", "1" ],
  "protocol": "groth16"
}
{ "proof": {...}, "publicSignals": [ "123" ] }

SnarkJS writes points in projective form with a trailing z coordinate that
is "1" for affine points and "0" for infinity. Both the 2- and 3-coordinate
layouts are accepted; anything with another z is rejected.

Exports
-------
- load_json(source) -> dict
- normalize_numbers(obj) -> same structure, numeric strings as ints
- is_groth16_vk(obj)
- normalize_groth16_vk(vk) -> dict keyed like verification_key.json
- normalize_groth16_proof(proof_or_bundle) -> (proof_dict, publics_or_None)
- vk_fingerprint(vk) -> "sha3-256:<hex>"

License: MIT
"""

from __future__ import annotations

import json
import re
from hashlib import sha3_256
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

JsonLike = Union[str, bytes, Mapping[str, Any]]


# -----------------------------------------------------------------------------
# I/O helpers
# -----------------------------------------------------------------------------


def load_json(source: JsonLike) -> Dict[str, Any]:
    """
    Load a JSON object from a mapping (copied) or from JSON text as str or
    bytes. Strings are always parsed as JSON, never opened as paths: proofs
    arrive from callers. Callers that read files do so themselves.

    Raises ValueError on failure.
    """
    if isinstance(source, Mapping):
        return dict(source)
    try:
        if isinstance(source, (bytes, bytearray, memoryview)):
            obj = json.loads(bytes(source).decode("utf-8"))
        elif isinstance(source, str):
            obj = json.loads(source)
        else:
            raise ValueError(f"cannot load JSON from {type(source).__name__}")
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValueError(f"not a JSON document: {e}") from e
    if not isinstance(obj, dict):
        raise ValueError("JSON document must be an object")
    return obj


# -----------------------------------------------------------------------------
# Number coercion (dec/hex/JS BigInt strings -> Python int)
# -----------------------------------------------------------------------------

_INT_RE = re.compile(r"^\s*((?:0x[0-9a-fA-F]+|\d+))n?\s*$")


def _maybe_to_int(x: Any) -> Any:
    if isinstance(x, bool):  # bool is an int subclass; keep it as-is
        return x
    if isinstance(x, int):
        return x
    if isinstance(x, str):
        m = _INT_RE.match(x)
        if m:
            return int(m.group(1), 0)
    return x


def _to_int(x: Any) -> int:
    v = _maybe_to_int(x)
    if isinstance(v, bool) or not isinstance(v, int):
        raise ValueError(f"expected a non-negative integer, got {x!r}")
    return v


def normalize_numbers(obj: Any) -> Any:
    """
    Recursively convert numeric-like strings ("123", "0xabc", "123n") into
    Python ints. Other types are preserved.
    """
    if isinstance(obj, Mapping):
        return {k: normalize_numbers(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [normalize_numbers(v) for v in obj]
    return _maybe_to_int(obj)


# -----------------------------------------------------------------------------
# Shape detection
# -----------------------------------------------------------------------------

_VK_KEYS = ("vk_alpha_1", "vk_beta_2", "vk_gamma_2", "vk_delta_2", "IC")
_PROOF_KEYS = ("pi_a", "pi_b", "pi_c")


def is_groth16_vk(obj: Mapping[str, Any]) -> bool:
    return all(k in obj for k in _VK_KEYS)


# -----------------------------------------------------------------------------
# Point normalization
# -----------------------------------------------------------------------------


def _norm_g1(pt: Iterable[Any]) -> List[int]:
    arr = [_to_int(v) for v in pt]
    if len(arr) == 3:
        if arr[2] == 0:
            return [0, 0]
        if arr[2] != 1:
            raise ValueError("G1 point must be affine (z == 1)")
        arr = arr[:2]
    if len(arr) != 2:
        raise ValueError("G1 point needs [x, y] or [x, y, z]")
    return arr


def _norm_g2(pt: Iterable[Iterable[Any]]) -> List[List[int]]:
    arr = [[_to_int(v) for v in limb] for limb in pt]
    if len(arr) == 3:
        if arr[2] == [0, 0]:
            return [[0, 0], [0, 0]]
        if arr[2] != [1, 0]:
            raise ValueError("G2 point must be affine (z == [1, 0])")
        arr = arr[:2]
    if len(arr) != 2 or len(arr[0]) != 2 or len(arr[1]) != 2:
        raise ValueError("G2 point needs [[x0, x1], [y0, y1]] (optionally with z)")
    return arr


def normalize_groth16_vk(vk: Mapping[str, Any]) -> Dict[str, Any]:
    """
    verification_key.json contents with every point reduced to affine ints.
    Only the curve points plus protocol/curve metadata are kept.
    """
    if not is_groth16_vk(vk):
        raise ValueError("verifying key lacks one of vk_alpha_1, vk_beta_2, vk_gamma_2, vk_delta_2, IC")
    curve = str(vk.get("curve", "bn128")).lower()
    if curve not in ("bn128", "bn254", "altbn128"):
        raise ValueError(f"unsupported curve {curve!r}")

    out: Dict[str, Any] = {}
    for meta_key in ("protocol", "curve"):
        if meta_key in vk:
            out[meta_key] = str(vk[meta_key])

    out["vk_alpha_1"] = _norm_g1(vk["vk_alpha_1"])
    out["vk_beta_2"] = _norm_g2(vk["vk_beta_2"])
    out["vk_gamma_2"] = _norm_g2(vk["vk_gamma_2"])
    out["vk_delta_2"] = _norm_g2(vk["vk_delta_2"])

    IC = vk.get("IC")
    if not isinstance(IC, (list, tuple)) or len(IC) == 0:
        raise ValueError("IC must be a non-empty list of G1 points")
    out["IC"] = [_norm_g1(pt) for pt in IC]

    n_public = vk.get("nPublic")
    if n_public is not None and _to_int(n_public) != len(out["IC"]) - 1:
        raise ValueError("vk.nPublic does not match the IC length")
    return out


def normalize_groth16_proof(
    bundle_or_proof: Mapping[str, Any],
) -> Tuple[Dict[str, Any], Optional[List[int]]]:
    """
    Split a proof, flat or bundled as {"proof": ..., "publicSignals": ...},
    into (affine proof points, public signals). The signals are None when
    neither the bundle nor the proof carries any.
    """
    if isinstance(bundle_or_proof.get("proof"), Mapping):
        proof = bundle_or_proof["proof"]
    else:
        proof = bundle_or_proof
    publics = bundle_or_proof.get("publicSignals", proof.get("publicSignals"))

    for k in _PROOF_KEYS:
        if k not in proof:
            raise ValueError(f"proof has no '{k}'")
    protocol = proof.get("protocol")
    if protocol is not None and str(protocol).lower() != "groth16":
        raise ValueError(f"unsupported proof protocol {protocol!r}")

    out: Dict[str, Any] = {
        "pi_a": _norm_g1(proof["pi_a"]),
        "pi_b": _norm_g2(proof["pi_b"]),
        "pi_c": _norm_g1(proof["pi_c"]),
    }

    if publics is None:
        return out, None
    if not isinstance(publics, (list, tuple)):
        raise ValueError("publicSignals is not a list")
    return out, [_to_int(v) for v in publics]


# -----------------------------------------------------------------------------
# Fingerprint
# -----------------------------------------------------------------------------


def canonical_json_bytes(obj: Any) -> bytes:
    """Deterministic JSON bytes: sorted keys, compact separators, UTF-8."""
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def vk_fingerprint(vk: Mapping[str, Any]) -> str:
    """
    Hash over the normalized VK *material* (points only, metadata ignored).

    Returns:
        "sha3-256:<hex>"
    """
    payload = {k: vk[k] for k in _VK_KEYS}
    return f"sha3-256:{sha3_256(canonical_json_bytes(payload)).hexdigest()}"


__all__ = [
    "load_json",
    "normalize_numbers",
    "is_groth16_vk",
    "normalize_groth16_vk",
    "normalize_groth16_proof",
    "canonical_json_bytes",
    "vk_fingerprint",
]
