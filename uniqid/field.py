"""
BN254 scalar field (Fr) helpers.

All hash inputs/outputs in the leaf pipeline are elements of the BN254 scalar
field, i.e. integers modulo the curve order r used by circom/snarkjs. For
transport they are fixed-width 32-byte big-endian values, rendered as
0x-prefixed lowercase hex.

- `R`: field modulus
- `reduce_to_field(x)`: canonical representative in [0, R)
- `to_bytes32(x)` / `to_bytes32_hex(x)`: 32-byte big-endian encodings
- `parse_bytes32(value)`: strict parser for leaves received from callers
"""

from __future__ import annotations

from typing import Union

from .errors import InvalidInput

# BN254 / alt_bn128 scalar field order (a.k.a. curve order r).
R: int = 21888242871839275222246405745257275088548364400416034343698204186575808495617
FIELD_BYTE_LEN = 32

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")

Bytes32Like = Union[str, bytes, bytearray, memoryview]


def reduce_to_field(x: int) -> int:
    """Reduce a non-negative integer into [0, R)."""
    return int(x) % R


def to_bytes32(x: int) -> bytes:
    if x < 0 or x >= 1 << (8 * FIELD_BYTE_LEN):
        raise ValueError("value does not fit in 32 bytes")
    return int(x).to_bytes(FIELD_BYTE_LEN, "big")


def to_bytes32_hex(x: int) -> str:
    """Left zero-padded 64-digit hex with 0x prefix."""
    return "0x" + to_bytes32(x).hex()


def parse_bytes32(value: Bytes32Like, *, canonical: bool = True) -> int:
    """
    Parse a bytes32 value into an integer.

    Accepts 32 raw bytes, or a hex string of at most 64 digits with or
    without the 0x prefix. With `canonical=True` (default) the value must also
    be a reduced field element; anything else raises InvalidInput.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
        if len(raw) != FIELD_BYTE_LEN:
            raise InvalidInput(f"expected {FIELD_BYTE_LEN} bytes, got {len(raw)}")
        n = int.from_bytes(raw, "big")
    elif isinstance(value, str):
        s = value.strip()
        if s[:2] in ("0x", "0X"):
            s = s[2:]
        if not s or len(s) > FIELD_BYTE_LEN * 2:
            raise InvalidInput("bytes32 hex must have 1..64 hex digits")
        # int() would also tolerate '_' separators
        if not all(c in _HEX_DIGITS for c in s):
            raise InvalidInput("bytes32 value is not hex")
        n = int(s, 16)
    else:
        raise InvalidInput(f"unsupported bytes32 type: {type(value).__name__}")

    if canonical and n >= R:
        raise InvalidInput("value is not a canonical BN254 field element")
    return n


def coerce_leaf(value: Union[int, Bytes32Like]) -> int:
    """Leaf as a canonical field int, from an int or any `parse_bytes32` input."""
    if isinstance(value, int) and not isinstance(value, bool):
        if not 0 <= value < R:
            raise InvalidInput("leaf is not a canonical BN254 field element", details={"field": "leaf"})
        return value
    return parse_bytes32(value)


__all__ = [
    "R",
    "FIELD_BYTE_LEN",
    "reduce_to_field",
    "to_bytes32",
    "to_bytes32_hex",
    "parse_bytes32",
    "coerce_leaf",
]
