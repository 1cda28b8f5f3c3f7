"""
Minimal ABI helpers for the registry's read function

    function rootToId(bytes32 root) external view returns (uint256)

Only what that one call needs: the 4-byte selector, a static bytes32
argument, and a uint256 return word.
"""

from __future__ import annotations

from typing import Any

from ..field import to_bytes32
from ..hashing.keccak import keccak256

ROOT_TO_ID_SIGNATURE = "rootToId(bytes32)"
WORD_HEX_LEN = 64
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def function_selector(signature: str) -> bytes:
    """First 4 bytes of keccak256 over the canonical signature."""
    return keccak256(signature.encode("ascii"))[:4]


ROOT_TO_ID_SELECTOR = function_selector(ROOT_TO_ID_SIGNATURE)


def encode_root_to_id(leaf: int) -> str:
    """Calldata for rootToId(leaf) as 0x-prefixed hex."""
    return "0x" + (ROOT_TO_ID_SELECTOR + to_bytes32(leaf)).hex()


def decode_uint256(result: Any) -> int:
    """
    Decode an `eth_call` result holding a single uint256.

    Raises ValueError unless `result` is 0x followed by exactly 64 hex digits.
    """
    if not isinstance(result, str) or result[:2] not in ("0x", "0X"):
        raise ValueError(f"eth_call result is not 0x-hex: {result!r:.80}")
    body = result[2:]
    if len(body) != WORD_HEX_LEN:
        raise ValueError(f"eth_call result is {len(body) // 2} bytes, expected 32")
    # int() would also tolerate '_' separators and surrounding whitespace
    if not all(c in _HEX_DIGITS for c in body):
        raise ValueError("eth_call result is not hex")
    return int(body, 16)


__all__ = [
    "ROOT_TO_ID_SIGNATURE",
    "ROOT_TO_ID_SELECTOR",
    "function_selector",
    "encode_root_to_id",
    "decode_uint256",
]
