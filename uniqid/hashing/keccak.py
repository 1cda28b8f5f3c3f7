"""
Keccak-256 (the pre-standard SHA-3 used by Ethereum/EVM tooling).

Note that hashlib.sha3_256 is the NIST variant with different padding and
yields different digests; the registry was populated with Keccak-256.
"""

from __future__ import annotations

from typing import Union

from Crypto.Hash import keccak as _keccak


def keccak256(data: Union[bytes, bytearray, memoryview]) -> bytes:
    """Return the 32-byte Keccak-256 digest of `data`."""
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError("keccak256 expects bytes-like input")
    h = _keccak.new(digest_bits=256)
    h.update(bytes(data))
    return h.digest()


def keccak256_int(data: Union[bytes, bytearray, memoryview]) -> int:
    """Keccak-256 digest interpreted as a big-endian unsigned integer."""
    return int.from_bytes(keccak256(data), "big")


__all__ = ["keccak256", "keccak256_int"]
