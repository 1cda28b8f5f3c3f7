from __future__ import annotations

import hashlib

import pytest

from uniqid.errors import InvalidInput
from uniqid.field import R, coerce_leaf, parse_bytes32, reduce_to_field, to_bytes32_hex
from uniqid.hashing.keccak import keccak256, keccak256_int
from uniqid.registry.abi import ROOT_TO_ID_SELECTOR, decode_uint256, encode_root_to_id


def test_keccak_known_answers() -> None:
    assert keccak256(b"").hex() == "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
    assert keccak256(b"abc").hex() == "4e03657aea45a94fc7d47ba826c8d667c0d1e6e33a64a036ec44f58fa12d6c45"


def test_keccak_is_not_nist_sha3() -> None:
    assert keccak256(b"abc") != hashlib.sha3_256(b"abc").digest()


def test_keccak_rejects_text() -> None:
    with pytest.raises(TypeError):
        keccak256("abc")  # type: ignore[arg-type]


def test_keccak_int_is_big_endian() -> None:
    assert keccak256_int(b"") == int("c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470", 16)


def test_reduce_to_field() -> None:
    assert reduce_to_field(R) == 0
    assert reduce_to_field(R + 5) == 5
    assert reduce_to_field((1 << 256) - 1) < R


def test_bytes32_hex_is_left_padded() -> None:
    assert to_bytes32_hex(1) == "0x" + "0" * 63 + "1"
    assert len(to_bytes32_hex(R - 1)) == 66


@pytest.mark.parametrize(
    "text",
    ["0x2a", "2a", "0X2A", "  0x" + "0" * 62 + "2a  ", bytes(31) + b"\x2a"],
)
def test_parse_bytes32_forms(text) -> None:
    assert parse_bytes32(text) == 42


@pytest.mark.parametrize(
    "text",
    ["", "0x", "0x" + "1" * 65, "0xzz", "0x1_0", "-0x1", bytes(31), 42.0],
)
def test_parse_bytes32_rejects(text) -> None:
    with pytest.raises(InvalidInput):
        parse_bytes32(text)


def test_parse_bytes32_requires_canonical_field_element() -> None:
    with pytest.raises(InvalidInput):
        parse_bytes32(hex(R))
    assert parse_bytes32(hex(R), canonical=False) == R


def test_coerce_leaf() -> None:
    assert coerce_leaf(7) == 7
    assert coerce_leaf("0x07") == 7
    for bad in (-1, R, True):
        with pytest.raises(InvalidInput):
            coerce_leaf(bad)


def test_root_to_id_calldata() -> None:
    assert ROOT_TO_ID_SELECTOR == keccak256(b"rootToId(bytes32)")[:4]
    data = encode_root_to_id(42)
    assert data.startswith("0x" + ROOT_TO_ID_SELECTOR.hex())
    assert len(data) == 2 + 8 + 64
    assert data.endswith("0" * 62 + "2a")


def test_decode_uint256() -> None:
    assert decode_uint256("0x" + "0" * 62 + "2a") == 42
    for bad in (None, "0x", "0x2a", "2a" * 32, "0x" + "zz" * 32, "0x" + "0_" * 32, "0x" + " " * 62 + "2a", 42):
        with pytest.raises(ValueError):
            decode_uint256(bad)
