from __future__ import annotations

import pytest

from uniqid.errors import InvalidInput
from uniqid.field import to_bytes32_hex
from uniqid.hasher import Hasher, combine, derive_leaf, field_from_utf8, normalize_email
from uniqid.tests import LEAF_VECTORS


@pytest.mark.parametrize("vec", LEAF_VECTORS, ids=lambda v: v["email"])
def test_leaf_vectors(vec: dict) -> None:
    d = Hasher().derive(vec["email"], vec["secret"])
    assert field_from_utf8(vec["email"]) == vec["email_keccak_mod_r"]
    assert d.email_hash == vec["email_hash"]
    assert d.secret_hash == vec["secret_hash"]
    assert d.leaf_hex == vec["leaf"]
    assert derive_leaf(vec["email"], vec["secret"]) == vec["leaf"]


@pytest.mark.parametrize("vec", LEAF_VECTORS, ids=lambda v: v["email"])
def test_swapping_inner_hashes_changes_leaf(vec: dict) -> None:
    swapped = to_bytes32_hex(combine(vec["secret_hash"], vec["email_hash"]))
    assert swapped == vec["leaf_swapped"]
    assert swapped != vec["leaf"]


def test_derivation_is_deterministic() -> None:
    leaves = {derive_leaf("a@b.com", "s3cret") for _ in range(3)}
    assert leaves == {LEAF_VECTORS[1]["leaf"]}


@pytest.mark.parametrize("email", [" A@B.com ", "a@b.com", "A@B.COM", "\ta@b.com\n", "\ufeffa@b.com"])
def test_case_and_surrounding_whitespace_do_not_matter(email: str) -> None:
    assert derive_leaf(email, "s3cret") == LEAF_VECTORS[1]["leaf"]


def test_secret_is_not_normalized() -> None:
    assert derive_leaf("a@b.com", " s3cret") != LEAF_VECTORS[1]["leaf"]
    assert derive_leaf("a@b.com", "S3CRET") != LEAF_VECTORS[1]["leaf"]


def test_normalize_email_keeps_inner_characters() -> None:
    assert normalize_email("  Mixed.Case+Tag@Example.COM ") == "mixed.case+tag@example.com"
    assert normalize_email("a b@c.com") == "a b@c.com"
    assert normalize_email(None) == ""


@pytest.mark.parametrize(
    "email",
    ["", "   ", None, "not-an-email", "a@", "@b.com", "a b@c.com", "Alice <a@b.com>", "a@@b.com"],
)
def test_invalid_email(email) -> None:
    with pytest.raises(InvalidInput):
        derive_leaf(email, "s3cret")


@pytest.mark.parametrize("secret", ["", None])
def test_missing_secret(secret) -> None:
    with pytest.raises(InvalidInput) as ei:
        derive_leaf("a@b.com", secret)
    assert ei.value.details == {"field": "secret"}


def test_circuit_inputs_are_decimal_strings() -> None:
    vec = LEAF_VECTORS[0]
    d = Hasher().derive(vec["email"], vec["secret"])
    assert d.circuit_inputs() == {
        "emailHash": str(vec["email_hash"]),
        "secretHash": str(vec["secret_hash"]),
    }


def test_repr_shows_only_the_leaf() -> None:
    vec = LEAF_VECTORS[0]
    r = repr(Hasher().derive(vec["email"], vec["secret"]))
    assert vec["leaf"] in r
    assert str(vec["email_hash"]) not in r
    assert str(vec["secret_hash"]) not in r


@pytest.mark.parametrize("email", ["a\ud800@b.com", "\udfffa@b.com"])
def test_lone_surrogate_email(email) -> None:
    with pytest.raises(InvalidInput) as ei:
        derive_leaf(email, "s3cret")
    assert ei.value.details == {"field": "email"}


def test_lone_surrogate_secret() -> None:
    with pytest.raises(InvalidInput) as ei:
        derive_leaf("a@b.com", "s3\ud800cret")
    assert ei.value.details == {"field": "secret"}
    assert "\ud800" not in str(ei.value)


@pytest.mark.parametrize("pad", ["\u00a0", "\u2028", "\u3000", "\ufeff\u00a0", "\u205f"])
def test_trim_matches_javascript_whitespace(pad: str) -> None:
    assert normalize_email(pad + "a@b.com" + pad) == "a@b.com"


@pytest.mark.parametrize("ch", ["\x1c", "\x1f", "\x85", "\u180e", "\u200b"])
def test_trim_keeps_what_javascript_keeps(ch: str) -> None:
    assert normalize_email(ch + "a@b.com" + ch) == ch + "a@b.com" + ch
