from __future__ import annotations

import pytest

from uniqid.errors import InvalidInput
from uniqid.identifiers import (
    MAX_DIGITS,
    Identifier,
    IdentifierCodec,
    format_identifier,
    identifiers_equal,
    parse,
)


def test_both_encodings_denote_the_same_identifier() -> None:
    assert parse("UNIQ-000042") == parse("42")
    assert parse("42").value == 42
    assert identifiers_equal("UNIQ-000042", "42")
    assert identifiers_equal(42, "uniq-42")
    assert not identifiers_equal("7", "42")


@pytest.mark.parametrize(
    "text",
    ["42", "042", "000042", "UNIQ-000042", "UNIQ-42", "uniq-000042", " UNIQ-000042 ", 42],
)
def test_accepted_forms(text) -> None:
    assert parse(text) == Identifier(42)


@pytest.mark.parametrize(
    "text",
    [
        "",
        "   ",
        "0",
        "UNIQ-000000",
        "UNIQ-",
        "abc",
        "-42",
        "+42",
        "4.2",
        "4 2",
        "UNIQ- 42",
        "OTHER-000042",
        "UNIQ-00-42",
        "４２",  # fullwidth digits
        "9" * 5000,
        "UNIQ-" + "9" * 79,
        "0" * 5000,
        0,
        -3,
        True,
        None,
    ],
)
def test_rejected_forms(text) -> None:
    with pytest.raises(InvalidInput):
        parse(text)


@pytest.mark.parametrize(
    "value, display",
    [(1, "UNIQ-000001"), (42, "UNIQ-000042"), (999999, "UNIQ-999999"), (1000000, "UNIQ-1000000"), (123456789, "UNIQ-123456789")],
)
def test_format(value: int, display: str) -> None:
    assert format_identifier(value) == display


def test_round_trip_every_six_digit_value() -> None:
    for n in range(1, 1_000_000):
        text = format_identifier(n)
        assert len(text) == len("UNIQ-") + 6
        assert parse(text).value == n


def test_identifier_value_type() -> None:
    ident = Identifier(42)
    assert ident.decimal == "42"
    assert ident.display == "UNIQ-000042"
    assert str(ident) == "UNIQ-000042"
    assert int(ident) == 42
    assert ident.to_dict() == {"decimal": "42", "display": "UNIQ-000042"}
    assert hash(ident) == hash(Identifier(42, "OTHER"))
    assert {ident, Identifier(42)} == {ident}


def test_custom_prefix() -> None:
    codec = IdentifierCodec("ACME")
    assert codec.format(7) == "ACME-000007"
    assert codec.parse("acme-7").value == 7
    with pytest.raises(InvalidInput):
        codec.parse("UNIQ-000007")
    with pytest.raises(ValueError):
        IdentifierCodec("NOT-OK")


def test_digit_bound() -> None:
    largest = str(2**256 - 1)
    assert len(largest) == MAX_DIGITS
    assert parse(largest).value == 2**256 - 1
    assert parse("0" * 5000 + "42") == Identifier(42)
