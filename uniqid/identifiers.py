"""
Identifier parsing and formatting.

An identifier is the positive integer the registry assigns to a leaf. It has
two textual encodings that denote the same value:

    "42"            bare decimal
    "UNIQ-000042"   display form, zero-padded to 6 digits

Parsing accepts either form (prefix matched case-insensitively, surrounding
whitespace trimmed); formatting always emits the display form. Values with
more than 6 digits are emitted at full width, never truncated. `0` is the
registry's "unregistered" sentinel and is never a valid identifier.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Union

from .errors import InvalidInput

DEFAULT_PREFIX = "UNIQ"
DISPLAY_WIDTH = 6
# the registry stores identifiers as uint256
MAX_DIGITS = len(str(2**256 - 1))

_DIGITS_RE = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class Identifier:
    """A registry identifier. Equality and hashing consider the numeric value only."""

    value: int
    prefix: str = field(default=DEFAULT_PREFIX, compare=False)

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise InvalidInput("identifier value must be an integer")
        if self.value <= 0:
            raise InvalidInput("identifier must be a positive integer")

    @property
    def decimal(self) -> str:
        return str(self.value)

    @property
    def display(self) -> str:
        return f"{self.prefix}-{self.value:0{DISPLAY_WIDTH}d}"

    def to_dict(self) -> Dict[str, str]:
        return {"decimal": self.decimal, "display": self.display}

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return self.display


class IdentifierCodec:
    """Canonical parse/format between numeric and display identifier forms."""

    def __init__(self, prefix: str = DEFAULT_PREFIX):
        if not prefix or not prefix.isalnum():
            raise ValueError("identifier prefix must be a non-empty alphanumeric string")
        self.prefix = prefix

    def parse(self, text: Union[str, int]) -> Identifier:
        if isinstance(text, bool):
            raise InvalidInput("identifier must be text or an integer")
        if isinstance(text, int):
            return Identifier(text, self.prefix)
        if not isinstance(text, str):
            raise InvalidInput("identifier must be text or an integer")

        s = text.strip()
        if not s:
            raise InvalidInput("identifier is empty")

        head, sep, digits = s.partition("-")
        if sep:
            if head.upper() != self.prefix.upper():
                raise InvalidInput(f"identifier prefix must be {self.prefix!r}")
        else:
            digits = head

        # str.isdigit() also admits non-ASCII digits; the registry only issues ASCII
        if not _DIGITS_RE.fullmatch(digits):
            raise InvalidInput("identifier must contain decimal digits only")
        significant = digits.lstrip("0")
        if len(significant) > MAX_DIGITS:
            raise InvalidInput(f"identifier exceeds {MAX_DIGITS} digits")
        value = int(significant or "0")
        if value == 0:
            raise InvalidInput("identifier 0 is the unregistered sentinel")
        return Identifier(value, self.prefix)

    def format(self, identifier: Union[Identifier, int]) -> str:
        value = identifier.value if isinstance(identifier, Identifier) else identifier
        return Identifier(value, self.prefix).display

    def equal(self, a: Union[str, int, Identifier], b: Union[str, int, Identifier]) -> bool:
        """True iff both sides parse to the same numeric value."""
        left = a if isinstance(a, Identifier) else self.parse(a)
        right = b if isinstance(b, Identifier) else self.parse(b)
        return left == right


_default_codec = IdentifierCodec()


def parse(text: Union[str, int]) -> Identifier:
    return _default_codec.parse(text)


def format_identifier(identifier: Union[Identifier, int]) -> str:
    return _default_codec.format(identifier)


def identifiers_equal(a: Union[str, int, Identifier], b: Union[str, int, Identifier]) -> bool:
    return _default_codec.equal(a, b)


__all__ = [
    "DEFAULT_PREFIX",
    "DISPLAY_WIDTH",
    "MAX_DIGITS",
    "Identifier",
    "IdentifierCodec",
    "parse",
    "format_identifier",
    "identifiers_equal",
]
