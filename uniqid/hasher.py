"""
Leaf commitment derivation.

    leaf = Poseidon(
        Poseidon(Keccak256(email) mod r),
        Poseidon(Keccak256(secret) mod r),
    )

The registry was populated by a client running exactly this pipeline, so
every step here must stay bit-for-bit identical to it:

1. email is trimmed and lowercased (nothing else: no Unicode normalization,
   no removal of inner whitespace). A different normalization does not raise;
   it silently yields a leaf the registry has never seen.
2. Keccak-256 over the UTF-8 bytes, read big-endian, reduced mod r.
3. Poseidon (1 input) over each reduced value -> email_hash, secret_hash.
4. Poseidon (2 inputs) over (email_hash, secret_hash), in that order.
5. The leaf travels as 0x-prefixed 32-byte big-endian hex.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from pydantic_core import PydanticCustomError
from pydantic.networks import validate_email

from .errors import InvalidInput
from .field import reduce_to_field, to_bytes32_hex
from .hashing.keccak import keccak256_int
from .hashing.poseidon import poseidon


# ECMAScript WhiteSpace and LineTerminator code points, the set
# String.prototype.trim() removes. str.strip() with no argument differs
# (it strips U+001C..U+001F and U+0085 but keeps U+FEFF).
_JS_WHITESPACE = (
    "\t\n\v\f\r \u00a0\u1680"
    "\u2000\u2001\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a"
    "\u2028\u2029\u202f\u205f\u3000\ufeff"
)


def _js_trim(s: str) -> str:
    return s.strip(_JS_WHITESPACE)


def normalize_email(email: Optional[str]) -> str:
    """Trim surrounding whitespace and lowercase. Inner characters are untouched."""
    s = "" if email is None else str(email)
    return _js_trim(s).lower()


def check_email_syntax(normalized: str) -> None:
    if not normalized:
        raise InvalidInput("email is required", details={"field": "email"})
    # validate_email also accepts "Name <addr>"; a bare address is required here.
    if "<" in normalized or ">" in normalized:
        raise InvalidInput("email is not a valid address", details={"field": "email"})
    try:
        validate_email(normalized)
    except PydanticCustomError:
        raise InvalidInput("email is not a valid address", details={"field": "email"}) from None


def _utf8(text: str, field: str) -> bytes:
    try:
        return text.encode("utf-8")
    except UnicodeEncodeError:
        # lone surrogates; the message must not echo the value
        raise InvalidInput(f"{field} is not valid Unicode text", details={"field": field}) from None


def field_from_utf8(text: str) -> int:
    """Keccak-256 of the UTF-8 bytes, reduced into the scalar field."""
    return reduce_to_field(keccak256_int(_utf8(text, "text")))


def combine(email_hash: int, secret_hash: int) -> int:
    """Step 4: order-sensitive, email hash first."""
    return poseidon([email_hash, secret_hash])


@dataclass(frozen=True)
class LeafDerivation:
    """
    Result of the pipeline. `email_hash` and `secret_hash` are the private
    witness a credential holder feeds to the prover; only `leaf` is public.
    """

    email_hash: int
    secret_hash: int
    leaf: int

    @property
    def leaf_hex(self) -> str:
        return to_bytes32_hex(self.leaf)

    def circuit_inputs(self) -> Dict[str, str]:
        """snarkjs input.json for the leaf circuit (decimal strings)."""
        return {"emailHash": str(self.email_hash), "secretHash": str(self.secret_hash)}

    def __repr__(self) -> str:
        return f"LeafDerivation(leaf={self.leaf_hex})"


class Hasher:
    """Deterministic, stateless leaf derivation."""

    def derive(self, email: Optional[str], secret: Optional[str]) -> LeafDerivation:
        normalized = normalize_email(email)
        email_bytes = _utf8(normalized, "email")
        check_email_syntax(normalized)
        if not secret or not isinstance(secret, str):
            raise InvalidInput("secret is required", details={"field": "secret"})
        secret_bytes = _utf8(secret, "secret")

        email_hash = poseidon([reduce_to_field(keccak256_int(email_bytes))])
        secret_hash = poseidon([reduce_to_field(keccak256_int(secret_bytes))])
        return LeafDerivation(
            email_hash=email_hash,
            secret_hash=secret_hash,
            leaf=combine(email_hash, secret_hash),
        )

    def derive_leaf(self, email: Optional[str], secret: Optional[str]) -> str:
        return self.derive(email, secret).leaf_hex


_default_hasher = Hasher()


def derive_leaf(email: Optional[str], secret: Optional[str]) -> str:
    return _default_hasher.derive_leaf(email, secret)


__all__ = [
    "normalize_email",
    "check_email_syntax",
    "field_from_utf8",
    "combine",
    "LeafDerivation",
    "Hasher",
    "derive_leaf",
]
