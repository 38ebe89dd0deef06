"""
Keytree Token Encoding

Reversible encoding between raw byte strings and human-safe ASCII tokens,
plus the typed wrapper format "<tag>(<token>)" used for keys, signatures
and boxes.

The alphabet is RFC 4648 base32 bit packing over a lowercase alphabet that
drops the easily confused letters i, l, o and u. Padding is never emitted.
"""

import base64
import binascii

from .exceptions import FormatError

ALPHABET = "0123456789abcdefghjkmnpqrstvwxyz"
_RFC4648_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"

_TO_KEYTREE = str.maketrans(_RFC4648_ALPHABET, ALPHABET)
_FROM_KEYTREE = str.maketrans(ALPHABET, _RFC4648_ALPHABET)
_ALPHABET_SET = frozenset(ALPHABET)

# Wrapper tags
ED25519_PUBLIC = "ed25519-pub"
ED25519_PRIVATE = "ed25519-priv"
ED25519_SIGNATURE = "ed25519-sig"
BOX_PUBLIC = "box-pub"
BOX_PRIVATE = "box-priv"
BOX_BOX = "box-box"


def encode(data: bytes) -> str:
    """Encode bytes as an unpadded keytree base32 token."""
    token = base64.b32encode(bytes(data)).decode("ascii")
    return token.rstrip("=").translate(_TO_KEYTREE)


def decode(token: str) -> bytes:
    """
    Decode a keytree base32 token.

    Raises:
        FormatError: on symbols outside the alphabet, impossible lengths,
            or non-canonical input (non-zero trailing bits)
    """
    if not isinstance(token, str):
        raise FormatError(f"Expected token string, got {type(token).__name__}")

    bad = set(token) - _ALPHABET_SET
    if bad:
        raise FormatError(f"Invalid base32 symbols: {''.join(sorted(bad))!r}")

    padded = token.translate(_FROM_KEYTREE) + "=" * ((8 - len(token) % 8) % 8)
    try:
        data = base64.b32decode(padded)
    except binascii.Error as e:
        raise FormatError(f"Undecodable base32 token: {e}") from e

    if encode(data) != token:
        raise FormatError("Uncanonical base32 input")
    return data


def wrap(data: bytes, tag: str) -> str:
    """Wrap bytes as "<tag>(<token>)"."""
    return f"{tag}({encode(data)})"


def unwrap(wrapped: str, tag: str) -> bytes:
    """
    Unwrap a "<tag>(<token>)" string.

    Raises:
        FormatError: if the tag, the enclosing parentheses or the
            embedded token do not match
    """
    if not isinstance(wrapped, str):
        raise FormatError(f"Expected {tag} string, got {type(wrapped).__name__}")

    prefix = tag + "("
    if not wrapped.startswith(prefix) or not wrapped.endswith(")") or len(wrapped) < len(prefix) + 1:
        raise FormatError(f"Badly formatted {tag} string")

    return decode(wrapped[len(prefix):-1])


def unwrap_fixed(wrapped: str, tag: str, length: int) -> bytes:
    """Unwrap and require exactly ``length`` decoded bytes."""
    data = unwrap(wrapped, tag)
    if len(data) != length:
        raise FormatError(f"Incorrect {tag} length: expected {length} bytes, got {len(data)}")
    return data
