"""
Keytree Canonical Hashing

Append-only byte accumulator producing one SHA-512 digest per logical
record, plus the digest helpers the sparse Merkle trie is built on.

Framing rules:
- Strings: 8-byte big-endian UTF-8 length, then the UTF-8 bytes
- Integers: 8-byte big-endian unsigned
- Booleans: a single 0 or 1 byte
- Raw buffers: written as-is

Bit addressing: bit ``i`` of a digest is ``(d[i // 8] >> (i % 8)) & 1``,
so the low bit of byte 0 comes first. Key hashing, audit-path depth
indexing and combination ordering all use this one convention.
"""

import hashlib
import struct
from typing import List, Union

from .encoding import decode, encode
from .exceptions import FormatError

HASH_LEN = 64
HASH_BITS = 8 * HASH_LEN

EMPTY_HASH = bytes(HASH_LEN)


class Hasher:
    """
    Ordered field writer over SHA-512.

    Two logically equal records must write their fields in the same
    order to hash identically.
    """

    def __init__(self):
        self._parts: List[bytes] = []

    def write(self, data: bytes) -> "Hasher":
        self._parts.append(bytes(data))
        return self

    def write_uint64(self, n: int) -> "Hasher":
        if not 0 <= n < 1 << 64:
            raise ValueError(f"Value out of uint64 range: {n}")
        return self.write(struct.pack(">Q", n))

    def write_bool(self, b: bool) -> "Hasher":
        return self.write(b"\x01" if b else b"\x00")

    def write_string(self, s: str) -> "Hasher":
        data = s.encode("utf-8")
        self.write_uint64(len(data))
        return self.write(data)

    def sum(self) -> bytes:
        return hashlib.sha512(b"".join(self._parts)).digest()


def hash_string(s: Union[str, bytes]) -> bytes:
    """Digest of the raw UTF-8 bytes of ``s``; maps a name to its trie key."""
    if isinstance(s, str):
        s = s.encode("utf-8")
    return Hasher().write(s).sum()


def combine_hashes(a: bytes, b: bytes) -> bytes:
    """
    Combine two child digests into a parent digest.

    Two empty children collapse to EMPTY_HASH, so empty subtrees stay
    empty at every depth.
    """
    if a == EMPTY_HASH and b == EMPTY_HASH:
        return EMPTY_HASH
    return Hasher().write(a).write(b).sum()


def get_bit(h: bytes, idx: int) -> int:
    return (h[idx // 8] >> (idx % 8)) & 1


def set_bit(h: bytes, idx: int, value: int) -> bytes:
    """Return a copy of ``h`` with bit ``idx`` set to ``value``."""
    out = bytearray(h)
    if value:
        out[idx // 8] |= 1 << (idx % 8)
    else:
        out[idx // 8] &= ~(1 << (idx % 8)) & 0xFF
    return bytes(out)


def first_difference(a: bytes, b: bytes) -> int:
    """Index of the first differing bit, or HASH_BITS if identical."""
    for byte_idx in range(HASH_LEN):
        diff = a[byte_idx] ^ b[byte_idx]
        if diff:
            # lowest set bit of the xor is the first differing bit
            return 8 * byte_idx + ((diff & -diff).bit_length() - 1)
    return HASH_BITS


def hash_to_string(h: bytes) -> str:
    return encode(h)


def hash_from_string(s: str) -> bytes:
    """
    Decode a bare base32 digest.

    Raises:
        FormatError: if the token is malformed or not HASH_LEN bytes
    """
    data = decode(s)
    if len(data) != HASH_LEN:
        raise FormatError(f"Wrong digest length: expected {HASH_LEN} bytes, got {len(data)}")
    return data
