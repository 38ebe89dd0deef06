"""
Keytree Records

Typed views of the JSON documents a keytree server hands out, and the
canonical field order each record is hashed in.

Each signable record carries a stable, versioned type tag. The tag is
never mixed into the record hash; the signing layer appends it to the
digest as a domain separator.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .exceptions import FormatError
from .hashing import (
    EMPTY_HASH,
    HASH_BITS,
    Hasher,
    hash_from_string,
    hash_string,
    hash_to_string,
)

ENTRY_TYPE = "github.com/jellevandenhooff/keytree.Entry-0.4"
ROOT_TYPE = "github.com/jellevandenhooff/keytree.Root-0.1"


def _require(data: Any, key: str, what: str) -> Any:
    if not isinstance(data, dict):
        raise FormatError(f"Missing {what}")
    if data.get(key) is None:
        raise FormatError(f"Missing {key} in {what}")
    return data[key]


def _uint64(value: Any, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value < 1 << 64:
        raise FormatError(f"{what} must be an unsigned 64-bit integer")
    return value


@dataclass
class Entry:
    """
    Authoritative key-binding record for a name.

    Fields:
    - name: The looked-up name (e.g. "email:alice@example.com")
    - keys: Key name to key value bindings
    - timestamp: Unix seconds
    - in_recovery: Whether the record is being recovered
    """
    name: str
    keys: Dict[str, str] = field(default_factory=dict)
    timestamp: int = 0
    in_recovery: bool = False

    SIGNING_TYPE = ENTRY_TYPE

    def signing_type_name(self) -> str:
        return self.SIGNING_TYPE

    def hash(self) -> bytes:
        """
        Canonical digest.

        Keys are written in ascending order of key name, so the digest
        does not depend on mapping insertion order.
        """
        h = Hasher()
        h.write_string(self.name)

        names = sorted(self.keys)
        h.write_uint64(len(names))
        for name in names:
            h.write_string(name)
            h.write_string(self.keys[name])

        h.write_uint64(self.timestamp)
        h.write_bool(self.in_recovery)
        return h.sum()

    def name_hash(self) -> bytes:
        """Trie key this entry is stored under."""
        return hash_string(self.name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Name": self.name,
            "Keys": dict(self.keys),
            "Timestamp": self.timestamp,
            "InRecovery": self.in_recovery,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Entry':
        name = _require(data, "Name", "entry")
        if not isinstance(name, str):
            raise FormatError("Entry Name must be a string")

        keys = data.get("Keys") or {}
        if not isinstance(keys, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in keys.items()
        ):
            raise FormatError("Entry Keys must map strings to strings")

        in_recovery = data.get("InRecovery", False)
        if not isinstance(in_recovery, bool):
            raise FormatError("Entry InRecovery must be a boolean")

        return cls(
            name=name,
            keys=dict(keys),
            timestamp=_uint64(data.get("Timestamp", 0), "Entry Timestamp"),
            in_recovery=in_recovery,
        )


def entry_hash(entry: Optional[Entry]) -> bytes:
    """Digest of an entry; a missing entry hashes to EMPTY_HASH."""
    if entry is None:
        return EMPTY_HASH
    return entry.hash()


@dataclass
class Root:
    """Commitment to the entire trie at a point in time."""
    root_hash: bytes
    timestamp: int

    SIGNING_TYPE = ROOT_TYPE

    def signing_type_name(self) -> str:
        return self.SIGNING_TYPE

    def hash(self) -> bytes:
        h = Hasher()
        h.write(self.root_hash)
        h.write_uint64(self.timestamp)
        return h.sum()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "RootHash": hash_to_string(self.root_hash),
            "Timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Root':
        return cls(
            root_hash=hash_from_string(_require(data, "RootHash", "root")),
            timestamp=_uint64(_require(data, "Timestamp", "root"), "Root Timestamp"),
        )


@dataclass
class SignedRoot:
    """A root plus one trusted key's detached signature over it."""
    root: Root
    signature: str

    def to_dict(self) -> Dict[str, Any]:
        return {"Root": self.root.to_dict(), "Signature": self.signature}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SignedRoot':
        signature = _require(data, "Signature", "signed root")
        if not isinstance(signature, str):
            raise FormatError("Signature must be a string")
        return cls(
            root=Root.from_dict(_require(data, "Root", "signed root")),
            signature=signature,
        )


@dataclass
class TrieLookup:
    """
    Audit path for one query key.

    ``hashes`` maps trie depth to sibling digest; depths that are not
    present are empty subtrees. ``leaf_key`` is the key of the leaf
    actually stored where the path ends.
    """
    leaf_key: bytes
    hashes: Dict[int, bytes] = field(default_factory=dict)

    def sibling(self, depth: int) -> bytes:
        return self.hashes.get(depth, EMPTY_HASH)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Hashes": {
                str(depth): hash_to_string(h)
                for depth, h in sorted(self.hashes.items())
                if h != EMPTY_HASH
            },
            "LeafKey": hash_to_string(self.leaf_key),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TrieLookup':
        leaf_key = hash_from_string(_require(data, "LeafKey", "trie lookup"))
        return cls(leaf_key=leaf_key, hashes=_parse_hashes(data.get("Hashes")))


def _parse_hashes(raw: Union[None, Dict[str, Any], List[Any]]) -> Dict[int, bytes]:
    """
    Normalize sparse sibling hashes to a depth mapping.

    Servers send an object keyed by decimal depth; arrays with null
    holes are accepted as well.
    """
    if raw is None:
        return {}

    if isinstance(raw, list):
        items = [(depth, value) for depth, value in enumerate(raw)]
    elif isinstance(raw, dict):
        items = []
        for key, value in raw.items():
            try:
                items.append((int(key), value))
            except (TypeError, ValueError):
                raise FormatError(f"Bad trie depth: {key!r}") from None
    else:
        raise FormatError("Hashes must be an object or an array")

    hashes = {}
    for depth, value in items:
        if not 0 <= depth < HASH_BITS:
            raise FormatError(f"Trie depth out of range: {depth}")
        if value is None or value == "":
            continue
        hashes[depth] = hash_from_string(value)
    return hashes


@dataclass
class SignedTrieLookup:
    trie_lookup: TrieLookup
    signed_root: SignedRoot

    def to_dict(self) -> Dict[str, Any]:
        return {
            "SignedRoot": self.signed_root.to_dict(),
            "TrieLookup": self.trie_lookup.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SignedTrieLookup':
        return cls(
            trie_lookup=TrieLookup.from_dict(_require(data, "TrieLookup", "signed trie lookup")),
            signed_root=SignedRoot.from_dict(_require(data, "SignedRoot", "signed trie lookup")),
        )


@dataclass
class LookupReply:
    """
    A server's answer to a name lookup.

    ``entry`` is None when the reply claims no record exists for the
    name; the audit paths then prove absence.
    """
    entry: Optional[Entry]
    signed_trie_lookups: Dict[str, SignedTrieLookup] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Entry": self.entry.to_dict() if self.entry is not None else None,
            "SignedTrieLookups": {
                key: stl.to_dict() for key, stl in self.signed_trie_lookups.items()
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LookupReply':
        if not isinstance(data, dict):
            raise FormatError("Missing lookup reply")

        raw_entry = data.get("Entry")
        entry = Entry.from_dict(raw_entry) if raw_entry is not None else None

        raw_lookups = data.get("SignedTrieLookups") or {}
        if not isinstance(raw_lookups, dict):
            raise FormatError("SignedTrieLookups must be an object")

        return cls(
            entry=entry,
            signed_trie_lookups={
                key: SignedTrieLookup.from_dict(value) for key, value in raw_lookups.items()
            },
        )
