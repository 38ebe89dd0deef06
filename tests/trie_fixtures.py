"""
Reference sparse trie and signed-reply builders for tests.

Mirrors how a keytree server lays out its trie: a leaf sits at the
shallowest depth where it is unique, nodes with one leaf below collapse
onto it, and audit paths are extracted the way the server extracts them.
"""

from typing import Dict, Iterable, List, Optional, Tuple

from keytree.hashing import EMPTY_HASH, combine_hashes, first_difference, get_bit
from keytree.records import Entry, LookupReply, Root, SignedRoot, SignedTrieLookup, TrieLookup
from keytree.signing import KeyPair, sign


class Node:
    def __init__(self, children=None, leaf: Optional[Tuple[bytes, bytes]] = None):
        self.children = children or [None, None]
        self.leaf = leaf

    def hash(self) -> bytes:
        if self.leaf is not None:
            return combine_hashes(self.leaf[0], self.leaf[1])
        return combine_hashes(node_hash(self.children[0]), node_hash(self.children[1]))


def node_hash(n: Optional[Node]) -> bytes:
    if n is None:
        return EMPTY_HASH
    return n.hash()


def _merge(children) -> Optional[Node]:
    if children[0] is None and children[1] is None:
        return None
    if children[0] is None and children[1].leaf is not None:
        return children[1]
    if children[1] is None and children[0].leaf is not None:
        return children[0]
    return Node(children=list(children))


def _split(n: Optional[Node], idx: int) -> List[Optional[Node]]:
    children = [None, None]
    if n is not None:
        children = list(n.children)
        if n.leaf is not None:
            children[get_bit(n.leaf[0], idx)] = n
    return children


def _set(n: Optional[Node], key: bytes, idx: int, value: Optional[bytes]) -> Optional[Node]:
    if n is None or (n.leaf is not None and n.leaf[0] == key):
        if value is None:
            return None
        return Node(leaf=(key, value))

    children = _split(n, idx)
    bit = get_bit(key, idx)
    children[bit] = _set(children[bit], key, idx + 1, value)
    return _merge(children)


class SparseTrie:
    """Reference trie keyed by digests."""

    def __init__(self):
        self.root: Optional[Node] = None

    def set(self, key: bytes, value: Optional[bytes]) -> 'SparseTrie':
        self.root = _set(self.root, key, 0, value)
        return self

    def root_hash(self) -> bytes:
        return node_hash(self.root)

    def lookup(self, key: bytes) -> TrieLookup:
        path = TrieLookup(leaf_key=key, hashes={})
        _lookup(self.root, key, 0, path)
        return path


def _lookup(n: Optional[Node], key: bytes, idx: int, path: TrieLookup):
    if n is None:
        return None

    if n.leaf is not None:
        if n.leaf[0] == key:
            return n.leaf
        path.leaf_key = n.leaf[0]
        path.hashes[first_difference(n.leaf[0], key)] = n.leaf[1]
        return None

    bit = get_bit(key, idx)
    other = n.children[1 - bit]
    path.hashes[idx] = node_hash(other)

    found = _lookup(n.children[bit], key, idx + 1, path)
    if path.leaf_key == key and other is not None and other.leaf is not None:
        path.leaf_key = other.leaf[0]
        path.hashes[idx] = other.leaf[1]
    return found


def trie_from_entries(entries: Iterable[Entry]) -> SparseTrie:
    trie = SparseTrie()
    for entry in entries:
        trie.set(entry.name_hash(), entry.hash())
    return trie


def build_reply(
    trie: SparseTrie,
    entries: Dict[str, Entry],
    name: str,
    signers: Iterable[KeyPair],
    timestamp: int,
) -> LookupReply:
    """Build the reply an honest server would send for ``name``."""
    entry = entries.get(name)
    root = Root(root_hash=trie.root_hash(), timestamp=timestamp)
    path = trie.lookup(Entry(name=name).name_hash())

    lookups = {}
    for keypair in signers:
        lookups[keypair.public_key] = SignedTrieLookup(
            trie_lookup=TrieLookup(leaf_key=path.leaf_key, hashes=dict(path.hashes)),
            signed_root=SignedRoot(root=root, signature=sign(keypair.private_key, root)),
        )
    return LookupReply(entry=entry, signed_trie_lookups=lookups)
