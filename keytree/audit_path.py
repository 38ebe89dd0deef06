"""
Sparse Merkle audit-path verification.

Folds an untrusted audit path back up to the root digest it commits to.
The same fold proves inclusion (a non-empty leaf value) and absence
(``EMPTY_HASH`` as the leaf value).

Trie shape this relies on: a leaf sits at the shallowest depth where its
key diverges from every other key, a node with a single leaf below it
collapses to that leaf, and two empty children combine to EMPTY_HASH.
"""

from .hashing import EMPTY_HASH, HASH_BITS, combine_hashes, first_difference, get_bit
from .records import TrieLookup


def leaf_hash(key: bytes, value: bytes) -> bytes:
    return combine_hashes(key, value)


def complete_lookup(lookup: TrieLookup, key: bytes, value: bytes) -> bytes:
    """
    Recompute the root digest an audit path is consistent with.

    Args:
        lookup: Audit path (sibling digest per depth plus the key of the
            leaf the path ends at)
        key: Query key, the hash of the looked-up name
        value: Hash of the claimed leaf contents, or EMPTY_HASH to prove
            that no leaf exists for ``key``

    Returns:
        Reconstructed root digest
    """
    if value == EMPTY_HASH:
        current = EMPTY_HASH
        is_leaf = False
    else:
        current = leaf_hash(key, value)
        is_leaf = True

    # HASH_BITS when key == leaf_key, so the branch below never fires
    leaf_idx = first_difference(key, lookup.leaf_key)

    for i in range(HASH_BITS - 1, -1, -1):
        sibling = lookup.sibling(i)

        if i == leaf_idx:
            sibling = leaf_hash(lookup.leaf_key, sibling)
            if current == EMPTY_HASH:
                current = sibling
                is_leaf = True
                continue

        # a lone leaf floats up through empty levels
        if sibling == EMPTY_HASH and is_leaf:
            continue

        if get_bit(key, i) == 0:
            current = combine_hashes(current, sibling)
        else:
            current = combine_hashes(sibling, current)
        is_leaf = False

    return current
