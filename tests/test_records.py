"""
Record parsing tests.

Lookup replies arrive as JSON from an untrusted server; malformed
documents must be rejected at parse time, never partially accepted.
"""

import unittest

from keytree import (
    EMPTY_HASH,
    Entry,
    FormatError,
    LookupReply,
    Root,
    TrieLookup,
    hash_string,
    hash_to_string,
)


def _reply_dict():
    return {
        "Entry": {
            "Name": "email:alice@example.com",
            "Keys": {"ssh": "ssh-ed25519 AAAA"},
            "Timestamp": 1450000000,
            "InRecovery": False,
        },
        "SignedTrieLookups": {
            "ed25519-pub(26wj522ncyprkc0t9yr1e1cz2szempbddkay02qqqxqkjnkbnygg)": {
                "TrieLookup": {
                    "Hashes": {"3": hash_to_string(hash_string("sibling"))},
                    "LeafKey": hash_to_string(hash_string("email:alice@example.com")),
                },
                "SignedRoot": {
                    "Root": {"RootHash": hash_to_string(hash_string("root")), "Timestamp": 1450000005},
                    "Signature": "ed25519-sig(00)",
                },
            }
        },
    }


class TestEntryParsing(unittest.TestCase):

    def test_round_trip(self):
        data = _reply_dict()["Entry"]
        entry = Entry.from_dict(data)
        self.assertEqual(entry.name, "email:alice@example.com")
        self.assertEqual(entry.keys, {"ssh": "ssh-ed25519 AAAA"})
        self.assertEqual(entry.to_dict(), data)

    def test_null_keys(self):
        entry = Entry.from_dict({"Name": "test:x", "Keys": None, "Timestamp": 1, "InRecovery": False})
        self.assertEqual(entry.keys, {})

    def test_missing_name(self):
        with self.assertRaises(FormatError):
            Entry.from_dict({"Keys": {}, "Timestamp": 1})

    def test_bad_timestamp(self):
        for bad in [-1, 1 << 64, "1", 1.5, True]:
            with self.assertRaises(FormatError):
                Entry.from_dict({"Name": "test:x", "Timestamp": bad})

    def test_bad_keys(self):
        with self.assertRaises(FormatError):
            Entry.from_dict({"Name": "test:x", "Keys": {"ssh": 1}})


class TestTrieLookupParsing(unittest.TestCase):

    def test_sparse_object(self):
        lookup = TrieLookup.from_dict(_reply_dict()["SignedTrieLookups"][
            "ed25519-pub(26wj522ncyprkc0t9yr1e1cz2szempbddkay02qqqxqkjnkbnygg)"]["TrieLookup"])
        self.assertEqual(lookup.sibling(3), hash_string("sibling"))
        self.assertEqual(lookup.sibling(0), EMPTY_HASH)
        self.assertEqual(lookup.sibling(511), EMPTY_HASH)

    def test_array_with_holes(self):
        lookup = TrieLookup.from_dict({
            "Hashes": [None, hash_to_string(hash_string("one")), None],
            "LeafKey": hash_to_string(EMPTY_HASH),
        })
        self.assertEqual(lookup.hashes, {1: hash_string("one")})

    def test_missing_hashes(self):
        lookup = TrieLookup.from_dict({"LeafKey": hash_to_string(EMPTY_HASH)})
        self.assertEqual(lookup.hashes, {})

    def test_depth_out_of_range(self):
        for depth in ["-1", "512", "x"]:
            with self.assertRaises(FormatError):
                TrieLookup.from_dict({
                    "Hashes": {depth: hash_to_string(EMPTY_HASH)},
                    "LeafKey": hash_to_string(EMPTY_HASH),
                })

    def test_bad_digest(self):
        with self.assertRaises(FormatError):
            TrieLookup.from_dict({"Hashes": {}, "LeafKey": "04106"})

    def test_to_dict_drops_empty_depths(self):
        lookup = TrieLookup(leaf_key=EMPTY_HASH, hashes={0: EMPTY_HASH, 5: hash_string("x")})
        self.assertEqual(list(lookup.to_dict()["Hashes"]), ["5"])


class TestLookupReplyParsing(unittest.TestCase):

    def test_round_trip(self):
        data = _reply_dict()
        reply = LookupReply.from_dict(data)
        self.assertEqual(reply.to_dict(), data)

    def test_null_entry(self):
        data = _reply_dict()
        data["Entry"] = None
        self.assertIsNone(LookupReply.from_dict(data).entry)

    def test_missing_signed_root(self):
        data = _reply_dict()
        for stl in data["SignedTrieLookups"].values():
            del stl["SignedRoot"]
        with self.assertRaises(FormatError):
            LookupReply.from_dict(data)

    def test_missing_root(self):
        data = _reply_dict()
        for stl in data["SignedTrieLookups"].values():
            stl["SignedRoot"]["Root"] = None
        with self.assertRaises(FormatError):
            LookupReply.from_dict(data)

    def test_missing_trie_lookup(self):
        data = _reply_dict()
        for stl in data["SignedTrieLookups"].values():
            stl["TrieLookup"] = None
        with self.assertRaises(FormatError):
            LookupReply.from_dict(data)

    def test_not_an_object(self):
        with self.assertRaises(FormatError):
            LookupReply.from_dict([])

    def test_root_round_trip(self):
        root = Root(root_hash=hash_string("r"), timestamp=7)
        self.assertEqual(Root.from_dict(root.to_dict()), root)


if __name__ == "__main__":
    unittest.main()
