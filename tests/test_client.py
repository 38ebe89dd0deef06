"""HTTP lookup client tests (transport mocked)."""

import unittest
from unittest import mock

import requests

from trie_fixtures import build_reply, trie_from_entries

from keytree import BadSignature, Entry, FormatError, TransportError, TrustConfig, generate_signing_keypair
from keytree.client import KeytreeClient

NOW = 1450000000
ALICE = "email:alice@example.com"


def _response(payload=None, status_error=None, json_error=None):
    resp = mock.Mock()
    if status_error is not None:
        resp.raise_for_status.side_effect = status_error
    if json_error is not None:
        resp.json.side_effect = json_error
    else:
        resp.json.return_value = payload
    return resp


class TestKeytreeClient(unittest.TestCase):

    def setUp(self):
        self.signers = [generate_signing_keypair() for _ in range(2)]
        self.trust = TrustConfig(keys=tuple(k.public_key for k in self.signers), threshold=2)
        self.entries = {ALICE: Entry(name=ALICE, keys={"ssh": "key"}, timestamp=NOW - 10)}
        self.trie = trie_from_entries(self.entries.values())
        self.session = mock.Mock(spec=requests.Session)
        self.client = KeytreeClient(
            self.trust,
            server_url="http://keytree.test/",
            session=self.session,
            max_signature_age=60,
        )

    def _reply_json(self, timestamp=NOW - 5):
        return build_reply(self.trie, self.entries, ALICE, self.signers, timestamp).to_dict()

    def test_lookup_verifies(self):
        self.session.get.return_value = _response(self._reply_json())
        entry = self.client.lookup(ALICE, now=NOW)
        self.assertEqual(entry, self.entries[ALICE])
        self.session.get.assert_called_once_with(
            "http://keytree.test/keytree/lookup",
            params={"name": ALICE},
            timeout=self.client.timeout,
        )

    def test_lookup_rejects_bad_reply(self):
        payload = self._reply_json()
        first = self.signers[0].public_key
        payload["SignedTrieLookups"][first]["SignedRoot"]["Signature"] = \
            payload["SignedTrieLookups"][self.signers[1].public_key]["SignedRoot"]["Signature"]
        self.session.get.return_value = _response(payload)
        with self.assertRaises(BadSignature):
            self.client.lookup(ALICE, now=NOW)

    def test_http_error(self):
        self.session.get.return_value = _response(status_error=requests.HTTPError("500"))
        with self.assertRaises(TransportError):
            self.client.fetch(ALICE)

    def test_connection_error(self):
        self.session.get.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(TransportError):
            self.client.fetch(ALICE)

    def test_non_json_body(self):
        self.session.get.return_value = _response(json_error=ValueError("no json"))
        with self.assertRaises(FormatError):
            self.client.fetch(ALICE)

    def test_fetch_does_not_verify(self):
        self.session.get.return_value = _response(self._reply_json(timestamp=0))
        reply = self.client.fetch(ALICE)
        self.assertEqual(reply.entry, self.entries[ALICE])


if __name__ == "__main__":
    unittest.main()
