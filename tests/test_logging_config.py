"""Structured logging tests."""

import json
import logging
import unittest

from keytree.logging_config import StructuredFormatter, VerificationAuditLogger, lookup_id_var, set_lookup_id


class TestStructuredFormatter(unittest.TestCase):

    def tearDown(self):
        lookup_id_var.set("")

    def _record(self, msg="hello"):
        return logging.LogRecord("keytree.test", logging.INFO, __file__, 10, msg, (), None)

    def test_json_fields(self):
        data = json.loads(StructuredFormatter().format(self._record()))
        self.assertEqual(data["level"], "INFO")
        self.assertEqual(data["logger"], "keytree.test")
        self.assertEqual(data["message"], "hello")
        self.assertNotIn("lookup_id", data)

    def test_lookup_id_included(self):
        lookup_id = set_lookup_id("lookup-1")
        self.assertEqual(lookup_id, "lookup-1")
        data = json.loads(StructuredFormatter().format(self._record()))
        self.assertEqual(data["lookup_id"], "lookup-1")

    def test_generated_lookup_id(self):
        self.assertTrue(set_lookup_id())

    def test_extra_fields(self):
        record = self._record()
        record.extra_fields = {"event_type": "LOOKUP_VERIFIED", "threshold": 2}
        data = json.loads(StructuredFormatter().format(record))
        self.assertEqual(data["event_type"], "LOOKUP_VERIFIED")
        self.assertEqual(data["threshold"], 2)


class TestAuditLogger(unittest.TestCase):

    def test_event_fields(self):
        audit = VerificationAuditLogger("keytree.audit.test")
        with self.assertLogs("keytree.audit.test", level="INFO") as logs:
            audit.lookup_fetched("test:x", "http://keytree.test", 3)
        record = logs.records[0]
        self.assertEqual(record.extra_fields["event_type"], "LOOKUP_FETCHED")
        self.assertEqual(record.extra_fields["signers"], 3)


if __name__ == "__main__":
    unittest.main()
