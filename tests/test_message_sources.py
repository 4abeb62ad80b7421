"""
Tests for message sources and export normalization.
"""

import json
import os
import tempfile
import unittest

import pandas as pd

from sms_expense_engine.records import SmsMessage
from sms_expense_engine.sync.orchestrator import MessageSourceUnavailableError
from sms_expense_engine.sync.sources import (
    CombinedMessageSource,
    ExportFileMessageSource,
    InMemoryMessageSource,
    InvalidExportStructureError,
    normalize_message_rows,
    read_export,
)


class TestExportFileMessageSource(unittest.TestCase):
    """Test cases for ExportFileMessageSource."""

    def setUp(self):
        """Set up test fixtures."""
        self.tmpdir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmpdir.cleanup()

    def _write(self, name, text):
        path = os.path.join(self.tmpdir.name, name)
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
        return path

    def test_json_list(self):
        path = self._write("sms.json", json.dumps([
            {"body": "Rs 100 debited", "timestamp_millis": 10, "address": "HDFCBK"},
            {"body": "Rs 200 debited", "timestamp_millis": 30},
            {"body": "Rs 300 debited", "timestamp_millis": 20},
        ]))
        messages = ExportFileMessageSource(path).fetch_messages(15)
        self.assertEqual([m.timestamp_millis for m in messages], [30, 20])

    def test_json_wrapped_with_aliases(self):
        path = self._write("sms.json", json.dumps({
            "messages": [{"message": "Rs 100 debited", "date": 1705000000000, "sender": "AX-SBI"}]
        }))
        messages = ExportFileMessageSource(path).fetch_messages(0)
        self.assertEqual(messages[0].body, "Rs 100 debited")
        self.assertEqual(messages[0].timestamp_millis, 1705000000000)
        self.assertEqual(messages[0].address, "AX-SBI")

    def test_csv(self):
        path = self._write("sms.csv", "address,body,date\nVK-HDFC,Rs 50 spent,1705000000000\n,,5\n")
        messages = ExportFileMessageSource(path).fetch_messages(0)
        self.assertEqual(len(messages), 1)
        self.assertEqual(messages[0].address, "VK-HDFC")

    def test_jsonl(self):
        path = self._write(
            "sms.jsonl",
            '{"text": "Rs 1 paid", "time": 1}\n\n{"text": "Rs 2 paid", "time": 2}\n',
        )
        self.assertEqual(len(ExportFileMessageSource(path).fetch_messages(0)), 2)

    def test_missing_file_unavailable(self):
        source = ExportFileMessageSource(os.path.join(self.tmpdir.name, "missing.json"))
        with self.assertRaises(MessageSourceUnavailableError):
            source.fetch_messages(0)

    def test_row_without_timestamp_skipped(self):
        path = self._write("sms.json", json.dumps([
            {"body": "Rs 5000 trf to JOHN DOE Refno 998877", "timestamp_millis": 1705000000000},
            {"body": "Rs 20 paid", "timestamp_millis": None},
        ]))
        messages = ExportFileMessageSource(path).fetch_messages(0)
        self.assertEqual(len(messages), 1)
        self.assertEqual(messages[0].timestamp_millis, 1705000000000)

    def test_malformed_file_unavailable(self):
        path = self._write("sms.json", "{not json")
        with self.assertRaises(MessageSourceUnavailableError):
            ExportFileMessageSource(path).fetch_messages(0)


class TestNormalization(unittest.TestCase):
    """Test cases for read_export / normalize_message_rows."""

    def test_missing_columns(self):
        with self.assertRaises(InvalidExportStructureError):
            normalize_message_rows(pd.DataFrame([{"foo": 1}]))

    def test_date_string_timestamp(self):
        df = pd.DataFrame([{"body": "Rs 10 paid", "date": "2024-01-12T10:00:00+00:00"}])
        self.assertEqual(normalize_message_rows(df)[0].timestamp_millis, 1705053600000)

    def test_blank_csv_timestamp_skipped(self):
        df = read_export(b"body,date\nRs 10 paid,\nRs 20 paid,1705000000000\n", "sms.csv")
        messages = normalize_message_rows(df)
        self.assertEqual([m.body for m in messages], ["Rs 20 paid"])

    def test_invalid_timestamp(self):
        df = pd.DataFrame([{"body": "Rs 10 paid", "date": "not a date"}])
        with self.assertRaises(ValueError):
            normalize_message_rows(df)

    def test_json_root_must_be_list(self):
        with self.assertRaises(InvalidExportStructureError):
            read_export(b'{"foo": 1}', "export.json")

    def test_unsupported_extension(self):
        with self.assertRaises(ValueError):
            read_export(b"hello", "export.txt")


class TestInMemoryMessageSource(unittest.TestCase):

    def test_add(self):
        source = InMemoryMessageSource()
        source.add(SmsMessage(body="x", timestamp_millis=5))
        self.assertEqual(len(source.fetch_messages(4)), 1)
        self.assertEqual(source.fetch_messages(5), [])


class TestCombinedMessageSource(unittest.TestCase):

    def test_merges_newest_first(self):
        source = CombinedMessageSource([
            InMemoryMessageSource([{"body": "a", "timestamp_millis": 10}]),
            InMemoryMessageSource([
                {"body": "b", "timestamp_millis": 30},
                {"body": "c", "timestamp_millis": 5},
            ]),
        ])
        self.assertEqual([m.body for m in source.fetch_messages(6)], ["b", "a"])

    def test_unavailable_member_fails_fetch(self):
        source = CombinedMessageSource([
            InMemoryMessageSource([{"body": "a", "timestamp_millis": 10}]),
            ExportFileMessageSource("/nonexistent/sms.json"),
        ])
        with self.assertRaises(MessageSourceUnavailableError):
            source.fetch_messages(0)


if __name__ == "__main__":
    unittest.main()
