"""
Tests for the watermark-driven sync orchestrator.
"""

import threading
import unittest

from sms_expense_engine.records import SmsMessage
from sms_expense_engine.sync.orchestrator import (
    ExpenseStoreError,
    MessageSourceUnavailableError,
    SyncCancelledError,
    SyncInProgressError,
    SyncOrchestrator,
    SyncState,
)
from sms_expense_engine.sync.sources import InMemoryMessageSource
from sms_expense_engine.sync.stores import InMemoryExpenseStore, InMemoryWatermarkStore

CARD_SPEND = "INR 250.00 spent using XYZ Bank Card on 12-Jan-24 on ZOMATO"
TRANSFER = "Rs 5000 trf to JOHN DOE Refno 998877"
SIP_UPDATE = "Your SIP of Rs 2000 has been processed, folio 12345"

NOW = 1_000_000
KEY = "last_sms_sync"


class UnavailableSource:
    def fetch_messages(self, after_timestamp):
        raise MessageSourceUnavailableError("no SMS permission")


class FlakyExpenseStore(InMemoryExpenseStore):
    """Fails the first insert, accepts the rest."""

    def __init__(self):
        super().__init__()
        self.calls = 0

    def insert(self, record):
        self.calls += 1
        if self.calls == 1:
            raise ExpenseStoreError("disk full")
        return super().insert(record)


class TestSyncOrchestrator(unittest.TestCase):
    """Test cases for SyncOrchestrator.run_sync."""

    def setUp(self):
        """Set up test fixtures."""
        self.watermarks = InMemoryWatermarkStore()
        self.expenses = InMemoryExpenseStore()

    def _orchestrator(self, source, expense_store=None):
        return SyncOrchestrator(
            source=source,
            watermark_store=self.watermarks,
            expense_store=expense_store or self.expenses,
            clock=lambda: NOW,
        )

    def test_watermark_moves_to_pass_start(self):
        """Watermark 0, messages at 10 and 20, only the second accepted."""
        source = InMemoryMessageSource([
            SmsMessage(body=SIP_UPDATE, timestamp_millis=10),
            SmsMessage(body=CARD_SPEND, timestamp_millis=20),
        ])
        result = self._orchestrator(source).run_sync()

        self.assertEqual(result.messages_scanned, 2)
        self.assertEqual(len(result.records), 1)
        self.assertEqual(result.inserted, 1)
        self.assertEqual(self.watermarks.get(KEY), NOW)
        self.assertEqual(result.new_watermark, NOW)
        self.assertTrue(result.watermark_advanced)

    def test_zero_acceptances_still_advance(self):
        source = InMemoryMessageSource([SmsMessage(body=SIP_UPDATE, timestamp_millis=10)])
        result = self._orchestrator(source).run_sync()
        self.assertEqual(len(result.records), 0)
        self.assertEqual(self.watermarks.get(KEY), NOW)

    def test_only_messages_after_watermark(self):
        self.watermarks.put(KEY, 15)
        source = InMemoryMessageSource([
            SmsMessage(body=CARD_SPEND, timestamp_millis=10),
            SmsMessage(body=TRANSFER, timestamp_millis=20),
        ])
        result = self._orchestrator(source).run_sync()
        self.assertEqual(result.previous_watermark, 15)
        self.assertEqual(result.messages_scanned, 1)
        self.assertEqual(result.expense_records[0].merchant_name, "JOHN DOE")

    def test_in_pass_dedup(self):
        source = InMemoryMessageSource([
            SmsMessage(body=TRANSFER, timestamp_millis=30),
            SmsMessage(body=TRANSFER, timestamp_millis=40),
        ])
        result = self._orchestrator(source).run_sync()
        self.assertEqual(result.messages_accepted, 2)
        self.assertEqual(result.duplicates_in_pass, 1)
        self.assertEqual(len(result.records), 1)

    def test_storage_dedup_across_passes(self):
        source = InMemoryMessageSource([SmsMessage(body=CARD_SPEND, timestamp_millis=20)])
        orchestrator = self._orchestrator(source)
        orchestrator.run_sync()
        self.watermarks.put(KEY, 0)  # manual reset
        result = orchestrator.run_sync()
        self.assertEqual(result.inserted, 0)
        self.assertEqual(result.duplicates_ignored, 1)
        self.assertEqual(len(self.expenses.all_expenses()), 1)

    def test_persistence_failure_does_not_block_batch(self):
        source = InMemoryMessageSource([
            SmsMessage(body=CARD_SPEND, timestamp_millis=20),
            SmsMessage(body=TRANSFER, timestamp_millis=30),
        ])
        store = FlakyExpenseStore()
        result = self._orchestrator(source, expense_store=store).run_sync()
        self.assertEqual(len(result.errors), 1)
        self.assertEqual(result.errors[0].error_message, "disk full")
        self.assertEqual(result.inserted, 1)
        self.assertEqual(self.watermarks.get(KEY), NOW)

    def test_source_unavailable_keeps_watermark(self):
        self.watermarks.put(KEY, 5)
        result = self._orchestrator(UnavailableSource()).run_sync()
        self.assertTrue(result.source_unavailable)
        self.assertFalse(result.watermark_advanced)
        self.assertEqual(self.watermarks.get(KEY), 5)
        self.assertEqual(result.records, [])

    def test_cancellation_keeps_watermark(self):
        source = InMemoryMessageSource([SmsMessage(body=CARD_SPEND, timestamp_millis=20)])
        orchestrator = self._orchestrator(source)
        cancel = threading.Event()
        cancel.set()
        with self.assertRaises(SyncCancelledError):
            orchestrator.run_sync(cancel_event=cancel)
        self.assertIsNone(self.watermarks.get(KEY))
        self.assertEqual(orchestrator.state, SyncState.IDLE)

    def test_single_flight_guard(self):
        class ReentrantSource:
            def __init__(self):
                self.error = None
                self.state = None

            def fetch_messages(self, after_timestamp):
                self.state = orchestrator.state
                try:
                    orchestrator.run_sync()
                except SyncInProgressError as e:
                    self.error = e
                return []

        source = ReentrantSource()
        orchestrator = self._orchestrator(source)
        orchestrator.run_sync()

        self.assertIsInstance(source.error, SyncInProgressError)
        self.assertEqual(source.state, SyncState.SCANNING_MESSAGES)
        self.assertEqual(orchestrator.state, SyncState.IDLE)

    def test_messages_served_newest_first(self):
        source = InMemoryMessageSource([
            SmsMessage(body="a", timestamp_millis=10),
            SmsMessage(body="b", timestamp_millis=30),
            {"body": "c", "timestamp_millis": 20},
        ])
        self.assertEqual([m.timestamp_millis for m in source.fetch_messages(0)], [30, 20, 10])


if __name__ == "__main__":
    unittest.main()
