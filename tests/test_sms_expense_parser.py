"""
End-to-end tests for the single-message parser.
"""

import unittest
from datetime import datetime, timezone
from decimal import Decimal

from sms_expense_engine import run_sms_expense_extraction
from sms_expense_engine.parser import SmsExpenseParser, millis_to_datetime
from sms_expense_engine.records import SmsMessage

SCENARIO_CARD = "INR 250.00 spent using XYZ Bank Card on 12-Jan-24 on ZOMATO"
SCENARIO_TRANSFER = "Rs 5000 trf to JOHN DOE Refno 998877"
SCENARIO_SIP = "Your SIP of Rs 2000 has been processed, folio 12345"

TS = 1705000000000  # 2024-01-11T19:06:40Z


class TestSmsExpenseParser(unittest.TestCase):
    """Test cases for SmsExpenseParser.parse."""

    def setUp(self):
        """Set up test fixtures."""
        self.parser = SmsExpenseParser(tz=timezone.utc)

    def test_card_spend_scenario(self):
        parsed = self.parser.parse(SCENARIO_CARD, TS)
        self.assertIsNotNone(parsed)
        record = parsed.record
        self.assertEqual(record.amount, Decimal("250.00"))
        self.assertEqual(record.merchant_name, "ZOMATO")
        self.assertEqual(record.category, "Food")
        self.assertEqual(record.source, "SMS")
        self.assertEqual(record.raw_text, SCENARIO_CARD)
        self.assertEqual(parsed.match_method, "catalog_exact")

    def test_transfer_scenario(self):
        parsed = self.parser.parse(SCENARIO_TRANSFER, TS)
        self.assertIsNotNone(parsed)
        self.assertEqual(parsed.record.amount, Decimal("5000.00"))
        self.assertEqual(parsed.record.merchant_name, "JOHN DOE")
        self.assertEqual(parsed.identity_key, "998877")

    def test_sip_scenario_rejected(self):
        self.assertIsNone(self.parser.parse(SCENARIO_SIP, TS))
        self.assertFalse(self.parser.is_expense_message(SCENARIO_SIP))

    def test_accepted_without_amount_skipped(self):
        self.assertIsNone(self.parser.parse("Amount debited from your account, txn pending", TS))

    def test_occurred_at_from_timestamp(self):
        parsed = self.parser.parse(SCENARIO_CARD, TS)
        self.assertEqual(
            parsed.record.occurred_at,
            datetime(2024, 1, 11, 19, 6, 40, tzinfo=timezone.utc),
        )

    def test_default_zone_is_aware_local(self):
        occurred_at = millis_to_datetime(TS)
        self.assertIsNotNone(occurred_at.tzinfo)
        self.assertEqual(occurred_at.timestamp(), TS / 1000)

    def test_parse_message(self):
        parsed = self.parser.parse_message(SmsMessage(body=SCENARIO_TRANSFER, timestamp_millis=TS))
        self.assertEqual(parsed.identity_key, "998877")

    def test_record_is_immutable(self):
        parsed = self.parser.parse(SCENARIO_CARD, TS)
        with self.assertRaises(Exception):
            parsed.record.amount = Decimal("1.00")

    def test_to_dict(self):
        data = self.parser.parse(SCENARIO_CARD, TS).record.to_dict()
        self.assertEqual(data["amount"], 250.0)
        self.assertEqual(data["occurred_at"], "2024-01-11T19:06:40+00:00")

    def test_describe_rejected(self):
        result = self.parser.describe(SCENARIO_SIP, TS)
        self.assertFalse(result["accepted"])
        self.assertEqual(result["gate_rule"], "portfolio_update")
        self.assertIsNone(result["amount"])

    def test_describe_accepted(self):
        result = self.parser.describe(SCENARIO_CARD, TS)
        self.assertTrue(result["accepted"])
        self.assertEqual(result["merchant_rule"], "card_date_anchor")
        self.assertEqual(result["category"], "Food")
        self.assertEqual(result["amount"], 250.0)


class TestRunSmsExpenseExtraction(unittest.TestCase):
    """Test cases for the one-shot entry point."""

    def test_dedup_and_counts(self):
        result = run_sms_expense_extraction([
            {"body": SCENARIO_TRANSFER, "timestamp_millis": TS},
            {"body": SCENARIO_TRANSFER, "timestamp_millis": TS + 60000},
            {"body": SCENARIO_SIP, "timestamp_millis": TS},
            SmsMessage(body=SCENARIO_CARD, timestamp_millis=TS),
        ])
        self.assertEqual(result["total_messages"], 4)
        self.assertEqual(result["accepted"], 3)
        self.assertEqual(result["duplicates"], 1)
        self.assertEqual(result["rejected"], 1)
        self.assertEqual(len(result["expenses"]), 2)
        self.assertEqual(result["expenses"][0]["identity_key"], "998877")


if __name__ == "__main__":
    unittest.main()
