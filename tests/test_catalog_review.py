"""
Tests for catalog review suggestions.
"""

import unittest
from datetime import datetime, timezone
from decimal import Decimal

from sms_expense_engine.records import ExpenseRecord, ParsedMessage
from sms_expense_engine.reporting.review import CatalogReviewer


def parsed(merchant, category):
    record = ExpenseRecord(
        amount=Decimal("100.00"),
        category=category,
        occurred_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        raw_text=f"Rs 100 paid to {merchant}",
        merchant_name=merchant,
    )
    return ParsedMessage(record=record, identity_key=merchant)


class TestCatalogReviewer(unittest.TestCase):
    """Test cases for CatalogReviewer."""

    def setUp(self):
        """Set up test fixtures."""
        self.reviewer = CatalogReviewer()

    def test_close_name_suggested(self):
        suggestion = self.reviewer.suggest("GROWW PAYMENTS LTD")
        self.assertIsNotNone(suggestion)
        self.assertEqual(suggestion.suggested_category, "Investment")
        self.assertEqual(suggestion.score, 100.0)

    def test_unrelated_name_not_suggested(self):
        self.assertIsNone(self.reviewer.suggest("RAMESH KUMAR"))

    def test_unknown_skipped(self):
        self.assertIsNone(self.reviewer.suggest("Unknown"))
        self.assertIsNone(self.reviewer.suggest(None))

    def test_review_only_misc_once_per_merchant(self):
        suggestions = self.reviewer.review([
            parsed("GROWW PAYMENTS LTD", "Misc"),
            parsed("GROWW PAYMENTS LTD", "Misc"),
            parsed("ZOMATO", "Food"),
        ])
        self.assertEqual(len(suggestions), 1)
        self.assertEqual(suggestions[0].merchant_name, "GROWW PAYMENTS LTD")


if __name__ == "__main__":
    unittest.main()
