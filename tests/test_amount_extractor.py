"""
Tests for amount extraction.
"""

import unittest
from decimal import Decimal

from sms_expense_engine.extraction.amount import extract_amount, parse_amount


class TestAmountExtractor(unittest.TestCase):
    """Test cases for extract_amount."""

    def test_currency_prefix(self):
        self.assertEqual(extract_amount("Rs.500 debited from HDFC Bank a/c"), Decimal("500.00"))

    def test_scenario_card_spend(self):
        body = "INR 250.00 spent using XYZ Bank Card on 12-Jan-24 on ZOMATO"
        self.assertEqual(extract_amount(body), Decimal("250.00"))

    def test_whole_number_not_truncated(self):
        """'5000' parses in full, never as '500'."""
        self.assertEqual(extract_amount("Rs 5000 trf to JOHN DOE Refno 998877"), Decimal("5000.00"))

    def test_rupee_symbol(self):
        self.assertEqual(extract_amount("₹450 spent at BLINKIT"), Decimal("450.00"))

    def test_lakh_grouping(self):
        self.assertEqual(extract_amount("INR 1,00,000 transferred to savings"), Decimal("100000.00"))

    def test_available_limit_ignored(self):
        """The debit wins over an 'Avl Limit' amount in the same message."""
        body = (
            "Rs.1,250.00 spent on HDFC Bank Card XX1234 at AMAZON on 12-01-24. "
            "Avl Limit: Rs.50,000"
        )
        self.assertEqual(extract_amount(body), Decimal("1250.00"))

    def test_adjacent_limit_does_not_hide_debit(self):
        self.assertEqual(extract_amount("Rs.500 spent. Avl Limit Rs.50000"), Decimal("500.00"))
        self.assertEqual(
            extract_amount("INR 500.00 debited. Avl Limit INR 50,000"), Decimal("500.00")
        )

    def test_balance_clause_after_comma(self):
        """A keyword introducing the next amount leaves the debit alone."""
        self.assertEqual(
            extract_amount("Rs 500 debited from a/c XX12, Avl Bal Rs 50"), Decimal("500.00")
        )

    def test_trailing_keyword_disqualifies(self):
        body = "Rs 5,000 available. Rs 200.00 debited for order"
        self.assertEqual(extract_amount(body), Decimal("200.00"))

    def test_limit_only_message_has_no_amount(self):
        body = "Transaction alert: Avl Limit Rs 50,000"
        self.assertIsNone(extract_amount(body))

    def test_closest_to_transaction_word(self):
        """Among several candidates the one nearest a transaction word wins."""
        body = "Your order of Rs 2,499 is confirmed. Rs 499.00 paid via UPI"
        self.assertEqual(extract_amount(body), Decimal("499.00"))

    def test_currency_suffix(self):
        self.assertEqual(
            extract_amount("1,234.50 INR debited from your account"), Decimal("1234.50")
        )

    def test_bare_decimal_last_resort(self):
        self.assertEqual(
            extract_amount("Amount 349.00 debited for order 5521"), Decimal("349.00")
        )

    def test_requires_transaction_word(self):
        self.assertIsNone(extract_amount("Your OTP is 123456 for Rs 100"))

    def test_bill_reminder_rejected(self):
        self.assertIsNone(extract_amount("Total amount payable Rs 3,000. Pay now"))

    def test_bill_with_debit_override(self):
        self.assertEqual(
            extract_amount("Bill payment of Rs 1,200.00 debited from a/c"), Decimal("1200.00")
        )

    def test_empty_body(self):
        self.assertIsNone(extract_amount(""))
        self.assertIsNone(extract_amount(None))


class TestParseAmount(unittest.TestCase):
    """Test cases for parse_amount."""

    def test_strips_separators_and_quantizes(self):
        self.assertEqual(parse_amount("1,234.5"), Decimal("1234.50"))

    def test_malformed_returns_none(self):
        self.assertIsNone(parse_amount("abc"))
        self.assertIsNone(parse_amount(""))

    def test_non_positive_returns_none(self):
        self.assertIsNone(parse_amount("0"))
        self.assertIsNone(parse_amount("0.00"))


if __name__ == "__main__":
    unittest.main()
