"""
Tests for the category classifier.
"""

import unittest

from sms_expense_engine.categorisation.engine import CategoryClassifier, detect_category
from sms_expense_engine.config.category_config import MerchantCategoryRule, VALID_CATEGORIES


class TestCategoryClassifier(unittest.TestCase):
    """Test cases for CategoryClassifier precedence."""

    def setUp(self):
        """Set up test fixtures."""
        self.classifier = CategoryClassifier()

    def test_exact_catalog_match(self):
        result = self.classifier.classify("ZOMATO", "INR 250.00 spent on ZOMATO")
        self.assertEqual(result.category, "Food")
        self.assertEqual(result.match_method, "catalog_exact")

    def test_case_insensitive_catalog_match(self):
        result = self.classifier.classify("zomato", "")
        self.assertEqual(result.category, "Food")
        self.assertEqual(result.match_method, "catalog_casefold")

    def test_exact_case_distinguishes_entries(self):
        """Same name in two cases maps to two categories; case-insensitive picks the first."""
        self.assertEqual(self.classifier.classify("SWIGGY LIMITED", "").category, "Grocery")
        self.assertEqual(self.classifier.classify("Swiggy Limited", "").category, "Food")
        self.assertEqual(self.classifier.classify("swiggy limited", "").category, "Food")

    def test_keyword_match(self):
        result = self.classifier.classify("Corner Cafe", "Rs 120 spent")
        self.assertEqual(result.category, "Food")
        self.assertEqual(result.match_method, "keyword")

    def test_keyword_category_order(self):
        """Grocery is tried before Recharge."""
        self.assertEqual(self.classifier.classify("Fresh Store", "recharge").category, "Grocery")

    def test_investment_keyword_from_body(self):
        result = self.classifier.classify("Unknown", "Rs 5000 debited for trading account")
        self.assertEqual(result.category, "Investment")

    def test_telecom_keyword(self):
        self.assertEqual(self.classifier.classify("TELECOM SERVICES", "").category, "Telecom")

    def test_via_and_service_are_not_telecom(self):
        result = self.classifier.classify("Unknown", "Rs 100 paid via UPI for service charge")
        self.assertEqual(result.category, "Misc")

    def test_misc_fallback(self):
        result = self.classifier.classify("Unknown", "Rs 100 debited")
        self.assertEqual(result.category, "Misc")
        self.assertEqual(result.match_method, "default")

    def test_always_returns_valid_category(self):
        for merchant, body in [(None, None), ("", ""), ("X", "y"), ("AIRTEL", "")]:
            with self.subTest(merchant=merchant):
                self.assertIn(self.classifier.detect_category(merchant, body), VALID_CATEGORIES)

    def test_custom_catalog(self):
        classifier = CategoryClassifier(catalog=[MerchantCategoryRule("DMART", "Grocery")])
        self.assertEqual(classifier.classify("DMART", "").match_method, "catalog_exact")
        self.assertEqual(classifier.classify("ZOMATO", "").match_method, "keyword")

    def test_module_level_detect_category(self):
        self.assertEqual(detect_category("GROWW", ""), "Investment")


if __name__ == "__main__":
    unittest.main()
