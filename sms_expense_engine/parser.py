"""
Single-message expense parser.

Composes the eligibility gate, amount, merchant, category and identity
extractors into one call that turns a notification into an ExpenseRecord.
"""

import logging
from datetime import datetime, timezone, tzinfo
from typing import Dict, Iterable, Optional

from .categorisation.engine import CategoryClassifier
from .config.category_config import ENGINE_CONFIG, MerchantCategoryRule
from .extraction.amount import extract_amount
from .extraction.eligibility import check_eligibility
from .extraction.identity import resolve_identity
from .extraction.merchant import MerchantExtractor
from .extraction.preprocess import truncate_for_log
from .records import ExpenseRecord, ParsedMessage, SmsMessage

logger = logging.getLogger(__name__)


def millis_to_datetime(timestamp_millis: int, tz: Optional[tzinfo] = None) -> datetime:
    """Convert epoch millis to an aware datetime (system local zone by default)."""
    utc = datetime.fromtimestamp(timestamp_millis / 1000.0, tz=timezone.utc)
    return utc.astimezone(tz)


class SmsExpenseParser:
    """Parses bank / payment-app notifications into expense records."""

    def __init__(
        self,
        catalog: Optional[Iterable[MerchantCategoryRule]] = None,
        tz: Optional[tzinfo] = None,
    ):
        catalog = tuple(catalog) if catalog is not None else None
        self.merchant_extractor = MerchantExtractor(catalog)
        self.classifier = CategoryClassifier(catalog)
        self.tz = tz
        self.source_tag = ENGINE_CONFIG["source_tag"]

    def is_expense_message(self, body: Optional[str]) -> bool:
        return check_eligibility(body).accepted

    def parse(self, body: Optional[str], timestamp_millis: int) -> Optional[ParsedMessage]:
        """
        Parse one message.
        
        Args:
            body: Raw message body
            timestamp_millis: Message timestamp (epoch millis)
            
        Returns:
            ParsedMessage, or None if the message is rejected or has no amount
        """
        if not check_eligibility(body).accepted:
            return None

        amount = extract_amount(body)
        if amount is None:
            logger.debug("Accepted message without amount skipped: %s", truncate_for_log(body))
            return None

        merchant = self.merchant_extractor.extract(body)
        match = self.classifier.classify(merchant, body)
        occurred_at = millis_to_datetime(timestamp_millis, self.tz)

        record = ExpenseRecord(
            amount=amount,
            category=match.category,
            occurred_at=occurred_at,
            raw_text=body,
            source=self.source_tag,
            merchant_name=merchant,
        )
        identity_key = resolve_identity(body, amount, occurred_at)
        return ParsedMessage(record=record, identity_key=identity_key, match_method=match.match_method)

    def parse_message(self, message: SmsMessage) -> Optional[ParsedMessage]:
        return self.parse(message.body, message.timestamp_millis)

    def describe(self, body: Optional[str], timestamp_millis: int) -> Dict:
        """
        Explain how a message was handled, rule by rule.

        Used by review tooling; parse() is the production path.
        """
        decision = check_eligibility(body)
        result = {
            "accepted": decision.accepted,
            "gate_rule": decision.rule,
            "amount": None,
            "merchant_name": None,
            "merchant_rule": None,
            "category": None,
            "category_method": None,
            "identity_key": None,
            "occurred_at": millis_to_datetime(timestamp_millis, self.tz).isoformat(),
        }
        if not decision.accepted:
            return result

        amount = extract_amount(body)
        merchant, merchant_rule = self.merchant_extractor.extract_with_rule(body)
        match = self.classifier.classify(merchant, body)
        result.update({
            "amount": float(amount) if amount is not None else None,
            "merchant_name": merchant,
            "merchant_rule": merchant_rule,
            "category": match.category,
            "category_method": match.match_method,
        })
        if amount is not None:
            occurred_at = millis_to_datetime(timestamp_millis, self.tz)
            result["identity_key"] = resolve_identity(body, amount, occurred_at)
        return result
