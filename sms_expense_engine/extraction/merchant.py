"""
Merchant / counterparty extraction.

Resolution order (first success wins):
1. Financial-institution shortcut for generic transfers and withdrawals
2. Card-transaction date anchor ("on <date> on <merchant>")
3. "trf to <payee>"
4. Directional prepositions ("paid to", "purchase at", ...)
5. Known-merchant catalog
6. All-caps token heuristic
7. Bank / payment-service name fallback
8. "Unknown"
"""

import logging
import re
from typing import Iterable, List, Optional, Tuple

from ..config.category_config import ENGINE_CONFIG, MERCHANT_CATEGORIES, MerchantCategoryRule
from ..patterns.message_patterns import (
    FINANCIAL_INSTITUTION_TRIGGERS,
    INSTITUTION_DETERMINERS,
    BANK_ACCOUNT_PATTERNS,
    PAYMENT_APP_PATTERNS,
    CARD_DATE_ANCHOR_PATTERN,
    TRANSFER_TO_PATTERN,
    DIRECTIONAL_MERCHANT_PATTERNS,
    CAPS_SEQUENCE_PATTERN,
    CAPS_STOP_WORDS,
    BANK_FALLBACK_PATTERN,
    GENERIC_TERMS,
)
from .preprocess import (
    UNKNOWN_MERCHANT,
    clean_merchant_name,
    contains_any,
    is_generic_term,
    normalize_body,
)

logger = logging.getLogger(__name__)


def _compile_catalog(catalog: Iterable[MerchantCategoryRule]) -> List[Tuple[str, re.Pattern]]:
    """Catalog names as word-bounded patterns, longest first (stable on ties)."""
    names = []
    seen = set()
    for rule in catalog:
        if rule.merchant_name not in seen:
            seen.add(rule.merchant_name)
            names.append(rule.merchant_name)
    names = sorted(names, key=len, reverse=True)
    return [
        (name, re.compile(r"(?<!\w)" + re.escape(name) + r"(?!\w)", re.IGNORECASE))
        for name in names
    ]


class MerchantExtractor:
    """Extracts a human-readable payee from a message body."""

    def __init__(self, catalog: Optional[Iterable[MerchantCategoryRule]] = None):
        self.catalog_patterns = _compile_catalog(
            catalog if catalog is not None else MERCHANT_CATEGORIES
        )
        self.caps_min_length = ENGINE_CONFIG["caps_min_length"]
        self.caps_max_length = ENGINE_CONFIG["caps_max_length"]

    def extract(self, body: Optional[str]) -> str:
        """
        Extract the merchant or counterparty name.
        
        Args:
            body: Raw message body
            
        Returns:
            Merchant name, never None ("Unknown" when unresolved)
        """
        merchant, rule = self.extract_with_rule(body)
        return merchant

    def extract_with_rule(self, body: Optional[str]) -> Tuple[str, str]:
        """Extract the merchant name along with the name of the rule that found it."""
        if not body:
            return UNKNOWN_MERCHANT, "none"

        text = normalize_body(body)
        resolvers = (
            ("financial_institution", self._match_financial_institution),
            ("card_date_anchor", self._match_card_date_anchor),
            ("transfer_to", self._match_transfer_to),
            ("directional", self._match_directional),
            ("catalog", self._match_catalog),
            ("all_caps", self._match_all_caps),
            ("bank_fallback", self._match_bank_fallback),
        )
        for rule, resolver in resolvers:
            merchant = resolver(body, text)
            if merchant:
                logger.debug("Merchant '%s' found by %s", merchant, rule)
                return merchant, rule

        return UNKNOWN_MERCHANT, "none"

    # ─────────────────────────────────────────────────────────────
    # Rules
    # ─────────────────────────────────────────────────────────────

    def _match_financial_institution(self, body: str, text: str) -> Optional[str]:
        if not contains_any(text, FINANCIAL_INSTITUTION_TRIGGERS):
            return None
        for pattern in BANK_ACCOUNT_PATTERNS + PAYMENT_APP_PATTERNS:
            match = pattern.search(body)
            if match:
                words = match.group(1).split()
                if words[0].lower() in INSTITUTION_DETERMINERS:
                    continue
                name = " ".join(words)
                if name.lower() not in GENERIC_TERMS:
                    return name
        return None

    def _match_card_date_anchor(self, body: str, text: str) -> Optional[str]:
        match = CARD_DATE_ANCHOR_PATTERN.search(body)
        if not match:
            return None
        merchant = clean_merchant_name(match.group(2))
        if merchant == UNKNOWN_MERCHANT or len(merchant) <= 2:
            return None
        if merchant.lower() in GENERIC_TERMS:
            return None
        return merchant

    def _match_transfer_to(self, body: str, text: str) -> Optional[str]:
        match = TRANSFER_TO_PATTERN.search(body)
        if not match:
            return None
        return self._accept_phrase(match.group(1))

    def _match_directional(self, body: str, text: str) -> Optional[str]:
        for name, pattern in DIRECTIONAL_MERCHANT_PATTERNS:
            match = pattern.search(body)
            if match:
                merchant = self._accept_phrase(match.group(1))
                if merchant:
                    return merchant
        return None

    def _match_catalog(self, body: str, text: str) -> Optional[str]:
        for name, pattern in self.catalog_patterns:
            if pattern.search(body):
                return name
        return None

    def _match_all_caps(self, body: str, text: str) -> Optional[str]:
        best = None
        for candidate in self._caps_candidates(body):
            if not (self.caps_min_length < len(candidate) < self.caps_max_length):
                continue
            if is_generic_term(candidate):
                continue
            if best is None or len(candidate) > len(best):
                best = candidate
        return best

    def _match_bank_fallback(self, body: str, text: str) -> Optional[str]:
        match = BANK_FALLBACK_PATTERN.search(body)
        if match:
            return " ".join(match.group(1).split())
        return None

    # ─────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────

    @staticmethod
    def _accept_phrase(raw: str) -> Optional[str]:
        merchant = clean_merchant_name(raw)
        if merchant == UNKNOWN_MERCHANT or is_generic_term(merchant):
            return None
        return merchant

    @staticmethod
    def _caps_candidates(body: str) -> List[str]:
        """Split all-caps sequences into runs of words that are not stop words."""
        candidates = []
        for match in CAPS_SEQUENCE_PATTERN.finditer(body):
            words = match.group(1).split()
            run = []
            i = 0
            while i < len(words):
                pair = " ".join(words[i:i + 2])
                if len(words) - i >= 2 and pair in CAPS_STOP_WORDS:
                    step = 2
                elif words[i] in CAPS_STOP_WORDS:
                    step = 1
                else:
                    run.append(words[i])
                    i += 1
                    continue
                if run:
                    candidates.append(" ".join(run))
                    run = []
                i += step
            if run:
                candidates.append(" ".join(run))
        return candidates


_default_extractor = MerchantExtractor()


def extract_merchant(body: Optional[str]) -> str:
    """Extract the merchant name using the built-in catalog."""
    return _default_extractor.extract(body)
