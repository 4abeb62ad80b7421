"""
Category classifier for parsed expense messages.
Maps a merchant name and message body onto the category enumeration.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Sequence

from ..config.category_config import (
    CATEGORY_KEYWORDS,
    CATEGORY_KEYWORD_ORDER,
    CATEGORY_MISC,
    MERCHANT_CATEGORIES,
    MerchantCategoryRule,
)

logger = logging.getLogger(__name__)


@dataclass
class CategoryMatch:
    """Result of category classification."""
    category: str
    match_method: str  # 'catalog_exact', 'catalog_casefold', 'keyword', 'default'
    matched_on: Optional[str] = None


class CategoryClassifier:
    """
    Classifies expenses by merchant and message text.

    Precedence: exact catalog match, case-insensitive catalog match,
    keyword scan (categories in fixed order), then Misc.
    """

    def __init__(
        self,
        catalog: Optional[Iterable[MerchantCategoryRule]] = None,
        keywords: Mapping[str, Iterable[str]] = CATEGORY_KEYWORDS,
        keyword_order: Sequence[str] = CATEGORY_KEYWORD_ORDER,
    ):
        self.exact_lookup: Dict[str, str] = {}
        self.casefold_lookup: Dict[str, str] = {}
        for rule in (catalog if catalog is not None else MERCHANT_CATEGORIES):
            # first entry in catalog order wins
            self.exact_lookup.setdefault(rule.merchant_name, rule.category)
            self.casefold_lookup.setdefault(rule.merchant_name.casefold(), rule.category)
        self.keywords = keywords
        self.keyword_order = tuple(keyword_order)

    def classify(self, merchant: Optional[str], body: Optional[str]) -> CategoryMatch:
        """
        Classify a merchant / body pair.
        
        Args:
            merchant: Extracted merchant name
            body: Raw message body
            
        Returns:
            CategoryMatch with category and match method
        """
        merchant = merchant or ""

        if merchant in self.exact_lookup:
            return CategoryMatch(self.exact_lookup[merchant], "catalog_exact", merchant)

        folded = merchant.casefold()
        if folded in self.casefold_lookup:
            return CategoryMatch(self.casefold_lookup[folded], "catalog_casefold", merchant)

        text = f"{merchant.lower()} {(body or '').lower()}"
        for category in self.keyword_order:
            for keyword in self.keywords.get(category, ()):
                if keyword in text:
                    logger.debug("Category %s from keyword '%s'", category, keyword)
                    return CategoryMatch(category, "keyword", keyword)

        return CategoryMatch(CATEGORY_MISC, "default")

    def detect_category(self, merchant: Optional[str], body: Optional[str]) -> str:
        return self.classify(merchant, body).category


_default_classifier = CategoryClassifier()


def detect_category(merchant: Optional[str], body: Optional[str]) -> str:
    """Detect the category using the built-in catalog and keyword table."""
    return _default_classifier.detect_category(merchant, body)
