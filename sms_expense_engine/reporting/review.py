"""
Catalog review suggestions.

For expenses that fell through to Misc, propose the closest known catalog
merchant so the catalog can be curated. Suggestions are advisory and never
change a classification.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from rapidfuzz import fuzz, process

from ..config.category_config import CATEGORY_MISC, MERCHANT_CATEGORIES, MerchantCategoryRule
from ..extraction.preprocess import UNKNOWN_MERCHANT
from ..records import ParsedMessage

logger = logging.getLogger(__name__)

FUZZY_THRESHOLD = 80


@dataclass
class CatalogSuggestion:
    """A possible catalog entry for an unclassified merchant."""
    merchant_name: str
    suggested_merchant: str
    suggested_category: str
    score: float


class CatalogReviewer:
    """Suggests catalog matches for unclassified merchants."""

    def __init__(
        self,
        catalog: Optional[Iterable[MerchantCategoryRule]] = None,
        threshold: int = FUZZY_THRESHOLD,
    ):
        self.catalog = tuple(catalog if catalog is not None else MERCHANT_CATEGORIES)
        self.threshold = threshold
        self._choices = [rule.merchant_name for rule in self.catalog]

    def suggest(self, merchant_name: Optional[str]) -> Optional[CatalogSuggestion]:
        """
        Find the closest catalog merchant for a name.
        
        Args:
            merchant_name: Extracted merchant name
            
        Returns:
            CatalogSuggestion or None if nothing scores above the threshold
        """
        if not merchant_name or merchant_name == UNKNOWN_MERCHANT or not self._choices:
            return None

        match = process.extractOne(
            merchant_name,
            self._choices,
            scorer=fuzz.token_set_ratio,
            processor=str.upper,
            score_cutoff=self.threshold,
        )
        if match is None:
            return None

        choice, score, index = match
        rule = self.catalog[index]
        return CatalogSuggestion(
            merchant_name=merchant_name,
            suggested_merchant=choice,
            suggested_category=rule.category,
            score=round(float(score), 1),
        )

    def review(self, parsed_messages: Iterable[ParsedMessage]) -> List[CatalogSuggestion]:
        """Suggestions for every distinct merchant that was classified as Misc."""
        suggestions = []
        seen = set()
        for parsed in parsed_messages:
            record = parsed.record
            if record.category != CATEGORY_MISC or record.merchant_name in seen:
                continue
            seen.add(record.merchant_name)
            suggestion = self.suggest(record.merchant_name)
            if suggestion is not None:
                suggestions.append(suggestion)
        logger.debug("Catalog review produced %d suggestions", len(suggestions))
        return suggestions
