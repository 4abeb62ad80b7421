"""
Categorisation Module for the SMS expense engine.

Maps merchant + body to a category through:
- Exact and case-insensitive catalog lookup
- Keyword scan over a fixed category order
- Misc catch-all
"""

from .engine import CategoryClassifier, CategoryMatch, detect_category

__all__ = [
    "CategoryClassifier",
    "CategoryMatch",
    "detect_category",
]
