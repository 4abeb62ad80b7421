"""
Reporting Module for the SMS expense engine.

- Expense summaries (period filters, category totals, sorting)
- Catalog review suggestions for unclassified merchants
"""

from .summary import (
    Period,
    SortOrder,
    expenses_to_dataframe,
    filter_by_period,
    totals_by_category,
    sort_expenses,
    available_months,
    period_total,
)
from .review import CatalogReviewer, CatalogSuggestion

__all__ = [
    "Period",
    "SortOrder",
    "expenses_to_dataframe",
    "filter_by_period",
    "totals_by_category",
    "sort_expenses",
    "available_months",
    "period_total",
    "CatalogReviewer",
    "CatalogSuggestion",
]
