"""
Configuration module for the SMS expense engine.

This module contains the category catalog, keyword tables and engine settings.
"""

from .category_config import (
    CATEGORY_FOOD,
    CATEGORY_GROCERY,
    CATEGORY_RECHARGE,
    CATEGORY_INVESTMENT,
    CATEGORY_TELECOM,
    CATEGORY_MISC,
    VALID_CATEGORIES,
    MerchantCategoryRule,
    MERCHANT_CATEGORIES,
    CATEGORY_KEYWORDS,
    CATEGORY_KEYWORD_ORDER,
    CATEGORY_ALIASES,
    ENGINE_CONFIG,
    normalize_category,
)
from .catalog_loader import load_merchant_catalog_csv, extend_catalog

__all__ = [
    "CATEGORY_FOOD",
    "CATEGORY_GROCERY",
    "CATEGORY_RECHARGE",
    "CATEGORY_INVESTMENT",
    "CATEGORY_TELECOM",
    "CATEGORY_MISC",
    "VALID_CATEGORIES",
    "MerchantCategoryRule",
    "MERCHANT_CATEGORIES",
    "CATEGORY_KEYWORDS",
    "CATEGORY_KEYWORD_ORDER",
    "CATEGORY_ALIASES",
    "ENGINE_CONFIG",
    "normalize_category",
    "load_merchant_catalog_csv",
    "extend_catalog",
]
