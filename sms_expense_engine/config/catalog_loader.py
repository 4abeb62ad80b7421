"""
Merchant catalog loader.
Loads CSV files that extend the built-in merchant -> category catalog.
"""

import csv
from typing import Iterable, List, Tuple
from pathlib import Path

from .category_config import MERCHANT_CATEGORIES, VALID_CATEGORIES, MerchantCategoryRule


def load_merchant_catalog_csv(csv_path: str) -> List[MerchantCategoryRule]:
    """
    Load merchant catalog rules from a CSV file.
    
    Args:
        csv_path: Path to CSV file containing merchant rules
        
    Returns:
        List of MerchantCategoryRule in file order
        
    Example CSV format:
        merchant_name,category
        DOMINOS PIZZA,Food
        DMART,Grocery
    """
    rules = []
    
    csv_file = Path(csv_path)
    if not csv_file.exists():
        raise FileNotFoundError(f"Merchant catalog file not found: {csv_path}")
    
    with open(csv_path, 'r', encoding='utf-8') as f:
        reader = csv.DictReader(f)
        for line_no, row in enumerate(reader, start=2):
            merchant_name = (row.get('merchant_name') or '').strip()
            category = (row.get('category') or '').strip()
            if not merchant_name:
                continue
            if category not in VALID_CATEGORIES:
                raise ValueError(
                    f"Unknown category '{category}' for merchant '{merchant_name}' "
                    f"at {csv_path}:{line_no}"
                )
            rules.append(MerchantCategoryRule(merchant_name, category))
    
    return rules


def extend_catalog(
    extra_rules: Iterable[MerchantCategoryRule],
    base: Tuple[MerchantCategoryRule, ...] = MERCHANT_CATEGORIES,
) -> Tuple[MerchantCategoryRule, ...]:
    """
    Append extension rules after the built-in catalog.

    Built-in entries keep priority; an extension repeating an existing
    merchant name is dropped.
    """
    known = {rule.merchant_name for rule in base}
    merged = list(base)
    for rule in extra_rules:
        if rule.merchant_name in known:
            continue
        known.add(rule.merchant_name)
        merged.append(rule)
    return tuple(merged)
