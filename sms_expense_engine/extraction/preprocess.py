"""
Preprocessing utilities for message extraction.
Handles body normalization, keyword tests and merchant-name clean-up.
"""

from typing import Iterable, Optional

from ..config.category_config import ENGINE_CONFIG
from ..patterns.message_patterns import (
    GENERIC_TERMS,
    NON_MERCHANT_PHRASES,
    TRAILING_PUNCTUATION_PATTERN,
    TRAILING_REFERENCE_PATTERN,
)

UNKNOWN_MERCHANT = ENGINE_CONFIG["unknown_merchant"]


def normalize_body(body: Optional[str]) -> str:
    """
    Normalize a message body for keyword matching.
    
    Args:
        body: Raw message body
        
    Returns:
        Lowercased body, empty string for None
    """
    if not body:
        return ""
    return body.lower()


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    """Check whether any keyword occurs in text as a substring."""
    for keyword in keywords:
        if keyword in text:
            return True
    return False


def truncate_for_log(body: Optional[str], limit: int = 60) -> str:
    if not body:
        return ""
    if len(body) <= limit:
        return body
    return body[:limit] + "..."


def is_generic_term(candidate: Optional[str]) -> bool:
    """
    Check whether a merchant candidate is a generic banking word.

    Short candidates containing a stop-list term are generic; longer phrases
    that merely contain one (e.g. "AMAZON PAYMENTS INDIA") are kept. A bare
    stop-list word is generic at any length.
    
    Args:
        candidate: Cleaned merchant candidate
        
    Returns:
        True if the candidate should be discarded
    """
    if not candidate:
        return True
    lowered = candidate.strip().lower()
    if lowered in GENERIC_TERMS:
        return True
    if len(lowered) >= ENGINE_CONFIG["generic_term_max_length"]:
        return False
    return contains_any(lowered, GENERIC_TERMS)


def clean_merchant_name(raw: Optional[str]) -> str:
    """
    Clean a captured merchant phrase.
    
    Steps, in order: trim, strip one trailing punctuation mark, strip a
    trailing Ref/Reference/Refno suffix, cut at the first non-merchant phrase.
    
    Args:
        raw: Captured text
        
    Returns:
        Cleaned merchant name, or "Unknown" when nothing is left
    """
    if not raw:
        return UNKNOWN_MERCHANT

    cleaned = raw.strip()
    cleaned = TRAILING_PUNCTUATION_PATTERN.sub("", cleaned).strip()
    cleaned = TRAILING_REFERENCE_PATTERN.sub("", cleaned).strip()

    lowered = cleaned.lower()
    for phrase in NON_MERCHANT_PHRASES:
        position = lowered.find(phrase)
        if position != -1:
            cleaned = cleaned[:position]
            lowered = lowered[:position]

    cleaned = cleaned.strip()
    return cleaned if cleaned else UNKNOWN_MERCHANT
