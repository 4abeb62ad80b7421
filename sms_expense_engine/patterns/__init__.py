"""
Message Pattern Definitions for the SMS expense engine.

Contains all keyword and regex tables for reading bank notification messages:
- Eligibility gate keyword sets
- Amount regex families and exclusion keywords
- Merchant rule tables and stop-lists
- Transaction reference patterns
"""

from .message_patterns import (
    STRONG_TRANSACTION_INDICATORS,
    TRANSACTION_VERB_PATTERN,
    AMOUNT_PATTERN_FAMILIES,
    AMOUNT_CONTEXT_WORDS,
    DIRECTIONAL_MERCHANT_PATTERNS,
    GENERIC_TERMS,
    CAPS_STOP_WORDS,
    TRANSACTION_ID_PATTERNS,
)

__all__ = [
    "STRONG_TRANSACTION_INDICATORS",
    "TRANSACTION_VERB_PATTERN",
    "AMOUNT_PATTERN_FAMILIES",
    "AMOUNT_CONTEXT_WORDS",
    "DIRECTIONAL_MERCHANT_PATTERNS",
    "GENERIC_TERMS",
    "CAPS_STOP_WORDS",
    "TRANSACTION_ID_PATTERNS",
]
