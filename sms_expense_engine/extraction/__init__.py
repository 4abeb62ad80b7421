"""
Extraction Module for the SMS expense engine.

Turns a raw notification body into expense fields:
- Eligibility gate (is this a real debit?)
- Amount extraction
- Merchant / counterparty extraction
- Transaction identity for deduplication
"""

from .eligibility import GateDecision, check_eligibility, is_expense_message
from .amount import extract_amount, parse_amount
from .merchant import MerchantExtractor, extract_merchant
from .identity import find_reference, fallback_identity, resolve_identity
from .preprocess import (
    UNKNOWN_MERCHANT,
    clean_merchant_name,
    is_generic_term,
    normalize_body,
)

__all__ = [
    "GateDecision",
    "check_eligibility",
    "is_expense_message",
    "extract_amount",
    "parse_amount",
    "MerchantExtractor",
    "extract_merchant",
    "find_reference",
    "fallback_identity",
    "resolve_identity",
    "UNKNOWN_MERCHANT",
    "clean_merchant_name",
    "is_generic_term",
    "normalize_body",
]
