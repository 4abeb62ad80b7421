"""
Amount extraction: finds the value actually debited in a message.

Balances, credit limits and bill-reminder amounts are never returned.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Tuple

from ..config.category_config import ENGINE_CONFIG
from ..patterns.message_patterns import (
    AMOUNT_BILL_PHRASES,
    AMOUNT_BILL_OVERRIDES,
    AMOUNT_CONTEXT_PATTERN,
    AMOUNT_PATTERN_FAMILIES,
    AMOUNT_EXCLUSION_KEYWORDS,
    CLAUSE_BREAK_PATTERN,
)
from .preprocess import contains_any, normalize_body

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")


def parse_amount(text: Optional[str]) -> Optional[Decimal]:
    """
    Parse a numeric amount with optional thousands separators.
    
    Args:
        text: Numeric text such as "1,00,000" or "250.5"
        
    Returns:
        Decimal quantized to two places, or None if malformed or not positive
    """
    if not text:
        return None
    try:
        value = Decimal(text.replace(",", "").strip())
    except InvalidOperation:
        return None
    if not value.is_finite() or value <= 0:
        return None
    return value.quantize(TWO_PLACES)


def extract_amount(body: Optional[str]) -> Optional[Decimal]:
    """
    Extract the debited amount from a message body.
    
    Candidate families are tried in priority order (currency prefix,
    currency suffix, bare decimal). Within a family, candidates near a
    balance/limit keyword are dropped and the rest are tried closest to a
    transaction word first.
    
    Args:
        body: Raw message body
        
    Returns:
        Amount as Decimal, or None if no debit amount is found
    """
    text = normalize_body(body)
    if not text:
        return None

    if contains_any(text, AMOUNT_BILL_PHRASES) and not contains_any(text, AMOUNT_BILL_OVERRIDES):
        logger.debug("Amount skipped: bill-like message")
        return None

    indicator_positions = [m.start() for m in AMOUNT_CONTEXT_PATTERN.finditer(text)]
    if not indicator_positions:
        logger.debug("Amount skipped: no transaction word")
        return None

    window = ENGINE_CONFIG["amount_context_window"]
    spans = _candidate_spans(body)
    for family, pattern in AMOUNT_PATTERN_FAMILIES:
        candidates = [
            match for match in pattern.finditer(body)
            if not _is_excluded(text, match.start(), match.end(), window, spans)
        ]
        candidates.sort(key=lambda match: _distance(match.start(), indicator_positions))

        for match in candidates:
            amount = parse_amount(match.group(1))
            if amount is not None:
                logger.debug("Amount %s found by %s", amount, family)
                return amount

    return None


def _candidate_spans(body: str) -> List[Tuple[int, int]]:
    """Spans of every amount-like match, across all families."""
    spans = set()
    for family, pattern in AMOUNT_PATTERN_FAMILIES:
        spans.update(match.span() for match in pattern.finditer(body))
    return sorted(spans)


def _is_excluded(
    text: str,
    start: int,
    end: int,
    window: int,
    spans: List[Tuple[int, int]],
) -> bool:
    """
    Check whether a balance/limit keyword qualifies this candidate.

    A keyword before the candidate counts back to the previous amount or
    clause break. A keyword after it counts only when it trails the amount
    ("Rs 5,000 available") rather than introducing the next one
    ("Rs 500 debited, Avl Bal Rs 50").
    """
    previous_end = max((e for s, e in spans if e <= start), default=0)
    before = text[max(previous_end, start - window):start]
    breaks = list(CLAUSE_BREAK_PATTERN.finditer(before))
    if breaks:
        before = before[breaks[-1].end():]
    if contains_any(before, AMOUNT_EXCLUSION_KEYWORDS):
        return True

    after_end = min(len(text), end + window)
    clause_break = CLAUSE_BREAK_PATTERN.search(text, end, after_end)
    if clause_break:
        after_end = clause_break.start()
    next_start = min((s for s, e in spans if s >= end), default=None)
    if next_start is not None and next_start < after_end:
        # keywords here introduce the next amount
        return False
    return contains_any(text[end:after_end], AMOUNT_EXCLUSION_KEYWORDS)


def _distance(position: int, indicator_positions: List[int]) -> int:
    if not indicator_positions:
        return 0
    return min(abs(position - p) for p in indicator_positions)
