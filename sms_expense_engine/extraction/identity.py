"""
Transaction identity resolution for deduplication.
"""

import hashlib
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Tuple, Union

from ..patterns.message_patterns import TRANSACTION_ID_PATTERNS

logger = logging.getLogger(__name__)


def find_reference(body: Optional[str]) -> Optional[Tuple[str, str]]:
    """
    Find an explicit transaction reference in a message body.
    
    Args:
        body: Raw message body
        
    Returns:
        Tuple of (pattern_name, reference) or None
    """
    if not body:
        return None
    for name, pattern in TRANSACTION_ID_PATTERNS:
        match = pattern.search(body)
        if match:
            return name, match.group(1)
    return None


def fallback_identity(body: str, amount: Decimal, when: Union[date, datetime]) -> str:
    """Composite key from amount, calendar date and a hash of the full body."""
    day = when.date() if isinstance(when, datetime) else when
    digest = hashlib.sha256((body or "").encode("utf-8")).hexdigest()
    return f"{amount:.2f}_{day.isoformat()}_{digest}"


def resolve_identity(body: str, amount: Decimal, when: Union[date, datetime]) -> str:
    """
    Derive a stable deduplication key for a parsed message.

    An explicit reference number wins; otherwise the key combines amount,
    the local calendar date and a SHA-256 of the body.
    
    Args:
        body: Raw message body
        amount: Extracted amount
        when: Message date (local) or datetime
        
    Returns:
        Identity key string
    """
    reference = find_reference(body)
    if reference is not None:
        logger.debug("Identity from %s reference", reference[0])
        return reference[1]
    return fallback_identity(body, amount, when)
