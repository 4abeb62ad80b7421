"""
Eligibility gate: decides whether a message is a genuine expense notification.

Rules are evaluated in a fixed order and the first rule that fires decides.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ..patterns.message_patterns import (
    BILL_WORDS,
    BILL_REMINDER_PHRASES,
    MARKETING_KEYWORDS,
    NAV_KEYWORDS,
    NAV_DEBIT_OVERRIDES,
    PORTFOLIO_KEYWORDS,
    STRONG_TRANSACTION_INDICATORS,
    INBOUND_KEYWORDS,
    OUTBOUND_VERBS,
    BALANCE_KEYWORDS,
    BALANCE_OUTBOUND_VERBS,
    TRANSACTION_VERB_PATTERN,
    GATE_CURRENCY_PATTERN,
    BILL_PAYMENT_PHRASES,
)
from .preprocess import contains_any, normalize_body, truncate_for_log

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GateDecision:
    """Outcome of the eligibility gate."""
    accepted: bool
    rule: str  # name of the rule that decided


def check_eligibility(body: Optional[str]) -> GateDecision:
    """
    Run the eligibility rules against a message body.
    
    Args:
        body: Raw message body
        
    Returns:
        GateDecision naming the deciding rule
    """
    text = normalize_body(body)
    decision = _evaluate(text)
    logger.debug(
        "Gate %s by %s: %s",
        "accepted" if decision.accepted else "rejected",
        decision.rule,
        truncate_for_log(body),
    )
    return decision


def is_expense_message(body: Optional[str]) -> bool:
    """Return True if the body reports a real outgoing payment."""
    return check_eligibility(body).accepted


def _evaluate(text: str) -> GateDecision:
    if not text:
        return GateDecision(False, "empty")

    # 1. Bill reminders
    if contains_any(text, BILL_WORDS) and contains_any(text, BILL_REMINDER_PHRASES):
        return GateDecision(False, "bill_reminder")

    # 2. Promotional / marketing
    if contains_any(text, MARKETING_KEYWORDS):
        return GateDecision(False, "marketing")

    # 3. Investment NAV and portfolio updates
    if contains_any(text, NAV_KEYWORDS) and not contains_any(text, NAV_DEBIT_OVERRIDES):
        return GateDecision(False, "investment_nav")
    if contains_any(text, PORTFOLIO_KEYWORDS):
        return GateDecision(False, "portfolio_update")

    has_outbound = contains_any(text, OUTBOUND_VERBS)

    # 4. Strong transactional wording, unless it describes money coming in
    if contains_any(text, STRONG_TRANSACTION_INDICATORS):
        if contains_any(text, INBOUND_KEYWORDS) and not has_outbound:
            return GateDecision(False, "inbound_credit")
        return GateDecision(True, "strong_indicator")

    # 5. Balance-only notices
    if contains_any(text, BALANCE_KEYWORDS) and not contains_any(text, BALANCE_OUTBOUND_VERBS):
        return GateDecision(False, "balance_only")

    # 6. Whole-word transaction verb plus an amount
    if contains_any(text, BILL_PAYMENT_PHRASES):
        return GateDecision(False, "bill_payment")
    if TRANSACTION_VERB_PATTERN.search(text) and GATE_CURRENCY_PATTERN.search(text):
        return GateDecision(True, "verb_and_amount")

    return GateDecision(False, "no_transaction_evidence")
