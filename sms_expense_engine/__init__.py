"""
SMS Expense Engine - rule-based expense extraction from bank notifications.

Turns free-text bank and payment-app alerts into structured, deduplicated
expense records and keeps them in sync incrementally.

Main Components:
    - patterns: Keyword sets and regex rule tables
    - config: Category catalog, keyword table and engine settings
    - extraction: Eligibility gate, amount, merchant and identity extractors
    - categorisation: Category classifier
    - sync: Watermark-driven sync orchestrator, sources and stores
    - reporting: Expense summaries and catalog review suggestions
"""

from typing import Dict, Iterable, List, Union

from .records import (
    SmsMessage,
    ExpenseRecord,
    ParsedMessage,
    InsertResult,
)

from .extraction import (
    GateDecision,
    check_eligibility,
    is_expense_message,
    extract_amount,
    MerchantExtractor,
    extract_merchant,
    resolve_identity,
)

from .categorisation import (
    CategoryClassifier,
    CategoryMatch,
    detect_category,
)

from .parser import SmsExpenseParser

from .sync import (
    SyncOrchestrator,
    SyncState,
    SyncResult,
    SyncError,
    MessageSourceUnavailableError,
    ExpenseStoreError,
    SyncInProgressError,
    SyncCancelledError,
    InMemoryMessageSource,
    ExportFileMessageSource,
    InMemoryWatermarkStore,
    SqliteWatermarkStore,
    InMemoryExpenseStore,
    SqliteExpenseStore,
)

# Configuration
from .config import (
    MERCHANT_CATEGORIES,
    CATEGORY_KEYWORDS,
    ENGINE_CONFIG,
    load_merchant_catalog_csv,
)


__version__ = "1.0.0"
__all__ = [
    # Records
    "SmsMessage",
    "ExpenseRecord",
    "ParsedMessage",
    "InsertResult",
    # Extraction
    "GateDecision",
    "check_eligibility",
    "is_expense_message",
    "extract_amount",
    "MerchantExtractor",
    "extract_merchant",
    "resolve_identity",
    # Categorisation
    "CategoryClassifier",
    "CategoryMatch",
    "detect_category",
    # Parser
    "SmsExpenseParser",
    # Sync
    "SyncOrchestrator",
    "SyncState",
    "SyncResult",
    "SyncError",
    "MessageSourceUnavailableError",
    "ExpenseStoreError",
    "SyncInProgressError",
    "SyncCancelledError",
    "InMemoryMessageSource",
    "ExportFileMessageSource",
    "InMemoryWatermarkStore",
    "SqliteWatermarkStore",
    "InMemoryExpenseStore",
    "SqliteExpenseStore",
    # Configuration
    "MERCHANT_CATEGORIES",
    "CATEGORY_KEYWORDS",
    "ENGINE_CONFIG",
    "load_merchant_catalog_csv",
    # Main function
    "run_sms_expense_extraction",
]


def run_sms_expense_extraction(messages: Iterable[Union[SmsMessage, Dict]]) -> Dict:
    """
    Main entry point for one-shot extraction over a list of messages.
    
    Runs every message through the parser, drops in-batch duplicates by
    identity key and reports what was kept.
    
    Args:
        messages: SmsMessage objects or dicts with keys:
            - body: Message text
            - timestamp_millis: Epoch millis
            - address: (Optional) Sender
        
    Returns:
        Dictionary containing:
            - expenses: List of expense dicts (record fields + identity_key)
            - total_messages: Number of messages seen
            - accepted: Messages that produced a record
            - duplicates: Records dropped as in-batch duplicates
            - rejected: Messages rejected or without an amount
    
    Example:
        >>> result = run_sms_expense_extraction([
        ...     {"body": "INR 250.00 spent using XYZ Bank Card on 12-Jan-24 on ZOMATO",
        ...      "timestamp_millis": 1705000000000},
        ... ])
        >>> result["expenses"][0]["category"]
        'Food'
    """
    parser = SmsExpenseParser()
    seen = set()
    expenses: List[Dict] = []
    total = accepted = duplicates = 0

    for message in messages:
        if not isinstance(message, SmsMessage):
            message = SmsMessage(**message)
        total += 1
        parsed = parser.parse_message(message)
        if parsed is None:
            continue
        accepted += 1
        if parsed.identity_key in seen:
            duplicates += 1
            continue
        seen.add(parsed.identity_key)
        expense = parsed.record.to_dict()
        expense["identity_key"] = parsed.identity_key
        expenses.append(expense)

    return {
        "expenses": expenses,
        "total_messages": total,
        "accepted": accepted,
        "duplicates": duplicates,
        "rejected": total - accepted,
    }
