"""
Record types shared across the SMS expense engine.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional

from .config.category_config import ENGINE_CONFIG


@dataclass(frozen=True)
class SmsMessage:
    """A raw notification message as yielded by a message source."""
    body: str
    timestamp_millis: int
    address: Optional[str] = None


@dataclass(frozen=True)
class ExpenseRecord:
    """One accepted expense, extracted from a single message."""
    amount: Decimal
    category: str
    occurred_at: datetime
    raw_text: str
    source: str = ENGINE_CONFIG["source_tag"]
    merchant_name: Optional[str] = ENGINE_CONFIG["unknown_merchant"]

    def to_dict(self) -> Dict:
        return {
            "amount": float(self.amount),
            "category": self.category,
            "occurred_at": self.occurred_at.isoformat(),
            "raw_text": self.raw_text,
            "source": self.source,
            "merchant_name": self.merchant_name,
        }


@dataclass(frozen=True)
class ParsedMessage:
    """An expense record together with its deduplication key."""
    record: ExpenseRecord
    identity_key: str
    match_method: str = field(default="default", compare=False)


class InsertResult(Enum):
    """Outcome of handing a record to an expense store."""
    INSERTED = "inserted"
    DUPLICATE_IGNORED = "duplicate_ignored"
