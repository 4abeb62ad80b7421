"""
Expense summaries over parsed records.

Period filters, category totals, sort orders and month listings, all on a
pandas DataFrame built from ExpenseRecord objects.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd

from ..config.category_config import normalize_category
from ..records import ExpenseRecord

EXPENSE_COLUMNS = ["occurred_at", "amount", "category", "merchant_name", "source", "raw_text"]


class Period(Enum):
    """Reporting window."""
    TODAY = "today"
    WEEK = "week"
    CUSTOM_MONTH = "custom_month"


class SortOrder(Enum):
    """Ordering of expense listings."""
    RECENT_FIRST = "recent_first"
    AMOUNT_HIGH_TO_LOW = "amount_high_to_low"
    AMOUNT_LOW_TO_HIGH = "amount_low_to_high"


def expenses_to_dataframe(records: Iterable[ExpenseRecord]) -> pd.DataFrame:
    """
    Convert expense records to a DataFrame.
    
    Args:
        records: ExpenseRecord objects
        
    Returns:
        DataFrame with occurred_at (local wall-clock, naive), amount (float),
        category, merchant_name, source and raw_text columns
    """
    rows = [
        {
            # wall-clock time in the record's own zone
            "occurred_at": record.occurred_at.replace(tzinfo=None),
            "amount": float(record.amount),
            "category": record.category,
            "merchant_name": record.merchant_name,
            "source": record.source,
            "raw_text": record.raw_text,
        }
        for record in records
    ]
    if not rows:
        df = pd.DataFrame(columns=EXPENSE_COLUMNS)
        df["occurred_at"] = pd.to_datetime(df["occurred_at"])
        df["amount"] = df["amount"].astype(float)
        return df
    df = pd.DataFrame(rows, columns=EXPENSE_COLUMNS)
    df["occurred_at"] = pd.to_datetime(df["occurred_at"])
    return df


def _period_bounds(period: Period, month: Optional[str], now: datetime) -> Tuple[datetime, datetime]:
    if period == Period.TODAY:
        start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        return start, now
    if period == Period.WEEK:
        return now - timedelta(days=7), now
    if period == Period.CUSTOM_MONTH:
        if month is None:
            month = now.strftime("%Y-%m")
        month_start = pd.Timestamp(f"{month}-01").to_pydatetime()
        next_month = (pd.Timestamp(month_start) + pd.offsets.MonthBegin(1)).to_pydatetime()
        return month_start, next_month - timedelta(microseconds=1)
    raise ValueError(f"Unknown period: {period}")


def filter_by_period(
    df: pd.DataFrame,
    period: Period,
    month: Optional[str] = None,
    now: Optional[datetime] = None,
) -> pd.DataFrame:
    """
    Keep expenses inside a reporting window.
    
    Args:
        df: DataFrame from expenses_to_dataframe()
        period: TODAY (since local midnight), WEEK (last 7 days) or
            CUSTOM_MONTH (a whole calendar month)
        month: "YYYY-MM" for CUSTOM_MONTH (defaults to the current month)
        now: Reference time (naive local), defaults to datetime.now()
        
    Returns:
        Filtered DataFrame
    """
    now = now or datetime.now()
    if now.tzinfo is not None:
        now = now.replace(tzinfo=None)
    start, end = _period_bounds(period, month, now)
    mask = (df["occurred_at"] >= start) & (df["occurred_at"] <= end)
    return df.loc[mask].copy()


def totals_by_category(df: pd.DataFrame) -> Dict[str, float]:
    """Sum amounts per category, folding category aliases together."""
    if df.empty:
        return {}
    categories = df["category"].fillna("").map(normalize_category)
    totals = df.groupby(categories)["amount"].sum().sort_values(ascending=False)
    return {category: round(float(total), 2) for category, total in totals.items()}


def sort_expenses(df: pd.DataFrame, order: SortOrder = SortOrder.RECENT_FIRST) -> pd.DataFrame:
    if order == SortOrder.RECENT_FIRST:
        return df.sort_values("occurred_at", ascending=False, kind="stable")
    if order == SortOrder.AMOUNT_HIGH_TO_LOW:
        return df.sort_values("amount", ascending=False, kind="stable")
    if order == SortOrder.AMOUNT_LOW_TO_HIGH:
        return df.sort_values("amount", ascending=True, kind="stable")
    raise ValueError(f"Unknown sort order: {order}")


def available_months(df: pd.DataFrame) -> List[str]:
    """Distinct "YYYY-MM" months with expenses, newest first."""
    if df.empty:
        return []
    months = df["occurred_at"].dt.strftime("%Y-%m").unique().tolist()
    return sorted(months, reverse=True)


def period_total(df: pd.DataFrame) -> float:
    if df.empty:
        return 0.0
    return round(float(df["amount"].sum()), 2)
