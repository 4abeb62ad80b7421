"""
Message sources for sync passes.

Sources return messages strictly newer than a timestamp, newest first.
Export files (JSON, JSON-lines, CSV) are read with pandas.
"""

import io
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Union

import pandas as pd

from ..records import SmsMessage
from .orchestrator import MessageSourceUnavailableError

logger = logging.getLogger(__name__)

BODY_COLUMNS = ("body", "message", "text", "sms")
TIMESTAMP_COLUMNS = ("timestamp_millis", "date", "timestamp", "time")
SENDER_COLUMNS = ("address", "sender")

SUPPORTED_EXTENSIONS = (".json", ".jsonl", ".ndjson", ".csv")


class InvalidExportStructureError(Exception):
    """Raised when an export cannot be mapped onto message rows."""
    pass


def _decode(content: bytes) -> str:
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        # Fallback for exports written by Windows tools
        return content.decode("latin-1")


def read_export(content: bytes, filename: str) -> pd.DataFrame:
    """
    Read an SMS export into a DataFrame.
    
    Args:
        content: Raw file bytes
        filename: Name used to pick the format by extension
        
    Returns:
        DataFrame with one row per message (columns as exported)
        
    Raises:
        json.JSONDecodeError: Malformed JSON / JSON-lines
        InvalidExportStructureError: JSON root is not a message list
        ValueError: Unsupported file type
    """
    suffix = Path(filename).suffix.lower()
    text = _decode(content)

    if suffix == ".json":
        data = json.loads(text)
        if isinstance(data, dict):
            # {"messages": [...]} or {"sms": [...]}
            for key in ("messages", "sms", "items"):
                if isinstance(data.get(key), list):
                    data = data[key]
                    break
        if not isinstance(data, list):
            raise InvalidExportStructureError(
                f"Unexpected JSON root in {filename}: expected a list of messages"
            )
        return pd.DataFrame(data)

    if suffix in (".jsonl", ".ndjson"):
        rows = [json.loads(line) for line in text.splitlines() if line.strip()]
        return pd.DataFrame(rows)

    if suffix == ".csv":
        return pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False)

    raise ValueError(f"Unsupported export type: {filename}")


def _find_column(df: pd.DataFrame, aliases) -> Optional[str]:
    lookup = {str(column).strip().lower(): column for column in df.columns}
    for alias in aliases:
        if alias in lookup:
            return lookup[alias]
    return None


def _to_timestamp_millis(value) -> int:
    """Epoch millis from a number or a date string (naive strings are local time)."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return int(value)
    text = str(value).strip()
    if text.lstrip("-").isdigit():
        return int(text)
    try:
        parsed = pd.Timestamp(text)
    except ValueError as e:
        raise ValueError(f"Invalid message timestamp: {value!r}") from e
    if pd.isna(parsed):
        raise ValueError(f"Invalid message timestamp: {value!r}")
    return int(parsed.to_pydatetime().timestamp() * 1000)


def _is_blank(value) -> bool:
    if value is None or value is pd.NaT:
        return True
    if isinstance(value, float) and pd.isna(value):
        return True
    return not str(value).strip()


def normalize_message_rows(df: pd.DataFrame) -> List[SmsMessage]:
    """
    Map an export DataFrame onto SmsMessage objects.
    
    Args:
        df: DataFrame from read_export()
        
    Returns:
        List of SmsMessage in file order (rows without a body or a
        timestamp are skipped)
        
    Raises:
        InvalidExportStructureError: No body or timestamp column
        ValueError: Unparseable timestamp
    """
    if df.empty:
        return []

    body_column = _find_column(df, BODY_COLUMNS)
    timestamp_column = _find_column(df, TIMESTAMP_COLUMNS)
    sender_column = _find_column(df, SENDER_COLUMNS)

    if body_column is None or timestamp_column is None:
        raise InvalidExportStructureError(
            f"Export needs a body column {BODY_COLUMNS} and a timestamp column "
            f"{TIMESTAMP_COLUMNS}; found {list(df.columns)}"
        )

    messages = []
    skipped = 0
    missing_timestamp = 0
    for row in df.to_dict(orient="records"):
        body = row.get(body_column)
        if _is_blank(body):
            skipped += 1
            continue
        timestamp = row.get(timestamp_column)
        if _is_blank(timestamp):
            missing_timestamp += 1
            continue
        sender = row.get(sender_column) if sender_column else None
        if _is_blank(sender):
            sender = None
        messages.append(
            SmsMessage(
                body=str(body),
                timestamp_millis=_to_timestamp_millis(timestamp),
                address=str(sender) if sender else None,
            )
        )

    if skipped:
        logger.debug("Skipped %d export rows without a message body", skipped)
    if missing_timestamp:
        logger.debug("Skipped %d export rows without a timestamp", missing_timestamp)
    return messages


def _newer_than(messages: Iterable[SmsMessage], after_timestamp: int) -> List[SmsMessage]:
    selected = [m for m in messages if m.timestamp_millis > after_timestamp]
    return sorted(selected, key=lambda m: m.timestamp_millis, reverse=True)


class InMemoryMessageSource:
    """Serves a fixed list of messages."""

    def __init__(self, messages: Iterable[Union[SmsMessage, dict]] = ()):
        self.messages = [
            m if isinstance(m, SmsMessage) else SmsMessage(**m) for m in messages
        ]

    def add(self, message: SmsMessage) -> None:
        self.messages.append(message)

    def fetch_messages(self, after_timestamp: int) -> List[SmsMessage]:
        return _newer_than(self.messages, after_timestamp)


class ExportFileMessageSource:
    """Serves messages from an SMS export file on disk."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def fetch_messages(self, after_timestamp: int) -> List[SmsMessage]:
        try:
            content = self.path.read_bytes()
        except OSError as e:
            raise MessageSourceUnavailableError(f"Cannot read {self.path}: {e}") from e

        try:
            messages = normalize_message_rows(read_export(content, self.path.name))
        except (ValueError, InvalidExportStructureError) as e:
            raise MessageSourceUnavailableError(f"Cannot parse {self.path}: {e}") from e

        logger.debug("Loaded %d messages from %s", len(messages), self.path)
        return _newer_than(messages, after_timestamp)


class CombinedMessageSource:
    """
    Serves messages from several sources as one newest-first stream.

    A sync pass over the combined source reads every export against the
    same watermark. If any source is unavailable the whole fetch fails.
    """

    def __init__(self, sources: Iterable):
        self.sources = list(sources)

    def fetch_messages(self, after_timestamp: int) -> List[SmsMessage]:
        messages = []
        for source in self.sources:
            messages.extend(source.fetch_messages(after_timestamp))
        return _newer_than(messages, after_timestamp)
