"""
Sync orchestrator: incremental, watermark-driven expense extraction.

A pass reads the watermark, fetches newer messages, parses and
deduplicates them, persists the records and moves the watermark to the
time the pass started.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from ..config.category_config import ENGINE_CONFIG
from ..parser import SmsExpenseParser
from ..records import ExpenseRecord, InsertResult, ParsedMessage

logger = logging.getLogger(__name__)


class SyncError(Exception):
    """Base class for sync failures."""
    pass


class MessageSourceUnavailableError(SyncError):
    """Raised when the message source cannot be read."""
    pass


class ExpenseStoreError(SyncError):
    """Raised by an expense store when a single insert fails."""
    pass


class SyncInProgressError(SyncError):
    """Raised when a pass is started while another one is running."""
    pass


class SyncCancelledError(SyncError):
    """Raised when a pass is cancelled; the watermark is left untouched."""
    pass


class SyncState(Enum):
    """Orchestrator lifecycle."""
    IDLE = "idle"
    FETCHING_WATERMARK = "fetching_watermark"
    SCANNING_MESSAGES = "scanning_messages"
    PERSISTING = "persisting"


@dataclass
class PersistenceFailure:
    """A record the expense store refused."""
    identity_key: str
    record: ExpenseRecord
    error_message: str


@dataclass
class SyncResult:
    """Outcome of one sync pass."""
    started_at_millis: int
    previous_watermark: int
    new_watermark: int
    messages_scanned: int = 0
    messages_accepted: int = 0
    duplicates_in_pass: int = 0
    records: List[ParsedMessage] = field(default_factory=list)
    inserted: int = 0
    duplicates_ignored: int = 0
    errors: List[PersistenceFailure] = field(default_factory=list)
    source_unavailable: bool = False

    @property
    def watermark_advanced(self) -> bool:
        return self.new_watermark != self.previous_watermark

    @property
    def expense_records(self) -> List[ExpenseRecord]:
        return [parsed.record for parsed in self.records]


def _system_clock() -> int:
    return int(time.time() * 1000)


class SyncOrchestrator:
    """
    Runs sync passes against a message source, a watermark store and an
    expense store.

    Collaborators are duck-typed:
        source.fetch_messages(after_timestamp) -> iterable of SmsMessage, newest first
        watermark_store.get(key) -> Optional[int]; watermark_store.put(key, value)
        expense_store.insert(record) -> InsertResult
    """

    def __init__(
        self,
        source,
        watermark_store,
        expense_store,
        parser: Optional[SmsExpenseParser] = None,
        clock: Optional[Callable[[], int]] = None,
        watermark_key: str = ENGINE_CONFIG["watermark_key"],
    ):
        self.source = source
        self.watermark_store = watermark_store
        self.expense_store = expense_store
        self.parser = parser or SmsExpenseParser()
        self.clock = clock or _system_clock
        self.watermark_key = watermark_key
        self._state = SyncState.IDLE
        self._lock = threading.Lock()

    @property
    def state(self) -> SyncState:
        return self._state

    def _set_state(self, state: SyncState) -> None:
        logger.debug("Sync state %s -> %s", self._state.value, state.value)
        self._state = state

    def run_sync(self, cancel_event: Optional[threading.Event] = None) -> SyncResult:
        """
        Run one sync pass.
        
        Args:
            cancel_event: Optional event; when set, the pass stops and the
                watermark is not advanced
            
        Returns:
            SyncResult with counts, produced records and persistence failures
            
        Raises:
            SyncInProgressError: Another pass is running
            SyncCancelledError: cancel_event was set during the pass
        """
        if not self._lock.acquire(blocking=False):
            raise SyncInProgressError("A sync pass is already running")

        try:
            return self._run_pass(cancel_event)
        finally:
            self._set_state(SyncState.IDLE)
            self._lock.release()

    def _run_pass(self, cancel_event: Optional[threading.Event]) -> SyncResult:
        now = self.clock()

        self._set_state(SyncState.FETCHING_WATERMARK)
        stored = self.watermark_store.get(self.watermark_key)
        watermark = int(stored) if stored is not None else 0

        result = SyncResult(
            started_at_millis=now,
            previous_watermark=watermark,
            new_watermark=watermark,
        )

        self._set_state(SyncState.SCANNING_MESSAGES)
        try:
            messages = list(self.source.fetch_messages(watermark))
        except MessageSourceUnavailableError as e:
            logger.warning("Message source unavailable, watermark kept at %d: %s", watermark, e)
            result.source_unavailable = True
            return result

        seen_keys = set()
        for message in messages:
            self._check_cancelled(cancel_event)
            result.messages_scanned += 1
            parsed = self.parser.parse(message.body, message.timestamp_millis)
            if parsed is None:
                continue
            result.messages_accepted += 1
            if parsed.identity_key in seen_keys:
                result.duplicates_in_pass += 1
                continue
            seen_keys.add(parsed.identity_key)
            result.records.append(parsed)

        self._set_state(SyncState.PERSISTING)
        for parsed in result.records:
            self._check_cancelled(cancel_event)
            try:
                outcome = self.expense_store.insert(parsed.record)
            except ExpenseStoreError as e:
                logger.error("Failed to persist record %s: %s", parsed.identity_key, e)
                result.errors.append(
                    PersistenceFailure(parsed.identity_key, parsed.record, str(e))
                )
                continue
            if outcome == InsertResult.DUPLICATE_IGNORED:
                result.duplicates_ignored += 1
            else:
                result.inserted += 1

        self._check_cancelled(cancel_event)
        self.watermark_store.put(self.watermark_key, now)
        result.new_watermark = now

        logger.info(
            "Sync complete: scanned=%d accepted=%d produced=%d inserted=%d "
            "duplicates=%d failures=%d watermark %d -> %d",
            result.messages_scanned,
            result.messages_accepted,
            len(result.records),
            result.inserted,
            result.duplicates_ignored,
            len(result.errors),
            watermark,
            now,
        )
        return result

    @staticmethod
    def _check_cancelled(cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            logger.info("Sync cancelled, watermark not advanced")
            raise SyncCancelledError("Sync pass cancelled")
