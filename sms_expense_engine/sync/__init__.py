"""
Sync Module for the SMS expense engine.

Incremental extraction driven by a persisted watermark:
- Orchestrator (state machine, single-flight guard, cancellation)
- Message sources (in-memory, export files)
- Watermark and expense stores (in-memory, SQLite)
"""

from .orchestrator import (
    SyncOrchestrator,
    SyncState,
    SyncResult,
    PersistenceFailure,
    SyncError,
    MessageSourceUnavailableError,
    ExpenseStoreError,
    SyncInProgressError,
    SyncCancelledError,
)
from .sources import (
    InMemoryMessageSource,
    ExportFileMessageSource,
    CombinedMessageSource,
    InvalidExportStructureError,
    read_export,
    normalize_message_rows,
)
from .stores import (
    InMemoryWatermarkStore,
    SqliteWatermarkStore,
    InMemoryExpenseStore,
    SqliteExpenseStore,
)

__all__ = [
    "SyncOrchestrator",
    "SyncState",
    "SyncResult",
    "PersistenceFailure",
    "SyncError",
    "MessageSourceUnavailableError",
    "ExpenseStoreError",
    "SyncInProgressError",
    "SyncCancelledError",
    "InMemoryMessageSource",
    "ExportFileMessageSource",
    "CombinedMessageSource",
    "InvalidExportStructureError",
    "read_export",
    "normalize_message_rows",
    "InMemoryWatermarkStore",
    "SqliteWatermarkStore",
    "InMemoryExpenseStore",
    "SqliteExpenseStore",
]
