"""
SMS Batch Processor for extracting expenses from message export files.
Handles JSON, JSON-lines, CSV and ZIP archives with per-file error handling.
"""

import json
import logging
import zipfile
import io
import os
from typing import Dict, List, Optional, Tuple, Callable, Union
from dataclasses import dataclass, field
from datetime import datetime
import traceback

import pandas as pd

from sms_expense_engine.parser import SmsExpenseParser
from sms_expense_engine.records import ParsedMessage
from sms_expense_engine.sync.orchestrator import SyncOrchestrator, SyncResult
from sms_expense_engine.sync.sources import (
    SUPPORTED_EXTENSIONS,
    CombinedMessageSource,
    ExportFileMessageSource,
    InvalidExportStructureError,
    normalize_message_rows,
    read_export,
)
from sms_expense_engine.sync.stores import SqliteExpenseStore, SqliteWatermarkStore

DEFAULT_DB_PATH = "sms_expenses.db"

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@dataclass
class ProcessingError:
    """Details of a processing error."""
    file_name: str
    error_type: str
    error_message: str
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())


@dataclass
class BatchStats:
    """Statistics for batch processing."""
    total_files: int = 0
    processed: int = 0
    successful: int = 0
    failed: int = 0
    
    # Message counts
    messages_scanned: int = 0
    messages_accepted: int = 0
    messages_rejected: int = 0
    duplicates: int = 0
    
    # Amount statistics
    total_amount: float = 0.0
    
    # Timing
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    
    @property
    def expenses_extracted(self) -> int:
        return self.messages_accepted - self.duplicates
    
    @property
    def processing_time(self) -> float:
        """Calculate total processing time in seconds."""
        if self.start_time and self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return 0.0
    
    @property
    def success_rate(self) -> float:
        """Calculate success rate as percentage."""
        if self.total_files == 0:
            return 0.0
        return (self.successful / self.total_files) * 100
    
    @property
    def acceptance_rate(self) -> float:
        if self.messages_scanned == 0:
            return 0.0
        return (self.messages_accepted / self.messages_scanned) * 100


@dataclass
class BatchResult:
    """Complete result of batch processing."""
    stats: BatchStats
    results: List[ParsedMessage]
    errors: List[ProcessingError]
    error_summary: Dict[str, int] = field(default_factory=dict)
    
    @staticmethod
    def merge_results(result1: 'BatchResult', result2: 'BatchResult') -> 'BatchResult':
        """
        Merge two BatchResult objects into a single combined result.
        
        Used for cumulative processing where several uploads are combined.
        Records whose identity key already appears in result1 are dropped
        from result2 and counted as duplicates.
        
        Args:
            result1: First batch result (typically the existing cumulative result)
            result2: Second batch result (typically the new batch to add)
        
        Returns:
            New BatchResult with merged data
        """
        merged_stats = BatchStats()
        
        # Sum all count fields
        for name in (
            "total_files", "processed", "successful", "failed",
            "messages_scanned", "messages_accepted", "messages_rejected", "duplicates",
        ):
            setattr(merged_stats, name, getattr(result1.stats, name) + getattr(result2.stats, name))
        
        # Use earliest start time and latest end time
        if result1.stats.start_time and result2.stats.start_time:
            merged_stats.start_time = min(result1.stats.start_time, result2.stats.start_time)
        else:
            merged_stats.start_time = result1.stats.start_time or result2.stats.start_time
        
        if result1.stats.end_time and result2.stats.end_time:
            merged_stats.end_time = max(result1.stats.end_time, result2.stats.end_time)
        else:
            merged_stats.end_time = result1.stats.end_time or result2.stats.end_time
        
        # Concatenate results, dropping cross-batch duplicates
        seen = {parsed.identity_key for parsed in result1.results}
        merged_results = list(result1.results)
        for parsed in result2.results:
            if parsed.identity_key in seen:
                merged_stats.duplicates += 1
                continue
            seen.add(parsed.identity_key)
            merged_results.append(parsed)
        merged_stats.total_amount = round(
            sum(float(parsed.record.amount) for parsed in merged_results), 2
        )
        
        merged_errors = result1.errors + result2.errors
        
        # Merge error summaries
        merged_error_summary = dict(result1.error_summary)
        for error_type, count in result2.error_summary.items():
            merged_error_summary[error_type] = merged_error_summary.get(error_type, 0) + count
        
        return BatchResult(
            stats=merged_stats,
            results=merged_results,
            errors=merged_errors,
            error_summary=merged_error_summary
        )


class SmsBatchProcessor:
    """Batch processor for SMS export files."""
    
    def __init__(self, parser: Optional[SmsExpenseParser] = None):
        """
        Initialize the batch processor.
        
        Args:
            parser: Parser to use (defaults to the built-in catalog)
        """
        self.parser = parser or SmsExpenseParser()
        logger.info("Initialized SMS batch processor")
    
    def process_batch(
        self,
        files: List[Tuple[str, bytes]],
        progress_callback: Optional[Callable[[int, int, str], None]] = None
    ) -> BatchResult:
        """
        Process a batch of export files.
        
        Identity keys are deduplicated across the whole batch.
        
        Args:
            files: List of (filename, content) tuples
            progress_callback: Optional callback(current, total, message)
        
        Returns:
            BatchResult with all processing results
        """
        stats = BatchStats(
            total_files=len(files),
            start_time=datetime.now()
        )
        
        results = []
        errors = []
        error_types = {}
        seen_keys = set()
        
        logger.info(f"Starting batch processing of {len(files)} files")
        
        for idx, (filename, content) in enumerate(files):
            error_type = None
            try:
                if progress_callback:
                    progress_callback(idx + 1, len(files), f"Processing: {filename}")
                
                logger.debug(f"Processing file {idx + 1}/{len(files)}: {filename}")
                
                file_results = self._process_single_file(filename, content, stats, seen_keys)
                results.extend(file_results)
                stats.processed += 1
                stats.successful += 1
                stats.total_amount = round(
                    stats.total_amount + sum(float(p.record.amount) for p in file_results), 2
                )
                
            except json.JSONDecodeError as e:
                error_type = "JSON_PARSE_ERROR"
                message = f"Invalid JSON: {str(e)}"
                logger.error(f"JSON parse error in {filename}: {e}")
                
            except InvalidExportStructureError as e:
                error_type = "INVALID_EXPORT_STRUCTURE"
                message = str(e)
                logger.error(f"Invalid export structure in {filename}: {e}")
                
            except ValueError as e:
                error_type = "DATA_VALIDATION_ERROR"
                message = str(e)
                logger.error(f"Data validation error in {filename}: {e}")
                
            except Exception as e:
                error_type = "PROCESSING_ERROR"
                message = f"{type(e).__name__}: {str(e)}"
                logger.error(f"Processing error in {filename}: {traceback.format_exc()}")
            
            if error_type:
                errors.append(ProcessingError(
                    file_name=filename,
                    error_type=error_type,
                    error_message=message
                ))
                stats.failed += 1
                stats.processed += 1
                error_types[error_type] = error_types.get(error_type, 0) + 1
        
        stats.end_time = datetime.now()
        
        logger.info(
            f"Batch processing complete: {stats.successful}/{stats.total_files} files, "
            f"{stats.expenses_extracted} expenses from {stats.messages_scanned} messages, "
            f"time: {stats.processing_time:.1f}s"
        )
        
        return BatchResult(
            stats=stats,
            results=results,
            errors=errors,
            error_summary=error_types
        )
    
    def _process_single_file(
        self,
        filename: str,
        content: bytes,
        stats: BatchStats,
        seen_keys: set
    ) -> List[ParsedMessage]:
        """Process a single export file."""
        messages = normalize_message_rows(read_export(content, filename))
        
        if not messages:
            raise ValueError("No messages found in file")
        
        file_results = []
        for message in messages:
            stats.messages_scanned += 1
            parsed = self.parser.parse_message(message)
            if parsed is None:
                stats.messages_rejected += 1
                continue
            stats.messages_accepted += 1
            if parsed.identity_key in seen_keys:
                stats.duplicates += 1
                continue
            seen_keys.add(parsed.identity_key)
            file_results.append(parsed)
        
        logger.debug(f"{filename}: {len(messages)} messages, {len(file_results)} expenses")
        return file_results
    
    def load_files(self, paths: List[str]) -> List[Tuple[str, bytes]]:
        """
        Load export files from disk.
        Handles plain exports and ZIP archives.
        
        Args:
            paths: File paths
        
        Returns:
            List of (filename, content) tuples
        """
        uploads = []
        for path in paths:
            with open(path, "rb") as f:
                uploads.append((os.path.basename(path), f.read()))
        return self.expand_uploads(uploads)
    
    def expand_uploads(self, uploads: List[Tuple[str, bytes]]) -> List[Tuple[str, bytes]]:
        """
        Expand ZIP archives and drop unsupported files.
        
        Args:
            uploads: List of (filename, content) tuples
        
        Returns:
            List of (filename, content) tuples ready for process_batch
        """
        all_files = []
        
        for filename, content in uploads:
            if filename.lower().endswith(".zip"):
                logger.info(f"Extracting ZIP archive: {filename}")
                zip_files = self._extract_zip(content)
                all_files.extend(zip_files)
                logger.info(f"Extracted {len(zip_files)} files from {filename}")
            
            elif filename.lower().endswith(SUPPORTED_EXTENSIONS):
                all_files.append((filename, content))
            
            else:
                logger.warning(f"Skipping unsupported file: {filename}")
        
        logger.info(f"Total files loaded: {len(all_files)}")
        return all_files
    
    def _extract_zip(self, content: bytes) -> List[Tuple[str, bytes]]:
        """Extract export files from a ZIP archive."""
        files = []
        
        with zipfile.ZipFile(io.BytesIO(content), "r") as zf:
            for name in zf.namelist():
                # Skip directories and unsupported files
                if name.endswith("/"):
                    continue
                if not name.lower().endswith(SUPPORTED_EXTENSIONS):
                    continue
                
                # Use just the filename without path
                files.append((os.path.basename(name), zf.read(name)))
        
        return files
    
    def results_to_dataframe(self, results: List[ParsedMessage]) -> pd.DataFrame:
        """
        Convert parsed messages to a pandas DataFrame.
        
        Args:
            results: List of ParsedMessage objects
        
        Returns:
            pandas DataFrame
        """
        rows = []
        for parsed in results:
            record = parsed.record
            rows.append({
                "Date": record.occurred_at.isoformat(),
                "Amount": float(record.amount),
                "Merchant": record.merchant_name,
                "Category": record.category,
                "Match Method": parsed.match_method,
                "Identity Key": parsed.identity_key,
                "Source": record.source,
                "Message": record.raw_text,
            })
        
        return pd.DataFrame(rows)
    
    def errors_to_dataframe(self, errors: List[ProcessingError]) -> pd.DataFrame:
        """
        Convert processing errors to a pandas DataFrame.
        
        Args:
            errors: List of ProcessingError objects
        
        Returns:
            pandas DataFrame
        """
        rows = []
        for error in errors:
            rows.append({
                "File Name": error.file_name,
                "Error Type": error.error_type,
                "Error Message": error.error_message,
                "Timestamp": error.timestamp,
            })
        
        return pd.DataFrame(rows)


def run_sync_from_export(
    export_paths: Union[str, List[str]],
    db_path: Optional[str] = None
) -> SyncResult:
    """
    Run one incremental sync pass from export files into SQLite.

    The watermark and expenses live in the same database, so repeated runs
    only pick up messages newer than the previous pass. Several exports are
    read in the same pass, against the same watermark.

    Args:
        export_paths: SMS export file or list of files (JSON, JSON-lines or CSV)
        db_path: SQLite path (defaults to $SMS_EXPENSE_DB or sms_expenses.db)

    Returns:
        SyncResult of the pass
    """
    if isinstance(export_paths, (str, os.PathLike)):
        export_paths = [export_paths]
    db_path = db_path or os.environ.get("SMS_EXPENSE_DB", DEFAULT_DB_PATH)
    watermark_store = SqliteWatermarkStore(db_path)
    expense_store = SqliteExpenseStore(db_path)
    try:
        orchestrator = SyncOrchestrator(
            source=CombinedMessageSource(ExportFileMessageSource(p) for p in export_paths),
            watermark_store=watermark_store,
            expense_store=expense_store,
        )
        return orchestrator.run_sync()
    finally:
        watermark_store.close()
        expense_store.close()


if __name__ == "__main__":
    import argparse

    arg_parser = argparse.ArgumentParser(description="Extract expenses from SMS export files")
    arg_parser.add_argument("files", nargs="+", help="JSON, JSON-lines, CSV or ZIP exports")
    arg_parser.add_argument("--output", help="Write extracted expenses to this CSV file")
    arg_parser.add_argument(
        "--sync", action="store_true",
        help="Sync the exports in one pass into the SQLite store ($SMS_EXPENSE_DB) instead of a one-off batch"
    )
    args = arg_parser.parse_args()

    if args.sync:
        # one pass over all exports against the same watermark
        sync_result = run_sync_from_export(args.files)
        if sync_result.source_unavailable:
            logger.error("Export unavailable, watermark unchanged")
            raise SystemExit(1)
        logger.info(
            f"{len(args.files)} exports: {sync_result.messages_scanned} scanned, "
            f"{sync_result.inserted} inserted, "
            f"{sync_result.duplicates_ignored} already stored, "
            f"{len(sync_result.errors)} failed"
        )
        raise SystemExit(0)

    processor = SmsBatchProcessor()
    batch = processor.process_batch(processor.load_files(args.files))
    
    df = processor.results_to_dataframe(batch.results)
    if args.output:
        df.to_csv(args.output, index=False)
        logger.info(f"Wrote {len(df)} expenses to {args.output}")
    else:
        print(df.to_string(index=False) if not df.empty else "No expenses found")
    
    if batch.errors:
        print(processor.errors_to_dataframe(batch.errors).to_string(index=False))
