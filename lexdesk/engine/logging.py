"""
LexDesk Logging — Structured JSON file-based logging.

Implements:
- FileLogger: Per-category log files with daily rotation
- Log entry builders for API calls, mutations and bulk results
- Module-level singleton (init_logging / log / shutdown_logging)

Files: {log_dir}/{category}/{YYYY-MM-DD}.jsonl

Ordinary diagnostics go through stdlib ``logging.getLogger("lexdesk.*")``;
this module records the structured trail of backend traffic and mutations.
"""

from __future__ import annotations

import json
import logging
import threading
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger("lexdesk.engine.logging")

LOG_CATEGORIES = ("api", "documents", "folders", "chat", "cases")


class LogEntry:
    """A structured log entry destined for a category file."""

    __slots__ = ("category", "data")

    def __init__(self, category: str, data: Dict[str, Any]):
        self.category = category
        self.data = data

    def to_json(self) -> str:
        return json.dumps(self.data, default=str, separators=(",", ":"))


class FileLogger:
    """
    Writes structured JSON log entries to per-category files.
    Files rotate daily: logs/{category}/{YYYY-MM-DD}.jsonl

    Thread-safe — uses a lock per file path.
    """

    def __init__(self, log_dir: str = "logs"):
        self._log_dir = Path(log_dir)
        self._file_locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        self._ensure_directories()

    def _ensure_directories(self) -> None:
        for cat in LOG_CATEGORIES:
            (self._log_dir / cat).mkdir(parents=True, exist_ok=True)

    def write(self, entry: LogEntry) -> None:
        """Write a single log entry to the appropriate file."""
        if entry.category not in LOG_CATEGORIES:
            raise ValueError(f"Unknown log category: {entry.category}")
        file_path = self._resolve_path(entry.category)

        with self._file_locks[str(file_path)]:
            with open(file_path, "a", encoding="utf-8") as f:
                f.write(entry.to_json())
                f.write("\n")

    def _resolve_path(self, category: str) -> Path:
        today = date.today().isoformat()
        return self._log_dir / category / f"{today}.jsonl"

    @property
    def log_dir(self) -> Path:
        return self._log_dir

    def query(
        self,
        category: str,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        filters: Optional[Dict[str, Any]] = None,
        limit: int = 500,
    ) -> List[Dict[str, Any]]:
        """
        Read log entries for a category, newest file first.

        Args:
            category: One of LOG_CATEGORIES.
            start_date: Earliest date to include (defaults to 7 days ago).
            end_date: Latest date to include (defaults to today).
            filters: Only entries whose top-level keys equal ALL of these.
            limit: Max number of entries to return.
        """
        if end_date is None:
            end_date = date.today()
        if start_date is None:
            start_date = end_date - timedelta(days=7)

        base = self._log_dir / category
        if not base.exists():
            return []

        results: List[Dict[str, Any]] = []
        current = end_date
        while current >= start_date and len(results) < limit:
            file_path = base / f"{current.isoformat()}.jsonl"
            if file_path.exists():
                results.extend(self._read_jsonl(file_path, filters, limit - len(results)))
            current -= timedelta(days=1)
        return results[:limit]

    @staticmethod
    def _read_jsonl(
        path: Path,
        filters: Optional[Dict[str, Any]],
        remaining: int,
    ) -> List[Dict[str, Any]]:
        entries: List[Dict[str, Any]] = []
        try:
            with open(path, "r", encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        data = json.loads(line)
                    except json.JSONDecodeError:
                        continue
                    if filters and not all(data.get(k) == v for k, v in filters.items()):
                        continue
                    entries.append(data)
                    if len(entries) >= remaining:
                        break
        except OSError as exc:
            logger.warning("Could not read log file %s: %s", path, exc)
        return entries


# ---------------------------------------------------------------------------
# Log Entry Builders
# ---------------------------------------------------------------------------

def _base_entry(event: str, level: str, **extra: Any) -> Dict[str, Any]:
    entry: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": level,
        "event": event,
    }
    entry.update({k: v for k, v in extra.items() if v is not None})
    return entry


def log_api_call(
    method: str,
    path: str,
    status_code: Optional[int],
    duration_ms: float,
    error: Optional[str] = None,
) -> LogEntry:
    """Build an entry for one backend round trip."""
    ok = status_code is not None and 200 <= status_code < 300
    data = _base_entry(
        "api_call",
        "INFO" if ok else "ERROR",
        method=method.upper(),
        path=path,
        status_code=status_code,
        duration_ms=round(duration_ms, 2),
        error=error,
    )
    return LogEntry("api", data)


def log_mutation(
    category: str,
    action: str,
    target: Any,
    success: bool,
    destination: Optional[str] = None,
    error: Optional[str] = None,
) -> LogEntry:
    """Build an entry for a create/rename/move/delete mutation."""
    data = _base_entry(
        f"{action}",
        "INFO" if success else "ERROR",
        target=target,
        destination=destination,
        success=success,
        error=error,
    )
    return LogEntry(category, data)


def log_batch_result(
    action: str,
    succeeded: int,
    failed: int,
    failed_ids: Optional[List[Any]] = None,
    destination: Optional[str] = None,
) -> LogEntry:
    """Build an entry summarizing a bulk document operation."""
    data = _base_entry(
        f"bulk_{action}",
        "INFO" if failed == 0 else "WARNING",
        succeeded=succeeded,
        failed=failed,
        failed_ids=failed_ids or None,
        destination=destination,
    )
    return LogEntry("documents", data)


# ---------------------------------------------------------------------------
# Convenience: Global File Logger Singleton
# ---------------------------------------------------------------------------

_global_logger: Optional[FileLogger] = None


def init_logging(log_dir: str = "logs", level: str = "INFO") -> FileLogger:
    """Initialize the global structured logger and the stdlib log level."""
    global _global_logger
    logging.getLogger("lexdesk").setLevel(level.upper())
    _global_logger = FileLogger(log_dir=log_dir)
    return _global_logger


def get_file_logger() -> Optional[FileLogger]:
    return _global_logger


def log(entry: LogEntry) -> bool:
    """Write an entry through the global logger. Returns False if dropped."""
    if _global_logger is None:
        logger.debug("Structured logging not initialized — entry dropped")
        return False
    try:
        _global_logger.write(entry)
        return True
    except (OSError, ValueError) as e:
        logger.warning(f"Failed to write structured log entry: {e}")
        return False


def shutdown_logging() -> None:
    global _global_logger
    _global_logger = None
