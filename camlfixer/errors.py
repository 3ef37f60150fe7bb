#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Thread-safe per-category error logs and the run-wide setup error list."""

from __future__ import annotations

import sys
import threading
from pathlib import Path
from typing import Dict, List, Optional

from .base import DocumentType
from .constants import ERROR_REPORT_NAME, NO_ERRORS_SENTINEL
from .utils import timestamp


class CategoryErrorLog:
    """Ordered, timestamped error lines for one document type."""

    def __init__(self, doc_type: DocumentType) -> None:
        self.doc_type = doc_type
        self._lock = threading.Lock()
        self._lines: List[str] = []

    def append(self, message: str, subject: Optional[str] = None) -> None:
        prefix = f"{timestamp()}: {subject}: " if subject else f"{timestamp()}: "
        lines = [prefix + line for line in message.splitlines() or [""]]
        with self._lock:
            self._lines.extend(lines)

    def lines(self) -> List[str]:
        with self._lock:
            return list(self._lines)

    def drain(self) -> List[str]:
        """Return every line and empty the log."""
        with self._lock:
            lines, self._lines = self._lines, []
        return lines

    def __len__(self) -> int:
        with self._lock:
            return len(self._lines)


class ErrorAggregator:
    """One instance per run, shared by every worker, the writer and the coordinator."""

    def __init__(self, *, echo_setup_errors: bool = True) -> None:
        self._logs: Dict[DocumentType, CategoryErrorLog] = {
            doc_type: CategoryErrorLog(doc_type) for doc_type in DocumentType
        }
        self._setup_lock = threading.Lock()
        self._setup_errors: List[str] = []
        self.echo_setup_errors = echo_setup_errors

    def log(self, doc_type: DocumentType, message: str, subject: Optional[str] = None) -> None:
        self._logs[doc_type].append(message, subject)

    def lines(self, doc_type: DocumentType) -> List[str]:
        return self._logs[doc_type].lines()

    def report_path(self, doc_type: DocumentType, year: str, directory: Path) -> Path:
        return directory / ERROR_REPORT_NAME.format(year=year, label=doc_type.label)

    def flush_year(self, year: str, directory: Path) -> Dict[DocumentType, Path]:
        """Write both category reports for a year and clear the logs for the next one."""
        directory.mkdir(parents=True, exist_ok=True)
        written: Dict[DocumentType, Path] = {}
        # Statutes first, matching the order the reports have always been produced in.
        for doc_type in (DocumentType.STATUTE, DocumentType.RESOLUTION):
            lines = self._logs[doc_type].drain()
            if not lines:
                lines = [NO_ERRORS_SENTINEL.format(label=doc_type.label)]
            path = self.report_path(doc_type, year, directory)
            path.write_text("\n".join(lines) + "\n", encoding="utf-8")
            written[doc_type] = path
        return written

    def record_setup_error(self, message: str) -> None:
        with self._setup_lock:
            self._setup_errors.append(message)
        if self.echo_setup_errors:
            print(message, file=sys.stderr)

    @property
    def setup_errors(self) -> List[str]:
        with self._setup_lock:
            return list(self._setup_errors)

    @property
    def setup_error_count(self) -> int:
        with self._setup_lock:
            return len(self._setup_errors)

    def setup_summary(self) -> str:
        errors = self.setup_errors
        if not errors:
            return "Completed with 0 errors."
        return "\n".join([f"Completed with the following {len(errors)} error(s):", *errors])


__all__ = ["CategoryErrorLog", "ErrorAggregator"]
