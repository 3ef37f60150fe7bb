#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Worker sizing, work partitioning and the single serialized document writer.

Workers are threads rather than processes: they share the year's
MetadataIndex and the run's ErrorAggregator, both internally synchronized.
Every repaired or passed-through document goes through one DocumentWriter
thread that lives for the whole run.
"""

from __future__ import annotations

import os
import queue
import threading
from typing import List, Optional, Sequence, TypeVar

from .base import RepairedDocument
from .constants import MAX_WORKERS_ENV
from .errors import ErrorAggregator
from .exceptions import WriteError

T = TypeVar("T")

_END_OF_WORK = object()


def _available_cpus() -> int:
    """Best-effort logical cpu count respecting scheduler affinity."""
    try:
        return len(os.sched_getaffinity(0))  # type: ignore[attr-defined]
    except (AttributeError, OSError):
        count = os.cpu_count()
        return count if isinstance(count, int) and count > 0 else 1


def _env_requested_workers() -> int | None:
    """Parse CAML_MAX_WORKERS to allow opt-in tuning."""
    raw = os.getenv(MAX_WORKERS_ENV)
    if raw is None or raw == "":
        return None
    try:
        value = int(raw)
    except ValueError:
        return None
    return max(value, 0)


def resolve_worker_count(explicit: int | None = None, *, writer_active: bool = True) -> int:
    """Pool size for one year: every processor, minus one for the writer thread."""
    requested = _env_requested_workers()
    if requested is not None:
        return max(1, requested)
    if explicit is not None:
        return max(1, explicit)
    cpus = _available_cpus()
    return max(1, cpus - 1 if writer_active else cpus)


def partition(items: Sequence[T], workers: int) -> List[List[T]]:
    """Split items into at most ``workers`` contiguous slices as evenly as possible.

    The first ``len(items) % workers`` slices receive one extra item.
    """
    workers = max(1, min(workers, len(items)))
    if not items:
        return []
    per_worker, remainder = divmod(len(items), workers)
    slices: List[List[T]] = []
    start = 0
    for index in range(workers):
        size = per_worker + (1 if index < remainder else 0)
        slices.append(list(items[start:start + size]))
        start += size
    return slices


class DocumentWriter:
    """Single consumer that writes queued documents in arrival order.

    The queue is unbounded. ``close()`` posts the end-of-work signal once; the
    thread exits after draining everything queued before it.
    """

    def __init__(self, errors: ErrorAggregator) -> None:
        self.errors = errors
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._thread = threading.Thread(target=self._run, name="caml-writer", daemon=True)
        self._closed = False
        self._close_lock = threading.Lock()
        self.written = 0

    def start(self) -> "DocumentWriter":
        self._thread.start()
        return self

    def put(self, document: RepairedDocument) -> None:
        if self._closed:
            raise RuntimeError("DocumentWriter is closed; no more documents can be queued.")
        self._queue.put(document)

    def close(self) -> None:
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
        self._queue.put(_END_OF_WORK)

    def join(self, timeout: Optional[float] = None) -> None:
        self._thread.join(timeout)

    def _write(self, document: RepairedDocument) -> None:
        document.destination.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(document.content, bytes):
            document.destination.write_bytes(document.content)
        else:
            with document.destination.open("w", encoding="utf-8", newline="") as handle:
                handle.write(document.content)

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is _END_OF_WORK:
                break
            try:
                self._write(item)
                self.written += 1
            except OSError as exc:
                error = WriteError(f"ERROR: Couldn't write CAML file '{item.destination.name}'!\n{exc}")
                self.errors.record_setup_error(str(error))


__all__ = ["DocumentWriter", "partition", "resolve_worker_count"]
