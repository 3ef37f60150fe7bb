#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Console spinner that tracks how many documents of a year have been handled."""

from __future__ import annotations

import sys
import threading
import time
from typing import Callable, Optional, TextIO, TypeVar

T = TypeVar("T")

FRAMES = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"


class YearProgress:
    """Thread-safe document counter shared by a year's workers and its spinner."""

    def __init__(self, year: str, total: int = 0) -> None:
        self.year = year
        self.total = total
        self._done = 0
        self._lock = threading.Lock()

    def advance(self, count: int = 1) -> None:
        with self._lock:
            self._done += count

    @property
    def done(self) -> int:
        with self._lock:
            return self._done

    def label(self) -> str:
        if not self.total:
            return f"Running for year {self.year}"
        return f"Running for year {self.year}: {self.done}/{self.total} files"


def run_with_spinner(
    progress: YearProgress,
    func: Callable[[], T],
    *,
    stream: Optional[TextIO] = None,
    interval: float = 0.1,
) -> T:
    """Run func() in a worker thread while redrawing the year's progress line.

    Output format: ⠋ XXXX.XXs label (during) / ✓ XXXX.XXs label (done) / ✗ on failure.
    """
    out = stream or sys.stdout
    done = threading.Event()
    result: list[T] = []
    err: list[BaseException] = []

    def worker() -> None:
        try:
            result.append(func())
        except BaseException as exc:  # noqa: BLE001
            err.append(exc)
        finally:
            done.set()

    start = time.perf_counter()
    thread = threading.Thread(target=worker, name=f"year-{progress.year}", daemon=True)
    thread.start()
    idx = 0
    while not done.wait(interval):
        elapsed = time.perf_counter() - start
        out.write(f"\r{FRAMES[idx % len(FRAMES)]} {elapsed:7.2f}s {progress.label()}    ")
        out.flush()
        idx += 1
    thread.join()
    elapsed = time.perf_counter() - start
    mark = "✗" if err else "✓"
    out.write(f"\r{mark} {elapsed:7.2f}s {progress.label()}    \n")
    out.flush()
    if err:
        raise err[0]
    return result[0] if result else None  # type: ignore[return-value]


__all__ = ["YearProgress", "run_with_spinner"]
