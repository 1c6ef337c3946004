"""
Progress reporting for long-running operations.

Long operations (per-TF regression fits, chunked correlations, null
ensembles) accept an optional ``progress`` argument implementing
ProgressReporter. Nothing is printed unless a reporter is passed in.

    >>> from netstate.utils.progress import TqdmProgress
    >>> network = infer(motifs, expression, progress=TqdmProgress())
"""

from __future__ import annotations

import logging
import threading
from typing import Optional, Protocol, runtime_checkable

from tqdm import tqdm

__all__ = [
    'ProgressReporter',
    'NullProgress',
    'TqdmProgress',
    'LoggingProgress',
    'resolve_progress',
]


@runtime_checkable
class ProgressReporter(Protocol):
    """Receives stage messages and per-item progress from long operations."""

    def message(self, text: str) -> None:
        """Report a stage of the computation."""
        ...

    def start(self, total: int, desc: str) -> None:
        """Begin a loop of ``total`` items."""
        ...

    def advance(self, n: int = 1) -> None:
        """Mark ``n`` items as done."""
        ...

    def close(self) -> None:
        """End the current loop."""
        ...


class NullProgress:
    """Reporter that discards everything."""

    def message(self, text: str) -> None:
        pass

    def start(self, total: int, desc: str) -> None:
        pass

    def advance(self, n: int = 1) -> None:
        pass

    def close(self) -> None:
        pass


class TqdmProgress:
    """Progress bars on stderr via tqdm; stage messages via tqdm.write."""

    def __init__(self, unit: str = "it", leave: bool = False):
        self.unit = unit
        self.leave = leave
        self._bar: Optional[tqdm] = None

    def message(self, text: str) -> None:
        tqdm.write(text)

    def start(self, total: int, desc: str) -> None:
        self.close()
        self._bar = tqdm(total=total, desc=desc, unit=self.unit, leave=self.leave)

    def advance(self, n: int = 1) -> None:
        if self._bar is not None:
            self._bar.update(n)

    def close(self) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None


class LoggingProgress:
    """
    Reporter that writes to a logger, emitting a line every ``every`` items.

    Safe to advance from worker threads (null ensembles run members in a pool).
    """

    def __init__(self, logger: Optional[logging.Logger] = None, every: int = 100):
        self.logger = logger or logging.getLogger("netstate.progress")
        self.every = max(1, every)
        self._desc = ""
        self._total = 0
        self._done = 0
        self._lock = threading.Lock()

    def message(self, text: str) -> None:
        self.logger.info(text)

    def start(self, total: int, desc: str) -> None:
        with self._lock:
            self._desc = desc
            self._total = total
            self._done = 0

    def advance(self, n: int = 1) -> None:
        with self._lock:
            before = self._done // self.every
            self._done += n
            if self._done // self.every > before or self._done == self._total:
                self.logger.info(f"{self._desc}: {self._done}/{self._total}")

    def close(self) -> None:
        with self._lock:
            self._desc = ""
            self._total = 0
            self._done = 0


def resolve_progress(progress: Optional[ProgressReporter]) -> ProgressReporter:
    """Return ``progress`` or a NullProgress when None."""
    return NullProgress() if progress is None else progress
