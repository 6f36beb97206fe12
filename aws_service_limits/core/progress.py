"""
Progress tracking for a pipeline run.

Counters are written by the pipeline and its tasks; the reporter only reads
them on a timer and never influences control flow.
"""

import sys
import threading
from dataclasses import dataclass
from typing import Optional, TextIO


@dataclass(frozen=True)
class ProgressSnapshot:
    """Point-in-time view of the counters."""
    completed: int
    total: int


class ProgressCounters:
    """Thread-safe (completed, total) task counters."""

    def __init__(self):
        self._lock = threading.Lock()
        self._completed = 0
        self._total = 0

    def add_total(self, count: int) -> None:
        """Register newly discovered tasks."""
        if count < 0:
            raise ValueError("count must be >= 0")
        with self._lock:
            self._total += count

    def mark_completed(self) -> None:
        with self._lock:
            self._completed += 1

    def snapshot(self) -> ProgressSnapshot:
        with self._lock:
            return ProgressSnapshot(completed=self._completed, total=self._total)


def is_interactive(stream: TextIO) -> bool:
    """Return True if the stream is attached to a terminal."""
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


class ProgressReporter:
    """Background ticker printing a transient status line.
    
    Status lines are written only when the stream is a terminal so that
    redirected or piped report output stays clean.
    """

    def __init__(
        self,
        counters: ProgressCounters,
        stream: Optional[TextIO] = None,
        interval: float = 1.0,
    ):
        if interval <= 0:
            raise ValueError("interval must be > 0")
        self.counters = counters
        self.stream = stream if stream is not None else sys.stdout
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def render(self) -> str:
        snapshot = self.counters.snapshot()
        return f"\rCompleted {snapshot.completed}/{snapshot.total} tasks"

    def tick(self) -> None:
        """Emit one status update if the stream is interactive."""
        if not is_interactive(self.stream):
            return
        self.stream.write(self.render())
        self.stream.flush()

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.tick()

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("reporter already started")
        self._thread = threading.Thread(
            target=self._run, name="progress-reporter", daemon=True
        )
        self._thread.start()

    def stop(self, completed: bool = True) -> None:
        """Stop the ticker and terminate the status line."""
        if self._thread is None:
            return
        self._stop.set()
        self._thread.join()
        self._thread = None
        if not is_interactive(self.stream):
            return
        if completed:
            self.stream.write(self.render())
            self.stream.write("\nAll tasks completed!\n")
        else:
            self.stream.write("\n")
        self.stream.flush()

    def __enter__(self) -> "ProgressReporter":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop(completed=exc_type is None)
