"""
Thread-safe Debug Metrics.

DebugMetricsSafe puts one DebugMetrics behind a lock so it can be used
from several threads. Handles are cloned rather than copied; the event
log is flushed once, when the last handle is closed.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List

from .hooks import DropHookSafe
from .labels import NO_LABELS, LabelSource

logger = logging.getLogger(__name__)


class _SharedState:
    """State shared by every clone of a DebugMetricsSafe."""

    def __init__(self, debug_metrics: Any):
        self.debug_metrics = debug_metrics
        self.lock = threading.Lock()
        self.handles = 1
        self.poisoned = False


class DebugMetricsSafe:
    """
    Lock-guarded, reference-counted handle to debug metrics.

    Every operation holds the lock for its whole duration, so events
    from concurrent callers land in the log in lock-acquisition order.
    An exception escaping an operation poisons the shared state: every
    later operation on any clone raises RuntimeError.

    Example:
        shared = DebugMetrics(sys.stdout, default_on_config()).safe()

        def worker(handle):
            with handle:
                handle.inc("jobs")

        threads = [threading.Thread(target=worker, args=(shared.clone(),))
                   for _ in range(4)]
        ...
        shared.close()  # flushes once every clone is closed
    """

    def __init__(self, debug_metrics: Any):
        """
        Initialize the first handle.

        Args:
            debug_metrics: DebugMetrics (or NoopDebugMetrics) to guard
        """
        self._state = _SharedState(debug_metrics)
        self._closed = False

    def clone(self) -> "DebugMetricsSafe":
        """Create another handle to the same metrics."""
        if self._closed:
            raise RuntimeError("Cannot clone a closed DebugMetricsSafe handle")
        with self._state.lock:
            self._state.handles += 1
        handle = DebugMetricsSafe.__new__(DebugMetricsSafe)
        handle._state = self._state
        handle._closed = False
        return handle

    @property
    def closed(self) -> bool:
        """True once this handle has been closed."""
        return self._closed

    @property
    def handles(self) -> int:
        """Number of open handles sharing these metrics."""
        return self._state.handles

    @contextmanager
    def _locked(self) -> Iterator[Any]:
        if self._closed:
            raise RuntimeError("DebugMetricsSafe handle is already closed")
        with self._state.lock:
            if self._state.poisoned:
                raise RuntimeError(
                    "debug metrics state is poisoned by an earlier failure"
                )
            try:
                yield self._state.debug_metrics
            except BaseException:
                self._state.poisoned = True
                logger.error("Debug metrics operation failed; shared state is now poisoned")
                raise

    def with_drop_hook(self, call_fn: Callable[["DebugMetricsSafe"], None]) -> DropHookSafe:
        """Run ``call_fn`` with a clone of this handle when the returned scope exits."""
        return DropHookSafe(self, call_fn)

    def add_recording_rule(self, key: str, patterns) -> None:
        with self._locked() as debug_metrics:
            debug_metrics.add_recording_rule(key, patterns)

    def add_drop_hook(self, key: str) -> None:
        with self._locked() as debug_metrics:
            debug_metrics.add_drop_hook(key)

    def inc(self, key: str, labels: LabelSource = NO_LABELS) -> None:
        with self._locked() as debug_metrics:
            debug_metrics.inc(key, labels)

    def set(self, key: str, value: int, labels: LabelSource = NO_LABELS) -> None:
        with self._locked() as debug_metrics:
            debug_metrics.set(key, value, labels)

    def set_label(self, key: str, value: str) -> None:
        with self._locked() as debug_metrics:
            debug_metrics.set_label(key, value)

    def events_for_key(self, key: str) -> List[Any]:
        with self._locked() as debug_metrics:
            return debug_metrics.events_for_key(key)

    def close(self) -> None:
        """
        Release this handle.

        The last handle to be released flushes the metrics, whether or
        not the shared state is poisoned.
        """
        if self._closed:
            return
        self._closed = True

        with self._state.lock:
            self._state.handles -= 1
            last = self._state.handles == 0

        if last:
            self._state.debug_metrics.close()

    def __enter__(self) -> "DebugMetricsSafe":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
