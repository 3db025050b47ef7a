"""
Debug Metrics Engine.

DebugMetrics records counters and labels during a run, snapshots related
values through recording rules, and writes the resulting event log to its
output sink when closed. It is a convenient way to debug complex control
flow; it is not production metrics.

Example:
    with DebugMetrics(sys.stdout, default_config()) as debug_metrics:
        debug_metrics.add_recording_rule("retries", ["^stage$", "errors"])
        debug_metrics.add_drop_hook("retries")

        debug_metrics.set_label("stage", "fetch")
        debug_metrics.inc("errors")
        debug_metrics.inc("retries")

    # On exit: retries: 1 :: {"errors": "1", "stage": "fetch"}
"""

from __future__ import annotations

import logging
import sys
from enum import Enum
from typing import Callable, Iterable, List, Optional, Set

from .config import DebugMetricsConfig, INSTRUMENTATION_ENABLED, default_config
from .events import Event, LabelChange, MetricChange
from .hooks import DropHook
from .labels import NO_LABELS, LabelPair, LabelSource, iter_labels
from .safe import DebugMetricsSafe
from .sink import OutputSink, write_line
from .store import RuleTable, ValueStore, match_snapshot
from .util.line_format import event_line

logger = logging.getLogger(__name__)


class TrackedKind(Enum):
    """Which store a tracked key lives in."""
    COUNTER = "counter"
    LABEL = "label"


class DebugMetrics:
    """
    Single-owner debug metrics with no internal synchronization.

    Use ``safe()`` to share one instance between threads. When
    instrumentation is disabled, constructing one yields a
    NoopDebugMetrics instead.
    """

    def __new__(
        cls,
        output_writer: OutputSink,
        config: Optional[DebugMetricsConfig] = None,
    ):
        if not INSTRUMENTATION_ENABLED:
            return NoopDebugMetrics(output_writer, config)
        return super().__new__(cls)

    def __init__(
        self,
        output_writer: OutputSink,
        config: Optional[DebugMetricsConfig] = None,
    ):
        """
        Initialize the metrics.

        Args:
            output_writer: Sink the event log is written to on close
            config: Recording policies (uses defaults if None)
        """
        self._rules = RuleTable()
        self._store = ValueStore()
        self._events: List[Event] = []
        self._drop_print: Set[str] = set()
        self._output_writer = output_writer
        self._config = config if config is not None else default_config()
        self._closed = False

    @classmethod
    def default(cls) -> "DebugMetrics":
        """Metrics writing to stdout with the default configuration."""
        return cls(sys.stdout, default_config())

    @property
    def config(self) -> DebugMetricsConfig:
        return self._config

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def events(self) -> List[Event]:
        """Copy of the whole event log, in insertion order."""
        return list(self._events)

    def safe(self) -> DebugMetricsSafe:
        """Wrap these metrics for use from several threads."""
        return DebugMetricsSafe(self)

    def with_drop_hook(self, call_fn: Callable[["DebugMetrics"], None]) -> DropHook:
        """Run ``call_fn`` with these metrics when the returned scope exits."""
        return DropHook(self, call_fn)

    def add_recording_rule(self, key: str, patterns: Iterable[str]) -> None:
        """
        Snapshot every counter and label matching ``patterns`` whenever
        ``key`` changes.

        Patterns are compiled when ``key`` is next mutated; an invalid
        pattern raises ``re.error`` at that point.
        """
        if isinstance(patterns, str):
            patterns = [patterns]
        self._rules.add(str(key), patterns)

    def add_drop_hook(self, key: str) -> None:
        """Always print events for ``key`` when the metrics are closed."""
        key = str(key)
        self._drop_print.add(key)
        logger.debug("Drop hook registered for %s", key)

    def inc(self, key: str, labels: LabelSource = NO_LABELS) -> None:
        """Add one to a counter, then apply ``labels`` as cascades."""
        key = str(key)
        # Malformed labels must leave the store untouched
        pairs = list(iter_labels(labels))
        self._store.inc(key)
        self._record_counter(key, pairs)

    def set(self, key: str, value: int, labels: LabelSource = NO_LABELS) -> None:
        """Assign a counter, then apply ``labels`` as cascades."""
        key = str(key)
        pairs = list(iter_labels(labels))
        self._store.set(key, value)
        self._record_counter(key, pairs)

    def set_label(self, key: str, value: str) -> None:
        key = str(key)
        self._store.set_label(key, str(value))
        event = self._build_event(key, TrackedKind.LABEL)
        if event is not None:
            self._events.append(event)

    def events_for_key(self, key: str) -> List[Event]:
        """
        Get every event for ``key``, including cascades it caused.

        Args:
            key: Metric or label name

        Returns:
            Matching events in log order
        """
        key = str(key)
        return [
            event for event in self._events
            if event.key == key or event.cause == key
        ]

    def _record_counter(self, key: str, pairs: List[LabelPair]) -> None:
        for label_key, label_value in pairs:
            # Empty keys are placeholders for "no labels"
            if not label_key:
                continue
            self._store.set_label(label_key, label_value)
            event = self._build_event(label_key, TrackedKind.LABEL)
            if event is not None:
                self._events.append(event.promote(key))

        event = self._build_event(key, TrackedKind.COUNTER)
        if event is not None:
            self._events.append(event)

    def _build_event(self, key: str, kind: TrackedKind) -> Optional[Event]:
        """
        Build the event for a mutation of ``key``, if one is wanted.

        The store must already hold the new value.
        """
        patterns = self._rules.get(key)
        if patterns is not None:
            dependencies, labels = match_snapshot(patterns, self._store)
        elif self._config.process_all_events:
            dependencies, labels = {}, {}
        else:
            return None

        if self._config.all_labels_every_event:
            labels.update(self._store.labels)

        if kind is TrackedKind.COUNTER:
            return MetricChange(
                metric=key,
                count=self._store.counts[key],
                dependencies=dependencies,
                labels=labels,
            )
        return LabelChange(
            label=key,
            value=self._store.labels[key],
            dependencies=dependencies,
            labels=labels,
        )

    def close(self) -> None:
        """
        Write the event log to the output sink and flush it.

        An event is written when ``process_all_events`` is set or its key
        has a drop hook. The sink is flushed even if nothing was written.
        Calling close more than once has no further effect.

        Raises:
            Exception: Whatever the sink raised; the failure is logged first
        """
        if self._closed:
            return
        self._closed = True

        written = 0
        try:
            for event in self._events:
                if self._config.process_all_events or event.key in self._drop_print:
                    write_line(self._output_writer, event_line(event))
                    written += 1
            self._output_writer.flush()
        except Exception:
            logger.exception("Failed to flush debug metrics to %r", self._output_writer)
            raise

        logger.debug("Flushed %d of %d debug metrics events", written, len(self._events))

    def __enter__(self) -> "DebugMetrics":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class NoopDebugMetrics:
    """
    Debug metrics for when instrumentation is disabled.

    Offers the same methods as DebugMetrics; nothing is stored and every
    query is empty, so calling code never needs to check the mode. The
    sink is still flushed on close.
    """

    def __init__(
        self,
        output_writer: OutputSink,
        config: Optional[DebugMetricsConfig] = None,
    ):
        self._output_writer = output_writer
        self._config = config if config is not None else default_config()
        self._closed = False

    @classmethod
    def default(cls) -> "NoopDebugMetrics":
        return cls(sys.stdout, default_config())

    @property
    def config(self) -> DebugMetricsConfig:
        return self._config

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def events(self) -> List[Event]:
        return []

    def safe(self) -> DebugMetricsSafe:
        return DebugMetricsSafe(self)

    def with_drop_hook(self, call_fn: Callable[["NoopDebugMetrics"], None]) -> DropHook:
        return DropHook(self, call_fn)

    def add_recording_rule(self, key: str, patterns: Iterable[str]) -> None:
        pass

    def add_drop_hook(self, key: str) -> None:
        pass

    def inc(self, key: str, labels: LabelSource = NO_LABELS) -> None:
        pass

    def set(self, key: str, value: int, labels: LabelSource = NO_LABELS) -> None:
        pass

    def set_label(self, key: str, value: str) -> None:
        pass

    def events_for_key(self, key: str) -> List[Event]:
        return []

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._output_writer.flush()

    def __enter__(self) -> "NoopDebugMetrics":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def create_debug_metrics(
    output_writer: Optional[OutputSink] = None,
    config: Optional[DebugMetricsConfig] = None,
    enabled: Optional[bool] = None,
):
    """
    Factory function to create the appropriate debug metrics.

    Returns a NoopDebugMetrics when instrumentation is disabled, which
    is the case under ``python -O``. ``enabled=False`` also forces the
    no-op; ``enabled=True`` cannot turn instrumentation back on in a
    disabled build.

    Args:
        output_writer: Sink for the event log (stdout if None)
        config: Recording policies (uses defaults if None)
        enabled: Set to False to disable instrumentation in an enabled build

    Returns:
        DebugMetrics or NoopDebugMetrics
    """
    if output_writer is None:
        output_writer = sys.stdout
    if enabled is None:
        enabled = INSTRUMENTATION_ENABLED

    if not enabled:
        return NoopDebugMetrics(output_writer, config)

    return DebugMetrics(output_writer, config)
