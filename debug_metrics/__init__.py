"""
Debug Metrics

In-process instrumentation for debugging complex control flow. Record
counters and labels, attach recording rules that snapshot related values
whenever a key changes, and get a causally annotated event log written
out when the metrics are closed.

Key Components:
- config: Recording policies and the instrumentation build toggle
- events: Event type definitions
- labels: Label sources accepted by inc/set
- store: Value store, rule table and rule matching
- engine: DebugMetrics, its no-op twin and the factory choosing between them
- safe: Thread-safe, reference-counted wrapper
- hooks: Scoped side-effect hooks
- sink: Output sink contract and a logging sink
"""

from .config import (
    DebugMetricsConfig,
    INSTRUMENTATION_ENABLED,
    default_config,
    default_on_config,
    get_preset,
    PRESETS,
)
from .events import (
    Event,
    EventType,
    MetricsEvent,
    MetricChange,
    LabelChange,
    CascadeMetricChange,
    CascadeLabelChange,
)
from .labels import (
    LabelIter,
    NoLabels,
    NO_LABELS,
    iter_labels,
)
from .engine import (
    DebugMetrics,
    NoopDebugMetrics,
    TrackedKind,
    create_debug_metrics,
)
from .safe import DebugMetricsSafe
from .hooks import (
    DropHook,
    DropHookSafe,
)
from .sink import (
    OutputSink,
    LoggingSink,
)

__all__ = [
    # Config
    "DebugMetricsConfig",
    "INSTRUMENTATION_ENABLED",
    "default_config",
    "default_on_config",
    "get_preset",
    "PRESETS",
    # Events
    "Event",
    "EventType",
    "MetricsEvent",
    "MetricChange",
    "LabelChange",
    "CascadeMetricChange",
    "CascadeLabelChange",
    # Labels
    "LabelIter",
    "NoLabels",
    "NO_LABELS",
    "iter_labels",
    # Engine
    "DebugMetrics",
    "NoopDebugMetrics",
    "TrackedKind",
    "create_debug_metrics",
    "DebugMetricsSafe",
    # Hooks
    "DropHook",
    "DropHookSafe",
    # Sinks
    "OutputSink",
    "LoggingSink",
]
