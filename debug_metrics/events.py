"""
Debug Metrics Event Definitions.

This module defines the four event types recorded by DebugMetrics.
Events are immutable once constructed; the event log's insertion order
is their only ordering.

- MetricChange / LabelChange: a counter or label was mutated directly
- CascadeMetricChange / CascadeLabelChange: the mutation happened as a
  side effect of updating another key, named by ``cause``
"""

from __future__ import annotations

from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class EventType(Enum):
    """Enumeration of the event variants."""

    METRIC_CHANGE = "metric_change"
    LABEL_CHANGE = "label_change"
    CASCADE_METRIC_CHANGE = "cascade_metric_change"
    CASCADE_LABEL_CHANGE = "cascade_label_change"


class MetricsEvent(BaseModel):
    """
    Common base for all debug metrics events.

    Subclasses provide ``key``, ``display_value`` and ``cause``.

    Attributes:
        dependencies: Counter snapshots captured by the recording rule
        labels: Label snapshots captured by the rule or the all-labels policy
    """

    model_config = ConfigDict(frozen=True)

    event_type: ClassVar[EventType]

    dependencies: Dict[str, int] = Field(default_factory=dict)
    labels: Dict[str, str] = Field(default_factory=dict)

    def snapshot(self) -> Dict[str, str]:
        """
        Merge dependencies and labels into one string-keyed map.

        Returns:
            Dictionary of key -> value, counters stringified
        """
        merged = {key: str(count) for key, count in self.dependencies.items()}
        merged.update(self.labels)
        return merged

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to dictionary for serialization.

        Returns:
            Dictionary representation of the event
        """
        data = self.model_dump()
        data["event_type"] = self.event_type.value
        return data


class MetricChange(MetricsEvent):
    """A counter was incremented or set."""

    event_type: ClassVar[EventType] = EventType.METRIC_CHANGE

    metric: str
    count: int = Field(ge=0)

    @property
    def key(self) -> str:
        return self.metric

    @property
    def display_value(self) -> str:
        return str(self.count)

    @property
    def cause(self) -> Optional[str]:
        return None

    def promote(self, cause: str) -> "CascadeMetricChange":
        """Turn this event into one caused by a mutation of ``cause``."""
        return CascadeMetricChange(
            cause=cause,
            metric=self.metric,
            count=self.count,
            dependencies=dict(self.dependencies),
            labels=dict(self.labels),
        )


class LabelChange(MetricsEvent):
    """A label was assigned."""

    event_type: ClassVar[EventType] = EventType.LABEL_CHANGE

    label: str
    value: str

    @property
    def key(self) -> str:
        return self.label

    @property
    def display_value(self) -> str:
        return self.value

    @property
    def cause(self) -> Optional[str]:
        return None

    def promote(self, cause: str) -> "CascadeLabelChange":
        """Turn this event into one caused by a mutation of ``cause``."""
        return CascadeLabelChange(
            cause=cause,
            label=self.label,
            value=self.value,
            dependencies=dict(self.dependencies),
            labels=dict(self.labels),
        )


class CascadeMetricChange(MetricsEvent):
    """A counter changed as a side effect of mutating ``cause``."""

    event_type: ClassVar[EventType] = EventType.CASCADE_METRIC_CHANGE

    cause: str
    metric: str
    count: int = Field(ge=0)

    @property
    def key(self) -> str:
        return self.metric

    @property
    def display_value(self) -> str:
        return str(self.count)


class CascadeLabelChange(MetricsEvent):
    """A label changed as a side effect of mutating ``cause``."""

    event_type: ClassVar[EventType] = EventType.CASCADE_LABEL_CHANGE

    cause: str
    label: str
    value: str

    @property
    def key(self) -> str:
        return self.label

    @property
    def display_value(self) -> str:
        return self.value


Event = Union[MetricChange, LabelChange, CascadeMetricChange, CascadeLabelChange]
