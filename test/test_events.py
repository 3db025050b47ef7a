import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import pydantic
import pytest

from debug_metrics import (
    CascadeLabelChange,
    CascadeMetricChange,
    EventType,
    LabelChange,
    MetricChange,
)
from debug_metrics.util.line_format import event_line


class TestEvents:
    """Test suite for the event model."""

    def test_promote_metric_change(self):
        event = MetricChange(metric="m", count=3, dependencies={"a": 1}, labels={"s": "x"})
        cascade = event.promote("cause")
        assert cascade == CascadeMetricChange(
            cause="cause", metric="m", count=3, dependencies={"a": 1}, labels={"s": "x"}
        )
        assert cascade.key == "m"
        assert cascade.cause == "cause"
        assert event.cause is None

    def test_promote_label_change(self):
        cascade = LabelChange(label="stage", value="one").promote("metric")
        assert cascade == CascadeLabelChange(cause="metric", label="stage", value="one")
        assert cascade.event_type is EventType.CASCADE_LABEL_CHANGE

    def test_variants_are_not_equal(self):
        plain = LabelChange(label="stage", value="one")
        assert plain != plain.promote("metric")

    def test_events_are_frozen(self):
        event = MetricChange(metric="m", count=1)
        with pytest.raises(pydantic.ValidationError):
            event.count = 2

    def test_count_must_be_non_negative(self):
        with pytest.raises(pydantic.ValidationError):
            MetricChange(metric="m", count=-1)

    def test_snapshot_merges_and_stringifies(self):
        event = MetricChange(metric="m", count=1, dependencies={"a": 7}, labels={"s": "x"})
        assert event.snapshot() == {"a": "7", "s": "x"}

    def test_to_dict(self):
        event = CascadeLabelChange(cause="metric", label="stage", value="one")
        assert event.to_dict() == {
            "event_type": "cascade_label_change",
            "cause": "metric",
            "label": "stage",
            "value": "one",
            "dependencies": {},
            "labels": {},
        }


class TestEventLine:
    """Test suite for drop-flush line formatting."""

    def test_plain_event(self):
        event = MetricChange(metric="m", count=2, dependencies={"b": 1}, labels={"a": "x"})
        assert event_line(event) == 'm: 2 :: {"a": "x", "b": "1"}\n'

    def test_cascade_event(self):
        event = CascadeLabelChange(cause="metric", label="stage", value="one")
        assert event_line(event) == "stage (caused by metric): one :: {}\n"

    def test_quotes_are_escaped(self):
        event = LabelChange(label="msg", value='say "hi"', labels={"msg": 'say "hi"'})
        assert event_line(event) == 'msg: say "hi" :: {"msg": "say \\"hi\\""}\n'
