import io
import logging
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import pytest

from debug_metrics import DebugMetrics, LoggingSink, OutputSink, default_on_config
from debug_metrics.sink import is_text_sink, write_line


class FailingSink:
    """Sink whose writes always fail."""

    def __init__(self):
        self.flushed = False

    def write(self, data):
        raise OSError("disk full")

    def flush(self):
        self.flushed = True


class CountingSink:
    """Byte sink recording how often it was flushed."""

    def __init__(self):
        self.chunks = []
        self.flushes = 0

    def write(self, data):
        self.chunks.append(data)

    def flush(self):
        self.flushes += 1


class TestSinks:
    """Test suite for output sink handling."""

    def test_text_detection(self):
        assert is_text_sink(io.StringIO())
        assert is_text_sink(LoggingSink())
        assert not is_text_sink(io.BytesIO())
        assert isinstance(io.BytesIO(), OutputSink)

    def test_write_line_to_bytes(self):
        sink = io.BytesIO()
        write_line(sink, "stage: é :: {}\n")
        assert sink.getvalue() == "stage: é :: {}\n".encode("utf-8")

    def test_engine_writes_bytes(self):
        sink = io.BytesIO()
        with DebugMetrics(sink, default_on_config()) as debug_metrics:
            debug_metrics.inc("a")
        assert sink.getvalue() == b"a: 1 :: {}\n"

    def test_flush_happens_with_no_lines(self):
        sink = CountingSink()
        DebugMetrics(sink).close()
        assert sink.chunks == []
        assert sink.flushes == 1

    def test_write_failure_propagates(self, caplog):
        sink = FailingSink()
        debug_metrics = DebugMetrics(sink, default_on_config())
        debug_metrics.inc("a")

        with caplog.at_level(logging.ERROR, logger="debug_metrics.engine"):
            with pytest.raises(OSError, match="disk full"):
                debug_metrics.close()

        assert "Failed to flush debug metrics" in caplog.text
        assert not sink.flushed

    def test_logging_sink(self, caplog):
        sink = LoggingSink(logger_name="test.debug_metrics", level=logging.INFO)
        with caplog.at_level(logging.INFO, logger="test.debug_metrics"):
            with DebugMetrics(sink, default_on_config()) as debug_metrics:
                debug_metrics.inc("a")
                debug_metrics.set_label("stage", "x")

        assert [r.getMessage() for r in caplog.records if r.name == "test.debug_metrics"] == [
            'a: 1 :: {}',
            'stage: x :: {"stage": "x"}',
        ]

    def test_logging_sink_flushes_partial_line(self, caplog):
        sink = LoggingSink(logger_name="test.partial", level=logging.WARNING)
        with caplog.at_level(logging.WARNING, logger="test.partial"):
            sink.write(b"first\nsec")
            sink.write("ond")
            assert [r.getMessage() for r in caplog.records] == ["first"]
            sink.flush()

        assert [r.getMessage() for r in caplog.records] == ["first", "second"]
