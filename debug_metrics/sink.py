"""
Output Sinks.

A sink is anything that can ``write`` and ``flush``. DebugMetrics owns
its sink for its whole lifetime and only writes to it when closed.
"""

from __future__ import annotations

import io
import logging
from typing import Any, Protocol, Union, runtime_checkable


@runtime_checkable
class OutputSink(Protocol):
    """Protocol for drop-flush destinations."""

    def write(self, data: Any) -> Any:
        ...

    def flush(self) -> None:
        ...


def is_text_sink(sink: OutputSink) -> bool:
    """Text streams are TextIOBase or expose an encoding; byte streams do neither."""
    return isinstance(sink, io.TextIOBase) or getattr(sink, "encoding", None) is not None


def write_line(sink: OutputSink, line: str) -> None:
    """
    Write one formatted line to a sink.

    Text sinks receive the string, everything else UTF-8 bytes.
    """
    if is_text_sink(sink):
        sink.write(line)
    else:
        sink.write(line.encode("utf-8"))


class LoggingSink:
    """
    Sink that forwards each written line to the logging system.

    Partial lines are buffered until a newline arrives or the sink
    is flushed.

    Example:
        sink = LoggingSink(logger_name="myapp.debug_metrics")
        with DebugMetrics(sink, default_on_config()) as debug_metrics:
            debug_metrics.inc("requests")
        # logs "requests: 1 :: {}" to myapp.debug_metrics
    """

    encoding = "utf-8"

    def __init__(
        self,
        logger_name: str = "debug_metrics.output",
        level: int = logging.DEBUG,
    ):
        """
        Initialize the logging sink.

        Args:
            logger_name: Name of the logger to use
            level: Level every line is logged at
        """
        self._logger = logging.getLogger(logger_name)
        self._level = level
        self._buffer = ""

    def write(self, data: Union[str, bytes]) -> int:
        if isinstance(data, bytes):
            data = data.decode(self.encoding)
        self._buffer += data
        *lines, self._buffer = self._buffer.split("\n")
        for line in lines:
            self._logger.log(self._level, line)
        return len(data)

    def flush(self) -> None:
        """Log any partial line and flush the logging handlers."""
        if self._buffer:
            self._logger.log(self._level, self._buffer)
            self._buffer = ""
        for handler in self._logger.handlers:
            handler.flush()
