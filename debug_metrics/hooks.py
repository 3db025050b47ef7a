"""
Scoped side-effect hooks.

A hook runs a callback with the debug metrics exactly once when its
scope exits, normally or by exception. Hooks live inside the metrics'
own lifetime, so whatever the callback records is part of the final
flush.

Example:
    with debug_metrics.with_drop_hook(lambda dm: dm.inc("requests_done")):
        handle_request()
"""

from __future__ import annotations

import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)


class DropHook:
    """Hook holding exclusive access to a DebugMetrics."""

    def __init__(self, debug_metrics: Any, call_fn: Callable[[Any], None]):
        self.debug_metrics = debug_metrics
        self.call_fn = call_fn
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        """Run the callback now; later exits do nothing."""
        if self._released:
            return
        self._released = True
        if getattr(self.debug_metrics, "closed", False):
            logger.warning(
                "Drop hook released after the debug metrics were closed; "
                "its effects will not be flushed"
            )
        self.call_fn(self.debug_metrics)

    def __enter__(self) -> Any:
        return self.debug_metrics

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()


class DropHookSafe(DropHook):
    """
    Hook holding its own clone of a DebugMetricsSafe.

    The clone is closed after the callback, so a hook outliving every
    other handle still has its effects flushed.
    """

    def __init__(self, debug_metrics: Any, call_fn: Callable[[Any], None]):
        super().__init__(debug_metrics.clone(), call_fn)

    def release(self) -> None:
        if self._released:
            return
        try:
            super().release()
        finally:
            self.debug_metrics.close()
