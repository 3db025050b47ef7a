import io
import logging
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import pytest

from debug_metrics import (
    DebugMetrics,
    DropHook,
    DropHookSafe,
    default_on_config,
)


class TestDropHook:
    """Test suite for hooks holding exclusive access."""

    def setup_method(self):
        self.output = io.StringIO()
        self.calls = []

    def test_runs_on_scope_exit_before_flush(self):
        with DebugMetrics(self.output, default_on_config()) as debug_metrics:
            with debug_metrics.with_drop_hook(lambda dm: dm.inc("done")) as inner:
                assert inner is debug_metrics
                debug_metrics.inc("work")
            assert [e.key for e in debug_metrics.events] == ["work", "done"]

        assert self.output.getvalue() == "work: 1 :: {}\ndone: 1 :: {}\n"

    def test_runs_once_on_exception(self):
        debug_metrics = DebugMetrics(self.output, default_on_config())
        hook = DropHook(debug_metrics, self.calls.append)

        with pytest.raises(ValueError):
            with hook:
                raise ValueError("failed")

        assert self.calls == [debug_metrics]
        assert hook.released

    def test_release_is_idempotent(self):
        debug_metrics = DebugMetrics(self.output, default_on_config())
        hook = DropHook(debug_metrics, self.calls.append)
        with hook:
            hook.release()
        hook.release()
        assert self.calls == [debug_metrics]

    def test_release_after_close_warns(self, caplog):
        debug_metrics = DebugMetrics(self.output, default_on_config())
        hook = debug_metrics.with_drop_hook(lambda dm: dm.inc("late"))
        debug_metrics.close()

        with caplog.at_level(logging.WARNING, logger="debug_metrics.hooks"):
            hook.release()

        assert "after the debug metrics were closed" in caplog.text
        assert debug_metrics.closed
        assert self.output.getvalue() == ""

    def test_release_before_close_is_quiet(self, caplog):
        with caplog.at_level(logging.WARNING, logger="debug_metrics.hooks"):
            with DebugMetrics(self.output, default_on_config()) as debug_metrics:
                with debug_metrics.with_drop_hook(lambda dm: dm.inc("done")):
                    pass

        assert caplog.records == []
        assert self.output.getvalue() == "done: 1 :: {}\n"


class TestDropHookSafe:
    """Test suite for hooks holding a shared handle."""

    def setup_method(self):
        self.output = io.StringIO()

    def test_holds_its_own_clone(self):
        shared = DebugMetrics(self.output, default_on_config()).safe()
        hook = shared.with_drop_hook(lambda handle: handle.inc("done"))
        assert isinstance(hook, DropHookSafe)
        assert shared.handles == 2

        # The hook outlives the original handle; its effects still get flushed
        shared.inc("work")
        shared.close()
        assert self.output.getvalue() == ""

        hook.release()
        assert self.output.getvalue() == "work: 1 :: {}\ndone: 1 :: {}\n"

    def test_clone_released_when_callback_fails(self):
        shared = DebugMetrics(self.output, default_on_config()).safe()

        def fail(handle):
            raise RuntimeError("hook failed")

        with pytest.raises(RuntimeError, match="hook failed"):
            with shared.with_drop_hook(fail):
                pass

        assert shared.handles == 1
        shared.close()
