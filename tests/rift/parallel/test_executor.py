"""
tests/rift/parallel/test_executor.py - run_bounded 테스트
"""

import threading
import time

import pytest

from rift.exceptions import OperationCancelledError
from rift.parallel import ErrorCategory, TaskError, TaskResult, run_bounded


def _echo(item, cancel_event):
    return TaskResult.ok(str(item), item * 2)


class TestRunBounded:
    """run_bounded 테스트"""

    def test_collects_all_results(self):
        result = run_bounded(range(10), _echo, max_workers=4)

        assert result.total_count == 10
        assert result.success_count == 10
        assert sorted(result.get_data()) == [i * 2 for i in range(10)]

    def test_empty_items(self):
        result = run_bounded([], _echo, max_workers=4)
        assert result.total_count == 0

    @pytest.mark.parametrize("max_workers", [0, -1])
    def test_invalid_max_workers(self, max_workers):
        with pytest.raises(ValueError):
            run_bounded([1], _echo, max_workers=max_workers)

    def test_respects_concurrency_limit(self):
        active = 0
        peak = 0
        lock = threading.Lock()

        def work(item, cancel_event):
            nonlocal active, peak
            with lock:
                active += 1
                peak = max(peak, active)
            time.sleep(0.02)
            with lock:
                active -= 1
            return TaskResult.ok(str(item), item)

        run_bounded(range(12), work, max_workers=3)

        assert peak <= 3

    def test_soft_failures_are_collected(self):
        def work(item, cancel_event):
            if item % 2:
                error = TaskError(
                    identifier=str(item),
                    region="us-east-1",
                    category=ErrorCategory.ACCESS_DENIED,
                    error_code="AccessDenied",
                    message="denied",
                )
                return TaskResult.warn(error)
            return TaskResult.ok(str(item), item)

        result = run_bounded(range(6), work, max_workers=2)

        assert result.success_count == 3
        assert result.error_count == 3
        assert {e.identifier for e in result.get_errors()} == {"1", "3", "5"}

    def test_hard_failure_propagates_and_sets_cancel(self):
        cancel = threading.Event()

        def work(item, cancel_event):
            if item == 0:
                raise RuntimeError("boom")
            return TaskResult.ok(str(item), item)

        with pytest.raises(RuntimeError, match="boom"):
            run_bounded(range(5), work, max_workers=1, cancel_event=cancel)

        assert cancel.is_set()

    def test_pre_cancelled(self):
        cancel = threading.Event()
        cancel.set()
        calls = []

        def work(item, cancel_event):
            calls.append(item)
            return TaskResult.ok(str(item), item)

        with pytest.raises(OperationCancelledError) as exc_info:
            run_bounded([1, 2], work, max_workers=2, cancel_event=cancel, label="clusters")

        assert calls == []
        assert exc_info.value.stage == "clusters"

    def test_cancel_during_run(self):
        cancel = threading.Event()

        def work(item, cancel_event):
            if item == 0:
                cancel_event.set()
            return TaskResult.ok(str(item), item)

        with pytest.raises(OperationCancelledError):
            run_bounded(range(4), work, max_workers=1, cancel_event=cancel)

    def test_worker_receives_cancel_event(self):
        cancel = threading.Event()
        seen = []

        def work(item, cancel_event):
            seen.append(cancel_event)
            return TaskResult.ok(str(item), item)

        run_bounded([1], work, max_workers=1, cancel_event=cancel)

        assert seen == [cancel]
