#!/usr/bin/env python3
"""
Tests for the single-worker executor.

Run with: python3 -m pytest scripts/telemetry/test_executor.py -v
"""

import sys
import threading
import time
from pathlib import Path

import pytest

if __name__ == "__main__":
    sys.path.insert(0, str(Path(__file__).parent.parent))

from telemetry.errors import ExecutorShutdownError
from telemetry.executor import SerialExecutor


@pytest.fixture
def executor():
    executor = SerialExecutor()
    yield executor
    executor.shutdown(timeout=5.0)


def test_runs_tasks_in_submission_order(executor):
    """Concurrent submitters: execution order equals submission order."""
    executed = []
    submitted = []
    submit_lock = threading.Lock()

    def submitter(thread_id):
        for i in range(50):
            marker = (thread_id, i)
            with submit_lock:
                executor.submit(executed.append, marker)
                submitted.append(marker)

    threads = [threading.Thread(target=submitter, args=(t,)) for t in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert executor.flush(timeout=5.0)
    assert executed == submitted
    assert executor.completed_count == 400


def test_tasks_run_on_one_worker_thread(executor):
    thread_names = set()

    for _ in range(10):
        executor.submit(lambda: thread_names.add(threading.current_thread().name))
    executor.flush()

    assert thread_names == {"telemetry-worker"}


def test_failure_is_isolated():
    errors = []
    executor = SerialExecutor(on_error=errors.append)
    results = []

    def boom():
        raise ValueError("bad task")

    executor.submit(results.append, 1)
    executor.submit(boom)
    executor.submit(results.append, 2)
    executor.flush()
    executor.shutdown()

    assert results == [1, 2]
    assert len(errors) == 1
    assert isinstance(errors[0], ValueError)
    assert executor.failed_count == 1
    assert executor.completed_count == 3


def test_failing_error_callback_does_not_stop_worker():
    def bad_callback(error):
        raise RuntimeError("callback broke")

    executor = SerialExecutor(on_error=bad_callback)
    results = []

    executor.submit(lambda: 1 / 0)
    executor.submit(results.append, "after")
    executor.flush()
    executor.shutdown()

    assert results == ["after"]


def test_worker_killed_by_system_exit_stops_accepting():
    executor = SerialExecutor()
    results = []
    release = threading.Event()

    def exit_worker():
        release.wait(5.0)
        raise SystemExit(3)

    executor.submit(exit_worker)
    executor.submit(results.append, "queued behind")
    release.set()

    # Queued work is dropped rather than left hanging
    assert executor.flush(timeout=5.0) is True
    assert results == []
    assert executor.crashed

    with pytest.raises(ExecutorShutdownError):
        executor.submit(results.append, "too late")

    # Work was lost, so the shutdown is not reported as a clean drain
    assert executor.shutdown(timeout=5.0) is False


def test_submit_after_shutdown_raises():
    executor = SerialExecutor()
    assert executor.shutdown()

    with pytest.raises(ExecutorShutdownError):
        executor.submit(print, "too late")


def test_shutdown_drains_nested_submissions():
    executor = SerialExecutor()
    results = []
    started = threading.Event()
    release = threading.Event()

    def slow_then_follow_up():
        started.set()
        release.wait(5.0)
        results.append("first")
        # Submitted from the worker while shutdown is in progress
        executor.submit(results.append, "follow-up")

    executor.submit(slow_then_follow_up)
    executor.submit(results.append, "second")
    started.wait(5.0)

    shutdown_result = []
    stopper = threading.Thread(target=lambda: shutdown_result.append(executor.shutdown(timeout=5.0)))
    stopper.start()
    # Let shutdown begin before the first task finishes
    time.sleep(0.05)
    release.set()
    stopper.join()

    assert shutdown_result == [True]
    assert results == ["first", "second", "follow-up"]


def test_shutdown_timeout_returns_false():
    executor = SerialExecutor()
    release = threading.Event()
    executor.submit(release.wait, 5.0)

    assert executor.shutdown(timeout=0.05) is False

    release.set()
    assert executor.shutdown(timeout=5.0) is True


def test_flush_timeout(executor):
    release = threading.Event()
    executor.submit(release.wait, 5.0)

    assert executor.flush(timeout=0.05) is False
    release.set()
    assert executor.flush(timeout=5.0) is True


def test_flush_from_worker_raises(executor):
    errors = []
    executor.on_error = errors.append

    executor.submit(executor.flush)
    executor.flush()

    assert len(errors) == 1
    assert isinstance(errors[0], RuntimeError)


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
