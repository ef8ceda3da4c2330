"""
Single-worker task executor.

All shared telemetry state is mutated by tasks running on one background
thread, in the order they were submitted. Callers never wait for their
task; failures are reported and isolated so one bad task does not stop
the tasks behind it.
"""

import sys
import threading
import time
import traceback
from collections import deque
from typing import Callable, Deque, Optional, Tuple

from .errors import ExecutorShutdownError


class SerialExecutor:
    """
    FIFO executor backed by a single daemon thread.

    Tasks submitted from the worker thread itself are accepted even while
    shutting down, so follow-up work queued by a running task is drained
    along with everything else.
    """

    def __init__(
        self,
        name: str = "telemetry-worker",
        on_error: Optional[Callable[[BaseException], None]] = None
    ):
        """
        Initialize and start the worker.

        Args:
            name: Worker thread name
            on_error: Optional callback invoked with each task failure
        """
        self.on_error = on_error

        self._tasks: Deque[Tuple[Callable, tuple, dict]] = deque()
        self._cond = threading.Condition()
        self._accepting = True
        self._crashed = False
        self._unfinished = 0

        self.submitted_count = 0
        self.completed_count = 0
        self.failed_count = 0

        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    @property
    def accepting(self) -> bool:
        return self._accepting

    def _on_worker(self) -> bool:
        return threading.current_thread() is self._thread

    def submit(self, fn: Callable, *args, **kwargs):
        """
        Queue a task behind everything already submitted.

        Raises:
            ExecutorShutdownError: if shutdown() was called and the caller
                is not the worker thread
        """
        with self._cond:
            if not self._accepting and not self._on_worker():
                raise ExecutorShutdownError()
            self._tasks.append((fn, args, kwargs))
            self._unfinished += 1
            self.submitted_count += 1
            self._cond.notify_all()

    @property
    def crashed(self) -> bool:
        """True if a task killed the worker with a non-Exception error."""
        return self._crashed

    def _run(self):
        try:
            while True:
                with self._cond:
                    while not self._tasks and self._accepting:
                        self._cond.wait()
                    if not self._tasks:
                        # Shut down and fully drained
                        return
                    fn, args, kwargs = self._tasks.popleft()

                failed = True
                try:
                    fn(*args, **kwargs)
                    failed = False
                except Exception as e:
                    self._report(fn, e)
                except BaseException as e:
                    # Refuse new work before the unfinished count drops
                    with self._cond:
                        self._crashed = True
                        self._accepting = False
                    print(f"Warning: Telemetry worker stopped by {e!r}", file=sys.stderr)
                    raise
                finally:
                    with self._cond:
                        self._unfinished -= 1
                        self.completed_count += 1
                        if failed:
                            self.failed_count += 1
                        self._cond.notify_all()
        finally:
            with self._cond:
                self._accepting = False
                dropped = len(self._tasks)
                self._tasks.clear()
                self._unfinished -= dropped
                self._cond.notify_all()
            if dropped:
                print(f"Warning: Telemetry worker exited with {dropped} queued task(s) dropped",
                      file=sys.stderr)

    def _report(self, fn: Callable, error: Exception):
        name = getattr(fn, '__qualname__', repr(fn))
        print(f"Warning: Telemetry task {name} failed: {error!r}", file=sys.stderr)
        traceback.print_exception(type(error), error, error.__traceback__, file=sys.stderr)

        if self.on_error is not None:
            try:
                self.on_error(error)
            except Exception as callback_error:
                print(f"Warning: Telemetry error callback failed: {callback_error!r}",
                      file=sys.stderr)

    def flush(self, timeout: Optional[float] = None) -> bool:
        """
        Block until every submitted task has completed.

        Args:
            timeout: Seconds to wait (None = no limit)

        Returns:
            True if the queue drained, False on timeout
        """
        if self._on_worker():
            raise RuntimeError("flush() called from the worker thread would deadlock")

        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while self._unfinished:
                if deadline is None:
                    self._cond.wait()
                else:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        return False
                    self._cond.wait(remaining)
        return True

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None) -> bool:
        """
        Stop accepting new tasks and let the worker drain the queue.

        Args:
            wait: Join the worker before returning
            timeout: Seconds to wait for the drain (None = no limit)

        Returns:
            True if the worker drained and finished, False if still running
            or if it died before draining
        """
        with self._cond:
            self._accepting = False
            self._cond.notify_all()

        if wait and not self._on_worker():
            self._thread.join(timeout)
        return not self._thread.is_alive() and not self._crashed
