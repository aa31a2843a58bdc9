"""Debounced write-back on a single worker thread.

Every :meth:`DebouncedWriter.schedule` call restarts a quiet-period timer.
The action runs once the period elapses without another call, so a burst of
mutations costs one write.
"""

from __future__ import annotations

import threading
import time
from typing import Callable

from ccprov.utils.logging_config import get_logger


class DebouncedWriter:
    """Single-worker delayed task with restart-on-schedule semantics."""

    def __init__(
        self,
        action: Callable[[], None],
        delay: float,
        name: str = "ccprov-writer",
    ) -> None:
        """Initialize and start the worker thread.

        Args:
            action: Callable run after a quiet period
            delay: Quiet period in seconds
            name: Worker thread name

        """
        if delay <= 0:
            msg = f"delay must be positive, got {delay}"
            raise ValueError(msg)
        self.action = action
        self.delay = delay
        self.run_count = 0
        self.logger = get_logger(__name__)

        self._cond = threading.Condition()
        # Serializes action runs between the worker and flush_now()/close()
        self._run_lock = threading.Lock()
        self._deadline: float | None = None
        self._closed = False

        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    @property
    def pending(self) -> bool:
        """Whether a run is scheduled but has not started yet."""
        with self._cond:
            return self._deadline is not None

    @property
    def closed(self) -> bool:
        """Whether the writer has been closed."""
        with self._cond:
            return self._closed

    def schedule(self) -> None:
        """Schedule a run ``delay`` seconds from now, replacing any pending one."""
        with self._cond:
            if self._closed:
                self.logger.debug("Writer closed, dropping schedule request")
                return
            self._deadline = time.monotonic() + self.delay
            self._cond.notify()

    def cancel(self) -> None:
        """Drop a pending run, if any."""
        with self._cond:
            self._deadline = None
            self._cond.notify()

    def flush_now(self, force: bool = False) -> bool:
        """Run the action immediately on the calling thread.

        Args:
            force: Run even when nothing is pending

        Returns:
            True if the action ran

        """
        with self._cond:
            had_pending = self._deadline is not None
            self._deadline = None
            self._cond.notify()
        if not (had_pending or force):
            return False
        self._execute()
        return True

    def close(self, flush: bool = True, timeout: float | None = 5.0) -> None:
        """Stop the worker thread.

        Args:
            flush: Run a pending action before returning
            timeout: Seconds to wait for the worker to exit

        """
        with self._cond:
            if self._closed:
                return
            self._closed = True
            had_pending = self._deadline is not None
            self._deadline = None
            self._cond.notify()
        if self._thread is not threading.current_thread():
            self._thread.join(timeout)
        if flush and had_pending:
            self._execute()

    def _run(self) -> None:
        while True:
            with self._cond:
                while not self._closed and self._deadline is None:
                    self._cond.wait()
                if self._closed:
                    return
                remaining = self._deadline - time.monotonic()
                if remaining > 0:
                    self._cond.wait(remaining)
                    continue
                self._deadline = None
            self._execute()

    def _execute(self) -> None:
        with self._run_lock:
            try:
                self.action()
            except Exception:
                self.logger.exception("Debounced action failed")
            finally:
                self.run_count += 1
