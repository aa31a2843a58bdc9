"""Tests for the debounced single-worker writer."""

from __future__ import annotations

import threading
import time
from unittest.mock import patch

import pytest

pytestmark = [pytest.mark.unit, pytest.mark.storage]

from ccprov.storage.debounce import DebouncedWriter


@pytest.fixture
def writers():
    created = []
    yield created
    for writer in created:
        writer.close(flush=False)


class TestDebouncedWriter:
    """Test coalescing and lifecycle of DebouncedWriter."""

    def test_rejects_non_positive_delay(self):
        with pytest.raises(ValueError, match="delay must be positive"):
            DebouncedWriter(lambda: None, 0)

    def test_burst_runs_once(self, writers, wait_for):
        calls = []
        writer = DebouncedWriter(lambda: calls.append(1), 0.2)
        writers.append(writer)

        for _ in range(10):
            writer.schedule()
            time.sleep(0.01)

        assert writer.pending
        assert wait_for(lambda: writer.run_count == 1)
        time.sleep(0.3)
        assert calls == [1]
        assert not writer.pending

    def test_schedule_restarts_quiet_period(self, writers, wait_for):
        calls = []
        writer = DebouncedWriter(lambda: calls.append(time.monotonic()), 0.2)
        writers.append(writer)

        start = time.monotonic()
        writer.schedule()
        time.sleep(0.1)
        writer.schedule()

        assert wait_for(lambda: calls)
        assert calls[0] - start >= 0.25

    def test_separate_bursts_run_separately(self, writers, wait_for):
        writer = DebouncedWriter(lambda: None, 0.05)
        writers.append(writer)

        writer.schedule()
        assert wait_for(lambda: writer.run_count == 1)
        writer.schedule()
        assert wait_for(lambda: writer.run_count == 2)

    def test_cancel_drops_pending_run(self, writers):
        calls = []
        writer = DebouncedWriter(lambda: calls.append(1), 0.1)
        writers.append(writer)

        writer.schedule()
        writer.cancel()
        time.sleep(0.25)

        assert calls == []
        assert not writer.pending

    def test_flush_now(self, writers):
        calls = []
        writer = DebouncedWriter(lambda: calls.append(threading.current_thread()), 10.0)
        writers.append(writer)

        assert writer.flush_now() is False
        writer.schedule()
        assert writer.flush_now() is True
        assert calls == [threading.current_thread()]
        assert not writer.pending
        assert writer.flush_now(force=True) is True
        assert len(calls) == 2

    def test_failing_action_is_logged_and_worker_survives(self, writers, wait_for):
        outcomes = iter([RuntimeError("disk full"), None])
        done = []

        def action():
            outcome = next(outcomes)
            if outcome is not None:
                raise outcome
            done.append(1)

        writer = DebouncedWriter(action, 0.05)
        writers.append(writer)

        with patch.object(writer.logger, "exception") as mock_exception:
            writer.schedule()
            assert wait_for(lambda: writer.run_count == 1)
        mock_exception.assert_called_once()

        writer.schedule()
        assert wait_for(lambda: done == [1])

    def test_close_runs_pending_action(self):
        calls = []
        writer = DebouncedWriter(lambda: calls.append(1), 10.0)

        writer.schedule()
        writer.close()

        assert calls == [1]
        assert writer.closed

    def test_close_without_flush_drops_pending_action(self):
        calls = []
        writer = DebouncedWriter(lambda: calls.append(1), 10.0)

        writer.schedule()
        writer.close(flush=False)

        assert calls == []

    def test_schedule_after_close_is_ignored(self):
        calls = []
        writer = DebouncedWriter(lambda: calls.append(1), 0.01)
        writer.close()

        writer.schedule()
        time.sleep(0.05)

        assert calls == []
        assert not writer.pending
        writer.close()
