"""
Tests for backup scheduling.

"Scheduled tests catch scheduled bugs." — schema.cx
"""

import signal
from unittest.mock import MagicMock

import pytest

from ghbackup.scheduler import BackupScheduler


class TestBackupScheduler:
    """Tests for BackupScheduler."""

    def test_invalid_interval(self) -> None:
        """Test the interval must be positive."""
        with pytest.raises(ValueError):
            BackupScheduler(0, lambda: True)

    def test_run_once(self) -> None:
        """Test run_once calls the job a single time."""
        job = MagicMock(return_value=True)
        scheduler = BackupScheduler(60, job)

        scheduler.run(run_once=True)

        job.assert_called_once_with()
        assert scheduler.run_count == 1
        assert scheduler.last_status == "success"
        assert scheduler.last_error is None
        assert scheduler.last_run is not None

    def test_failed_job(self) -> None:
        """Test a job returning False is recorded as failed."""
        scheduler = BackupScheduler(60, lambda: False)

        scheduler.run(run_once=True)

        assert scheduler.last_status == "failed"
        assert scheduler.last_error == "Backup job returned False"

    def test_job_exception_is_recorded(self) -> None:
        """Test an exception from the job does not escape the scheduler."""

        def job() -> bool:
            raise RuntimeError("disk full")

        scheduler = BackupScheduler(60, job)
        scheduler.run(run_once=True)

        assert scheduler.last_status == "error"
        assert scheduler.last_error == "disk full"

    def test_loop_runs_immediately_and_stops(self) -> None:
        """Test the loop runs the job at start and exits when stopped."""
        calls = []

        def job() -> bool:
            calls.append(1)
            scheduler.stop()
            return True

        scheduler = BackupScheduler(3600, job)
        scheduler.run()

        assert calls == [1]
        assert scheduler.is_running() is False

    def test_signal_handlers_restored(self) -> None:
        """Test SIGINT/SIGTERM handlers are put back after the loop."""
        before_int = signal.getsignal(signal.SIGINT)
        before_term = signal.getsignal(signal.SIGTERM)

        scheduler = BackupScheduler(3600, lambda: scheduler.stop() or True)
        scheduler.run()

        assert signal.getsignal(signal.SIGINT) is before_int
        assert signal.getsignal(signal.SIGTERM) is before_term

    def test_wait_first(self) -> None:
        """Test run_immediately=False does not run the job at start."""
        job = MagicMock(return_value=True)
        scheduler = BackupScheduler(3600, job, run_immediately=False)
        # End the loop after its first idle wait
        scheduler._stop_event.wait = lambda timeout=None: scheduler._stop_event.set()

        scheduler.run()

        job.assert_not_called()
