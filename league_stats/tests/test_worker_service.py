"""
Tests for the calculation worker.

Run with: python -m pytest league_stats/tests/test_worker_service.py -v
"""

import threading

import pytest

from league_stats.services.job_queue import JobState, WorkQueue
from league_stats.services.worker_service import CalculationWorker


@pytest.fixture
def queue():
    return WorkQueue('worker-test')


class TestProcessNext:
    """Test running a single job without the scheduler."""

    def test_completes_job_and_notifies(self, queue):
        """Test completes job and notifies."""
        completed = []
        worker = CalculationWorker(queue, lambda job: {'success': True, 'records_processed': 2})
        worker.on('completed', completed.append)
        job = queue.add('calculate', {'calculation_type': 'TRENDS'}, priority=10)

        assert worker.process_next() is job

        assert job.state == JobState.COMPLETED
        assert job.return_value == {'success': True, 'records_processed': 2}
        assert completed == [job]

    def test_failure_marks_job_failed_and_reraises(self, queue):
        """Test failure marks the job failed and re-raises."""
        failed = []
        error = RuntimeError('store unavailable')

        def processor(job):
            raise error

        worker = CalculationWorker(queue, processor)
        worker.on('failed', failed.append)
        job = queue.add('calculate', {}, priority=10)

        with pytest.raises(RuntimeError) as exc_info:
            worker.process_next()

        assert exc_info.value is error
        assert job.state == JobState.FAILED
        assert job.failed_reason == 'store unavailable'
        assert failed == [job]

    def test_empty_queue(self, queue):
        """Test empty queue."""
        worker = CalculationWorker(queue, lambda job: {})

        assert worker.process_next() is None

    def test_runs_inside_app_context(self, app, queue):
        """Test runs inside app context."""
        from flask import current_app

        seen = []
        worker = CalculationWorker(queue, lambda job: seen.append(current_app.name) or {}, app=app)
        queue.add('calculate', {}, priority=10)

        worker.process_next()

        assert seen == [app.name]

    def test_unknown_event(self, queue):
        """Test unknown event."""
        worker = CalculationWorker(queue, lambda job: {})

        with pytest.raises(ValueError):
            worker.on('stalled', lambda job: None)


class TestLifecycle:
    """Test the scheduler-backed pool."""

    def test_dispatch_requires_running_worker(self, queue):
        """Test dispatch requires running worker."""
        worker = CalculationWorker(queue, lambda job: {})
        queue.add('calculate', {}, priority=10)

        assert worker.dispatch() is False
        assert queue.counts()[JobState.QUEUED] == 1

    def test_start_drains_queue_in_priority_order(self, queue):
        """Test start drains queue in priority order."""
        processed = []
        done = threading.Event()

        def processor(job):
            processed.append(job.data['name'])
            if len(processed) == 3:
                done.set()
            return {'success': True}

        queue.add('calculate', {'name': 'trends'}, priority=10)
        queue.add('calculate', {'name': 'h2h'}, priority=10)
        queue.add('calculate', {'name': 'all'}, priority=1)

        worker = CalculationWorker(queue, processor, concurrency=1)
        worker.start()
        try:
            assert done.wait(timeout=5)
        finally:
            worker.close()

        assert processed == ['all', 'trends', 'h2h']

    def test_dispatch_after_start(self, queue):
        """Test dispatch after start."""
        done = threading.Event()
        worker = CalculationWorker(queue, lambda job: done.set() or {'success': True})
        worker.start()
        try:
            job = queue.add('calculate', {}, priority=10)
            assert worker.dispatch() is True
            assert done.wait(timeout=5)
        finally:
            worker.close()

        assert job.state == JobState.COMPLETED

    def test_close_is_idempotent(self, queue):
        """Test close is idempotent."""
        worker = CalculationWorker(queue, lambda job: {})
        worker.start()

        worker.close()
        worker.close()

        assert not worker.is_running
        with pytest.raises(RuntimeError):
            worker.start()
