"""
Tests for the work queue.

Run with: python -m pytest league_stats/tests/test_job_queue.py -v
"""

import pytest

from league_stats.services.job_queue import JobState, QueueClosedError, WorkQueue


@pytest.fixture
def queue():
    return WorkQueue('test-queue', remove_on_complete=2, remove_on_fail=1)


class TestOrdering:
    """Test priority and FIFO ordering."""

    def test_lower_priority_number_first(self, queue):
        """Test lower priority number first."""
        single = queue.add('calculate', {'calculation_type': 'TRENDS'}, priority=10)
        full = queue.add('calculate', {'calculation_type': 'ALL'}, priority=1)

        assert queue.take_next().id == full.id
        assert queue.take_next().id == single.id
        assert queue.take_next() is None

    def test_fifo_within_priority(self, queue):
        """Test FIFO order within a priority."""
        first = queue.add('calculate', {}, priority=10)
        second = queue.add('calculate', {}, priority=10)

        assert queue.take_next().id == first.id
        assert queue.take_next().id == second.id

    def test_take_next_marks_active(self, queue):
        """Test take next marks active."""
        job = queue.add('calculate', {}, priority=10)

        taken = queue.take_next()

        assert taken is job
        assert job.state == JobState.ACTIVE
        assert job.started_at is not None


class TestLifecycle:
    """Test job state transitions."""

    def test_complete(self, queue):
        """Test completing a job."""
        job = queue.add('calculate', {'league_id': 'l1'}, priority=10)
        queue.take_next()
        job.update_progress(40)

        queue.complete(job, {'success': True, 'records_processed': 3})

        progress = queue.get_job(job.id).to_progress()
        assert progress['state'] == 'completed'
        assert progress['progress'] == 100
        assert progress['return_value'] == {'success': True, 'records_processed': 3}
        assert progress['failed_reason'] is None
        assert progress['data'] == {'league_id': 'l1'}

    def test_fail(self, queue):
        """Test failing a job."""
        job = queue.add('calculate', {}, priority=10)
        queue.take_next()

        queue.fail(job, 'database is locked')

        assert job.state == JobState.FAILED
        assert job.to_progress()['failed_reason'] == 'database is locked'

    def test_progress_is_clamped(self, queue):
        """Test progress is clamped."""
        job = queue.add('calculate', {}, priority=10)

        job.update_progress(150)
        assert job.progress == 100
        job.update_progress(-5)
        assert job.progress == 0

    def test_remove_only_queued_jobs(self, queue):
        """Test remove only queued jobs."""
        queued = queue.add('calculate', {}, priority=10)
        active = queue.add('calculate', {}, priority=1)
        queue.take_next()

        assert queue.remove(active.id) is False
        assert queue.remove(queued.id) is True
        assert queue.get_job(queued.id) is None
        assert queue.take_next() is None

    def test_closed_queue_rejects_jobs(self, queue):
        """Test closed queue rejects jobs."""
        queue.close()

        assert queue.closed
        with pytest.raises(QueueClosedError):
            queue.add('calculate', {}, priority=10)


class TestRetention:
    """Test pruning of finished jobs."""

    def test_prune_keeps_newest_finished_jobs(self, queue):
        """Test prune keeps newest finished jobs."""
        jobs = [queue.add('calculate', {}, priority=10) for _ in range(4)]
        for job in jobs:
            queue.take_next()
            queue.complete(job, {'success': True})
        failed = [queue.add('calculate', {}, priority=10) for _ in range(2)]
        for job in failed:
            queue.take_next()
            queue.fail(job, 'boom')

        removed = queue.prune()

        assert removed == 3
        assert queue.get_job(jobs[0].id) is None
        assert queue.get_job(jobs[3].id) is not None
        assert queue.get_job(failed[0].id) is None
        assert queue.get_job(failed[1].id) is not None

    def test_prune_leaves_unfinished_jobs(self, queue):
        """Test prune leaves unfinished jobs."""
        job = queue.add('calculate', {}, priority=10)

        assert queue.prune() == 0
        assert queue.counts()[JobState.QUEUED] == 1
        assert queue.get_job(job.id) is not None
