"""
Work Queue for statistics calculations.

An in-process priority queue of CalculationJob entries. Lower numeric
priority is taken first, FIFO within a priority. The queue owns job
state transitions:

    queued -> active -> completed
    queued -> active -> failed

and applies the retention policy for finished jobs. Cancellation only
removes jobs that are still queued; an active job always runs to the end.
"""

import heapq
import itertools
import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class JobState:
    """Lifecycle states of a queued job."""
    QUEUED = 'queued'
    ACTIVE = 'active'
    COMPLETED = 'completed'
    FAILED = 'failed'


class QueueClosedError(Exception):
    """Raised when adding to a closed queue."""
    pass


@dataclass
class CalculationJob:
    """A unit of scheduled work: one calculation request for one league."""
    id: str
    name: str
    data: Dict[str, Any]
    priority: int
    sequence: int
    state: str = JobState.QUEUED
    progress: int = 0
    return_value: Optional[Dict[str, Any]] = None
    failed_reason: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    def update_progress(self, value: int) -> None:
        """Set progress, clamped to 0-100."""
        self.progress = max(0, min(100, int(value)))

    def to_progress(self) -> Dict[str, Any]:
        """Progress record exposed to callers."""
        return {
            'id': self.id,
            'progress': self.progress,
            'state': self.state,
            'data': dict(self.data),
            'return_value': self.return_value,
            'failed_reason': self.failed_reason,
        }


class WorkQueue:
    """
    Thread-safe priority queue of calculation jobs.

    Usage:
        queue = WorkQueue('statistics-calculations')
        job = queue.add('calculate', {'league_id': 'l1', ...}, priority=1)
        next_job = queue.take_next()
        queue.complete(next_job, {'success': True})
    """

    def __init__(self, name: str, remove_on_complete: int = 100, remove_on_fail: int = 1000):
        """
        Args:
            name: Queue name used in log messages
            remove_on_complete: Completed jobs to retain
            remove_on_fail: Failed jobs to retain
        """
        self.name = name
        self.remove_on_complete = remove_on_complete
        self.remove_on_fail = remove_on_fail

        self._jobs: Dict[str, CalculationJob] = {}
        self._pending: List[tuple] = []
        self._counter = itertools.count()
        self._lock = threading.RLock()
        self._closed = False

    # =========================================================================
    # Enqueue / Dequeue
    # =========================================================================

    def add(self, name: str, data: Dict[str, Any], priority: int) -> CalculationJob:
        """
        Enqueue a job and return it immediately.

        Raises:
            QueueClosedError: If the queue has been closed
        """
        with self._lock:
            if self._closed:
                raise QueueClosedError(f"Queue '{self.name}' is closed")

            sequence = next(self._counter)
            job = CalculationJob(
                id=uuid.uuid4().hex,
                name=name,
                data=dict(data),
                priority=priority,
                sequence=sequence,
            )
            self._jobs[job.id] = job
            heapq.heappush(self._pending, (priority, sequence, job.id))

        logger.debug(f"Queued job {job.id} ({name}) with priority {priority}")
        return job

    def take_next(self) -> Optional[CalculationJob]:
        """Mark the highest-priority queued job active and return it."""
        with self._lock:
            while self._pending:
                _, _, job_id = heapq.heappop(self._pending)
                job = self._jobs.get(job_id)
                # Removed jobs leave stale heap entries behind
                if job is None or job.state != JobState.QUEUED:
                    continue
                job.state = JobState.ACTIVE
                job.started_at = datetime.utcnow()
                return job
            return None

    def remove(self, job_id: str) -> bool:
        """
        Cancel a job that has not started yet.

        Returns:
            True if the job was queued and is now removed
        """
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None or job.state != JobState.QUEUED:
                return False
            del self._jobs[job_id]
        logger.info(f"Removed queued job {job_id}")
        return True

    # =========================================================================
    # Completion
    # =========================================================================

    def complete(self, job: CalculationJob, return_value: Dict[str, Any]) -> None:
        with self._lock:
            job.state = JobState.COMPLETED
            job.return_value = return_value
            job.update_progress(100)
            job.finished_at = datetime.utcnow()

    def fail(self, job: CalculationJob, reason: str) -> None:
        with self._lock:
            job.state = JobState.FAILED
            job.failed_reason = reason
            job.finished_at = datetime.utcnow()

    # =========================================================================
    # Inspection
    # =========================================================================

    def get_job(self, job_id: str) -> Optional[CalculationJob]:
        with self._lock:
            return self._jobs.get(job_id)

    def counts(self) -> Dict[str, int]:
        """Number of retained jobs in each state."""
        with self._lock:
            counts = {state: 0 for state in (
                JobState.QUEUED, JobState.ACTIVE, JobState.COMPLETED, JobState.FAILED
            )}
            for job in self._jobs.values():
                counts[job.state] += 1
            return counts

    # =========================================================================
    # Retention
    # =========================================================================

    def prune(self) -> int:
        """
        Drop the oldest finished jobs beyond the retention limits.

        Returns:
            Number of jobs dropped
        """
        removed = 0
        with self._lock:
            for state, keep in (
                (JobState.COMPLETED, self.remove_on_complete),
                (JobState.FAILED, self.remove_on_fail),
            ):
                finished = sorted(
                    (job for job in self._jobs.values() if job.state == state),
                    key=lambda job: (job.finished_at, job.sequence),
                    reverse=True
                )
                for job in finished[keep:]:
                    del self._jobs[job.id]
                    removed += 1

        if removed:
            logger.debug(f"Pruned {removed} finished jobs from '{self.name}'")
        return removed

    # =========================================================================
    # Shutdown
    # =========================================================================

    def close(self) -> None:
        """Stop accepting new jobs. Already queued jobs stay inspectable."""
        with self._lock:
            self._closed = True
        logger.info(f"Work queue '{self.name}' closed")

    @property
    def closed(self) -> bool:
        return self._closed
