"""
Worker Service for the League Statistics Engine.

Runs queued calculation jobs on an APScheduler background scheduler:
- A thread-pool executor sized by STATS_WORKER_CONCURRENCY is the worker pool
- Each enqueue schedules one immediate dispatch that takes the
  highest-priority queued job from the Work Queue
- An interval job prunes finished jobs per the queue retention policy

Jobs execute inside the Flask application context when an app is given.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, EVENT_JOB_MISSED
from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from league_stats.services.job_queue import CalculationJob, JobState, WorkQueue

logger = logging.getLogger(__name__)

JobProcessor = Callable[[CalculationJob], Dict[str, Any]]
JobListener = Callable[[CalculationJob], None]


class CalculationWorker:
    """
    Pool of workers draining a WorkQueue.

    Usage:
        worker = CalculationWorker(queue, engine.process_job, concurrency=2, app=app)
        worker.start()
        worker.dispatch()      # called after every enqueue
        worker.close()
    """

    def __init__(
        self,
        queue: WorkQueue,
        processor: JobProcessor,
        concurrency: int = 2,
        app=None,
        timezone: str = 'UTC',
        prune_interval_minutes: int = 10
    ):
        """
        Args:
            queue: Work queue to drain
            processor: Callable running one job and returning its result
            concurrency: Number of jobs that may run in parallel
            app: Optional Flask app whose context wraps each job
            timezone: Scheduler timezone
            prune_interval_minutes: How often finished jobs are pruned
        """
        self.queue = queue
        self.processor = processor
        self.concurrency = concurrency
        self._app = app
        self._prune_interval = prune_interval_minutes
        self._listeners: Dict[str, List[JobListener]] = {'completed': [], 'failed': []}
        self._accepting = False
        self._closed = False

        self._scheduler = BackgroundScheduler(
            executors={'default': ThreadPoolExecutor(max_workers=concurrency)},
            timezone=timezone,
            job_defaults={
                'coalesce': False,
                'max_instances': concurrency,
                'misfire_grace_time': None  # Dispatches never expire
            }
        )

        self._scheduler.add_listener(self._job_executed_listener, EVENT_JOB_EXECUTED)
        self._scheduler.add_listener(self._job_error_listener, EVENT_JOB_ERROR)
        self._scheduler.add_listener(self._job_missed_listener, EVENT_JOB_MISSED)

    def on(self, event: str, listener: JobListener) -> None:
        """Register a listener for 'completed' or 'failed' jobs."""
        if event not in self._listeners:
            raise ValueError(f"Unknown worker event: {event}")
        self._listeners[event].append(listener)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        """Start the pool and drain anything already queued."""
        if self._closed:
            raise RuntimeError("Worker has been closed")

        if self._scheduler.running:
            logger.warning("Worker is already running")
            return

        self._scheduler.add_job(
            func=self.queue.prune,
            trigger=IntervalTrigger(minutes=self._prune_interval),
            id='prune_finished_jobs',
            name='Prune Finished Jobs',
            replace_existing=True
        )
        self._scheduler.start()
        self._accepting = True
        logger.info(f"Calculation worker started with concurrency={self.concurrency}")

        # One dispatch per job queued before the pool came up
        for _ in range(self.queue.counts()[JobState.QUEUED]):
            self._schedule_dispatch()

    def close(self, wait: bool = True) -> None:
        """
        Stop accepting dispatches and shut the pool down.

        Args:
            wait: Whether to wait for in-flight jobs to finish
        """
        if self._closed:
            return
        self._accepting = False
        self._closed = True
        if self._scheduler.running:
            self._scheduler.shutdown(wait=wait)
        logger.info("Calculation worker shutdown complete")

    @property
    def is_running(self) -> bool:
        return self._scheduler.running and self._accepting

    # =========================================================================
    # Dispatch
    # =========================================================================

    def dispatch(self) -> bool:
        """
        Schedule one immediate run of the next queued job.

        Returns:
            True if a dispatch was scheduled
        """
        if not self.is_running:
            logger.debug("Worker not running; job stays queued")
            return False
        return self._schedule_dispatch()

    def _schedule_dispatch(self) -> bool:
        # No trigger: runs once, as soon as a pool thread is free
        self._scheduler.add_job(func=self.process_next, name='Process Calculation')
        return True

    def process_next(self) -> Optional[CalculationJob]:
        """
        Run the highest-priority queued job to completion.

        A failing job is marked failed with its error message and the error
        is re-raised so the scheduler's error listener logs it.

        Returns:
            The processed job, or None if nothing was queued
        """
        job = self.queue.take_next()
        if job is None:
            return None

        logger.info(f"Job {job.id} active ({job.data.get('calculation_type')})")
        try:
            if self._app is not None:
                with self._app.app_context():
                    result = self.processor(job)
            else:
                result = self.processor(job)

        except Exception as e:
            self.queue.fail(job, str(e))
            self._notify('failed', job)
            raise

        self.queue.complete(job, result)
        self._notify('completed', job)
        return job

    def _notify(self, event: str, job: CalculationJob) -> None:
        for listener in self._listeners[event]:
            try:
                listener(job)
            except Exception as e:
                logger.error(f"Worker '{event}' listener failed for job {job.id}: {e}")

    # =========================================================================
    # Event Listeners
    # =========================================================================

    def _job_executed_listener(self, event):
        logger.debug(f"Scheduler job {event.job_id} executed successfully")

    def _job_error_listener(self, event):
        logger.error(
            f"Scheduler job {event.job_id} failed with exception: {event.exception}\n{event.traceback}"
        )

    def _job_missed_listener(self, event):
        logger.warning(f"Scheduler job {event.job_id} missed its scheduled run time")

    # =========================================================================
    # Monitoring
    # =========================================================================

    def get_status(self) -> Dict[str, Any]:
        return {
            'running': self.is_running,
            'concurrency': self.concurrency,
            'jobs': self.queue.counts(),
        }
