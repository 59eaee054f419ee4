"""
Statistics Engine.

Ties the analyzers to the stores and the background machinery:
- Calculations read weekly results, run an analyzer, upsert the aggregates
  and refresh a cached snapshot
- Requests are queued on the Work Queue with a priority and processed by
  the Calculation Worker
- Progress and lifecycle events are published on a duplicated cache
  connection

Error handling follows two classes:
1. Store errors (reads, upserts, audit log) propagate unchanged and fail
   the calculation and its job.
2. Cache errors (snapshot writes, invalidation, event publishing) are
   logged and discarded; the calculation still succeeds.

The engine is an explicit object built from injected dependencies. In the
Flask app one instance lives in ``app.extensions['statistics_engine']``.
"""

import json
import logging
import time
from typing import Any, Dict, Optional

from flask import current_app

from league_stats.analyzers import (
    TrendConfig,
    compute_championship_records,
    compute_head_to_head,
    compute_performance_trends,
    compute_season_statistics,
    find_all_time_records,
)
from league_stats.constants import (
    CHANNEL_CALCULATE,
    CHANNEL_COMPLETE,
    CHANNEL_FAILED,
    CHANNEL_PROGRESS,
    PRIORITY_FULL_RECOMPUTE,
    PRIORITY_SINGLE_TYPE,
    CacheTTL,
    CalculationType,
)
from league_stats.services.cache_service import CacheService
from league_stats.services.job_queue import CalculationJob, WorkQueue
from league_stats.services.statistics_repository import StatisticsRepository
from league_stats.services.worker_service import CalculationWorker

logger = logging.getLogger(__name__)

QUEUE_NAME = 'statistics-calculations'
JOB_NAME = 'calculate'
EXTENSION_KEY = 'statistics_engine'


# =============================================================================
# Custom Exceptions
# =============================================================================

class StatisticsEngineError(Exception):
    """Base exception for statistics engine errors."""
    pass


class InvalidCalculationRequest(StatisticsEngineError):
    """Raised when a calculation request has a bad type or league id."""
    pass


# =============================================================================
# Statistics Engine
# =============================================================================

class StatisticsEngine:
    """
    Computes league statistics and schedules calculation jobs.

    Usage:
        engine = StatisticsEngine(repository, cache, queue)
        engine.attach_worker(CalculationWorker(queue, engine.process_job))
        job_id = engine.queue_calculation('league-1', 'ALL')
        engine.get_progress(job_id)
        engine.shutdown()
    """

    def __init__(
        self,
        repository: StatisticsRepository,
        cache: CacheService,
        queue: WorkQueue,
        pub_client: Optional[CacheService] = None,
        worker: Optional[CalculationWorker] = None,
        cache_ttl: int = CacheTTL.STATISTICS,
        trend_config: Optional[TrendConfig] = None
    ):
        """
        Args:
            repository: Weekly result and aggregate store access
            cache: Primary cache connection for snapshots
            queue: Work queue for calculation jobs
            pub_client: Cache connection for events; duplicated from
                ``cache`` when not given
            worker: Optional worker draining ``queue``
            cache_ttl: Snapshot expiry in seconds
            trend_config: Trend window and threshold
        """
        self.repository = repository
        self.cache = cache
        self.queue = queue
        self.pub_client = pub_client if pub_client is not None else cache.duplicate('pubsub')
        self.worker = None
        self.cache_ttl = cache_ttl
        self.trend_config = trend_config or TrendConfig()
        self._shut_down = False

        if worker is not None:
            self.attach_worker(worker)

    def attach_worker(self, worker: CalculationWorker) -> None:
        """Use a worker for queued jobs and publish its lifecycle events."""
        self.worker = worker
        worker.on('completed', self._on_job_completed)
        worker.on('failed', self._on_job_failed)

    # =========================================================================
    # Job Scheduling
    # =========================================================================

    @staticmethod
    def priority_for(calculation_type: str) -> int:
        """Full recomputes preempt single-type jobs."""
        if calculation_type == CalculationType.ALL.value:
            return PRIORITY_FULL_RECOMPUTE
        return PRIORITY_SINGLE_TYPE

    def queue_calculation(
        self,
        league_id: str,
        calculation_type: str,
        season_id: Optional[str] = None
    ) -> str:
        """
        Queue a calculation and return its job id without waiting.

        Args:
            league_id: League identifier
            calculation_type: One of CalculationType
            season_id: Season for SEASON jobs; all seasons when omitted

        Returns:
            Job identifier

        Raises:
            InvalidCalculationRequest: If the league id or type is invalid
        """
        if not league_id or not isinstance(league_id, str):
            raise InvalidCalculationRequest("league_id is required")

        try:
            calculation_type = CalculationType(calculation_type).value
        except ValueError:
            valid = ', '.join(t.value for t in CalculationType)
            raise InvalidCalculationRequest(
                f"Unknown calculation type '{calculation_type}'. Expected one of: {valid}"
            )

        data = {
            'league_id': league_id,
            'calculation_type': calculation_type,
            'season_id': str(season_id) if season_id is not None else None,
        }
        priority = self.priority_for(calculation_type)
        job = self.queue.add(JOB_NAME, data, priority=priority)

        logger.info(
            f"Queued {calculation_type} calculation for league {league_id} "
            f"(job {job.id}, priority {priority})"
        )
        self._publish(CHANNEL_CALCULATE, {'job_id': job.id, 'priority': priority, **data})

        if self.worker is not None:
            self.worker.dispatch()
        return job.id

    def get_progress(self, job_id: str) -> Optional[Dict[str, Any]]:
        """Progress record for a job, or None if the id is unknown."""
        job = self.queue.get_job(job_id)
        if job is None:
            return None
        return job.to_progress()

    def process_job(self, job: CalculationJob) -> Dict[str, Any]:
        """
        Run a queued job. Called by the worker.

        The run is recorded in the calculation audit log. Any error is
        recorded there and re-raised unchanged so the job fails with it.

        Returns:
            Result with success, records_processed, execution_time and job_id
        """
        request = job.data
        log_id = self.repository.log_calculation_start(job.id, request)
        start_time = time.time()

        try:
            result = self.run_calculation(request, job)

        except Exception as e:
            logger.error(f"Calculation job {job.id} failed: {e}")
            try:
                self.repository.log_calculation_error(log_id, str(e))
            except Exception as log_error:
                logger.error(f"Could not record failure of job {job.id}: {log_error}")
            raise

        execution_time = int((time.time() - start_time) * 1000)
        self.repository.log_calculation_complete(log_id, execution_time, result['records_processed'])

        logger.info(
            f"Job {job.id} completed: {result['records_processed']} records in {execution_time}ms"
        )
        return {**result, 'execution_time': execution_time, 'job_id': job.id}

    def run_calculation(
        self,
        request: Dict[str, Any],
        job: Optional[CalculationJob] = None
    ) -> Dict[str, Any]:
        """Run the calculation a request names, synchronously."""
        league_id = request['league_id']
        calculation_type = CalculationType(request['calculation_type'])

        if calculation_type == CalculationType.ALL:
            return self.calculate_all_statistics(league_id, job)
        if calculation_type == CalculationType.SEASON:
            return self.calculate_season_statistics(league_id, request.get('season_id'))
        if calculation_type == CalculationType.HEAD_TO_HEAD:
            return self.calculate_head_to_head(league_id)
        if calculation_type == CalculationType.ALL_TIME:
            return self.calculate_all_time_records(league_id)
        if calculation_type == CalculationType.TRENDS:
            return self.calculate_performance_trends(league_id)
        return self.calculate_championship_records(league_id)

    # =========================================================================
    # Calculations
    # =========================================================================

    def calculate_season_statistics(self, league_id: str, season: Optional[str] = None) -> Dict[str, Any]:
        """
        Compute win/loss records, scoring and streaks per team and season.

        Args:
            league_id: League identifier
            season: Season to compute; every season when None
        """
        games = self.repository.get_weekly_results(league_id, season=season)
        rows = compute_season_statistics(games)
        if not rows:
            logger.info(f"No weekly results for league {league_id} season {season or 'all'}")
            return self._success(0)

        self.repository.upsert_season_statistics(rows)
        self._cache_snapshot(CacheService.league_key(league_id, 'season', season), rows)

        logger.info(f"Season statistics: {len(rows)} team seasons for league {league_id}")
        return self._success(len(rows))

    def calculate_head_to_head(self, league_id: str) -> Dict[str, Any]:
        games = self.repository.get_weekly_results(league_id)
        rows = compute_head_to_head(games)
        if not rows:
            return self._success(0)

        self.repository.upsert_head_to_head_records(rows)
        self._cache_snapshot(CacheService.league_key(league_id, 'h2h'), rows)

        logger.info(f"Head-to-head: {len(rows)} pairs for league {league_id}")
        return self._success(len(rows))

    def calculate_all_time_records(self, league_id: str) -> Dict[str, Any]:
        """
        Find league-wide records from weekly results and stored aggregates.

        Season and championship records are read from the aggregate store,
        so they reflect the last season and championship runs.
        """
        games = self.repository.get_weekly_results(league_id)
        season_stats = self.repository.get_season_statistics(league_id)
        championships = self.repository.get_championship_records(league_id)

        records = find_all_time_records(games, season_stats, championships)
        if not records:
            logger.info(f"No all-time records for league {league_id}")
            return self._success(0)

        self.repository.upsert_all_time_records(league_id, records)
        self._cache_snapshot(CacheService.league_key(league_id, 'records'), records)

        logger.info(f"All-time records: {len(records)} for league {league_id}")
        return self._success(len(records))

    def calculate_performance_trends(self, league_id: str) -> Dict[str, Any]:
        games = self.repository.get_weekly_results(league_id)
        rows = compute_performance_trends(games, self.trend_config)
        if not rows:
            return self._success(0)

        self.repository.upsert_performance_trends(rows)
        self._cache_snapshot(CacheService.league_key(league_id, 'trends'), rows)

        logger.info(f"Performance trends: {len(rows)} teams for league {league_id}")
        return self._success(len(rows))

    def calculate_championship_records(self, league_id: str) -> Dict[str, Any]:
        games = self.repository.get_weekly_results(league_id, championship_only=True)
        rows = compute_championship_records(games)
        if not rows:
            return self._success(0)

        self.repository.upsert_championship_records(rows)
        self._cache_snapshot(CacheService.league_key(league_id, 'championships'), rows)

        logger.info(f"Championships: {len(rows)} seasons for league {league_id}")
        return self._success(len(rows))

    def calculate_all_statistics(
        self,
        league_id: str,
        job: Optional[CalculationJob] = None
    ) -> Dict[str, Any]:
        """
        Recompute every statistic family for a league.

        Order matters: all-time records read the season and championship
        aggregates written earlier in the run.
        """
        self._invalidate_league(league_id)
        self._report_progress(job, 10)

        steps = (
            ('season', 30, lambda: self.calculate_season_statistics(league_id)),
            ('head_to_head', 45, lambda: self.calculate_head_to_head(league_id)),
            ('championships', 60, lambda: self.calculate_championship_records(league_id)),
            ('all_time_records', 75, lambda: self.calculate_all_time_records(league_id)),
            ('trends', 90, lambda: self.calculate_performance_trends(league_id)),
        )

        breakdown = {}
        for name, progress, step in steps:
            breakdown[name] = step()['records_processed']
            self._report_progress(job, progress)

        total = sum(breakdown.values())
        self._report_progress(job, 100)

        logger.info(f"Full recompute for league {league_id}: {total} records {breakdown}")
        return {**self._success(total), 'data': {'breakdown': breakdown}}

    @staticmethod
    def _success(records_processed: int) -> Dict[str, Any]:
        return {'success': True, 'records_processed': records_processed}

    # =========================================================================
    # Best-Effort Cache Side Effects
    # =========================================================================

    def _cache_snapshot(self, key: str, rows) -> None:
        try:
            self.cache.setex(key, self.cache_ttl, json.dumps(rows, default=str))
        except Exception as e:
            logger.warning(f"Failed to cache snapshot {key}: {e}")

    def _invalidate_league(self, league_id: str) -> None:
        try:
            self.cache.invalidate_league(league_id)
        except Exception as e:
            logger.warning(f"Failed to invalidate cache for league {league_id}: {e}")

    def _publish(self, channel: str, payload: Dict[str, Any]) -> None:
        try:
            self.pub_client.publish(channel, json.dumps(payload, default=str))
        except Exception as e:
            logger.warning(f"Failed to publish on {channel}: {e}")

    def _report_progress(self, job: Optional[CalculationJob], progress: int) -> None:
        if job is None:
            return
        job.update_progress(progress)
        self._publish(CHANNEL_PROGRESS, {'job_id': job.id, 'progress': job.progress})

    def _on_job_completed(self, job: CalculationJob) -> None:
        self._publish(CHANNEL_COMPLETE, {
            'job_id': job.id,
            'league_id': job.data.get('league_id'),
            'calculation_type': job.data.get('calculation_type'),
            'result': job.return_value,
        })

    def _on_job_failed(self, job: CalculationJob) -> None:
        self._publish(CHANNEL_FAILED, {
            'job_id': job.id,
            'league_id': job.data.get('league_id'),
            'calculation_type': job.data.get('calculation_type'),
            'error': job.failed_reason,
        })

    # =========================================================================
    # Shutdown
    # =========================================================================

    def shutdown(self) -> None:
        """
        Release the queue, the worker and both cache connections.

        Each resource is closed once; later calls are no-ops. A failure
        closing one resource does not stop the others from closing.
        """
        if self._shut_down:
            return
        self._shut_down = True

        resources = [('work queue', self.queue.close)]
        if self.worker is not None:
            resources.append(('worker', self.worker.close))
        resources.append(('cache connection', self.cache.close))
        if self.pub_client is not self.cache:
            resources.append(('pub/sub connection', self.pub_client.close))

        for label, close in resources:
            try:
                close()
            except Exception as e:
                logger.error(f"Error closing {label}: {e}")

        logger.info("Statistics engine shut down")

    @property
    def is_shut_down(self) -> bool:
        return self._shut_down

    def get_status(self) -> Dict[str, Any]:
        return {
            'worker_running': self.worker.is_running if self.worker else False,
            'jobs': self.queue.counts(),
            'cache': self.cache.get_stats(),
        }

    # =========================================================================
    # Factory
    # =========================================================================

    @classmethod
    def from_app(cls, app) -> 'StatisticsEngine':
        """Build an engine and its worker from Flask app config."""
        cfg = app.config
        cache = CacheService(default_ttl=cfg['STATS_CACHE_DEFAULT_TTL'], name='primary')
        queue = WorkQueue(
            QUEUE_NAME,
            remove_on_complete=cfg['STATS_QUEUE_REMOVE_ON_COMPLETE'],
            remove_on_fail=cfg['STATS_QUEUE_REMOVE_ON_FAIL']
        )
        engine = cls(
            repository=StatisticsRepository(),
            cache=cache,
            queue=queue,
            pub_client=cache.duplicate('pubsub'),
            cache_ttl=cfg['STATS_CACHE_TTL'],
            trend_config=TrendConfig(
                window=cfg['STATS_TREND_WINDOW'],
                threshold_pct=cfg['STATS_TREND_THRESHOLD_PCT']
            )
        )
        engine.attach_worker(CalculationWorker(
            queue,
            engine.process_job,
            concurrency=cfg['STATS_WORKER_CONCURRENCY'],
            app=app,
            timezone=cfg['SCHEDULER_TIMEZONE'],
            prune_interval_minutes=cfg['STATS_QUEUE_PRUNE_INTERVAL_MINUTES']
        ))
        return engine


# =============================================================================
# App Integration
# =============================================================================

def init_engine(app, start_worker: bool = True) -> StatisticsEngine:
    """
    Create the app's statistics engine and optionally start its worker.

    Args:
        app: Flask application
        start_worker: Whether to start processing queued jobs

    Returns:
        The engine stored in app.extensions
    """
    engine = StatisticsEngine.from_app(app)
    app.extensions[EXTENSION_KEY] = engine

    if start_worker:
        engine.worker.start()

    logger.info(f"Statistics engine initialized (worker started: {start_worker})")
    return engine


def get_engine(app=None) -> Optional[StatisticsEngine]:
    """Statistics engine of the given or current app, if initialized."""
    app = app or current_app
    return app.extensions.get(EXTENSION_KEY)
