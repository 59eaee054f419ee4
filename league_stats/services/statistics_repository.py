"""
Statistics Database Service.

Reads weekly results from the Weekly Result Store and upserts derived
aggregates into the Aggregate Store. Every upsert is a full replace keyed
by the aggregate's natural composite key and written as a single
INSERT ... ON CONFLICT DO UPDATE statement (SQLite or PostgreSQL); no
deletes are issued.

Database errors are rolled back and re-raised unchanged so the enclosing
calculation (and its job) fails with the original error.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError

from league_stats.analyzers.game_result import GameResult
from league_stats.constants import CalculationStatus
from league_stats.extensions import db
from league_stats.models import (
    AllTimeRecord,
    CalculationLog,
    ChampionshipRecord,
    HeadToHeadRecord,
    PerformanceTrend,
    SeasonStatistic,
    WeeklyResult,
)

logger = logging.getLogger(__name__)


def _dialect_insert(session):
    """INSERT construct with ON CONFLICT support for the session's database."""
    dialect = session.get_bind().dialect.name
    if dialect == 'postgresql':
        return postgresql_insert
    if dialect == 'sqlite':
        return sqlite_insert
    raise NotImplementedError(f"Upserts are not supported on {dialect}")


class StatisticsRepository:
    """
    Store access for the statistics engine.

    Usage:
        repository = StatisticsRepository()
        games = repository.get_weekly_results('league-1', season='2024')
        repository.upsert_season_statistics(rows)
    """

    def __init__(self, session=None):
        """
        Args:
            session: SQLAlchemy session; defaults to the Flask-SQLAlchemy
                scoped session of the current app context
        """
        self._session = session

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    # =========================================================================
    # Weekly Result Store (read-only)
    # =========================================================================

    def get_weekly_results(
        self,
        league_id: str,
        season: Optional[str] = None,
        championship_only: bool = False
    ) -> List[GameResult]:
        """
        Fetch weekly results for a league.

        No ordering is applied; callers sort when order matters.

        Args:
            league_id: League identifier
            season: Optional season filter
            championship_only: Only rows flagged as championship games
        """
        query = self.session.query(WeeklyResult).filter(WeeklyResult.league_id == league_id)
        if season is not None:
            query = query.filter(WeeklyResult.season == str(season))
        if championship_only:
            query = query.filter(WeeklyResult.is_championship.is_(True))

        return [GameResult.from_row(row) for row in query.all()]

    def get_league_ids(self) -> List[str]:
        """Distinct league identifiers that have weekly results."""
        rows = self.session.query(WeeklyResult.league_id).distinct().all()
        return sorted(row[0] for row in rows)

    # =========================================================================
    # Aggregate Store Reads
    # =========================================================================

    def get_season_statistics(self, league_id: str) -> List[Dict[str, Any]]:
        rows = self.session.query(SeasonStatistic).filter_by(league_id=league_id).all()
        return [row.to_dict() for row in rows]

    def get_championship_records(self, league_id: str) -> List[Dict[str, Any]]:
        rows = self.session.query(ChampionshipRecord).filter_by(league_id=league_id).all()
        return [row.to_dict() for row in rows]

    # =========================================================================
    # Aggregate Store Upserts
    # =========================================================================

    def upsert_season_statistics(self, records: List[Dict[str, Any]]) -> int:
        return self._upsert_all(SeasonStatistic, ('league_id', 'season', 'team_id'), records)

    def upsert_head_to_head_records(self, records: List[Dict[str, Any]]) -> int:
        return self._upsert_all(HeadToHeadRecord, ('league_id', 'team1_id', 'team2_id'), records)

    def upsert_all_time_records(self, league_id: str, records: List[Dict[str, Any]]) -> int:
        rows = [dict(record, league_id=league_id) for record in records]
        return self._upsert_all(
            AllTimeRecord,
            ('league_id', 'record_type', 'record_holder_type'),
            rows,
            timestamp_field='updated_at'
        )

    def upsert_performance_trends(self, records: List[Dict[str, Any]]) -> int:
        return self._upsert_all(PerformanceTrend, ('league_id', 'team_id'), records)

    def upsert_championship_records(self, records: List[Dict[str, Any]]) -> int:
        return self._upsert_all(ChampionshipRecord, ('league_id', 'season'), records)

    def _upsert_all(
        self,
        model,
        key_fields: tuple,
        records: List[Dict[str, Any]],
        timestamp_field: str = 'calculated_at'
    ) -> int:
        """
        Upsert records into a model's table and commit once.

        Returns:
            Number of rows written
        """
        if not records:
            return 0

        session = self.session
        now = datetime.utcnow()
        columns = model.__table__.c
        insert = _dialect_insert(session)
        try:
            for record in records:
                values = {field: value for field, value in record.items() if field in columns}
                values[timestamp_field] = now

                # Single statement so overlapping writers converge on the last one
                stmt = insert(model.__table__).values(**values)
                stmt = stmt.on_conflict_do_update(
                    index_elements=list(key_fields),
                    set_={field: stmt.excluded[field] for field in values if field not in key_fields}
                )
                session.execute(stmt)

            session.commit()

        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database error upserting {model.__tablename__}: {e}")
            raise

        logger.debug(f"Upserted {len(records)} {model.__tablename__} rows")
        return len(records)

    # =========================================================================
    # Calculation Audit Log
    # =========================================================================

    def log_calculation_start(self, job_id: str, request: Dict[str, Any]) -> int:
        """Create an IN_PROGRESS log row and return its id."""
        log = CalculationLog(
            job_id=job_id,
            league_id=request['league_id'],
            calculation_type=request['calculation_type'],
            status=CalculationStatus.IN_PROGRESS.value,
            request_payload=request,
            started_at=datetime.utcnow()
        )
        self._commit_log(log)
        return log.id

    def log_calculation_complete(self, log_id: int, execution_time_ms: int, records_processed: int) -> None:
        log = self.session.get(CalculationLog, log_id)
        if log is None:
            logger.warning(f"Calculation log {log_id} not found")
            return
        log.status = CalculationStatus.COMPLETED.value
        log.completed_at = datetime.utcnow()
        log.execution_time_ms = execution_time_ms
        log.records_processed = records_processed
        self._commit_log(log)

    def log_calculation_error(self, log_id: int, error_message: str) -> None:
        log = self.session.get(CalculationLog, log_id)
        if log is None:
            logger.warning(f"Calculation log {log_id} not found")
            return
        log.status = CalculationStatus.FAILED.value
        log.completed_at = datetime.utcnow()
        log.error_message = error_message
        self._commit_log(log)

    def _commit_log(self, log: CalculationLog) -> None:
        session = self.session
        try:
            session.add(log)
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database error writing calculation log: {e}")
            raise
