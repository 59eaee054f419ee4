"""
SQLAlchemy database models for the League Statistics Engine.

This module defines the source-of-truth input table and every derived
aggregate table:
- WeeklyResult: per-team, per-week game outcomes (input, read-only here)
- SeasonStatistic: standings statistics per league/season/team
- HeadToHeadRecord: series record per league and unordered team pair
- AllTimeRecord: extremal league history values per record type
- PerformanceTrend: short-term trend classification per league/team
- ChampionshipRecord: championship game outcome per league/season
- CalculationLog: audit trail of calculation runs

Each derived table carries a unique constraint on its natural composite
key; the repository upserts against that key.
"""

from datetime import datetime

from league_stats.extensions import db


def _iso(value):
    return value.isoformat() if value else None


# =============================================================================
# Weekly Result Model (input)
# =============================================================================

class WeeklyResult(db.Model):
    """
    One team's recorded outcome for one week of one season.

    Written by the ingestion process; the statistics engine only reads it.

    Attributes:
        league_id: League identifier
        season: Season token (e.g. '2024')
        week: Week number within the season
        team_id: Team the row describes
        opponent_id: Opposing team for that week
        points_for: Points scored by team_id
        points_against: Points scored by opponent_id
        result: WIN, LOSS or TIE
        is_playoff: Game was a playoff game
        is_championship: Game was the championship game
        margin_of_victory: points_for - points_against
        created_at: Row creation timestamp
    """

    __tablename__ = 'weekly_results'

    id = db.Column(db.Integer, primary_key=True)
    league_id = db.Column(db.String(64), nullable=False, index=True)
    season = db.Column(db.String(16), nullable=False)
    week = db.Column(db.Integer, nullable=False)
    team_id = db.Column(db.String(64), nullable=False)
    opponent_id = db.Column(db.String(64))

    points_for = db.Column(db.Float, nullable=False, default=0.0)
    points_against = db.Column(db.Float, default=0.0)
    result = db.Column(db.String(8))  # WIN, LOSS, TIE
    is_playoff = db.Column(db.Boolean, default=False, nullable=False)
    is_championship = db.Column(db.Boolean, default=False, nullable=False)
    margin_of_victory = db.Column(db.Float, default=0.0)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint(
            'league_id', 'season', 'week', 'team_id',
            name='unique_weekly_result'
        ),
        db.Index('idx_weekly_result_league_season', 'league_id', 'season'),
    )

    def to_dict(self) -> dict:
        """Convert weekly result to dictionary."""
        return {
            'id': self.id,
            'league_id': self.league_id,
            'season': self.season,
            'week': self.week,
            'team_id': self.team_id,
            'opponent_id': self.opponent_id,
            'points_for': self.points_for,
            'points_against': self.points_against,
            'result': self.result,
            'is_playoff': self.is_playoff,
            'is_championship': self.is_championship,
            'margin_of_victory': self.margin_of_victory,
            'created_at': _iso(self.created_at),
        }

    def __repr__(self) -> str:
        return f'<WeeklyResult {self.league_id} {self.season} W{self.week} {self.team_id}>'


# =============================================================================
# Season Statistic Model
# =============================================================================

class SeasonStatistic(db.Model):
    """
    Season standings statistics for one team.

    Fully replaced on every recomputation; never patched incrementally.
    """

    __tablename__ = 'season_statistics'

    id = db.Column(db.Integer, primary_key=True)
    league_id = db.Column(db.String(64), nullable=False, index=True)
    season = db.Column(db.String(16), nullable=False)
    team_id = db.Column(db.String(64), nullable=False)

    # Record
    games_played = db.Column(db.Integer, default=0)
    wins = db.Column(db.Integer, default=0)
    losses = db.Column(db.Integer, default=0)
    ties = db.Column(db.Integer, default=0)

    # Scoring
    points_for = db.Column(db.Float, default=0.0)
    points_against = db.Column(db.Float, default=0.0)
    avg_points_for = db.Column(db.Float, default=0.0)
    avg_points_against = db.Column(db.Float, default=0.0)
    points_std_dev = db.Column(db.Float, default=0.0)
    highest_score = db.Column(db.Float, default=0.0)
    lowest_score = db.Column(db.Float, default=0.0)

    # Margin of victory
    total_margin = db.Column(db.Float, default=0.0)
    avg_margin = db.Column(db.Float, default=0.0)
    largest_margin = db.Column(db.Float, default=0.0)

    # Streaks
    current_streak_type = db.Column(db.String(8))  # WIN, LOSS, TIE or None
    current_streak_count = db.Column(db.Integer, default=0)
    longest_win_streak = db.Column(db.Integer, default=0)
    longest_loss_streak = db.Column(db.Integer, default=0)

    calculated_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint('league_id', 'season', 'team_id', name='unique_season_statistic'),
    )

    def to_dict(self) -> dict:
        """Convert season statistic to dictionary for API responses."""
        return {
            'league_id': self.league_id,
            'season': self.season,
            'team_id': self.team_id,
            'games_played': self.games_played,
            'wins': self.wins,
            'losses': self.losses,
            'ties': self.ties,
            'points_for': self.points_for,
            'points_against': self.points_against,
            'avg_points_for': self.avg_points_for,
            'avg_points_against': self.avg_points_against,
            'points_std_dev': self.points_std_dev,
            'highest_score': self.highest_score,
            'lowest_score': self.lowest_score,
            'total_margin': self.total_margin,
            'avg_margin': self.avg_margin,
            'largest_margin': self.largest_margin,
            'current_streak_type': self.current_streak_type,
            'current_streak_count': self.current_streak_count,
            'longest_win_streak': self.longest_win_streak,
            'longest_loss_streak': self.longest_loss_streak,
            'calculated_at': _iso(self.calculated_at),
        }

    def __repr__(self) -> str:
        return f'<SeasonStatistic {self.team_id} {self.season} {self.wins}-{self.losses}-{self.ties}>'


# =============================================================================
# Head-to-Head Record Model
# =============================================================================

class HeadToHeadRecord(db.Model):
    """
    Series record between two teams, stored once per unordered pair.

    team1_id always sorts before team2_id; counts are relative to team1.
    """

    __tablename__ = 'head_to_head_records'

    id = db.Column(db.Integer, primary_key=True)
    league_id = db.Column(db.String(64), nullable=False, index=True)
    team1_id = db.Column(db.String(64), nullable=False)
    team2_id = db.Column(db.String(64), nullable=False)

    total_matchups = db.Column(db.Integer, default=0)
    team1_wins = db.Column(db.Integer, default=0)
    team2_wins = db.Column(db.Integer, default=0)
    ties = db.Column(db.Integer, default=0)

    team1_total_points = db.Column(db.Float, default=0.0)
    team2_total_points = db.Column(db.Float, default=0.0)
    team1_highest_score = db.Column(db.Float, default=0.0)
    team2_highest_score = db.Column(db.Float, default=0.0)

    playoff_matchups = db.Column(db.Integer, default=0)
    championship_matchups = db.Column(db.Integer, default=0)

    last_matchup_season = db.Column(db.String(16))
    last_matchup_week = db.Column(db.Integer)

    calculated_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint('league_id', 'team1_id', 'team2_id', name='unique_head_to_head'),
    )

    def to_dict(self) -> dict:
        """Convert head-to-head record to dictionary for API responses."""
        return {
            'league_id': self.league_id,
            'team1_id': self.team1_id,
            'team2_id': self.team2_id,
            'total_matchups': self.total_matchups,
            'team1_wins': self.team1_wins,
            'team2_wins': self.team2_wins,
            'ties': self.ties,
            'team1_total_points': self.team1_total_points,
            'team2_total_points': self.team2_total_points,
            'team1_highest_score': self.team1_highest_score,
            'team2_highest_score': self.team2_highest_score,
            'playoff_matchups': self.playoff_matchups,
            'championship_matchups': self.championship_matchups,
            'last_matchup_season': self.last_matchup_season,
            'last_matchup_week': self.last_matchup_week,
            'calculated_at': _iso(self.calculated_at),
        }

    def __repr__(self) -> str:
        return f'<HeadToHeadRecord {self.team1_id} vs {self.team2_id}>'


# =============================================================================
# All-Time Record Model
# =============================================================================

class AllTimeRecord(db.Model):
    """
    Single best historical value for one metric within a league.

    One row per (league_id, record_type, record_holder_type).
    """

    __tablename__ = 'all_time_records'

    id = db.Column(db.Integer, primary_key=True)
    league_id = db.Column(db.String(64), nullable=False, index=True)
    record_type = db.Column(db.String(64), nullable=False)
    record_holder_type = db.Column(db.String(16), nullable=False)  # TEAM, PLAYER

    record_holder_id = db.Column(db.String(64), nullable=False)
    record_value = db.Column(db.Float, nullable=False)
    season = db.Column(db.String(16))
    week = db.Column(db.Integer)
    description = db.Column(db.String(255))
    record_metadata = db.Column(db.JSON)

    updated_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint(
            'league_id', 'record_type', 'record_holder_type',
            name='unique_all_time_record'
        ),
    )

    def to_dict(self) -> dict:
        """Convert all-time record to dictionary for API responses."""
        return {
            'league_id': self.league_id,
            'record_type': self.record_type,
            'record_holder_type': self.record_holder_type,
            'record_holder_id': self.record_holder_id,
            'record_value': self.record_value,
            'season': self.season,
            'week': self.week,
            'description': self.description,
            'metadata': self.record_metadata or {},
            'updated_at': _iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f'<AllTimeRecord {self.record_type} {self.record_holder_id}={self.record_value}>'


# =============================================================================
# Performance Trend Model
# =============================================================================

class PerformanceTrend(db.Model):
    """Recent-form classification for one team."""

    __tablename__ = 'performance_trends'

    id = db.Column(db.Integer, primary_key=True)
    league_id = db.Column(db.String(64), nullable=False, index=True)
    team_id = db.Column(db.String(64), nullable=False)

    trend_direction = db.Column(db.String(8), nullable=False)  # UP, DOWN, STABLE
    trend_strength = db.Column(db.Float, default=0.0)

    # Sample window
    period_type = db.Column(db.String(16), default='WEEKLY')
    period_value = db.Column(db.String(32))
    sample_size = db.Column(db.Integer, default=0)
    metrics = db.Column(db.JSON)

    calculated_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint('league_id', 'team_id', name='unique_performance_trend'),
    )

    def to_dict(self) -> dict:
        """Convert performance trend to dictionary for API responses."""
        return {
            'league_id': self.league_id,
            'team_id': self.team_id,
            'trend_direction': self.trend_direction,
            'trend_strength': self.trend_strength,
            'period_type': self.period_type,
            'period_value': self.period_value,
            'sample_size': self.sample_size,
            'metrics': self.metrics or {},
            'calculated_at': _iso(self.calculated_at),
        }

    def __repr__(self) -> str:
        return f'<PerformanceTrend {self.team_id} {self.trend_direction}>'


# =============================================================================
# Championship Record Model
# =============================================================================

class ChampionshipRecord(db.Model):
    """Championship game outcome for one season."""

    __tablename__ = 'championship_records'

    id = db.Column(db.Integer, primary_key=True)
    league_id = db.Column(db.String(64), nullable=False, index=True)
    season = db.Column(db.String(16), nullable=False)

    champion_id = db.Column(db.String(64), nullable=False)
    runner_up_id = db.Column(db.String(64), nullable=False)
    championship_score = db.Column(db.Float)
    runner_up_score = db.Column(db.Float)
    championship_week = db.Column(db.Integer)

    calculated_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint('league_id', 'season', name='unique_championship_record'),
    )

    def to_dict(self) -> dict:
        """Convert championship record to dictionary for API responses."""
        return {
            'league_id': self.league_id,
            'season': self.season,
            'champion_id': self.champion_id,
            'runner_up_id': self.runner_up_id,
            'championship_score': self.championship_score,
            'runner_up_score': self.runner_up_score,
            'championship_week': self.championship_week,
            'calculated_at': _iso(self.calculated_at),
        }

    def __repr__(self) -> str:
        return f'<ChampionshipRecord {self.season} {self.champion_id}>'


# =============================================================================
# Calculation Log Model
# =============================================================================

class CalculationLog(db.Model):
    """
    Audit trail of calculation runs.

    Attributes:
        job_id: Work queue job identifier
        calculation_type: Requested calculation type
        status: IN_PROGRESS, COMPLETED or FAILED
        records_processed: Records written by the run
        execution_time_ms: Wall time of the run
        error_message: Failure reason for FAILED runs
        request_payload: The original request
    """

    __tablename__ = 'calculation_logs'

    id = db.Column(db.Integer, primary_key=True)
    job_id = db.Column(db.String(64), index=True)
    league_id = db.Column(db.String(64), nullable=False, index=True)
    calculation_type = db.Column(db.String(32), nullable=False)
    status = db.Column(db.String(16), nullable=False)

    records_processed = db.Column(db.Integer, default=0)
    execution_time_ms = db.Column(db.Integer)
    error_message = db.Column(db.Text)
    request_payload = db.Column(db.JSON)

    started_at = db.Column(db.DateTime, default=datetime.utcnow)
    completed_at = db.Column(db.DateTime)

    def to_dict(self) -> dict:
        """Convert calculation log to dictionary."""
        return {
            'id': self.id,
            'job_id': self.job_id,
            'league_id': self.league_id,
            'calculation_type': self.calculation_type,
            'status': self.status,
            'records_processed': self.records_processed,
            'execution_time_ms': self.execution_time_ms,
            'error_message': self.error_message,
            'started_at': _iso(self.started_at),
            'completed_at': _iso(self.completed_at),
        }

    def __repr__(self) -> str:
        return f'<CalculationLog {self.calculation_type} {self.status}>'
