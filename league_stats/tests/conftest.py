"""
Shared fixtures for the league statistics tests.

Run with: python -m pytest league_stats/tests -v
"""

from unittest.mock import MagicMock

import pytest

from league_stats.app import create_app
from league_stats.config import TestingConfig
from league_stats.extensions import db
from league_stats.models import WeeklyResult
from league_stats.services.cache_service import CacheService
from league_stats.services.job_queue import WorkQueue
from league_stats.services.statistics_engine import StatisticsEngine, get_engine
from league_stats.services.statistics_repository import StatisticsRepository


@pytest.fixture
def app():
    """Create application for testing."""
    app = create_app(TestingConfig)

    with app.app_context():
        db.create_all()
        yield app
        get_engine(app).shutdown()
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def seed_results(app):
    """Insert GameResults as WeeklyResult rows."""
    def _seed(games):
        for game in games:
            db.session.add(WeeklyResult(
                league_id=game.league_id,
                season=game.season,
                week=game.week,
                team_id=game.team_id,
                opponent_id=game.opponent_id,
                points_for=game.points_for,
                points_against=game.points_against,
                result=game.result,
                is_playoff=game.is_playoff,
                is_championship=game.is_championship,
                margin_of_victory=game.margin_of_victory,
            ))
        db.session.commit()
    return _seed


@pytest.fixture
def db_engine(app):
    """Engine over the test database with a real cache and no worker."""
    engine = StatisticsEngine(
        repository=StatisticsRepository(),
        cache=CacheService(name='test-primary'),
        queue=WorkQueue('test-calculations'),
    )
    yield engine
    engine.shutdown()


@pytest.fixture
def mock_repository():
    repository = MagicMock(spec=StatisticsRepository)
    repository.get_weekly_results.return_value = []
    repository.get_season_statistics.return_value = []
    repository.get_championship_records.return_value = []
    repository.log_calculation_start.return_value = 1
    return repository


@pytest.fixture
def mock_cache():
    return MagicMock(spec=CacheService)


@pytest.fixture
def mock_pub_client():
    return MagicMock(spec=CacheService)


@pytest.fixture
def mock_engine(mock_repository, mock_cache, mock_pub_client):
    """Engine with MagicMock store and cache connections for failure injection."""
    return StatisticsEngine(
        repository=mock_repository,
        cache=mock_cache,
        queue=WorkQueue('mock-calculations'),
        pub_client=mock_pub_client,
    )
