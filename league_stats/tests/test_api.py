"""
Tests for the statistics API endpoints.

Run with: python -m pytest league_stats/tests/test_api.py -v
"""

from unittest.mock import patch

from league_stats.app import create_app
from league_stats.config import TestingConfig
from league_stats.services.statistics_engine import get_engine
from league_stats.tests.factories import make_matchup


class TestCalculate:
    """Test POST /api/statistics/calculate."""

    def test_queue_full_recompute(self, client):
        """Test queueing a full recompute."""
        response = client.post('/api/statistics/calculate', json={
            'leagueId': 'league-1',
            'calculationType': 'ALL'
        })

        assert response.status_code == 202
        data = response.get_json()
        assert data['success'] is True
        assert data['priority'] == 1
        assert data['jobId']

    def test_queue_single_season(self, client):
        """Test queueing a single season calculation."""
        response = client.post('/api/statistics/calculate', json={
            'leagueId': 'league-1',
            'calculationType': 'SEASON',
            'seasonId': '2024'
        })

        assert response.status_code == 202
        assert response.get_json()['priority'] == 10

    def test_season_without_season_id_is_allowed(self, client):
        """Test season without season id is allowed."""
        response = client.post('/api/statistics/calculate', json={
            'leagueId': 'league-1',
            'calculationType': 'SEASON'
        })

        assert response.status_code == 202

    def test_missing_fields(self, client):
        """Test missing fields."""
        response = client.post('/api/statistics/calculate', json={'calculationType': 'ALL'})

        assert response.status_code == 400
        assert 'leagueId' in response.get_json()['error']

    def test_unknown_type(self, client):
        """Test an unknown calculation type is rejected."""
        response = client.post('/api/statistics/calculate', json={
            'leagueId': 'league-1',
            'calculationType': 'PLAYOFF_ODDS'
        })

        assert response.status_code == 400
        assert 'PLAYOFF_ODDS' in response.get_json()['error']

    def test_no_body(self, client):
        """Test a request without a body is rejected."""
        response = client.post('/api/statistics/calculate')

        assert response.status_code == 400

    def test_non_object_body(self, client):
        """Test a JSON array body is rejected."""
        response = client.post('/api/statistics/calculate', json=['ALL'])

        assert response.status_code == 400
        assert response.get_json()['error'] == 'No data provided'

    def test_engine_shut_down(self, app, client):
        """Test calculations are rejected after shutdown."""
        get_engine(app).shutdown()

        response = client.post('/api/statistics/calculate', json={
            'leagueId': 'league-1',
            'calculationType': 'ALL'
        })

        assert response.status_code == 503


class TestProgress:
    """Test GET /api/statistics/progress/<job_id>."""

    def test_progress_of_queued_job(self, client):
        """Test progress of queued job."""
        job_id = client.post('/api/statistics/calculate', json={
            'leagueId': 'league-1',
            'calculationType': 'TRENDS'
        }).get_json()['jobId']

        response = client.get(f'/api/statistics/progress/{job_id}')

        assert response.status_code == 200
        data = response.get_json()
        assert data['id'] == job_id
        assert data['state'] == 'queued'
        assert data['data']['calculation_type'] == 'TRENDS'

    def test_progress_after_processing(self, app, client, seed_results):
        """Test progress after processing."""
        seed_results(make_matchup('A', 'B', 1, 120, 100))
        job_id = client.post('/api/statistics/calculate', json={
            'leagueId': 'league-1',
            'calculationType': 'HEAD_TO_HEAD'
        }).get_json()['jobId']

        # Worker is disabled under tests; run the job inline
        engine = get_engine(app)
        engine.worker.process_next()

        data = client.get(f'/api/statistics/progress/{job_id}').get_json()
        assert data['state'] == 'completed'
        assert data['progress'] == 100
        assert data['return_value']['records_processed'] == 1

    def test_unknown_job(self, client):
        """Test progress of an unknown job is 404."""
        response = client.get('/api/statistics/progress/does-not-exist')

        assert response.status_code == 404


class TestHealth:

    def test_health_check(self, client):
        """Test health check."""
        response = client.get('/api/health')

        assert response.status_code == 200
        data = response.get_json()
        assert data['status'] == 'healthy'
        assert data['worker_running'] is False

    def test_status(self, client):
        """Test the status endpoint."""
        response = client.get('/api/statistics/status')

        assert response.status_code == 200
        assert response.get_json()['worker_running'] is False


class TestAppFactory:

    def test_exit_hook_only_with_running_worker(self):
        """Test apps without a worker leave the exit hooks alone."""
        with patch('league_stats.app.atexit') as mock_atexit:
            app = create_app(TestingConfig)

        mock_atexit.register.assert_not_called()
        get_engine(app).shutdown()
