"""
Statistics API Endpoints.

Queues statistics calculations and reports job progress. Calculations run
on the background worker; these endpoints never wait for them.
"""

import logging

from flask import Blueprint, jsonify, request

from league_stats.services.job_queue import QueueClosedError
from league_stats.services.statistics_engine import (
    InvalidCalculationRequest,
    StatisticsEngine,
    get_engine,
)

logger = logging.getLogger(__name__)

statistics_bp = Blueprint('statistics', __name__)


def _engine_or_503():
    engine = get_engine()
    if engine is None or engine.is_shut_down:
        return None, (jsonify({'error': 'Statistics engine is not available'}), 503)
    return engine, None


@statistics_bp.route('/calculate', methods=['POST'])
def calculate():
    """
    Queue a statistics calculation.

    Request JSON:
        leagueId: League identifier (required)
        calculationType: ALL, SEASON, HEAD_TO_HEAD, ALL_TIME, TRENDS or
            CHAMPIONSHIP (required)
        seasonId: Season for SEASON calculations (optional, all seasons
            when omitted)

    Returns:
        202: { success, jobId, priority }
        400: Validation error
        503: Engine unavailable
    """
    data = request.get_json(silent=True)

    if not isinstance(data, dict) or not data:
        return jsonify({'error': 'No data provided'}), 400

    required_fields = ['leagueId', 'calculationType']
    missing = [f for f in required_fields if not data.get(f)]
    if missing:
        return jsonify({
            'error': f"Missing required fields: {', '.join(missing)}"
        }), 400

    engine, error_response = _engine_or_503()
    if error_response:
        return error_response

    league_id = str(data['leagueId'])
    calculation_type = data['calculationType']
    season_id = data.get('seasonId')

    try:
        job_id = engine.queue_calculation(league_id, calculation_type, season_id)

    except InvalidCalculationRequest as e:
        return jsonify({'error': str(e)}), 400

    except QueueClosedError as e:
        logger.warning(f"Rejected calculation for league {league_id}: {e}")
        return jsonify({'error': 'Statistics engine is not available'}), 503

    return jsonify({
        'success': True,
        'jobId': job_id,
        'priority': StatisticsEngine.priority_for(calculation_type),
    }), 202


@statistics_bp.route('/progress/<job_id>', methods=['GET'])
def progress(job_id):
    """
    Get the progress of a calculation job.

    Returns:
        200: { id, progress, state, data, return_value, failed_reason }
        404: Unknown job id
    """
    engine, error_response = _engine_or_503()
    if error_response:
        return error_response

    job_progress = engine.get_progress(job_id)
    if job_progress is None:
        return jsonify({'error': f'Job {job_id} not found'}), 404

    return jsonify(job_progress), 200


@statistics_bp.route('/status', methods=['GET'])
def status():
    """Worker, queue and cache status."""
    engine, error_response = _engine_or_503()
    if error_response:
        return error_response

    return jsonify(engine.get_status()), 200
