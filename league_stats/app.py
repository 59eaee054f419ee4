"""
League Statistics Engine - Flask Application

Main entry point for the statistics API and background worker.
"""

import atexit
import os
import logging
from logging.handlers import RotatingFileHandler

from flask import Flask, jsonify
from flask_cors import CORS

from league_stats import __version__
from league_stats.extensions import db, migrate
from league_stats.config import get_config
from league_stats.services.statistics_engine import init_engine, get_engine


def create_app(config_class=None):
    """
    Application factory for creating Flask app instances.

    Args:
        config_class: Configuration class to use. If None, uses get_config().

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)

    # Load configuration
    if config_class is None:
        config_class = get_config()
    app.config.from_object(config_class)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Configure CORS
    CORS(
        app,
        origins=app.config.get('CORS_ORIGINS', ['http://localhost:3000']),
        supports_credentials=app.config.get('CORS_SUPPORTS_CREDENTIALS', True),
        allow_headers=['Content-Type', 'Authorization'],
        methods=['GET', 'POST', 'OPTIONS']
    )

    # Configure logging
    configure_logging(app)

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Create database tables
    with app.app_context():
        db.create_all()

    # Build the engine; the worker only runs outside of tests
    start_worker = app.config.get('STATS_WORKER_ENABLED', True) and not app.testing
    engine = init_engine(app, start_worker=start_worker)
    if start_worker:
        atexit.register(engine.shutdown)

    app.logger.info('League Statistics Engine started successfully')

    return app


def configure_logging(app):
    """
    Configure logging for the league_stats package.

    Handlers go on the package logger so service modules and app.logger
    (named after the package) share them.
    """
    package_logger = logging.getLogger('league_stats')
    package_logger.setLevel(logging.DEBUG if app.debug else logging.INFO)

    # Factories run more than once under tests
    if package_logger.handlers:
        return

    if not app.debug and not app.testing:
        # Create logs directory if it doesn't exist
        if not os.path.exists('logs'):
            os.mkdir('logs')

        # File handler for production
        file_handler = RotatingFileHandler(
            'logs/league_stats.log',
            maxBytes=10240000,  # 10 MB
            backupCount=10
        )
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)
        package_logger.addHandler(file_handler)

    # Console handler for development
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    ))
    console_handler.setLevel(logging.DEBUG if app.debug else logging.INFO)
    package_logger.addHandler(console_handler)


def register_blueprints(app):
    """Register Flask blueprints for API routes."""
    from league_stats.api.statistics import statistics_bp

    app.register_blueprint(statistics_bp, url_prefix='/api/statistics')


def register_error_handlers(app):
    """Register error handlers for common HTTP errors."""

    @app.errorhandler(400)
    def bad_request(error):
        return jsonify({
            'error': 'Bad Request',
            'message': str(error.description) if hasattr(error, 'description') else 'Invalid request'
        }), 400

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({
            'error': 'Not Found',
            'message': 'The requested resource was not found'
        }), 404

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        app.logger.error(f'Internal server error: {error}')
        return jsonify({
            'error': 'Internal Server Error',
            'message': 'An unexpected error occurred'
        }), 500

    # Health check endpoint
    @app.route('/api/health')
    def health_check():
        """Health check endpoint for monitoring."""
        engine = get_engine(app)
        return jsonify({
            'status': 'healthy',
            'version': __version__,
            'worker_running': engine.worker.is_running if engine and engine.worker else False
        })


if __name__ == '__main__':
    app = create_app()
    app.run(host='0.0.0.0', port=5000, debug=True)
