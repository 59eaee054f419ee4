"""
Configuration management for the League Statistics Engine.

Loads configuration from environment variables with sensible defaults
for development. Production deployments should set all required
environment variables.
"""

import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ('true', '1', 'yes', 'on')


class Config:
    """Base configuration class."""

    # Flask
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key-change-in-production')

    # Database
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'DATABASE_URL',
        'sqlite:///league_stats.db'
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
    }

    # CORS - Allow frontend
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', 'http://localhost:3000').split(',')
    CORS_SUPPORTS_CREDENTIALS = True

    # Result cache
    STATS_CACHE_TTL = int(os.environ.get('STATS_CACHE_TTL', '3600'))
    STATS_CACHE_DEFAULT_TTL = int(os.environ.get('STATS_CACHE_DEFAULT_TTL', '300'))

    # Worker pool
    STATS_WORKER_ENABLED = _env_bool('STATS_WORKER_ENABLED', 'true')
    STATS_WORKER_CONCURRENCY = int(os.environ.get('STATS_WORKER_CONCURRENCY', '2'))

    # Work queue retention
    STATS_QUEUE_REMOVE_ON_COMPLETE = int(os.environ.get('STATS_QUEUE_REMOVE_ON_COMPLETE', '100'))
    STATS_QUEUE_REMOVE_ON_FAIL = int(os.environ.get('STATS_QUEUE_REMOVE_ON_FAIL', '1000'))
    STATS_QUEUE_PRUNE_INTERVAL_MINUTES = int(
        os.environ.get('STATS_QUEUE_PRUNE_INTERVAL_MINUTES', '10')
    )

    # Performance trends
    STATS_TREND_WINDOW = int(os.environ.get('STATS_TREND_WINDOW', '6'))
    STATS_TREND_THRESHOLD_PCT = float(os.environ.get('STATS_TREND_THRESHOLD_PCT', '5.0'))

    # Scheduler
    SCHEDULER_TIMEZONE = os.environ.get('SCHEDULER_TIMEZONE', 'UTC')


class DevelopmentConfig(Config):
    """Development configuration."""

    DEBUG = True
    SQLALCHEMY_ECHO = _env_bool('SQLALCHEMY_ECHO', 'false')


class TestingConfig(Config):
    """Testing configuration."""

    TESTING = True
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    STATS_WORKER_ENABLED = False


class ProductionConfig(Config):
    """Production configuration."""

    DEBUG = False

    # Worker pool sized for a dedicated host
    STATS_WORKER_CONCURRENCY = int(os.environ.get('STATS_WORKER_CONCURRENCY', '3'))


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}


def get_config():
    """Get configuration class based on FLASK_ENV environment variable."""
    env = os.environ.get('FLASK_ENV', 'development')
    return config.get(env, config['default'])
