"""
Testing configuration for the Gatedrop backend
"""
import os
from config.settings import Config


class TestingConfig(Config):
    """Testing configuration with isolated database and safe defaults"""

    TESTING = True
    DEBUG = False

    SECRET_KEY = 'test-secret-key'
    JWT_SECRET = 'test-jwt-secret'

    # Use in-memory SQLite for fast tests
    SQLALCHEMY_DATABASE_URI = os.getenv(
        'TEST_DATABASE_URL',
        'sqlite:///:memory:'
    )
    # Flask-SQLAlchemy picks a StaticPool for in-memory SQLite; pool sizing
    # options from the base config would be rejected by it.
    SQLALCHEMY_ENGINE_OPTIONS = {}

    # Socket.IO test clients run in-process
    SOCKETIO_ASYNC_MODE = 'threading'

    # Disable rate limiting in tests
    RATELIMIT_ENABLED = False

    # Policy defaults pinned so tests do not depend on the environment
    MIN_JOB_FEE = 30.0
    MIN_CASHOUT_AMOUNT = 100.0
    BAN_REPORT_THRESHOLD = 2

    SENTRY_DSN = None

    # Logging
    LOG_LEVEL = 'WARNING'

    # CORS - allow all in tests
    CORS_ORIGINS = ['http://localhost:5173', 'http://localhost:3000']
