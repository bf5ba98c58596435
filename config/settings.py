"""
Configuration settings for different environments
"""
import os
import secrets
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()


def _database_url():
    """Read DATABASE_URL, fixing postgres:// to postgresql:// for SQLAlchemy 2.x"""
    url = os.environ.get('DATABASE_URL', '')
    if url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql://', 1)
    return url or 'sqlite:///gatedrop.db'


class Config:
    """Base configuration"""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-only-' + secrets.token_hex(16)

    # JWT Authentication
    JWT_SECRET = os.environ.get('JWT_SECRET') or 'dev-only-' + secrets.token_hex(32)
    JWT_EXPIRY = timedelta(days=int(os.environ.get('JWT_EXPIRY_DAYS', '30')))

    # Database
    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
    }

    # CORS
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')

    # Socket.IO; None lets Flask-SocketIO pick eventlet when it is installed
    SOCKETIO_ASYNC_MODE = os.environ.get('SOCKETIO_ASYNC_MODE') or None

    # Rate limiting (in-memory; point at Redis via REDIS_URL)
    RATELIMIT_STORAGE_URI = os.environ.get('REDIS_URL') or 'memory://'
    RATELIMIT_DEFAULT = '100 per minute'

    # Request bodies
    MAX_CONTENT_LENGTH = 1 * 1024 * 1024  # 1MB

    # Marketplace policy
    MIN_JOB_FEE = float(os.environ.get('GATEDROP_MIN_JOB_FEE', '30'))
    MIN_CASHOUT_AMOUNT = float(os.environ.get('GATEDROP_MIN_CASHOUT', '100'))
    BAN_REPORT_THRESHOLD = int(os.environ.get('GATEDROP_BAN_THRESHOLD', '2'))

    # Error monitoring
    SENTRY_DSN = os.environ.get('SENTRY_DSN')

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'DEBUG')


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False

    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_size': 20,
        'max_overflow': 40,
        'pool_recycle': 3600,
        'pool_pre_ping': True,
    }
