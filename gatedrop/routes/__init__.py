"""HTTP blueprints"""
from .auth import auth_bp
from .jobs import jobs_bp
from .users import users_bp
from .wallet import wallet_bp

__all__ = ['auth_bp', 'jobs_bp', 'users_bp', 'wallet_bp']
