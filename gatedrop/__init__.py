"""
Gatedrop backend: peer-to-peer campus delivery marketplace
"""
import logging
import os

import click
from flask import Flask
from flask_cors import CORS

from gatedrop.extensions import db, limiter, socketio

_startup_logger = logging.getLogger("gatedrop.startup")

_CRITICAL_ENV_VARS = [
    "JWT_SECRET",
    "SECRET_KEY",
    "DATABASE_URL",
]

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s"


def create_app(config_name=None):
    """Flask application factory"""
    app = Flask(__name__)

    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    from config import config
    app.config.from_object(config.get(config_name, config['default']))

    _configure_logging(app)
    _configure_sentry(app)
    if config_name == 'production':
        _check_production_env(app)

    origins = app.config['CORS_ORIGINS']
    allowed_origins = '*' if '*' in origins else origins

    # Initialize extensions
    db.init_app(app)
    CORS(app, resources={r"/api/*": {"origins": allowed_origins}})
    limiter.init_app(app)

    from gatedrop import socket_events  # noqa: F401  registers the handlers
    socketio.init_app(
        app,
        cors_allowed_origins=allowed_origins,
        async_mode=app.config['SOCKETIO_ASYNC_MODE'],
    )

    from gatedrop.fanout import SocketIOFanout
    from gatedrop.services import MarketplacePolicy
    app.extensions['gatedrop.fanout'] = SocketIOFanout(socketio)
    app.extensions['gatedrop.policy'] = MarketplacePolicy.from_config(app.config)

    from gatedrop.middleware import RequestIdMiddleware
    app.wsgi_app = RequestIdMiddleware(app.wsgi_app)

    from gatedrop.errors import register_error_handlers
    register_error_handlers(app)

    from gatedrop.routes import auth_bp, jobs_bp, users_bp, wallet_bp
    app.register_blueprint(auth_bp)
    app.register_blueprint(jobs_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(wallet_bp)

    @app.after_request
    def set_security_headers(response):
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = "default-src 'none'"
        if not app.debug and not app.testing:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response

    @app.route('/health')
    @limiter.exempt
    def health():
        return {'status': 'healthy', 'service': 'gatedrop-backend'}, 200

    @app.cli.command("init-db")
    def init_db():
        """Create all database tables."""
        db.create_all()
        click.echo("Database tables created.")

    return app


def _configure_logging(app):
    from gatedrop.middleware import RequestIdFilter

    root = logging.getLogger()
    root.setLevel(app.config['LOG_LEVEL'])

    # create_app() may run many times in one process (tests)
    if any(getattr(h, '_gatedrop', False) for h in root.handlers):
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    handler.addFilter(RequestIdFilter())
    handler._gatedrop = True
    root.addHandler(handler)


def _configure_sentry(app):
    dsn = app.config.get('SENTRY_DSN')
    if not dsn:
        return

    import sentry_sdk
    from sentry_sdk.integrations.flask import FlaskIntegration
    sentry_sdk.init(
        dsn=dsn,
        integrations=[FlaskIntegration()],
        traces_sample_rate=0.1,
    )


def _check_production_env(app):
    missing = [v for v in _CRITICAL_ENV_VARS if not os.environ.get(v)]
    if missing:
        _startup_logger.critical(
            "MISSING CRITICAL ENV VARS (app may not work correctly): %s",
            ", ".join(missing),
        )
    if '*' in app.config['CORS_ORIGINS']:
        _startup_logger.warning("CORS_ORIGINS allows every origin in production")
    if not app.config.get('SENTRY_DSN'):
        _startup_logger.warning("SENTRY_DSN is not set -- error monitoring is disabled.")
