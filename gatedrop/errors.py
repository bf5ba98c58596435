"""
Error taxonomy for Gatedrop.

Services raise these; a single Flask error handler turns them into JSON
responses of the form {"error": <message>, "code": <kind>} so clients can
tell "job no longer available" apart from "insufficient balance".
"""

import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class GatedropError(Exception):
    """Base class for every error a core operation can surface."""

    status_code = 400
    code = "error"
    default_message = "Request failed"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self):
        return {"error": self.message, "code": self.code}


class ValidationError(GatedropError):
    code = "validation_error"
    default_message = "Invalid request"


class NotFound(GatedropError):
    status_code = 404
    code = "not_found"
    default_message = "Not found"


class Unauthorized(GatedropError):
    """The caller is authenticated but not a party entitled to the operation."""

    status_code = 403
    code = "unauthorized"
    default_message = "You are not allowed to perform this action"


class InvalidStateTransition(GatedropError):
    status_code = 409
    code = "invalid_state_transition"
    default_message = "Job is not in a state that allows this action"


class InsufficientFunds(GatedropError):
    code = "insufficient_funds"
    default_message = "Insufficient balance"


class DuplicateApplication(GatedropError):
    status_code = 409
    code = "duplicate_application"
    default_message = "You have already applied to this job"


class AlreadyRated(GatedropError):
    status_code = 409
    code = "already_rated"
    default_message = "This job has already been rated"


class BelowMinimum(GatedropError):
    code = "below_minimum"
    default_message = "Amount is below the allowed minimum"


class AccountBanned(GatedropError):
    status_code = 403
    code = "account_banned"
    default_message = "Your account has been banned"


def register_error_handlers(app):
    """Attach JSON error handlers to the application."""

    @app.errorhandler(GatedropError)
    def handle_gatedrop_error(e):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(429)
    def ratelimit_handler(e):
        # Retry-After header is set by Flask-Limiter; read it back.
        retry_after = e.get_headers().get("Retry-After") if hasattr(e, "get_headers") else None
        retry_after_seconds = int(retry_after) if retry_after else 60
        return jsonify({
            "error": "Too many requests. Please try again later.",
            "code": "rate_limited",
            "retry_after": retry_after_seconds,
        }), 429

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({"error": e.description, "code": e.name.lower().replace(" ", "_")}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        logger.exception("Unhandled error: %s", e)
        return jsonify({"error": "Server error", "code": "server_error"}), 500
