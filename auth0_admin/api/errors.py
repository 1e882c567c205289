"""Error handlers for the application."""
import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

from auth0_admin.core.auth0 import (
    Auth0APIError,
    TokenUnavailableError,
    UserNotFoundError,
    RoleNotFoundError,
)
from auth0_admin.core.provisioning_service import ProvisioningFailed
from auth0_admin.core.role_reconciler import ReconciliationFailed
from auth0_admin.core.validators import ValidationError

logger = logging.getLogger(__name__)


def register_error_handlers(app):
    """Register error handlers with the Flask app."""

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError):
        return jsonify(error.to_dict()), 400

    @app.errorhandler(UserNotFoundError)
    @app.errorhandler(RoleNotFoundError)
    def handle_not_found(error):
        return jsonify({"error": "Not Found", "message": str(error)}), 404

    @app.errorhandler(ProvisioningFailed)
    @app.errorhandler(ReconciliationFailed)
    def handle_workflow_failure(error):
        logger.error("%s", error)
        status = 503 if isinstance(error.cause, TokenUnavailableError) else 502
        return jsonify(error.to_dict()), status

    @app.errorhandler(Auth0APIError)
    def handle_upstream_error(error: Auth0APIError):
        logger.error("Auth0 API error: %s", error)
        return jsonify({"error": "Bad Gateway", "message": error.message}), 502

    @app.errorhandler(TokenUnavailableError)
    def handle_token_unavailable(error):
        logger.error("Management API token unavailable: %s", error)
        return jsonify({"error": "Service Unavailable", "message": "Management API credential unavailable"}), 503

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        return jsonify({"error": error.name, "message": error.description}), error.code

    @app.errorhandler(Exception)
    def handle_exception(error):
        """Handle uncaught exceptions."""
        # Logs are the only place the traceback goes
        app.logger.error(f"Unhandled exception: {error}", exc_info=True)
        return jsonify({"error": "Internal Server Error", "message": "An unexpected error occurred"}), 500
